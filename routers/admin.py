import logging
from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from database import get_db
from errors import ErrorKind, VotingError, conflict, invalid_input, not_found
import auth
import config
import crud
import export
import photo_storage
import schemas

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"]
)

CATEGORY_NOT_FOUND = "Categoría no encontrada"
DJ_NOT_FOUND = "DJ no encontrado"
ASSIGNMENT_NOT_FOUND = "Asignación no encontrada"


# Dashboard
@router.get("/stats", response_model=schemas.DashboardStats)
def get_dashboard_stats(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    return schemas.DashboardStats(
        total_votes=crud.count_votes(db),
        total_djs=crud.count_djs(db),
        total_categories=crud.count_categories(db),
    )


# Settings
@router.get("/settings", response_model=schemas.VotingSettings)
def get_settings(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    return schemas.VotingSettings(voting_open=crud.is_voting_open(db))


@router.put("/settings", response_model=schemas.VotingSettings)
def update_settings(
    settings_data: schemas.VotingSettings,
    current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin),
    db: Session = Depends(get_db)
):
    voting_open = crud.set_voting_open(db, settings_data.voting_open)
    logger.info("Voting %s by admin %s", "opened" if voting_open else "closed", current_admin.username)
    return schemas.VotingSettings(voting_open=voting_open)


# Category Management
@router.get("/categories", response_model=List[schemas.CategoryOut])
def get_categories(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    return crud.get_all_categories(db)


@router.post("/categories", response_model=schemas.CategoryOut, status_code=201)
def create_category(category: schemas.CategoryCreate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    if category.id and crud.get_category(db, category.id):
        raise conflict("Ya existe una categoría con este identificador")
    return crud.create_category(db, category)


@router.put("/categories/{category_id}", response_model=schemas.CategoryOut)
def update_category(category_id: str, category_update: schemas.CategoryUpdate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    db_category = crud.get_category(db, category_id)
    if not db_category:
        raise not_found(CATEGORY_NOT_FOUND)
    return crud.update_category(db, db_category, category_update)


@router.delete("/categories/{category_id}", response_model=schemas.SuccessResponse)
def delete_category(category_id: str, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    db_category = crud.get_category(db, category_id)
    if not db_category:
        raise not_found(CATEGORY_NOT_FOUND)
    # Assignments go with it
    crud.delete_category(db, db_category)
    logger.info("Category %s deleted by admin %s", category_id, current_admin.username)
    return {"success": True}


# DJ Management
@router.get("/djs", response_model=List[schemas.DjOut])
def get_djs(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    return crud.get_all_djs(db)


@router.post("/djs", response_model=schemas.DjOut, status_code=201)
def create_dj(dj: schemas.DjCreate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    if dj.id and crud.get_dj(db, dj.id):
        raise conflict("Ya existe un DJ con este identificador")
    return crud.create_dj(db, dj)


@router.put("/djs/{dj_id}", response_model=schemas.DjOut)
def update_dj(dj_id: str, dj_update: schemas.DjUpdate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    db_dj = crud.get_dj(db, dj_id)
    if not db_dj:
        raise not_found(DJ_NOT_FOUND)
    return crud.update_dj(db, db_dj, dj_update)


@router.delete("/djs/{dj_id}", response_model=schemas.SuccessResponse)
def delete_dj(dj_id: str, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    db_dj = crud.get_dj(db, dj_id)
    if not db_dj:
        raise not_found(DJ_NOT_FOUND)
    crud.delete_dj(db, db_dj)
    logger.info("DJ %s deleted by admin %s", dj_id, current_admin.username)
    return {"success": True}


# DJ <-> Category Assignments
@router.get("/dj-categories", response_model=List[schemas.DjCategoryOut])
def get_assignments(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    return crud.get_assignments(db)


@router.post("/dj-categories", response_model=schemas.DjCategoryOut, status_code=201)
def create_assignment(payload: schemas.DjCategoryCreate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    if not crud.get_dj(db, payload.dj_id):
        raise not_found(DJ_NOT_FOUND)
    if not crud.get_category(db, payload.category_id):
        raise not_found(CATEGORY_NOT_FOUND)
    if crud.find_assignment(db, payload.dj_id, payload.category_id):
        raise conflict("El DJ ya está asignado a esta categoría")
    return crud.assign_dj_to_category(db, payload.dj_id, payload.category_id)


@router.delete("/dj-categories", response_model=schemas.SuccessResponse)
def remove_assignment(payload: schemas.DjCategoryCreate, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    assignment = crud.find_assignment(db, payload.dj_id, payload.category_id)
    if not assignment:
        raise not_found(ASSIGNMENT_NOT_FOUND)
    crud.delete_assignment(db, assignment)
    return {"success": True}


@router.delete("/dj-categories/{assignment_id}", response_model=schemas.SuccessResponse)
def remove_assignment_by_id(assignment_id: str, current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    assignment = crud.get_assignment(db, assignment_id)
    if not assignment:
        raise not_found(ASSIGNMENT_NOT_FOUND)
    crud.delete_assignment(db, assignment)
    return {"success": True}


# Voters
@router.get("/voters", response_model=schemas.VoterPage)
def get_voters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin),
    db: Session = Depends(get_db)
):
    votes, total = crud.get_votes_paginated(db, page, limit)
    return {
        "votes": votes,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": (total + limit - 1) // limit,
    }


@router.get("/voters/export")
def export_voters(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin), db: Session = Depends(get_db)):
    content = export.build_voters_workbook(crud.get_all_votes(db))
    logger.info("Voter list exported by admin %s", current_admin.username)
    return Response(
        content=content,
        media_type=export.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={export.EXPORT_FILENAME}"},
    )


# DJ Photo Upload
@router.post("/upload", response_model=schemas.UploadResponse)
async def upload_image(file: UploadFile = File(...), current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin)):
    # One byte past the cap is enough to tell the file is too large
    content = await file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise invalid_input(details=[{"field": "file", "message": "File too large"}])
    try:
        url = await run_in_threadpool(photo_storage.save_photo, content, file.content_type or "")
    except ValueError as e:
        raise invalid_input(details=[{"field": "file", "message": str(e)}])
    except photo_storage.PhotoStorageError:
        raise VotingError(ErrorKind.INTERNAL, "Error al subir la imagen")
    return {"url": url}
