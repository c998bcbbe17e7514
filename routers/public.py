from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from database import get_db
from errors import not_found
import crud
import schemas
import tally
import voting

router = APIRouter(
    prefix="/api",
    tags=["public"]
)


@router.get("/settings", response_model=schemas.VotingSettings)
def get_settings(db: Session = Depends(get_db)):
    return schemas.VotingSettings(voting_open=crud.is_voting_open(db))


@router.get("/categories", response_model=List[schemas.CategoryOut])
def get_categories(db: Session = Depends(get_db)):
    return crud.get_all_categories(db)


@router.get("/djs", response_model=List[schemas.DjOut])
def get_djs(db: Session = Depends(get_db)):
    return crud.get_all_djs(db)


@router.get("/djs/category/{category_id}", response_model=List[schemas.DjOut])
def get_djs_by_category(category_id: str, db: Session = Depends(get_db)):
    if not crud.get_category(db, category_id):
        raise not_found("Categoría no encontrada")
    return crud.get_djs_by_category(db, category_id)


@router.get("/dj-categories", response_model=List[schemas.DjCategoryOut])
def get_assignments(db: Session = Depends(get_db)):
    return crud.get_assignments(db)


@router.post("/votes", response_model=schemas.VoteOut, status_code=201)
def submit_vote(vote_data: schemas.VoteCreate, db: Session = Depends(get_db)):
    return voting.submit_vote(db, vote_data)


@router.get("/votes/check/{rut}", response_model=schemas.VoteCheck)
def check_vote(rut: str, db: Session = Depends(get_db)):
    try:
        rut = schemas.normalize_rut(rut)
    except ValueError:
        # A malformed RUT cannot have voted
        return {"exists": False}
    return {"exists": crud.get_vote_by_rut(db, rut) is not None}


@router.get("/votes", response_model=List[schemas.VoteOut])
def get_votes(db: Session = Depends(get_db)):
    return crud.get_all_votes(db)


@router.get("/stats", response_model=schemas.CategoryStats)
def get_stats(db: Session = Depends(get_db)):
    return tally.get_stats(db)
