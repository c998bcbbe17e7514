from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
import auth
import schemas

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"]
)


@router.post("/login", response_model=schemas.LoginResponse)
def login(credentials: schemas.LoginRequest, request: Request, db: Session = Depends(get_db)):
    principal = auth.authenticate(db, credentials.username, credentials.password)
    auth.login(request, principal)
    return {"success": True, "admin": principal}


@router.post("/logout", response_model=schemas.SuccessResponse)
def logout(request: Request):
    auth.logout(request)
    return {"success": True}


@router.get("/me", response_model=schemas.SessionInfo)
def me(current_admin: schemas.AdminPrincipal = Depends(auth.get_current_admin)):
    return schemas.SessionInfo(authenticated=True, admin_id=current_admin.id, username=current_admin.username)
