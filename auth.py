"""
Admin authentication.

Passwords are stored as bcrypt hashes. A successful login stores the
admin id in the signed session cookie (``SessionMiddleware``); the
``get_current_admin`` dependency turns that cookie back into an
``AdminPrincipal`` or fails with 401 before the handler runs.
"""

import logging
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

import config
import crud
from database import get_db
from errors import ErrorKind, VotingError, INVALID_CREDENTIALS, NOT_AUTHORIZED
from schemas import AdminPrincipal

logger = logging.getLogger(__name__)

SESSION_ADMIN_KEY = "admin_id"


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored admin password hash is malformed")
        return False


def authenticate(db: Session, username: str, password: str) -> AdminPrincipal:
    """Check credentials; unknown user and wrong password fail identically."""
    admin = crud.get_admin_by_username(db, username)
    if not admin or not verify_password(password, admin.password_hash):
        logger.info("Failed admin login for username=%s", username)
        raise VotingError(ErrorKind.UNAUTHORIZED, INVALID_CREDENTIALS)
    return AdminPrincipal(id=admin.id, username=admin.username)


def login(request: Request, principal: AdminPrincipal) -> None:
    request.session.clear()
    request.session[SESSION_ADMIN_KEY] = principal.id
    logger.info("Admin %s logged in", principal.username)


def logout(request: Request) -> None:
    request.session.clear()


def _session_admin_id(request: Request) -> Optional[str]:
    admin_id = request.session.get(SESSION_ADMIN_KEY)
    return admin_id if isinstance(admin_id, str) else None


# Protected Dependency
def get_current_admin(request: Request, db: Session = Depends(get_db)) -> AdminPrincipal:
    admin_id = _session_admin_id(request)
    if not admin_id:
        raise VotingError(ErrorKind.UNAUTHORIZED, NOT_AUTHORIZED)

    admin = crud.get_admin(db, admin_id)
    if not admin:
        # Account removed after the session was issued
        request.session.clear()
        raise VotingError(ErrorKind.UNAUTHORIZED, NOT_AUTHORIZED)
    return AdminPrincipal(id=admin.id, username=admin.username)
