import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

import config
from database import engine, Base, SessionLocal
from errors import VotingError, INVALID_DATA, INTERNAL_ERROR
from routers import admin, public, session
import models  # noqa: F401  registers tables on Base.metadata
import seed

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="DJ Awards Voting API")

app.add_middleware(
    SessionMiddleware,
    secret_key=config.SECRET_KEY,
    session_cookie=config.SESSION_COOKIE_NAME,
    max_age=config.SESSION_MAX_AGE,
    same_site="lax",
    https_only=config.IS_PRODUCTION,
)


# Create tables, default admin and voting flag on startup
@app.on_event("startup")
def initialize_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed.seed_defaults(db)
    finally:
        db.close()


def _field_name(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path"):
        parts = parts[1:]
    return ".".join(parts)


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators
    return msg.removeprefix("Value error, ")


@app.exception_handler(VotingError)
async def voting_error_handler(request: Request, exc: VotingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": _field_name(error["loc"]), "message": _clean_message(error["msg"])}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": INVALID_DATA, "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})


# Mount API Routers
app.include_router(session.router)
app.include_router(admin.router)
app.include_router(public.router)

# Mount Uploads
if not os.path.exists(config.UPLOAD_DIR):
    os.makedirs(config.UPLOAD_DIR)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.HOST, port=config.PORT)
