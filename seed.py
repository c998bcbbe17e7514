"""
Initial data: the default admin account and the voting-open flag.

Runs on application startup; can also be run directly:

    python seed.py
"""

import logging

from sqlalchemy.orm import Session

import auth
import config
import crud

logger = logging.getLogger(__name__)


def seed_defaults(db: Session) -> None:
    if crud.count_admins(db) == 0:
        crud.create_admin(
            db,
            config.DEFAULT_ADMIN_USERNAME,
            auth.get_password_hash(config.DEFAULT_ADMIN_PASSWORD),
        )
        logger.info("Default admin created (username: %s)", config.DEFAULT_ADMIN_USERNAME)
    else:
        logger.info("Admin accounts already exist, skipping default admin")

    if crud.get_setting(db, crud.VOTING_OPEN_KEY) is None:
        crud.set_voting_open(db, True)
        logger.info("Voting settings initialized (votingOpen: true)")


if __name__ == "__main__":
    from database import Base, SessionLocal, engine
    import models  # noqa: F401

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_defaults(session)
    finally:
        session.close()
