"""
Create an admin account directly in the database.

Usage:
    python create_admin.py <username> [password]

The password is prompted for when omitted.
"""

import argparse
import getpass
import sys

from sqlalchemy.orm import Session

from database import Base, SessionLocal, engine
import auth
import crud
import models  # noqa: F401


def create_admin(db: Session, username: str, password: str) -> bool:
    if crud.get_admin_by_username(db, username):
        print(f"Error: Admin with username '{username}' already exists.")
        return False

    crud.create_admin(db, username, auth.get_password_hash(password))
    print(f"Admin '{username}' created successfully!")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("username")
    parser.add_argument("password", nargs="?")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Enter Admin Password: ")
    if len(password) < 6:
        print("Error: Password must be at least 6 characters")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        return 0 if create_admin(db, args.username, password) else 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
