"""
Typed accessors over the voting database.

Each function takes the request's ``Session``; mutations commit before
returning so callers see the stored row (ids and timestamps filled in).
"""

import json
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Admin, Category, Dj, DjCategory, Setting, Vote
import schemas

VOTING_OPEN_KEY = "votingOpen"


# Votes
def create_vote(db: Session, vote: schemas.VoteCreate) -> Vote:
    db_vote = Vote(
        nombre=vote.nombre,
        rut=vote.rut,
        correo=str(vote.correo),
        telefono=vote.telefono,
        vote_data=json.dumps(vote.vote_data, sort_keys=True, ensure_ascii=False),
    )
    db.add(db_vote)
    db.commit()
    db.refresh(db_vote)
    return db_vote


def get_vote_by_rut(db: Session, rut: str) -> Optional[Vote]:
    return db.query(Vote).filter(Vote.rut == rut).first()


def get_all_votes(db: Session) -> List[Vote]:
    return db.query(Vote).order_by(Vote.created_at.desc(), Vote.id.asc()).all()


def get_votes_paginated(db: Session, page: int, limit: int) -> Tuple[List[Vote], int]:
    total = db.query(func.count(Vote.id)).scalar()
    votes = (
        db.query(Vote)
        .order_by(Vote.created_at.desc(), Vote.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return votes, total


def count_votes(db: Session) -> int:
    return db.query(func.count(Vote.id)).scalar()


# Admins
def get_admin_by_username(db: Session, username: str) -> Optional[Admin]:
    return db.query(Admin).filter(Admin.username == username).first()


def get_admin(db: Session, admin_id: str) -> Optional[Admin]:
    return db.query(Admin).filter(Admin.id == admin_id).first()


def create_admin(db: Session, username: str, password_hash: str) -> Admin:
    admin = Admin(username=username, password_hash=password_hash)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def count_admins(db: Session) -> int:
    return db.query(func.count(Admin.id)).scalar()


# Settings
def get_setting(db: Session, key: str) -> Optional[Setting]:
    return db.query(Setting).filter(Setting.key == key).first()


def upsert_setting(db: Session, key: str, value: str) -> Setting:
    setting = get_setting(db, key)
    if not setting:
        setting = Setting(key=key, value=value)
        db.add(setting)
    else:
        setting.value = value
    db.commit()
    db.refresh(setting)
    return setting


def is_voting_open(db: Session) -> bool:
    # Voting is open until an admin closes it
    setting = get_setting(db, VOTING_OPEN_KEY)
    return setting.value == "true" if setting else True


def set_voting_open(db: Session, voting_open: bool) -> bool:
    setting = upsert_setting(db, VOTING_OPEN_KEY, "true" if voting_open else "false")
    return setting.value == "true"


# Categories
def get_all_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.order.asc(), Category.name.asc()).all()


def get_category(db: Session, category_id: str) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def create_category(db: Session, category: schemas.CategoryCreate) -> Category:
    data = category.model_dump(exclude_none=True)
    db_category = Category(**data)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def update_category(db: Session, db_category: Category, update: schemas.CategoryUpdate) -> Category:
    for field, value in update.model_dump(exclude_unset=True).items():
        if field in ("name", "order") and value is None:
            continue
        setattr(db_category, field, value)
    db.commit()
    db.refresh(db_category)
    return db_category


def delete_category(db: Session, db_category: Category) -> None:
    db.delete(db_category)
    db.commit()


def count_categories(db: Session) -> int:
    return db.query(func.count(Category.id)).scalar()


# DJs
def get_all_djs(db: Session) -> List[Dj]:
    return db.query(Dj).order_by(Dj.name.asc()).all()


def get_dj(db: Session, dj_id: str) -> Optional[Dj]:
    return db.query(Dj).filter(Dj.id == dj_id).first()


def create_dj(db: Session, dj: schemas.DjCreate) -> Dj:
    db_dj = Dj(**dj.model_dump(exclude_none=True))
    db.add(db_dj)
    db.commit()
    db.refresh(db_dj)
    return db_dj


def update_dj(db: Session, db_dj: Dj, update: schemas.DjUpdate) -> Dj:
    for field, value in update.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(db_dj, field, value)
    db.commit()
    db.refresh(db_dj)
    return db_dj


def delete_dj(db: Session, db_dj: Dj) -> None:
    db.delete(db_dj)
    db.commit()


def count_djs(db: Session) -> int:
    return db.query(func.count(Dj.id)).scalar()


# Assignments
def get_djs_by_category(db: Session, category_id: str) -> List[Dj]:
    return (
        db.query(Dj)
        .join(DjCategory, DjCategory.dj_id == Dj.id)
        .filter(DjCategory.category_id == category_id)
        .order_by(Dj.name.asc())
        .all()
    )


def get_assignments(db: Session) -> List[DjCategory]:
    return db.query(DjCategory).order_by(DjCategory.created_at.asc()).all()


def get_assignment(db: Session, assignment_id: str) -> Optional[DjCategory]:
    return db.query(DjCategory).filter(DjCategory.id == assignment_id).first()


def find_assignment(db: Session, dj_id: str, category_id: str) -> Optional[DjCategory]:
    return (
        db.query(DjCategory)
        .filter(DjCategory.dj_id == dj_id, DjCategory.category_id == category_id)
        .first()
    )


def assign_dj_to_category(db: Session, dj_id: str, category_id: str) -> DjCategory:
    assignment = DjCategory(dj_id=dj_id, category_id=category_id)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def delete_assignment(db: Session, assignment: DjCategory) -> None:
    db.delete(assignment)
    db.commit()


def get_assignment_pairs(db: Session) -> set:
    """All live ``(category_id, dj_id)`` pairs a ballot may select."""
    rows = db.query(DjCategory.category_id, DjCategory.dj_id).all()
    return {(category_id, dj_id) for category_id, dj_id in rows}
