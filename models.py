import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Vote(Base):
    __tablename__ = "votes"

    id = Column(String, primary_key=True, default=generate_id)
    nombre = Column(String, nullable=False)
    rut = Column(String, unique=True, index=True, nullable=False)
    correo = Column(String, nullable=False)
    telefono = Column(String, nullable=False)
    # JSON document: {category_id: dj_id}
    vote_data = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String, primary_key=True, default=generate_id)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Setting(Base):
    __tablename__ = "settings"

    id = Column(String, primary_key=True, default=generate_id)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assignments = relationship(
        "DjCategory", back_populates="category", cascade="all, delete-orphan"
    )


class Dj(Base):
    __tablename__ = "djs"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    photo = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assignments = relationship(
        "DjCategory", back_populates="dj", cascade="all, delete-orphan"
    )


class DjCategory(Base):
    __tablename__ = "dj_categories"

    id = Column(String, primary_key=True, default=generate_id)
    dj_id = Column(String, ForeignKey("djs.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    dj = relationship("Dj", back_populates="assignments")
    category = relationship("Category", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint('dj_id', 'category_id', name='unique_dj_category'),
    )
