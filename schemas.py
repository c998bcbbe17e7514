import json
import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

RUT_PATTERN = re.compile(r"^[0-9]{7,8}-[0-9Kk]$")
PHONE_PATTERN = re.compile(r"^\+?[0-9]{8,12}$")
SLUG_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

# category id -> dj id
BallotSelections = Dict[str, str]
# category id -> dj id -> votes
CategoryStats = Dict[str, Dict[str, int]]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def normalize_rut(value: str) -> str:
    value = value.strip()
    if not RUT_PATTERN.match(value):
        raise ValueError("Formato de RUT inválido (ej: 12345678-9)")
    return value.upper()


# Votes
class VoteCreate(CamelModel):
    nombre: str
    rut: str
    correo: EmailStr
    telefono: str
    vote_data: BallotSelections

    @field_validator('nombre')
    @classmethod
    def validate_nombre(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError('El nombre debe tener al menos 2 caracteres')
        return v

    @field_validator('rut')
    @classmethod
    def validate_rut(cls, v: str) -> str:
        return normalize_rut(v)

    @field_validator('telefono')
    @classmethod
    def validate_telefono(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError('Teléfono inválido (8-12 dígitos)')
        return v

    @field_validator('vote_data', mode='before')
    @classmethod
    def parse_vote_data(cls, v):
        # The wire format is a JSON-encoded string; objects are accepted as well
        if isinstance(v, str):
            if not v.strip():
                raise ValueError('Debe incluir datos de votación')
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError('Los datos de votación no son JSON válido')
        if not isinstance(v, dict):
            raise ValueError('Los datos de votación deben ser un objeto categoría -> DJ')
        return v

    @field_validator('vote_data')
    @classmethod
    def validate_vote_data(cls, v: BallotSelections) -> BallotSelections:
        if not v:
            raise ValueError('Debe incluir datos de votación')
        for category_id, dj_id in v.items():
            if not category_id.strip() or not dj_id.strip():
                raise ValueError('Las categorías y DJs seleccionados no pueden estar vacíos')
        return v


class VoteOut(CamelModel):
    id: str
    nombre: str
    rut: str
    correo: str
    telefono: str
    vote_data: str
    created_at: datetime


class VoteCheck(BaseModel):
    exists: bool


class VoterPage(BaseModel):
    votes: List[VoteOut]
    total: int
    page: int
    limit: int
    pages: int


# Categories
class CategoryCreate(CamelModel):
    id: Optional[str] = Field(default=None, pattern=SLUG_PATTERN)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    order: int = 0


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    order: Optional[int] = None


class CategoryOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    order: int
    created_at: datetime


# DJs
class DjCreate(CamelModel):
    id: Optional[str] = Field(default=None, pattern=SLUG_PATTERN)
    name: str = Field(min_length=1, max_length=200)
    photo: Optional[str] = None
    bio: Optional[str] = None


class DjUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    photo: Optional[str] = None
    bio: Optional[str] = None


class DjOut(CamelModel):
    id: str
    name: str
    photo: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime


# Assignments
class DjCategoryCreate(CamelModel):
    dj_id: str = Field(min_length=1)
    category_id: str = Field(min_length=1)


class DjCategoryOut(CamelModel):
    id: str
    dj_id: str
    category_id: str
    created_at: datetime


# Auth
class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminPrincipal(CamelModel):
    """The authenticated admin attached to a request."""
    id: str
    username: str


class LoginResponse(BaseModel):
    success: bool
    admin: AdminPrincipal


class SessionInfo(CamelModel):
    authenticated: bool
    admin_id: str
    username: str


class SuccessResponse(BaseModel):
    success: bool = True


# Settings & dashboard
class VotingSettings(CamelModel):
    voting_open: bool


class DashboardStats(CamelModel):
    total_votes: int
    total_djs: int = Field(alias="totalDJs")
    total_categories: int


class UploadResponse(BaseModel):
    url: str
