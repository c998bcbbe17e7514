import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import auth
import config
import crud
import database
import models  # noqa: F401
import schemas
from main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def session_factory(tmp_path):
    engine = database.build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    database.Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[database.get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return crud.create_admin(db, ADMIN_USERNAME, auth.get_password_hash(ADMIN_PASSWORD))


@pytest.fixture
def admin_client(client, admin):
    response = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def ballot(db):
    """Two categories: house (house-1, house-2) and techno (techno-1)."""
    crud.create_category(db, schemas.CategoryCreate(id="house", name="Best House DJ", order=1))
    crud.create_category(db, schemas.CategoryCreate(id="techno", name="Best Techno DJ", order=2))
    for dj_id, name in [("house-1", "Deep Groove"), ("house-2", "Soulful Nights"), ("techno-1", "Warehouse")]:
        crud.create_dj(db, schemas.DjCreate(id=dj_id, name=name))
    crud.assign_dj_to_category(db, "house-1", "house")
    crud.assign_dj_to_category(db, "house-2", "house")
    crud.assign_dj_to_category(db, "techno-1", "techno")


@pytest.fixture
def vote_payload():
    def make(rut="12345678-9", selections=None, **overrides):
        payload = {
            "nombre": "Juan Perez",
            "rut": rut,
            "correo": "juan@x.com",
            "telefono": "+56912345678",
            "voteData": json.dumps(selections if selections is not None else {"house": "house-1"}),
        }
        payload.update(overrides)
        return payload
    return make
