import asyncio
import json
import os
from io import BytesIO

from openpyxl import load_workbook

import config
import crud
import photo_storage
from models import Category, DjCategory


def test_category_crud(admin_client):
    created = admin_client.post("/api/admin/categories", json={"name": "Best House DJ", "description": "House", "order": 2})
    assert created.status_code == 201
    category = created.json()
    assert category["name"] == "Best House DJ"
    assert category["order"] == 2

    updated = admin_client.put(f"/api/admin/categories/{category['id']}", json={"description": "Four to the floor"})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Best House DJ"
    assert updated.json()["description"] == "Four to the floor"

    listed = admin_client.get("/api/admin/categories").json()
    assert [c["id"] for c in listed] == [category["id"]]

    deleted = admin_client.delete(f"/api/admin/categories/{category['id']}")
    assert deleted.json() == {"success": True}
    assert admin_client.get("/api/admin/categories").json() == []


def test_categories_sorted_by_order(admin_client, client):
    admin_client.post("/api/admin/categories", json={"name": "Second", "order": 2})
    admin_client.post("/api/admin/categories", json={"name": "First", "order": 1})
    admin_client.post("/api/admin/categories", json={"name": "Also first", "order": 1})

    names = [c["name"] for c in client.get("/api/categories").json()]

    assert names == ["Also first", "First", "Second"]


def test_category_slug_conflict(admin_client):
    assert admin_client.post("/api/admin/categories", json={"id": "house", "name": "House"}).status_code == 201

    response = admin_client.post("/api/admin/categories", json={"id": "house", "name": "House again"})

    assert response.status_code == 409


def test_category_validation(admin_client):
    response = admin_client.post("/api/admin/categories", json={"name": ""})

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "name"


def test_missing_category_is_not_found(admin_client):
    assert admin_client.put("/api/admin/categories/nope", json={"name": "X"}).status_code == 404
    assert admin_client.delete("/api/admin/categories/nope").status_code == 404


def test_dj_crud(admin_client, client):
    created = admin_client.post("/api/admin/djs", json={"name": "Deep Groove", "bio": "Resident"})
    assert created.status_code == 201
    dj = created.json()
    assert dj["photo"] is None

    updated = admin_client.put(f"/api/admin/djs/{dj['id']}", json={"photo": "/uploads/abc.png"})
    assert updated.json()["photo"] == "/uploads/abc.png"
    assert updated.json()["bio"] == "Resident"

    assert [d["name"] for d in client.get("/api/djs").json()] == ["Deep Groove"]

    assert admin_client.delete(f"/api/admin/djs/{dj['id']}").json() == {"success": True}
    assert admin_client.delete(f"/api/admin/djs/{dj['id']}").status_code == 404


def test_assignments(admin_client, client, ballot):
    before = len(client.get("/api/dj-categories").json())
    created = admin_client.post("/api/admin/dj-categories", json={"djId": "techno-1", "categoryId": "house"})
    assert created.status_code == 201
    assert created.json()["djId"] == "techno-1"
    assert created.json()["categoryId"] == "house"

    assert len(client.get("/api/dj-categories").json()) == before + 1
    house_djs = [d["id"] for d in client.get("/api/djs/category/house").json()]
    assert sorted(house_djs) == ["house-1", "house-2", "techno-1"]

    duplicate = admin_client.post("/api/admin/dj-categories", json={"djId": "techno-1", "categoryId": "house"})
    assert duplicate.status_code == 409

    removed = admin_client.request("DELETE", "/api/admin/dj-categories", json={"djId": "techno-1", "categoryId": "house"})
    assert removed.json() == {"success": True}
    assert len(admin_client.get("/api/admin/dj-categories").json()) == before


def test_assignment_requires_existing_entities(admin_client, ballot):
    assert admin_client.post("/api/admin/dj-categories", json={"djId": "ghost", "categoryId": "house"}).status_code == 404
    assert admin_client.post("/api/admin/dj-categories", json={"djId": "house-1", "categoryId": "ghost"}).status_code == 404


def test_remove_assignment_by_id(admin_client, client, ballot):
    assignment = client.get("/api/dj-categories").json()[0]

    assert admin_client.delete(f"/api/admin/dj-categories/{assignment['id']}").json() == {"success": True}
    assert admin_client.delete(f"/api/admin/dj-categories/{assignment['id']}").status_code == 404


def test_djs_by_missing_category(client):
    assert client.get("/api/djs/category/ghost").status_code == 404


def test_deleting_category_cascades_assignments(admin_client, db, ballot):
    admin_client.delete("/api/admin/categories/house")

    db.expire_all()
    assert db.query(DjCategory).filter(DjCategory.category_id == "house").count() == 0
    assert db.query(DjCategory).count() == 1
    assert crud.get_dj(db, "house-1") is not None


def test_deleting_dj_cascades_assignments(admin_client, db, ballot):
    admin_client.delete("/api/admin/djs/house-1")

    db.expire_all()
    assert db.query(DjCategory).filter(DjCategory.dj_id == "house-1").count() == 0
    assert db.query(DjCategory).count() == 2


def test_store_level_cascade(db, ballot):
    # Bypass the ORM: the foreign keys alone must clean up
    db.execute(Category.__table__.delete().where(Category.id == "techno"))
    db.commit()

    assert db.query(DjCategory).filter(DjCategory.category_id == "techno").count() == 0


def test_settings_toggle(admin_client, client, ballot, vote_payload):
    closed = admin_client.put("/api/admin/settings", json={"votingOpen": False})
    assert closed.json() == {"votingOpen": False}
    assert admin_client.get("/api/admin/settings").json() == {"votingOpen": False}
    assert client.get("/api/settings").json() == {"votingOpen": False}
    assert client.post("/api/votes", json=vote_payload()).status_code == 403

    admin_client.put("/api/admin/settings", json={"votingOpen": True})
    assert client.post("/api/votes", json=vote_payload()).status_code == 201


def test_dashboard_stats(admin_client, ballot, vote_payload):
    admin_client.post("/api/votes", json=vote_payload())

    assert admin_client.get("/api/admin/stats").json() == {"totalVotes": 1, "totalDJs": 3, "totalCategories": 2}


def test_voters_pagination(admin_client, ballot, vote_payload):
    for rut in ["11111111-1", "22222222-2", "33333333-3"]:
        admin_client.post("/api/votes", json=vote_payload(rut=rut))

    first = admin_client.get("/api/admin/voters?page=1&limit=2").json()
    second = admin_client.get("/api/admin/voters?page=2&limit=2").json()

    assert (first["total"], first["page"], first["limit"], first["pages"]) == (3, 1, 2, 2)
    assert len(first["votes"]) == 2
    assert len(second["votes"]) == 1
    ruts = {v["rut"] for v in first["votes"] + second["votes"]}
    assert ruts == {"11111111-1", "22222222-2", "33333333-3"}


def test_voters_pagination_bounds(admin_client):
    assert admin_client.get("/api/admin/voters?page=0").status_code == 400
    assert admin_client.get("/api/admin/voters?limit=0").status_code == 400
    assert admin_client.get("/api/admin/voters?limit=101").status_code == 400
    empty = admin_client.get("/api/admin/voters").json()
    assert empty == {"votes": [], "total": 0, "page": 1, "limit": 10, "pages": 0}


def test_export_voters_xlsx(admin_client, ballot, vote_payload):
    admin_client.post("/api/votes", json=vote_payload(rut="11111111-1", nombre="Ana Rojas"))

    response = admin_client.get("/api/admin/voters/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert "votantes.xlsx" in response.headers["content-disposition"]
    sheet = load_workbook(BytesIO(response.content))["Votantes"]
    rows = list(sheet.values)
    assert rows[0] == ("Nombre", "RUT", "Correo", "Teléfono", "Fecha")
    assert rows[1][:4] == ("Ana Rojas", "11111111-1", "juan@x.com", "+56912345678")
    assert len(rows) == 2


def test_export_keeps_formula_like_names_as_text(admin_client, ballot, vote_payload):
    admin_client.post("/api/votes", json=vote_payload(rut="11111111-1", nombre="=1+1"))

    response = admin_client.get("/api/admin/voters/export")

    sheet = load_workbook(BytesIO(response.content))["Votantes"]
    assert sheet["A2"].data_type == "s"
    assert sheet["A2"].value == "=1+1"
    assert all(cell.data_type == "s" for cell in sheet[2])


def test_upload_photo_locally(admin_client, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "R2_ENABLED", False)
    content = b"\x89PNG\r\n\x1a\nfake-image-bytes"

    first = admin_client.post("/api/admin/upload", files={"file": ("dj.png", content, "image/png")})
    second = admin_client.post("/api/admin/upload", files={"file": ("other-name.png", content, "image/png")})

    assert first.status_code == 200
    url = first.json()["url"]
    assert url.startswith("/uploads/") and url.endswith(".png")
    assert second.json()["url"] == url
    assert os.path.exists(tmp_path / "uploads" / url.rsplit("/", 1)[1])


def test_upload_rejects_non_images(admin_client, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "R2_ENABLED", False)

    response = admin_client.post("/api/admin/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "file"


def test_upload_size_cap(admin_client, tmp_path, monkeypatch):
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(config, "R2_ENABLED", False)
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 16)

    too_large = admin_client.post("/api/admin/upload", files={"file": ("big.png", b"x" * 17, "image/png")})

    assert too_large.status_code == 400
    assert too_large.json()["details"] == [{"field": "file", "message": "File too large"}]
    assert not upload_dir.exists() or os.listdir(upload_dir) == []

    at_limit = admin_client.post("/api/admin/upload", files={"file": ("ok.png", b"x" * 16, "image/png")})

    assert at_limit.status_code == 200
    assert len(os.listdir(upload_dir)) == 1


def test_upload_saves_off_the_event_loop(admin_client, monkeypatch):
    ran_on_loop = []

    def fake_save(content, content_type):
        try:
            asyncio.get_running_loop()
            ran_on_loop.append(True)
        except RuntimeError:
            ran_on_loop.append(False)
        return "/uploads/x.png"

    monkeypatch.setattr(photo_storage, "save_photo", fake_save)

    response = admin_client.post("/api/admin/upload", files={"file": ("dj.png", b"png-bytes", "image/png")})

    assert response.json() == {"url": "/uploads/x.png"}
    assert ran_on_loop == [False]


def test_public_votes_listing(client, ballot, vote_payload):
    client.post("/api/votes", json=vote_payload(selections={"house": "house-2", "techno": "techno-1"}))

    votes = client.get("/api/votes").json()

    assert len(votes) == 1
    assert json.loads(votes[0]["voteData"]) == {"house": "house-2", "techno": "techno-1"}
