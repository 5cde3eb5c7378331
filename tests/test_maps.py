from sqlalchemy.orm import Session

from conftest import auth_headers


def _upload(client, token: str, title: str = "Phase 1 layout", name: str = "layout.pdf"):
    return client.post(
        "/api/maps/upload",
        data={"title": title, "description": "Ground floor"},
        files={"file": (name, b"%PDF-1.4 map", "application/pdf")},
        headers=auth_headers(token),
    )


def test_upload_map(client, db: Session, admin_user: dict, admin_token: str, store):
    response = _upload(client, admin_token)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Phase 1 layout"
    assert data["file_type"] == "application/pdf"
    assert data["file_size"] == len(b"%PDF-1.4 map")
    assert data["uploaded_by_name"] == admin_user["name"]
    assert store.resolve(data["file_path"]).exists()


def test_upload_map_as_agent_forbidden(client, db: Session, agent_token: str):
    assert _upload(client, agent_token).status_code == 403


def test_upload_map_without_title_removes_file(client, db: Session, admin_token: str, store):
    response = _upload(client, admin_token, title="  ")
    assert response.status_code == 400
    maps_dir = store.root / "maps"
    assert not maps_dir.exists() or list(maps_dir.iterdir()) == []


def test_upload_map_disallowed_type(client, db: Session, admin_token: str):
    response = client.post(
        "/api/maps/upload",
        data={"title": "Layout"},
        files={"file": ("layout.txt", b"text", "text/plain")},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 400


def test_list_and_get_maps_as_agent(client, db: Session, admin_token: str, agent_token: str):
    created = _upload(client, admin_token).json()
    listing = client.get("/api/maps", headers=auth_headers(agent_token))
    assert listing.status_code == 200
    assert [m["id"] for m in listing.json()] == [created["id"]]
    single = client.get(f"/api/maps/{created['id']}", headers=auth_headers(agent_token))
    assert single.json()["title"] == "Phase 1 layout"


def test_update_map_title(client, db: Session, admin_token: str):
    created = _upload(client, admin_token).json()
    response = client.put(
        f"/api/maps/{created['id']}", json={"title": "Revised"}, headers=auth_headers(admin_token)
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Revised"
    assert response.json()["description"] == "Ground floor"


def test_delete_map_removes_file(client, db: Session, admin_token: str, store):
    created = _upload(client, admin_token).json()
    stored = store.resolve(created["file_path"])
    response = client.delete(f"/api/maps/{created['id']}", headers=auth_headers(admin_token))
    assert response.status_code == 204
    assert not stored.exists()
    assert client.get(f"/api/maps/{created['id']}", headers=auth_headers(admin_token)).status_code == 404
