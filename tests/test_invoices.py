from sqlalchemy.orm import Session

from conftest import auth_headers


def _photo(name: str = "receipt.jpg") -> dict:
    return {"invoice_photo": (name, b"\xff\xd8\xff receipt", "image/jpeg")}


def _create(client, token: str, **fields):
    data = {"description": "Office rent", "amount": "1500", "unit": "toman"}
    data.update(fields)
    return client.post("/api/invoices", data=data, files=_photo(), headers=auth_headers(token))


def test_create_invoice(client, db: Session, agent_user: dict, agent_token: str, store):
    response = _create(client, agent_token)
    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == 1500
    assert data["unit"] == "toman"
    assert data["issued_by"] == agent_user["id"]
    assert data["issued_by_name"] == agent_user["name"]
    assert len(data["uuid"]) == 36
    assert store.resolve(data["invoice_photo_path"]).exists()


def test_create_invoice_legacy_unit_label(client, db: Session, agent_token: str):
    response = _create(client, agent_token, unit="ریال")
    assert response.status_code == 201
    assert response.json()["unit"] == "rial"


def test_create_invoice_invalid_unit(client, db: Session, agent_token: str, store):
    response = _create(client, agent_token, unit="euro")
    assert response.status_code == 400
    invoices_dir = store.root / "invoices"
    assert not invoices_dir.exists() or list(invoices_dir.iterdir()) == []


def test_create_invoice_non_positive_amount(client, db: Session, agent_token: str):
    assert _create(client, agent_token, amount="0").status_code == 400
    assert _create(client, agent_token, amount="abc").status_code == 400


def test_create_invoice_without_photo(client, db: Session, agent_token: str):
    response = client.post(
        "/api/invoices",
        data={"description": "Office rent", "amount": "10", "unit": "dollar"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_list_invoices_paginated(client, db: Session, agent_user: dict, agent_token: str, other_agent_token: str):
    for i in range(3):
        _create(client, agent_token, description=f"Invoice {i}")
    _create(client, other_agent_token)

    response = client.get("/api/invoices?page=1&page_size=2", headers=auth_headers(agent_token))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    assert data["page"] == 1
    assert data["page_size"] == 2
    assert len(data["items"]) == 2

    filtered = client.get(
        f"/api/invoices?user_id={agent_user['id']}", headers=auth_headers(agent_token)
    ).json()
    assert filtered["total"] == 3


def test_get_invoice_not_found(client, db: Session, agent_token: str):
    response = client.get("/api/invoices/does-not-exist", headers=auth_headers(agent_token))
    assert response.status_code == 404


def test_update_invoice_replaces_photo(client, db: Session, agent_token: str, store):
    created = _create(client, agent_token).json()
    old_photo = store.resolve(created["invoice_photo_path"])

    response = client.put(
        f"/api/invoices/{created['uuid']}",
        data={"amount": "2000"},
        files=_photo("new-receipt.png"),
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == 2000
    assert data["description"] == "Office rent"
    assert data["invoice_photo_path"] != created["invoice_photo_path"]
    assert store.resolve(data["invoice_photo_path"]).exists()
    assert not old_photo.exists()


def test_update_invoice_by_other_agent_forbidden(client, db: Session, agent_token: str, other_agent_token: str):
    created = _create(client, agent_token).json()
    response = client.put(
        f"/api/invoices/{created['uuid']}",
        data={"amount": "1"},
        headers=auth_headers(other_agent_token),
    )
    assert response.status_code == 403


def test_delete_invoice_as_admin(client, db: Session, agent_token: str, admin_token: str, store):
    created = _create(client, agent_token).json()
    photo = store.resolve(created["invoice_photo_path"])
    response = client.delete(f"/api/invoices/{created['uuid']}", headers=auth_headers(admin_token))
    assert response.status_code == 204
    assert not photo.exists()
