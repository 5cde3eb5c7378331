from sqlalchemy.orm import Session

from backoffice.db.models.customer import Customer as CustomerModel
from conftest import auth_headers, contract_form


def test_create_customer_with_defaults(client, db: Session, agent_user: dict, agent_token: str):
    response = client.post(
        "/api/customers", json={"name": "  Sara  "}, headers=auth_headers(agent_token)
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Sara"
    assert data["budget"] == 800
    assert data["is_local"] == "yes"
    assert data["previous_deal"] == "rejected"
    assert data["user_id"] == agent_user["id"]
    assert data["creator_name"] == agent_user["name"]


def test_create_customer_name_too_short(client, db: Session, agent_token: str):
    response = client.post("/api/customers", json={"name": "A"}, headers=auth_headers(agent_token))
    assert response.status_code == 400


def test_create_customer_invalid_is_local(client, db: Session, agent_token: str):
    response = client.post(
        "/api/customers",
        json={"name": "Sara", "is_local": "maybe"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_list_customers_scoped_to_owner(
    client, db: Session, agent_token: str, other_agent_token: str, admin_token: str, customer
):
    client.post("/api/customers", json={"name": "Other lead"}, headers=auth_headers(other_agent_token))

    mine = client.get("/api/customers", headers=auth_headers(agent_token)).json()
    assert [c["name"] for c in mine] == ["Customer One"]

    everyone = client.get("/api/customers", headers=auth_headers(admin_token)).json()
    assert len(everyone) == 2

    admin_view = client.get("/api/admin/customers", headers=auth_headers(admin_token))
    assert admin_view.status_code == 200
    assert len(admin_view.json()) == 2


def test_get_customer_of_other_agent_forbidden(client, db: Session, other_agent_token: str, customer):
    response = client.get(f"/api/customers/{customer.id}", headers=auth_headers(other_agent_token))
    assert response.status_code == 403


def test_get_customer_not_found(client, db: Session, agent_token: str):
    response = client.get("/api/customers/99999", headers=auth_headers(agent_token))
    assert response.status_code == 404


def test_update_customer_partial(client, db: Session, agent_token: str, customer):
    response = client.put(
        f"/api/customers/{customer.id}",
        json={"budget": 2000, "previous_deal": "successful"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["budget"] == 2000
    assert data["previous_deal"] == "successful"
    assert data["name"] == "Customer One"


def test_update_customer_null_name_rejected(client, db: Session, agent_token: str, customer):
    response = client.put(
        f"/api/customers/{customer.id}", json={"name": None}, headers=auth_headers(agent_token)
    )
    assert response.status_code == 400


def test_delete_customer(client, db: Session, agent_token: str, customer):
    customer_id = customer.id
    response = client.delete(f"/api/customers/{customer_id}", headers=auth_headers(agent_token))
    assert response.status_code == 204
    assert db.get(CustomerModel, customer_id) is None


def test_delete_customer_with_contract_conflicts(
    client, db: Session, agent_token: str, customer, estate
):
    client.post(
        "/api/contracts",
        data=contract_form(customer.id, estate.id),
        headers=auth_headers(agent_token),
    )
    response = client.delete(f"/api/customers/{customer.id}", headers=auth_headers(agent_token))
    assert response.status_code == 409
