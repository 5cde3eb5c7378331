import json

import pytest
from sqlalchemy.orm import Session

import backoffice.repositories.contract as contract_repo
from backoffice.db.models.contract import ContractUser as ContractUserModel
from conftest import auth_headers, contract_form


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def contract(client, agent_token: str, customer, estate) -> dict:
    """A contract created by the first agent."""
    response = client.post(
        "/api/contracts",
        data=contract_form(customer.id, estate.id),
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 201
    return response.json()


def _users_url(contract: dict, user_id: int | None = None) -> str:
    url = f"/api/contracts/{contract['id']}/users"
    return url if user_id is None else f"{url}/{user_id}"


# ============================================================================
# LIST TESTS
# ============================================================================


def test_list_contract_users(client, db: Session, agent_user: dict, agent_token: str, contract: dict):
    response = client.get(_users_url(contract), headers=auth_headers(agent_token))
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["user_id"] == agent_user["id"]
    assert data[0]["role"] == "creator"
    assert data[0]["user_name"] == agent_user["name"]
    assert data[0]["user_phone"] == agent_user["phone_number"]


def test_list_contract_users_unrelated_agent_forbidden(
    client, db: Session, other_agent_token: str, contract: dict
):
    response = client.get(_users_url(contract), headers=auth_headers(other_agent_token))
    assert response.status_code == 403


def test_list_contract_users_contract_not_found(client, db: Session, admin_token: str):
    response = client.get("/api/contracts/99999/users", headers=auth_headers(admin_token))
    assert response.status_code == 404


# ============================================================================
# UPSERT TESTS
# ============================================================================


def test_add_contract_user_then_update_in_place(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    """The first post creates the row (201); a repeat updates it (200)."""
    payload = {"user_id": other_agent_user["id"], "description": "Co-broker"}
    created = client.post(_users_url(contract), json=payload, headers=auth_headers(agent_token))
    assert created.status_code == 201
    assert created.json()["role"] == "collaborator"
    assert created.json()["description"] == "Co-broker"

    payload["description"] = "Lead co-broker"
    updated = client.post(_users_url(contract), json=payload, headers=auth_headers(agent_token))
    assert updated.status_code == 200
    assert updated.json()["id"] == created.json()["id"]
    assert updated.json()["description"] == "Lead co-broker"
    assert updated.json()["role"] == "collaborator"

    assert db.query(ContractUserModel).filter(
        ContractUserModel.contract_id == contract["id"]
    ).count() == 2


def test_add_contract_user_as_admin(
    client, db: Session, admin_token: str, other_agent_user: dict, contract: dict
):
    response = client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"]},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 201


def test_add_contract_user_by_collaborator_forbidden(
    client,
    db: Session,
    agent_token: str,
    other_agent_user: dict,
    other_agent_token: str,
    third_agent_user: dict,
    contract: dict,
):
    """Collaborators can read a contract but not manage its users."""
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"]},
        headers=auth_headers(agent_token),
    )
    response = client.post(
        _users_url(contract),
        json={"user_id": third_agent_user["id"]},
        headers=auth_headers(other_agent_token),
    )
    assert response.status_code == 403
    assert client.get(_users_url(contract), headers=auth_headers(other_agent_token)).status_code == 200


def test_add_contract_user_unknown_user(client, db: Session, agent_token: str, contract: dict):
    response = client.post(
        _users_url(contract), json={"user_id": 99999}, headers=auth_headers(agent_token)
    )
    assert response.status_code == 404


def test_add_contract_user_with_creator_role_rejected(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    response = client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "role": "creator"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400
    assert db.query(ContractUserModel).count() == 1


def test_add_contract_user_unknown_role_rejected(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    response = client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "role": "owner"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_upsert_creator_keeps_role(
    client, db: Session, agent_user: dict, agent_token: str, contract: dict
):
    """Re-posting the creator updates the description; the role stays creator."""
    response = client.post(
        _users_url(contract),
        json={"user_id": agent_user["id"], "description": "Signing agent"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["role"] == "creator"
    assert response.json()["description"] == "Signing agent"


def test_upsert_creator_with_collaborator_role_rejected(
    client, db: Session, agent_user: dict, agent_token: str, contract: dict
):
    response = client.post(
        _users_url(contract),
        json={"user_id": agent_user["id"], "role": "collaborator"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_repost_without_description_keeps_stored_one(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "description": "Co-broker"},
        headers=auth_headers(agent_token),
    )
    response = client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "role": "collaborator"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["description"] == "Co-broker"


def test_repost_creator_without_description_keeps_stored_one(
    client, db: Session, agent_user: dict, agent_token: str, contract: dict
):
    before = client.get(_users_url(contract), headers=auth_headers(agent_token)).json()[0]
    response = client.post(
        _users_url(contract),
        json={"user_id": agent_user["id"]},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["description"] == before["description"]
    assert response.json()["role"] == "creator"


def test_repost_creator_with_creator_role_is_accepted(
    client, db: Session, agent_user: dict, agent_token: str, contract: dict
):
    """Restating the creator's own role changes nothing and is not an error."""
    response = client.post(
        _users_url(contract),
        json={"user_id": agent_user["id"], "role": "creator", "description": "Signing agent"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["role"] == "creator"
    assert response.json()["description"] == "Signing agent"


def test_upsert_losing_insert_race_updates_in_place(
    client, db: Session, monkeypatch, agent_token: str, other_agent_user: dict, contract: dict
):
    """A row inserted between the lookup and the insert is updated instead."""
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "description": "Co-broker"},
        headers=auth_headers(agent_token),
    )

    real_get_association = contract_repo.get_association
    calls = []

    def stale_first_lookup(db, contract_id, user_id):
        calls.append(user_id)
        if len(calls) == 1:
            return None
        return real_get_association(db, contract_id, user_id)

    monkeypatch.setattr(contract_repo, "get_association", stale_first_lookup)

    response = client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "description": "Lead co-broker"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["description"] == "Lead co-broker"
    assert response.json()["role"] == "collaborator"
    assert len(calls) == 2
    assert db.query(ContractUserModel).filter(
        ContractUserModel.contract_id == contract["id"]
    ).count() == 2


# ============================================================================
# UPDATE TESTS
# ============================================================================


def test_update_contract_user_description(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"], "description": "Co-broker"},
        headers=auth_headers(agent_token),
    )
    response = client.put(
        _users_url(contract, other_agent_user["id"]),
        json={"description": "Witness"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200
    assert response.json()["description"] == "Witness"
    assert response.json()["role"] == "collaborator"


def test_update_creator_role_rejected_even_for_admin(
    client, db: Session, agent_user: dict, admin_token: str, contract: dict
):
    response = client.put(
        _users_url(contract, agent_user["id"]),
        json={"role": "collaborator"},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 400


def test_update_collaborator_to_creator_rejected(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"]},
        headers=auth_headers(agent_token),
    )
    response = client.put(
        _users_url(contract, other_agent_user["id"]),
        json={"role": "creator"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_update_contract_user_not_associated(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    response = client.put(
        _users_url(contract, other_agent_user["id"]),
        json={"description": "x"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 404


# ============================================================================
# REMOVE TESTS
# ============================================================================


def test_remove_contract_user(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    client.post(
        _users_url(contract),
        json={"user_id": other_agent_user["id"]},
        headers=auth_headers(agent_token),
    )
    response = client.delete(
        _users_url(contract, other_agent_user["id"]), headers=auth_headers(agent_token)
    )
    assert response.status_code == 204

    remaining = client.get(_users_url(contract), headers=auth_headers(agent_token)).json()
    assert [u["role"] for u in remaining] == ["creator"]


def test_remove_creator_rejected_even_for_admin(
    client, db: Session, agent_user: dict, admin_token: str, contract: dict
):
    response = client.delete(_users_url(contract, agent_user["id"]), headers=auth_headers(admin_token))
    assert response.status_code == 400
    assert db.query(ContractUserModel).count() == 1


def test_remove_contract_user_not_associated(
    client, db: Session, agent_token: str, other_agent_user: dict, contract: dict
):
    response = client.delete(
        _users_url(contract, other_agent_user["id"]), headers=auth_headers(agent_token)
    )
    assert response.status_code == 404


def test_collaborator_added_at_creation_can_be_removed(
    client, db: Session, agent_token: str, other_agent_user: dict, customer, other_estate
):
    created = client.post(
        "/api/contracts",
        data=contract_form(customer.id, other_estate.id, users=json.dumps([other_agent_user["id"]])),
        headers=auth_headers(agent_token),
    ).json()
    response = client.delete(
        f"/api/contracts/{created['id']}/users/{other_agent_user['id']}",
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 204
