from sqlalchemy.orm import Session

from backoffice.repositories.user import get_user_by_name
from conftest import auth_headers


def _photo(name: str = "id.jpg") -> dict:
    return {"id_photo": (name, b"\xff\xd8\xff fake jpeg", "image/jpeg")}


def _registration(**overrides) -> dict:
    form = {
        "name": "New Agent",
        "phone_number": "09127777777",
        "national_id": "0012345678",
        "password": "secret1",
        "date_of_birth": "1990-05-20",
        "fathers_name": "Ali",
        "primary_residence": "Tehran",
    }
    form.update(overrides)
    return form


def _id_photos(store) -> list:
    directory = store.root / "id-photos"
    return sorted(directory.iterdir()) if directory.exists() else []


# ============================================================================
# LOGIN TESTS
# ============================================================================


def test_login_success(client, db: Session, admin_user: dict):
    """Test successful login returns access token and user info."""
    response = client.post(
        "/api/auth/login",
        data={
            "username": admin_user["name"],
            "password": admin_user["password"],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["name"] == admin_user["name"]
    assert data["user"]["role"]["name"] == "admin"
    assert data["user"]["approved"] is True


def test_login_unknown_name(client, db: Session):
    response = client.post(
        "/api/auth/login",
        data={"username": "nobody", "password": "Password123!"},
    )
    assert response.status_code == 401
    assert "Incorrect name or password" in response.json()["detail"]


def test_login_wrong_password(client, db: Session, admin_user: dict):
    response = client.post(
        "/api/auth/login",
        data={"username": admin_user["name"], "password": "WrongPassword123!"},
    )
    assert response.status_code == 401


def test_login_token_authenticates_requests(client, db: Session, agent_user: dict):
    token = client.post(
        "/api/auth/login",
        data={"username": agent_user["name"], "password": agent_user["password"]},
    ).json()["access_token"]
    response = client.get("/api/auth/me", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["id"] == agent_user["id"]


def test_invalid_token_rejected(client, db: Session):
    response = client.get("/api/auth/me", headers=auth_headers("not-a-token"))
    assert response.status_code == 401


# ============================================================================
# REGISTRATION TESTS
# ============================================================================


def test_register_creates_pending_agent(client, db: Session, store):
    response = client.post("/api/auth/register", data=_registration(), files=_photo())
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "New Agent"
    assert data["role"]["name"] == "agent"
    assert data["approved"] is False
    assert data["date_of_birth"] == "1990-05-20"
    assert data["id_photo_path"].startswith("/uploads/id-photos/")
    assert store.resolve(data["id_photo_path"]).exists()


def test_register_then_login_pending(client, db: Session):
    """Pending accounts can log in and see themselves, but nothing else."""
    client.post("/api/auth/register", data=_registration(), files=_photo())
    token = client.post(
        "/api/auth/login", data={"username": "New Agent", "password": "secret1"}
    ).json()["access_token"]

    assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 200
    response = client.get("/api/customers", headers=auth_headers(token))
    assert response.status_code == 403
    assert response.json()["detail"] == "Account is pending approval"


def test_register_without_photo(client, db: Session):
    response = client.post("/api/auth/register", data=_registration())
    assert response.status_code == 400
    assert get_user_by_name(db, "New Agent") is None


def test_register_photo_wrong_type(client, db: Session, store):
    response = client.post(
        "/api/auth/register",
        data=_registration(),
        files={"id_photo": ("id.pdf", b"%PDF", "application/pdf")},
    )
    assert response.status_code == 400
    assert _id_photos(store) == []


def test_register_underage_removes_photo(client, db: Session, store):
    response = client.post(
        "/api/auth/register", data=_registration(date_of_birth="2015-01-01"), files=_photo()
    )
    assert response.status_code == 400
    assert "18" in response.json()["detail"]
    assert _id_photos(store) == []


def test_register_invalid_phone(client, db: Session, store):
    response = client.post(
        "/api/auth/register", data=_registration(phone_number="12345"), files=_photo()
    )
    assert response.status_code == 400
    assert _id_photos(store) == []


def test_register_invalid_national_id(client, db: Session):
    response = client.post(
        "/api/auth/register", data=_registration(national_id="12ab"), files=_photo()
    )
    assert response.status_code == 400


def test_register_short_password(client, db: Session):
    response = client.post(
        "/api/auth/register", data=_registration(password="abc"), files=_photo()
    )
    assert response.status_code == 400


def test_register_duplicate_name(client, db: Session, agent_user: dict, store):
    response = client.post(
        "/api/auth/register", data=_registration(name=agent_user["name"]), files=_photo()
    )
    assert response.status_code == 409
    assert _id_photos(store) == []


def test_register_duplicate_phone(client, db: Session, agent_user: dict):
    response = client.post(
        "/api/auth/register",
        data=_registration(phone_number=agent_user["phone_number"]),
        files=_photo(),
    )
    assert response.status_code == 409


def test_register_duplicate_national_id(client, db: Session):
    first = client.post("/api/auth/register", data=_registration(), files=_photo())
    assert first.status_code == 201
    response = client.post(
        "/api/auth/register",
        data=_registration(name="Another", phone_number="09128888888"),
        files=_photo(),
    )
    assert response.status_code == 409


# ============================================================================
# PASSWORD CHANGE TESTS
# ============================================================================


def test_change_password(client, db: Session, agent_user: dict, agent_token: str):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": agent_user["password"], "new_password": "brand-new"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 200

    login = client.post(
        "/api/auth/login", data={"username": agent_user["name"], "password": "brand-new"}
    )
    assert login.status_code == 200


def test_change_password_wrong_current(client, db: Session, agent_token: str):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "brand-new"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400


def test_change_password_too_short(client, db: Session, agent_user: dict, agent_token: str):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": agent_user["password"], "new_password": "abc"},
        headers=auth_headers(agent_token),
    )
    assert response.status_code == 400
