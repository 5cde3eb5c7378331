import os
import tempfile
from datetime import date

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_backoffice.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_NAME"] = "admin"
os.environ["FIRST_ADMIN_PHONE"] = "09120000000"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
os.environ["UPLOAD_DIR"] = os.path.join(_test_db_dir, "uploads")
os.environ["AUTO_APPROVE_USERS"] = "false"

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from backoffice.main import app
from backoffice.core.config import settings
from backoffice.core.security import create_access_token, get_password_hash
from backoffice.db.models.role import Role as RoleModel
from backoffice.db.models.user import User as UserModel
from backoffice.services.attachment_store import AttachmentStore


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    # Use a temporary file for SQLite database
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    # Create test engine and session with proper SQLite settings
    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Dispose the engine to close all connections
        test_engine.dispose()

        # Clean up - remove test database file and directory
        for suffix in ["", "-wal", "-shm"]:
            path = f"{test_db_path}{suffix}"
            if os.path.exists(path):
                os.remove(path)
        if os.path.exists(temp_db_dir):
            os.rmdir(temp_db_dir)


@pytest.fixture(scope="function")
def store(tmp_path) -> AttachmentStore:
    """Attachment store rooted in a per-test directory."""
    return AttachmentStore(tmp_path / "uploads", public_prefix="/uploads")


@pytest.fixture(scope="function")
def client(db_session, store):
    """Create a test client with database and attachment store overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from backoffice.api.deps import get_attachment_store, get_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_store] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_user(
    db: Session,
    name: str,
    phone_number: str,
    password: str = "AgentPass123!",
    role_name: str = "agent",
    approved: bool = True,
) -> dict:
    """Insert a user directly and return its plain fields plus the password."""
    role = db.query(RoleModel).filter(RoleModel.name == role_name).first()
    if not role:
        raise RuntimeError(f"Role '{role_name}' not found")

    user = UserModel(
        name=name,
        phone_number=phone_number,
        password_hash=get_password_hash(password),
        role_id=role.id,
        approved=approved,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "id": user.id,
        "name": user.name,
        "phone_number": user.phone_number,
        "password": password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user seeded by migration 002."""
    from backoffice.repositories.user import get_user_by_name

    user = get_user_by_name(db, settings.first_admin_name)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "name": user.name,
        "phone_number": user.phone_number,
        "password": settings.first_admin_password,  # Plaintext password from env
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    """Get JWT token for admin user."""
    return create_access_token(data={"sub": admin_user["id"]})


@pytest.fixture(scope="function")
def agent_user(db: Session) -> dict:
    """An approved agent."""
    return make_user(db, "agent one", "09121111111")


@pytest.fixture(scope="function")
def agent_token(agent_user: dict) -> str:
    return create_access_token(data={"sub": agent_user["id"]})


@pytest.fixture(scope="function")
def other_agent_user(db: Session) -> dict:
    """A second approved agent."""
    return make_user(db, "agent two", "09122222222", password="OtherPass123!")


@pytest.fixture(scope="function")
def other_agent_token(other_agent_user: dict) -> str:
    return create_access_token(data={"sub": other_agent_user["id"]})


@pytest.fixture(scope="function")
def third_agent_user(db: Session) -> dict:
    return make_user(db, "agent three", "09123333333")


@pytest.fixture(scope="function")
def pending_user(db: Session) -> dict:
    """An agent whose registration has not been approved yet."""
    return make_user(db, "pending agent", "09124444444", approved=False)


@pytest.fixture(scope="function")
def pending_token(pending_user: dict) -> str:
    return create_access_token(data={"sub": pending_user["id"]})


@pytest.fixture(scope="function")
def customer(db: Session, agent_user: dict):
    """A customer recorded by the first agent."""
    from backoffice.repositories.customer import create_customer

    return create_customer(
        db,
        agent_user["id"],
        name="Customer One",
        budget=1500,
        contact="09135555555",
        is_local="yes",
        demands="two bedrooms",
        previous_deal="rejected",
        notes="",
        estate_type="apartment",
    )


ESTATE_FIELDS = {
    "phase": 1,
    "project": "Sunrise Towers",
    "block": "B",
    "floor": 3,
    "area": 120.5,
    "rooms": 2,
    "deed_type": "single",
    "total_floors": 10,
    "units_per_floor": 4,
    "occupancy_status": "vacant",
    "notes": "",
    "estate_type": "apartment",
    "phone_number": "09136666666",
    "price": 250000,
    "features": {"parking": True},
}


@pytest.fixture(scope="function")
def estate(db: Session, agent_user: dict):
    """An estate recorded by the first agent."""
    from backoffice.repositories.estate import create_estate

    return create_estate(db, agent_user["id"], **ESTATE_FIELDS)


@pytest.fixture(scope="function")
def other_estate(db: Session, agent_user: dict):
    from backoffice.repositories.estate import create_estate

    return create_estate(db, agent_user["id"], **{**ESTATE_FIELDS, "project": "Moon Court", "floor": 5})


def contract_form(customer_id, estate_id, **overrides) -> dict:
    """Minimal valid multipart fields for POST /api/contracts."""
    form = {
        "customer_id": str(customer_id),
        "estate_id": str(estate_id),
        "contract_type": "sale",
        "contract_date": date.today().isoformat(),
        "amount": "1000",
    }
    form.update(overrides)
    return form
