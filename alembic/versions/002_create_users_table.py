"""create users table

Revision ID: 002
Revises: 001
Create Date: 2025-03-02 10:10:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from passlib.context import CryptContext

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def upgrade() -> None:
    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("national_id", sa.String(10), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("fathers_name", sa.String(200), nullable=True),
        sa.Column("primary_residence", sa.String(500), nullable=True),
        sa.Column("id_photo_path", sa.String(500), nullable=True),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.UniqueConstraint("national_id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_name", "users", ["name"], unique=True)
    op.create_index("ix_users_phone_number", "users", ["phone_number"], unique=True)

    # Get settings from environment (will be loaded by Alembic env.py)
    from backoffice.core.config import settings

    # Get admin role_id
    connection = op.get_bind()
    admin_role_result = connection.execute(
        sa.text("SELECT id FROM roles WHERE name = 'admin'")
    ).fetchone()

    if not admin_role_result:
        raise ValueError("Admin role not found. Make sure migration 001 has been run.")

    admin_role_id = admin_role_result[0]

    # Hash the password from settings
    password_hash = pwd_context.hash(settings.first_admin_password)

    # Insert first admin user, approved from the start
    op.execute(
        sa.text(
            """
            INSERT INTO users (name, phone_number, password_hash, role_id, approved, approved_at)
            VALUES (:name, :phone_number, :password_hash, :role_id, :approved, CURRENT_TIMESTAMP)
            """
        ).bindparams(
            name=settings.first_admin_name,
            phone_number=settings.first_admin_phone,
            password_hash=password_hash,
            role_id=admin_role_id,
            approved=True,
        )
    )


def downgrade() -> None:
    op.drop_index("ix_users_phone_number", table_name="users")
    op.drop_index("ix_users_name", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
