"""create contracts and contract_users tables

Revision ID: 005
Revises: 004
Create Date: 2025-03-02 10:40:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_number", sa.String(50), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("estate_id", sa.Integer(), nullable=False),
        sa.Column("contract_type", sa.String(100), nullable=False),
        sa.Column("contract_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("duration_months", sa.Integer(), nullable=True),
        sa.Column("payment_method", sa.String(100), nullable=False),
        sa.Column("commission", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["estate_id"], ["estates.id"]),
        sa.UniqueConstraint("contract_number"),
    )
    op.create_index("ix_contracts_id", "contracts", ["id"], unique=False)
    op.create_index("ix_contracts_estate_id", "contracts", ["estate_id"], unique=False)
    op.create_index("ix_contracts_status", "contracts", ["status"], unique=False)

    # At most one active contract per estate. Both SQLite and PostgreSQL
    # support partial indexes.
    op.create_index(
        "uq_contracts_active_estate",
        "contracts",
        ["estate_id"],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "contract_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("contract_id", "user_id", name="uq_contract_users_contract_user"),
    )
    op.create_index("ix_contract_users_id", "contract_users", ["id"], unique=False)
    op.create_index("ix_contract_users_contract_id", "contract_users", ["contract_id"], unique=False)
    op.create_index("ix_contract_users_user_id", "contract_users", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_contract_users_user_id", table_name="contract_users")
    op.drop_index("ix_contract_users_contract_id", table_name="contract_users")
    op.drop_index("ix_contract_users_id", table_name="contract_users")
    op.drop_table("contract_users")
    op.drop_index("uq_contracts_active_estate", table_name="contracts")
    op.drop_index("ix_contracts_status", table_name="contracts")
    op.drop_index("ix_contracts_estate_id", table_name="contracts")
    op.drop_index("ix_contracts_id", table_name="contracts")
    op.drop_table("contracts")
