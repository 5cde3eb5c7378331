"""create customers table

Revision ID: 003
Revises: 002
Create Date: 2025-03-02 10:20:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("budget", sa.Float(), nullable=False, server_default="800"),
        sa.Column("contact", sa.String(255), nullable=False, server_default=""),
        sa.Column("is_local", sa.String(3), nullable=False, server_default="yes"),
        sa.Column("demands", sa.Text(), nullable=False, server_default=""),
        sa.Column("previous_deal", sa.String(20), nullable=False, server_default="rejected"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("estate_type", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.CheckConstraint("is_local IN ('yes', 'no')", name="ck_customers_is_local"),
        sa.CheckConstraint(
            "previous_deal IN ('rejected', 'successful')", name="ck_customers_previous_deal"
        ),
    )
    op.create_index("ix_customers_id", "customers", ["id"], unique=False)
    op.create_index("ix_customers_user_id", "customers", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_customers_user_id", table_name="customers")
    op.drop_index("ix_customers_id", table_name="customers")
    op.drop_table("customers")
