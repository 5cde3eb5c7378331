"""create estates table

Revision ID: 004
Revises: 003
Create Date: 2025-03-02 10:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "estates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("phase", sa.Integer(), nullable=False),
        sa.Column("project", sa.String(255), nullable=False),
        sa.Column("block", sa.String(50), nullable=True),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("area", sa.Float(), nullable=False),
        sa.Column("rooms", sa.Integer(), nullable=False),
        sa.Column("deed_type", sa.String(100), nullable=False),
        sa.Column("total_floors", sa.Integer(), nullable=False),
        sa.Column("units_per_floor", sa.Integer(), nullable=False),
        sa.Column("occupancy_status", sa.String(100), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("estate_type", sa.String(100), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("ix_estates_id", "estates", ["id"], unique=False)
    op.create_index("ix_estates_user_id", "estates", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_estates_user_id", table_name="estates")
    op.drop_index("ix_estates_id", table_name="estates")
    op.drop_table("estates")
