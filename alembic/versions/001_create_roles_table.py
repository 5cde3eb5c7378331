"""create roles table

Revision ID: 001
Revises:
Create Date: 2025-03-02 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create roles table
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_roles_id", "roles", ["id"], unique=False)

    # Insert the two roles
    op.execute(sa.text("INSERT INTO roles (name) VALUES ('admin'), ('agent')"))


def downgrade() -> None:
    op.drop_index("ix_roles_id", table_name="roles")
    op.drop_table("roles")
