"""rewrite legacy contract status labels to the status enumeration

Revision ID: 008
Revises: 007
Create Date: 2025-03-09 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Kept literal here: migrations must not change when the application code does.
STATUS_LABELS = {
    "فعال": "active",
    "منقضی": "expired",
    "لغو شده": "cancelled",
}


def upgrade() -> None:
    for label, status in STATUS_LABELS.items():
        op.execute(
            sa.text("UPDATE contracts SET status = :status WHERE status = :label").bindparams(
                status=status, label=label
            )
        )


def downgrade() -> None:
    for label, status in STATUS_LABELS.items():
        op.execute(
            sa.text("UPDATE contracts SET status = :label WHERE status = :status").bindparams(
                status=status, label=label
            )
        )
