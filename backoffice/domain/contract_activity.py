from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from backoffice.errors import DataQualityError, DomainValidationError


class ContractStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class AssociationRole(str, Enum):
    CREATOR = "creator"
    COLLABORATOR = "collaborator"


# Labels written by the previous back office. Existing rows are rewritten by
# migration 008; the mapping is also applied when reading, so a row imported
# later is still understood.
LEGACY_STATUS_LABELS: dict[str, ContractStatus] = {
    "فعال": ContractStatus.ACTIVE,
    "منقضی": ContractStatus.EXPIRED,
    "لغو شده": ContractStatus.CANCELLED,
}


def parse_contract_status(value: str | ContractStatus) -> ContractStatus:
    """Map a stored status (current or legacy label) onto the closed enumeration.

    Raises:
        DataQualityError: If the stored value is outside the enumeration.
    """
    if isinstance(value, ContractStatus):
        return value
    if value in LEGACY_STATUS_LABELS:
        return LEGACY_STATUS_LABELS[value]
    try:
        return ContractStatus(value)
    except ValueError:
        raise DataQualityError(f"Unknown contract status stored: {value!r}") from None


def parse_requested_status(value: str) -> ContractStatus:
    """Parse a status supplied by a caller. Unknown values are the caller's fault."""
    if value in LEGACY_STATUS_LABELS:
        return LEGACY_STATUS_LABELS[value]
    try:
        return ContractStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ContractStatus)
        raise DomainValidationError(
            f"Invalid contract status '{value}'. Must be one of: {allowed}"
        ) from None


def parse_association_role(value: str | None) -> AssociationRole:
    """Parse a role supplied by a caller; missing roles default to collaborator."""
    if value is None or value == "":
        return AssociationRole.COLLABORATOR
    try:
        return AssociationRole(value)
    except ValueError:
        allowed = ", ".join(r.value for r in AssociationRole)
        raise DomainValidationError(
            f"Invalid role '{value}'. Must be one of: {allowed}"
        ) from None


@dataclass(frozen=True, slots=True)
class ContractActivityPolicy:
    """Defines what it means for a contract to occupy its estate.

    Semantics (intentionally centralized):
    - A contract is active if its stored status reads as ContractStatus.ACTIVE,
      so a legacy ``فعال`` row occupies its estate too.
    - An estate may hold at most one active contract at any time.

    The partial unique index ``uq_contracts_active_estate`` created by
    migration 005 covers ``status = 'active'`` rows only; legacy rows are held
    off by the locked pre-check that uses this predicate.
    """

    active_status: ContractStatus = ContractStatus.ACTIVE

    def is_active(self, *, status: str | ContractStatus) -> bool:
        return parse_contract_status(status) is self.active_status

    def stored_active_values(self) -> list[str]:
        """Every stored value that reads as the active status, legacy labels included."""
        return [self.active_status.value] + [
            label for label, status in LEGACY_STATUS_LABELS.items() if status is self.active_status
        ]

    def sqlalchemy_active_predicate(self, *, status_col):
        """Build a SQLAlchemy predicate implementing the active rule."""
        return status_col.in_(self.stored_active_values())
