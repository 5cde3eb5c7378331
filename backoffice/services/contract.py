"""Contract workflow: creation with multi-party association, updates, statistics."""

import json
import logging
import math
import random
import re
import time
from dataclasses import dataclass
from datetime import date

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import backoffice.repositories.contract as contract_repo
import backoffice.repositories.customer as customer_repo
import backoffice.repositories.estate as estate_repo
import backoffice.repositories.user as user_repo
from backoffice.core.config import settings
from backoffice.db.models.contract import ACTIVE_CONTRACT_INDEX
from backoffice.db.models.user import User as UserModel
from backoffice.db.transaction import transaction
from backoffice.domain.contract_activity import (
    AssociationRole,
    ContractActivityPolicy,
    ContractStatus,
    parse_association_role,
    parse_contract_status,
    parse_requested_status,
)
from backoffice.domain.roles import is_admin
from backoffice.errors import (
    ConflictError,
    DomainError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    TransactionError,
)
from backoffice.schemas.contract import (
    ContractDetail,
    ContractStats,
    ContractUpdate,
    CustomerOption,
    EstateOption,
)
from backoffice.services.attachment_store import DOCUMENT_EXTENSIONS, AttachmentStore

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "cash"
DEFAULT_CREATOR_DESCRIPTION = "Contract creator"
ATTACHMENT_CATEGORY = "contracts"
CONTRACT_NUMBER_ATTEMPTS = 5

REQUIRED_FIELDS = ("customer_id", "estate_id", "contract_type", "contract_date", "amount")

_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")


@dataclass
class ContractDraft:
    """A candidate contract exactly as submitted; every value may still be missing or malformed."""

    customer_id: str | int | None = None
    estate_id: str | int | None = None
    contract_type: str | None = None
    contract_date: str | date | None = None
    amount: str | float | None = None
    duration_months: str | int | None = None
    payment_method: str | None = None
    commission: str | float | None = None
    notes: str | None = None
    creator_description: str | None = None


@dataclass(frozen=True)
class Collaborator:
    user_id: int
    description: str | None
    role: AssociationRole


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_contract_date(value: str | date) -> date:
    """
    Parse an ISO calendar date. A trailing time part (``2024-01-01T10:00``) is ignored.

    Raises:
        DomainValidationError: If the value is not a valid calendar date.
    """
    if isinstance(value, date):
        return value
    match = _ISO_DATE.match(str(value).strip())
    if match is None:
        raise DomainValidationError("Invalid contract date")
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        raise DomainValidationError("Invalid contract date") from None


def _parse_id(name: str, value) -> int:
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise DomainValidationError(f"{name} must be an integer") from None
    if parsed <= 0:
        raise DomainValidationError(f"{name} must be a positive integer")
    return parsed


def _parse_amount(name: str, value) -> float:
    try:
        parsed = float(str(value).strip())
    except ValueError:
        raise DomainValidationError(f"{name} must be a number") from None
    if not math.isfinite(parsed) or parsed < 0:
        raise DomainValidationError(f"{name} must be a non-negative number")
    return parsed


def _parse_count(name: str, value) -> int:
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise DomainValidationError(f"{name} must be an integer") from None
    if parsed < 0:
        raise DomainValidationError(f"{name} must be a non-negative integer")
    return parsed


def validate_draft(draft: ContractDraft) -> dict:
    """
    Check the required fields and convert the draft into typed column values.

    Raises:
        DomainValidationError: If a required field is missing or a value is malformed.
    """
    missing = [name for name in REQUIRED_FIELDS if _is_blank(getattr(draft, name))]
    if missing:
        raise DomainValidationError(f"Missing required fields: {', '.join(missing)}")

    contract_date = parse_contract_date(draft.contract_date)

    return {
        "customer_id": _parse_id("customer_id", draft.customer_id),
        "estate_id": _parse_id("estate_id", draft.estate_id),
        "contract_type": str(draft.contract_type).strip(),
        "contract_date": contract_date,
        "amount": _parse_amount("amount", draft.amount),
        "duration_months": (
            None if _is_blank(draft.duration_months)
            else _parse_count("duration_months", draft.duration_months)
        ),
        "payment_method": (
            DEFAULT_PAYMENT_METHOD if _is_blank(draft.payment_method)
            else str(draft.payment_method).strip()
        ),
        "commission": (
            0.0 if _is_blank(draft.commission)
            else _parse_amount("commission", draft.commission)
        ),
        "notes": draft.notes or "",
    }


def parse_collaborators(raw) -> list[Collaborator]:
    """
    Parse collaborator descriptors: a JSON array (or list) of bare user ids or
    ``{user_id | id, description?, role?}`` objects.

    Raises:
        DomainValidationError: If the payload is not an array, a descriptor has
            no usable user id, or a role is unknown or reserved.
    """
    if _is_blank(raw):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise DomainValidationError("users must be a JSON array") from None
    if not isinstance(raw, list):
        raise DomainValidationError("users must be a JSON array")

    collaborators = []
    for item in raw:
        if isinstance(item, dict):
            user_id = item.get("user_id", item.get("id"))
            description = item.get("description")
            role = parse_association_role(item.get("role"))
        else:
            user_id, description, role = item, None, AssociationRole.COLLABORATOR
        if isinstance(user_id, bool) or _is_blank(user_id) or isinstance(user_id, (dict, list)):
            raise DomainValidationError("Each user entry needs a user_id")
        if role is AssociationRole.CREATOR:
            raise DomainValidationError("The creator role is assigned automatically")
        if description is not None and not isinstance(description, str):
            description = str(description)
        collaborators.append(
            Collaborator(user_id=_parse_id("user_id", user_id), description=description, role=role)
        )
    return collaborators


def normalize_collaborators(collaborators: list[Collaborator], creator_id: int) -> list[Collaborator]:
    """Drop the creator's own id and repeated ids; the first occurrence wins."""
    seen = {creator_id}
    normalized = []
    for collaborator in collaborators:
        if collaborator.user_id in seen:
            continue
        seen.add(collaborator.user_id)
        normalized.append(collaborator)
    return normalized


def generate_contract_number() -> str:
    return f"CON-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def _new_contract_number(db: Session) -> str:
    for _ in range(CONTRACT_NUMBER_ATTEMPTS):
        number = generate_contract_number()
        if not contract_repo.contract_number_exists(db, number):
            return number
    raise ConflictError("Could not allocate a unique contract number, please retry")


def _is_active_contract_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return ACTIVE_CONTRACT_INDEX in message or "contracts.estate_id" in message


def _ensure_estate_free(db: Session, estate_id: int, exclude_contract_id: int | None = None) -> None:
    if contract_repo.get_active_contract_for_estate(db, estate_id, exclude_contract_id):
        raise ConflictError("This estate already has an active contract")


def _check_preconditions(db: Session, fields: dict, collaborators: list[Collaborator]) -> None:
    if customer_repo.get_customer_by_id(db, fields["customer_id"]) is None:
        raise NotFoundError("Customer not found")
    if estate_repo.get_estate_by_id(db, fields["estate_id"]) is None:
        raise NotFoundError("Estate not found")
    _ensure_estate_free(db, fields["estate_id"])

    wanted = [c.user_id for c in collaborators]
    missing = sorted(set(wanted) - user_repo.get_existing_user_ids(db, wanted))
    if missing:
        raise NotFoundError(f"User(s) not found: {', '.join(str(m) for m in missing)}")


def create_contract(
    db: Session,
    store: AttachmentStore,
    actor: UserModel,
    draft: ContractDraft,
    uploads: list[UploadFile] | None = None,
    users=None,
) -> ContractDetail:
    """
    Create a contract with its creator and collaborator associations in one transaction.

    Order of checks (no writes happen before all of them pass):
    1. customer_id, estate_id, contract_type, contract_date and amount are present
    2. contract_date is a valid calendar date, numbers are numeric
    3. the customer exists
    4. the estate exists
    5. the estate has no other active contract

    Staged attachments are deleted when any check fails. When the write itself
    fails they are kept on disk and reported as orphaned.

    Raises:
        DomainValidationError, NotFoundError, ConflictError: A precondition failed.
        TransactionError: The store failed during the write; nothing was committed.
    """
    staged = store.stage_many(
        uploads or [],
        ATTACHMENT_CATEGORY,
        allowed_extensions=DOCUMENT_EXTENSIONS,
        max_size=settings.max_attachment_size,
        prefix="contract",
    )

    try:
        fields = validate_draft(draft)
        collaborators = normalize_collaborators(parse_collaborators(users), actor.id)
        _check_preconditions(db, fields, collaborators)
    except DomainError:
        store.discard(staged)
        raise

    creator_row = {
        "user_id": actor.id,
        "description": draft.creator_description or DEFAULT_CREATOR_DESCRIPTION,
        "role": AssociationRole.CREATOR,
    }
    collaborator_rows = [
        {"user_id": c.user_id, "description": c.description, "role": c.role}
        for c in collaborators
    ]

    try:
        with transaction(db, "Error creating contract"):
            # Re-check under the estate lock; the earlier check ran outside the transaction.
            if estate_repo.lock_estate(db, fields["estate_id"]) is None:
                raise NotFoundError("Estate not found")
            _ensure_estate_free(db, fields["estate_id"])

            try:
                contract = contract_repo.create_contract(
                    db,
                    contract_number=_new_contract_number(db),
                    user_id=actor.id,
                    status=ContractStatus.ACTIVE,
                    attachments=[a.as_record() for a in staged],
                    **fields,
                )
            except IntegrityError as exc:
                if _is_active_contract_violation(exc):
                    raise ConflictError("This estate already has an active contract") from exc
                raise
            contract_repo.add_associations(db, contract.id, [creator_row, *collaborator_rows])
            contract_id = contract.id
    except TransactionError:
        if staged:
            logger.warning(
                "Contract write rolled back; orphaned attachments left for cleanup: %s",
                ", ".join(a.path for a in staged),
            )
        raise
    except DomainError:
        store.discard(staged)
        raise

    logger.info(
        "Contract %s created by user %s for estate %s with %d collaborator(s)",
        contract_id,
        actor.id,
        fields["estate_id"],
        len(collaborator_rows),
    )
    return get_contract(db, actor, contract_id)


def _can_view(db: Session, actor: UserModel, contract) -> bool:
    return (
        is_admin(actor)
        or contract.user_id == actor.id
        or contract_repo.is_associated(db, contract.id, actor.id)
    )


def get_contract(db: Session, actor: UserModel, contract_id: int) -> ContractDetail:
    """
    Get one contract as seen by ``actor``.

    Raises:
        NotFoundError: If the contract does not exist.
        ForbiddenError: If the actor is neither admin, creator nor associated.
    """
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    if not _can_view(db, actor, contract):
        raise ForbiddenError("You do not have access to this contract")
    return ContractDetail.from_model(contract)


def list_contracts(db: Session, actor: UserModel) -> list[ContractDetail]:
    """All contracts for admins; the contracts they created for everyone else."""
    contracts = contract_repo.get_contracts(db, user_id=None if is_admin(actor) else actor.id)
    return [ContractDetail.from_model(c) for c in contracts]


def update_contract(
    db: Session,
    actor: UserModel,
    contract_id: int,
    contract_data: ContractUpdate,
) -> ContractDetail:
    """
    Update a contract. Only fields explicitly provided are changed.

    Raises:
        NotFoundError: If the contract does not exist.
        ForbiddenError: If the actor is neither admin nor the creator.
        DomainValidationError: If a non-nullable field is cleared or the status is unknown.
        ConflictError: If the contract is re-activated while its estate has another active contract.
    """
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    if not (is_admin(actor) or contract.user_id == actor.id):
        raise ForbiddenError("Only the contract creator or an admin can update this contract")

    update_fields = contract_data.model_dump(exclude_unset=True)
    for name in ("contract_type", "contract_date", "amount", "payment_method", "commission", "status"):
        if name in update_fields and update_fields[name] is None:
            raise DomainValidationError(f"{name} cannot be null")
    if "notes" in update_fields and update_fields["notes"] is None:
        update_fields["notes"] = ""
    if "status" in update_fields:
        update_fields["status"] = parse_requested_status(update_fields["status"])

    policy = ContractActivityPolicy()
    activating = (
        "status" in update_fields
        and update_fields["status"] is ContractStatus.ACTIVE
        and not policy.is_active(status=contract.status)
    )

    with transaction(db, "Error updating contract"):
        if activating:
            estate_repo.lock_estate(db, contract.estate_id)
            _ensure_estate_free(db, contract.estate_id, exclude_contract_id=contract.id)
        try:
            contract_repo.update_contract(db, contract, **update_fields)
        except IntegrityError as exc:
            if _is_active_contract_violation(exc):
                raise ConflictError("This estate already has an active contract") from exc
            raise

    logger.info("Contract %s updated by user %s: %s", contract_id, actor.id, sorted(update_fields))
    return get_contract(db, actor, contract_id)


def delete_contract(db: Session, actor: UserModel, contract_id: int) -> None:
    """
    Delete a contract; its associations are removed with it.

    Raises:
        NotFoundError: If the contract does not exist.
    """
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    with transaction(db, "Error deleting contract"):
        contract_repo.delete_contract(db, contract)

    logger.info("Contract %s deleted by user %s", contract_id, actor.id)


def get_contract_stats(db: Session, actor: UserModel) -> ContractStats:
    """Aggregate figures over all contracts (admins) or the actor's own."""
    raw = contract_repo.get_contract_stats(db, user_id=None if is_admin(actor) else actor.id)

    counts = {status: 0 for status in ContractStatus}
    for stored, count in raw["status_counts"].items():
        counts[parse_contract_status(stored)] += count

    return ContractStats(
        total_contracts=raw["total_contracts"],
        total_amount=raw["total_amount"],
        total_commission=raw["total_commission"],
        average_amount=raw["average_amount"],
        active_contracts=counts[ContractStatus.ACTIVE],
        expired_contracts=counts[ContractStatus.EXPIRED],
        cancelled_contracts=counts[ContractStatus.CANCELLED],
        this_month_contracts=raw["this_month_contracts"],
        latest_contract_date=raw["latest_contract_date"],
    )


def get_customer_options(db: Session) -> list[CustomerOption]:
    return [CustomerOption.model_validate(c) for c in customer_repo.get_customers_for_dropdown(db)]


def get_available_estate_options(db: Session) -> list[EstateOption]:
    """Estates that can take a new contract: none of their contracts is active."""
    return [
        EstateOption.model_validate(e)
        for e in estate_repo.get_estates_without_active_contract(db)
    ]
