"""Maintenance of contract/user associations after a contract exists.

The creator association is protected: it can be neither removed nor given
another role, whoever asks.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import backoffice.repositories.contract as contract_repo
import backoffice.repositories.user as user_repo
from backoffice.db.models.contract import CONTRACT_USER_UNIQUE
from backoffice.db.models.contract import Contract as ContractModel
from backoffice.db.models.contract import ContractUser as ContractUserModel
from backoffice.db.models.user import User as UserModel
from backoffice.db.transaction import transaction
from backoffice.domain.contract_activity import AssociationRole, parse_association_role
from backoffice.domain.roles import is_admin
from backoffice.errors import DomainValidationError, ForbiddenError, NotFoundError
from backoffice.schemas.contract import (
    ContractUserAssociation,
    ContractUserUpdate,
    ContractUserUpsert,
)

logger = logging.getLogger(__name__)


class _AssociationInsertRace(Exception):
    """Another request inserted the same (contract, user) row first."""


def _get_contract(db: Session, contract_id: int) -> ContractModel:
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    return contract


def _ensure_can_manage(actor: UserModel, contract: ContractModel) -> None:
    if not (is_admin(actor) or contract.user_id == actor.id):
        raise ForbiddenError("Only the contract creator or an admin can manage its users")


def _resolve_role(association: ContractUserModel | None, value: str | None) -> AssociationRole | None:
    """
    Role to store for a caller-supplied ``value``; None keeps the current one.

    The creator row keeps ``creator`` and no other row can take it.
    """
    if value is None:
        return None
    role = parse_association_role(value)
    is_creator_row = association is not None and association.role == AssociationRole.CREATOR.value
    if is_creator_row and role is not AssociationRole.CREATOR:
        raise DomainValidationError("The contract creator's role cannot be changed")
    if role is AssociationRole.CREATOR and not is_creator_row:
        raise DomainValidationError("The creator role cannot be assigned")
    return role


def _changes(provided: dict, role: AssociationRole | None) -> dict:
    fields = {}
    if "description" in provided:
        fields["description"] = provided["description"]
    if role is not None:
        fields["role"] = role
    return fields


def _is_association_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return CONTRACT_USER_UNIQUE in message or "contract_users.contract_id" in message


def list_associations(db: Session, actor: UserModel, contract_id: int) -> list[ContractUserAssociation]:
    """Associations of a contract, ordered by creation."""
    contract = _get_contract(db, contract_id)
    if not (
        is_admin(actor)
        or contract.user_id == actor.id
        or contract_repo.is_associated(db, contract_id, actor.id)
    ):
        raise ForbiddenError("You do not have access to this contract")
    return [
        ContractUserAssociation.from_model(a)
        for a in contract_repo.get_associations(db, contract_id)
    ]


def upsert_association(
    db: Session,
    actor: UserModel,
    contract_id: int,
    data: ContractUserUpsert,
) -> tuple[ContractUserAssociation, bool]:
    """
    Add ``data.user_id`` to the contract, or update the existing association in place.

    Only the fields present in the request are written on an update, so a
    re-post without ``description`` keeps the stored one.

    Returns:
        Tuple of (association, created). ``created`` is False when an existing row was updated.

    Raises:
        NotFoundError: If the contract or the user does not exist.
        DomainValidationError: If the creator role is requested for another user
            or the creator row would lose it.
    """
    contract = _get_contract(db, contract_id)
    _ensure_can_manage(actor, contract)
    if user_repo.get_user_by_id(db, data.user_id) is None:
        raise NotFoundError("User not found")

    provided = data.model_dump(exclude_unset=True)
    try:
        association_id, created = _write_association(db, contract_id, data.user_id, provided)
    except _AssociationInsertRace:
        # The row exists now, so the second pass takes the update branch.
        association_id, created = _write_association(db, contract_id, data.user_id, provided)

    logger.info(
        "User %s %s on contract %s by user %s",
        data.user_id,
        "added" if created else "updated",
        contract_id,
        actor.id,
    )
    return _reload(db, contract_id, association_id), created


def _write_association(
    db: Session,
    contract_id: int,
    user_id: int,
    provided: dict,
) -> tuple[int, bool]:
    existing = contract_repo.get_association(db, contract_id, user_id)
    role = _resolve_role(existing, provided.get("role"))

    with transaction(db, "Error saving contract user"):
        if existing is not None:
            association = contract_repo.update_association(db, existing, **_changes(provided, role))
            return association.id, False
        try:
            (association,) = contract_repo.add_associations(
                db,
                contract_id,
                [
                    {
                        "user_id": user_id,
                        "description": provided.get("description"),
                        "role": role or AssociationRole.COLLABORATOR,
                    }
                ],
            )
        except IntegrityError as exc:
            if _is_association_violation(exc):
                logger.info("User %s was added to contract %s concurrently; updating", user_id, contract_id)
                raise _AssociationInsertRace() from exc
            raise
        return association.id, True


def update_association(
    db: Session,
    actor: UserModel,
    contract_id: int,
    user_id: int,
    data: ContractUserUpdate,
) -> ContractUserAssociation:
    """
    Update description and/or role of an existing association.

    Raises:
        NotFoundError: If the contract or the association does not exist.
        DomainValidationError: If the creator's role would change.
    """
    contract = _get_contract(db, contract_id)
    _ensure_can_manage(actor, contract)
    association = contract_repo.get_association(db, contract_id, user_id)
    if association is None:
        raise NotFoundError("User is not associated with this contract")

    provided = data.model_dump(exclude_unset=True)
    role = _resolve_role(association, provided.get("role"))

    with transaction(db, "Error updating contract user"):
        contract_repo.update_association(db, association, **_changes(provided, role))
        association_id = association.id

    logger.info("User %s updated on contract %s by user %s", user_id, contract_id, actor.id)
    return _reload(db, contract_id, association_id)


def remove_association(db: Session, actor: UserModel, contract_id: int, user_id: int) -> None:
    """
    Remove a user from a contract.

    Raises:
        NotFoundError: If the contract or the association does not exist.
        DomainValidationError: If the association is the creator's, for any caller.
    """
    contract = _get_contract(db, contract_id)
    association = contract_repo.get_association(db, contract_id, user_id)
    if association is None:
        raise NotFoundError("User is not associated with this contract")
    if association.role == AssociationRole.CREATOR.value:
        raise DomainValidationError("The contract creator cannot be removed")
    _ensure_can_manage(actor, contract)

    with transaction(db, "Error removing contract user"):
        contract_repo.delete_association(db, association)

    logger.info("User %s removed from contract %s by user %s", user_id, contract_id, actor.id)


def _reload(db: Session, contract_id: int, association_id: int) -> ContractUserAssociation:
    for association in contract_repo.get_associations(db, contract_id):
        if association.id == association_id:
            return ContractUserAssociation.from_model(association)
    raise NotFoundError("User is not associated with this contract")
