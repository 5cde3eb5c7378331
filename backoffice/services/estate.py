import logging

from sqlalchemy.orm import Session

import backoffice.repositories.estate as estate_repo
from backoffice.db.models.estate import Estate as EstateModel
from backoffice.db.models.user import User as UserModel
from backoffice.domain.roles import is_admin
from backoffice.errors import ConflictError, DomainValidationError, ForbiddenError, NotFoundError
from backoffice.schemas.estate import EstateCreate, EstateUpdate

logger = logging.getLogger(__name__)

_NON_NULLABLE = (
    "phase",
    "project",
    "floor",
    "area",
    "rooms",
    "deed_type",
    "total_floors",
    "units_per_floor",
    "occupancy_status",
    "estate_type",
    "phone_number",
    "price",
    "features",
)


def _get_owned_estate(db: Session, actor: UserModel, estate_id: int) -> EstateModel:
    estate = estate_repo.get_estate_by_id(db, estate_id)
    if not estate:
        raise NotFoundError("Estate not found")
    if estate.user_id != actor.id and not is_admin(actor):
        raise ForbiddenError("You do not have access to this estate")
    return estate


def list_estates(db: Session) -> list[EstateModel]:
    return estate_repo.get_all_estates(db)


def get_estate(db: Session, actor: UserModel, estate_id: int) -> EstateModel:
    return _get_owned_estate(db, actor, estate_id)


def create_estate(db: Session, actor: UserModel, estate_data: EstateCreate) -> EstateModel:
    """Create a listing owned by ``actor``."""
    estate = estate_repo.create_estate(db, user_id=actor.id, **estate_data.model_dump())
    logger.info("Estate %s created by user %s", estate.id, actor.id)
    return estate


def update_estate(
    db: Session, actor: UserModel, estate_id: int, estate_data: EstateUpdate
) -> EstateModel:
    """
    Update an estate. Only fields explicitly provided are changed.

    Raises:
        NotFoundError: If the estate does not exist.
        ForbiddenError: If the actor neither owns the estate nor is admin.
        DomainValidationError: If a required field is cleared.
    """
    _get_owned_estate(db, actor, estate_id)
    update_fields = estate_data.model_dump(exclude_unset=True)
    for name in _NON_NULLABLE:
        if name in update_fields and update_fields[name] is None:
            raise DomainValidationError(f"{name} cannot be null")
    for name in ("project", "deed_type", "occupancy_status", "estate_type"):
        if name in update_fields and not update_fields[name].strip():
            raise DomainValidationError(f"{name} cannot be blank")
    return estate_repo.update_estate(db, estate_id, **update_fields)


def delete_estate(db: Session, actor: UserModel, estate_id: int) -> None:
    """
    Delete an estate.

    Raises:
        NotFoundError: If the estate does not exist.
        ConflictError: If any contract references the estate.
    """
    estate = estate_repo.get_estate_by_id(db, estate_id)
    if not estate:
        raise NotFoundError("Estate not found")
    if estate_repo.has_contracts(db, estate_id):
        raise ConflictError("Estate is referenced by a contract and cannot be deleted")
    estate_repo.delete_estate(db, estate_id)
    logger.info("Estate %s deleted by user %s", estate_id, actor.id)
