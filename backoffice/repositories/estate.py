from sqlalchemy.orm import Session

from backoffice.db.models.contract import Contract as ContractModel
from backoffice.db.models.estate import Estate as EstateModel
from backoffice.domain.contract_activity import ContractActivityPolicy
from backoffice.errors import NotFoundError

_UPDATABLE_FIELDS = (
    "phase",
    "project",
    "block",
    "floor",
    "area",
    "rooms",
    "deed_type",
    "total_floors",
    "units_per_floor",
    "occupancy_status",
    "notes",
    "estate_type",
    "phone_number",
    "price",
    "features",
)


def get_estate_by_id(db: Session, estate_id: int) -> EstateModel | None:
    """Get an estate by ID."""
    return db.query(EstateModel).filter(EstateModel.id == estate_id).first()


def lock_estate(db: Session, estate_id: int) -> EstateModel | None:
    """
    Get an estate by ID holding a row lock until the surrounding transaction ends.

    Serializes concurrent contract writes for the same estate. SQLite ignores
    FOR UPDATE; the partial unique index on contracts covers that case.
    """
    return (
        db.query(EstateModel)
        .filter(EstateModel.id == estate_id)
        .with_for_update()
        .first()
    )


def get_all_estates(db: Session) -> list[EstateModel]:
    """Get all estates, newest first."""
    return db.query(EstateModel).order_by(EstateModel.created_at.desc(), EstateModel.id.desc()).all()


def get_estates_without_active_contract(db: Session) -> list[EstateModel]:
    """Get estates that no active contract currently occupies, sorted by project."""
    policy = ContractActivityPolicy()
    occupied = db.query(ContractModel.estate_id).filter(
        policy.sqlalchemy_active_predicate(status_col=ContractModel.status)
    )
    return (
        db.query(EstateModel)
        .filter(EstateModel.id.not_in(occupied))
        .order_by(EstateModel.project, EstateModel.id)
        .all()
    )


def create_estate(db: Session, user_id: int, **fields) -> EstateModel:
    """Create a new estate in the database. Pure data access - no business logic."""
    db_estate = EstateModel(user_id=user_id, **fields)
    db.add(db_estate)
    db.commit()
    db.refresh(db_estate)
    return db_estate


def update_estate(db: Session, estate_id: int, **kwargs) -> EstateModel:
    """
    Update an estate. Only updates fields that are explicitly provided.
    """
    estate = get_estate_by_id(db, estate_id)
    if not estate:
        raise NotFoundError("Estate not found")

    for field in _UPDATABLE_FIELDS:
        if field in kwargs:
            setattr(estate, field, kwargs[field])

    db.commit()
    db.refresh(estate)
    return estate


def has_contracts(db: Session, estate_id: int) -> bool:
    """Whether any contract references the estate."""
    return (
        db.query(ContractModel.id).filter(ContractModel.estate_id == estate_id).first()
        is not None
    )


def delete_estate(db: Session, estate_id: int) -> None:
    """Delete an estate from the database. Pure data access - no business logic."""
    estate = get_estate_by_id(db, estate_id)
    if not estate:
        raise NotFoundError("Estate not found")

    db.delete(estate)
    db.commit()
