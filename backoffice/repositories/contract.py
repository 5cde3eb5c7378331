from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from backoffice.db.models.contract import Contract as ContractModel
from backoffice.db.models.contract import ContractUser as ContractUserModel
from backoffice.domain.contract_activity import ContractActivityPolicy, ContractStatus

# Contract writes run inside ``backoffice.db.transaction.transaction``, so the
# functions below flush and leave the commit to the caller.


def _with_display_relations(query):
    return query.options(
        joinedload(ContractModel.user),
        joinedload(ContractModel.customer),
        joinedload(ContractModel.estate),
        selectinload(ContractModel.users),
    )


def get_contract_by_id(db: Session, contract_id: int) -> ContractModel | None:
    """Get a contract by ID with the relations its detail view needs."""
    return (
        _with_display_relations(db.query(ContractModel))
        .filter(ContractModel.id == contract_id)
        .first()
    )


def get_contracts(db: Session, user_id: int | None = None) -> list[ContractModel]:
    """Get contracts, newest first. Restrict to one creator when ``user_id`` is given."""
    query = _with_display_relations(db.query(ContractModel))
    if user_id is not None:
        query = query.filter(ContractModel.user_id == user_id)
    return query.order_by(ContractModel.created_at.desc(), ContractModel.id.desc()).all()


def get_active_contract_for_estate(
    db: Session,
    estate_id: int,
    exclude_contract_id: int | None = None,
) -> ContractModel | None:
    """Get the contract currently occupying ``estate_id``, if any."""
    policy = ContractActivityPolicy()
    query = db.query(ContractModel).filter(
        ContractModel.estate_id == estate_id,
        policy.sqlalchemy_active_predicate(status_col=ContractModel.status),
    )
    if exclude_contract_id is not None:
        query = query.filter(ContractModel.id != exclude_contract_id)
    return query.first()


def contract_number_exists(db: Session, contract_number: str) -> bool:
    return (
        db.query(ContractModel.id)
        .filter(ContractModel.contract_number == contract_number)
        .first()
        is not None
    )


def create_contract(
    db: Session,
    contract_number: str,
    user_id: int,
    customer_id: int,
    estate_id: int,
    contract_type: str,
    contract_date: date,
    amount: float,
    payment_method: str,
    commission: float,
    notes: str,
    status: ContractStatus,
    attachments: list[dict],
    duration_months: int | None = None,
) -> ContractModel:
    """Insert a contract row. Pure data access - no business logic."""
    db_contract = ContractModel(
        contract_number=contract_number,
        user_id=user_id,
        customer_id=customer_id,
        estate_id=estate_id,
        contract_type=contract_type,
        contract_date=contract_date,
        amount=amount,
        duration_months=duration_months,
        payment_method=payment_method,
        commission=commission,
        notes=notes,
        status=status.value,
        attachments=attachments,
    )
    db.add(db_contract)
    db.flush()
    return db_contract


def update_contract(db: Session, contract: ContractModel, **kwargs) -> ContractModel:
    """
    Update a contract. Only updates fields that are explicitly provided.

    To clear a nullable field, explicitly pass it with None value.
    """
    for field in (
        "contract_type",
        "contract_date",
        "amount",
        "duration_months",
        "payment_method",
        "commission",
        "notes",
    ):
        if field in kwargs:
            setattr(contract, field, kwargs[field])
    if "status" in kwargs:
        contract.status = kwargs["status"].value
    if "attachments" in kwargs:
        contract.attachments = kwargs["attachments"]

    db.flush()
    return contract


def delete_contract(db: Session, contract: ContractModel) -> None:
    """Delete a contract; its associations cascade. Pure data access - no business logic."""
    db.delete(contract)
    db.flush()


def get_contract_stats(db: Session, user_id: int | None = None, today: date | None = None) -> dict:
    """Aggregate contract figures, for one creator when ``user_id`` is given."""
    today = today or date.today()
    month_start = today.replace(day=1)

    def scoped(query):
        if user_id is not None:
            query = query.filter(ContractModel.user_id == user_id)
        return query

    total, total_amount, total_commission, average_amount, latest = scoped(
        db.query(
            func.count(ContractModel.id),
            func.coalesce(func.sum(ContractModel.amount), 0),
            func.coalesce(func.sum(ContractModel.commission), 0),
            func.coalesce(func.avg(ContractModel.amount), 0),
            func.max(ContractModel.contract_date),
        )
    ).one()

    status_counts = dict(
        scoped(
            db.query(ContractModel.status, func.count(ContractModel.id)).group_by(
                ContractModel.status
            )
        ).all()
    )

    this_month = scoped(
        db.query(func.count(ContractModel.id)).filter(
            ContractModel.contract_date >= month_start,
            ContractModel.contract_date <= today,
        )
    ).scalar()

    return {
        "total_contracts": total,
        "total_amount": float(total_amount),
        "total_commission": float(total_commission),
        "average_amount": float(average_amount),
        "status_counts": status_counts,
        "this_month_contracts": this_month,
        "latest_contract_date": latest,
    }


def get_associations(db: Session, contract_id: int) -> list[ContractUserModel]:
    """Get a contract's associations ordered by creation."""
    return (
        db.query(ContractUserModel)
        .options(joinedload(ContractUserModel.user))
        .filter(ContractUserModel.contract_id == contract_id)
        .order_by(ContractUserModel.created_at, ContractUserModel.id)
        .all()
    )


def get_association(db: Session, contract_id: int, user_id: int) -> ContractUserModel | None:
    """Get the association of ``user_id`` with ``contract_id``."""
    return (
        db.query(ContractUserModel)
        .filter(
            ContractUserModel.contract_id == contract_id,
            ContractUserModel.user_id == user_id,
        )
        .first()
    )


def is_associated(db: Session, contract_id: int, user_id: int) -> bool:
    return get_association(db, contract_id, user_id) is not None


def add_associations(db: Session, contract_id: int, rows: list[dict]) -> list[ContractUserModel]:
    """Bulk insert association rows ``{user_id, description, role}``."""
    models = [
        ContractUserModel(
            contract_id=contract_id,
            user_id=row["user_id"],
            description=row.get("description"),
            role=row["role"].value,
        )
        for row in rows
    ]
    db.add_all(models)
    db.flush()
    return models


def update_association(
    db: Session,
    association: ContractUserModel,
    **kwargs,
) -> ContractUserModel:
    """Update an association. Only provided fields are updated."""
    if "description" in kwargs:
        association.description = kwargs["description"]
    if "role" in kwargs:
        association.role = kwargs["role"].value
    db.flush()
    return association


def delete_association(db: Session, association: ContractUserModel) -> None:
    db.delete(association)
    db.flush()
