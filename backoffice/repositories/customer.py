from sqlalchemy.orm import Session

from backoffice.db.models.contract import Contract as ContractModel
from backoffice.db.models.customer import Customer as CustomerModel
from backoffice.errors import NotFoundError

_UPDATABLE_FIELDS = (
    "name",
    "budget",
    "contact",
    "is_local",
    "demands",
    "previous_deal",
    "notes",
    "estate_type",
)


def get_customer_by_id(db: Session, customer_id: int) -> CustomerModel | None:
    """Get a customer by ID."""
    return db.query(CustomerModel).filter(CustomerModel.id == customer_id).first()


def get_customers(db: Session, user_id: int | None = None) -> list[CustomerModel]:
    """Get customers, newest first. Restrict to one creator when ``user_id`` is given."""
    query = db.query(CustomerModel)
    if user_id is not None:
        query = query.filter(CustomerModel.user_id == user_id)
    return query.order_by(CustomerModel.created_at.desc(), CustomerModel.id.desc()).all()


def get_customers_for_dropdown(db: Session) -> list[CustomerModel]:
    """Get all customers sorted by name."""
    return db.query(CustomerModel).order_by(CustomerModel.name).all()


def create_customer(db: Session, user_id: int, **fields) -> CustomerModel:
    """Create a new customer in the database. Pure data access - no business logic."""
    db_customer = CustomerModel(user_id=user_id, **fields)
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    return db_customer


def update_customer(db: Session, customer_id: int, **kwargs) -> CustomerModel:
    """
    Update a customer. Only updates fields that are explicitly provided.
    """
    customer = get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")

    for field in _UPDATABLE_FIELDS:
        if field in kwargs:
            setattr(customer, field, kwargs[field])

    db.commit()
    db.refresh(customer)
    return customer


def has_contracts(db: Session, customer_id: int) -> bool:
    """Whether any contract references the customer."""
    return (
        db.query(ContractModel.id).filter(ContractModel.customer_id == customer_id).first()
        is not None
    )


def delete_customer(db: Session, customer_id: int) -> None:
    """Delete a customer from the database. Pure data access - no business logic."""
    customer = get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")

    db.delete(customer)
    db.commit()
