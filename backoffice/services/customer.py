import logging

from sqlalchemy.orm import Session

import backoffice.repositories.customer as customer_repo
from backoffice.db.models.customer import Customer as CustomerModel
from backoffice.db.models.user import User as UserModel
from backoffice.domain.roles import is_admin
from backoffice.errors import ConflictError, DomainValidationError, ForbiddenError, NotFoundError
from backoffice.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


def _get_owned_customer(db: Session, actor: UserModel, customer_id: int) -> CustomerModel:
    customer = customer_repo.get_customer_by_id(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    if customer.user_id != actor.id and not is_admin(actor):
        raise ForbiddenError("You do not have access to this customer")
    return customer


def list_customers(db: Session, actor: UserModel) -> list[CustomerModel]:
    """All customers for admins, the actor's own leads for everyone else."""
    return customer_repo.get_customers(db, user_id=None if is_admin(actor) else actor.id)


def get_customer(db: Session, actor: UserModel, customer_id: int) -> CustomerModel:
    return _get_owned_customer(db, actor, customer_id)


def create_customer(db: Session, actor: UserModel, customer_data: CustomerCreate) -> CustomerModel:
    """Record a new lead owned by ``actor``."""
    fields = customer_data.model_dump()
    fields["name"] = fields["name"].strip()
    if len(fields["name"]) < 2:
        raise DomainValidationError("Name must be at least 2 characters")
    customer = customer_repo.create_customer(db, user_id=actor.id, **fields)
    logger.info("Customer %s created by user %s", customer.id, actor.id)
    return customer


def update_customer(
    db: Session, actor: UserModel, customer_id: int, customer_data: CustomerUpdate
) -> CustomerModel:
    """
    Update a customer. Only fields explicitly provided are changed.

    Raises:
        NotFoundError: If the customer does not exist.
        ForbiddenError: If the actor neither owns the customer nor is admin.
        DomainValidationError: If a required field is cleared.
    """
    _get_owned_customer(db, actor, customer_id)
    update_fields = customer_data.model_dump(exclude_unset=True)
    for name in ("name", "budget", "contact", "is_local", "demands", "previous_deal", "notes"):
        if name in update_fields and update_fields[name] is None:
            raise DomainValidationError(f"{name} cannot be null")
    if "name" in update_fields:
        update_fields["name"] = update_fields["name"].strip()
        if len(update_fields["name"]) < 2:
            raise DomainValidationError("Name must be at least 2 characters")
    return customer_repo.update_customer(db, customer_id, **update_fields)


def delete_customer(db: Session, actor: UserModel, customer_id: int) -> None:
    """
    Delete a customer.

    Raises:
        ConflictError: If a contract references the customer.
    """
    _get_owned_customer(db, actor, customer_id)
    if customer_repo.has_contracts(db, customer_id):
        raise ConflictError("Customer is referenced by a contract and cannot be deleted")
    customer_repo.delete_customer(db, customer_id)
    logger.info("Customer %s deleted by user %s", customer_id, actor.id)
