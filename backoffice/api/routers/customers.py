from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_db
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.customer import Customer, CustomerCreate, CustomerUpdate
from backoffice.services import customer as customer_service

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[Customer])
def list_customers(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Get customers, newest first.
    - Admin: every customer
    - Agent: the customers they recorded
    """
    return [Customer.from_model(c) for c in customer_service.list_customers(db, current_user)]


@router.get("/{customer_id}", response_model=Customer)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return Customer.from_model(customer_service.get_customer(db, current_user, customer_id))


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    customer = customer_service.create_customer(db, current_user, customer_data)
    return Customer.from_model(customer)


@router.put("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Update a customer. Only the agent who recorded it or an admin can update it.

    Fields not included in the request are not updated.
    """
    customer = customer_service.update_customer(db, current_user, customer_id, customer_data)
    return Customer.from_model(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Delete a customer. A customer referenced by a contract cannot be deleted.
    """
    customer_service.delete_customer(db, current_user, customer_id)
