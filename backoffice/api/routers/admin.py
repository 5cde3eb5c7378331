from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_attachment_store, get_db, require_roles
from backoffice.db.models.user import User as UserModel
from backoffice.repositories.customer import get_customers
from backoffice.repositories.user import get_pending_users
from backoffice.schemas.customer import Customer
from backoffice.schemas.user import User
from backoffice.services.attachment_store import AttachmentStore
from backoffice.services.user import approve_user, reject_user

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/pending-users", response_model=list[User])
def list_pending_users(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Users waiting for approval, oldest first."""
    return [User.model_validate(user) for user in get_pending_users(db)]


@router.post("/approve-user/{user_id}", response_model=User)
def approve_pending_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    return User.model_validate(approve_user(db, current_user, user_id))


@router.delete("/reject-user/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def reject_pending_user(
    user_id: int,
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Reject a pending user: the account and its ID photo are deleted.

    Approved users and admins cannot be rejected.
    """
    reject_user(db, store, current_user, user_id)


@router.get("/customers", response_model=list[Customer])
def list_all_customers(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Every customer with the name of the agent who recorded it."""
    return [Customer.from_model(customer) for customer in get_customers(db)]
