from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_db, require_roles
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.estate import Estate, EstateCreate, EstateUpdate
from backoffice.services import estate as estate_service

router = APIRouter(prefix="/estates", tags=["estates"])


@router.get("", response_model=list[Estate])
def list_estates(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Get all estates, newest first. Only admin users can list estates."""
    return [Estate.from_model(e) for e in estate_service.list_estates(db)]


@router.get("/{estate_id}", response_model=Estate)
def get_estate(
    estate_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return Estate.from_model(estate_service.get_estate(db, current_user, estate_id))


@router.post("", response_model=Estate, status_code=status.HTTP_201_CREATED)
def create_estate(
    estate_data: EstateCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return Estate.from_model(estate_service.create_estate(db, current_user, estate_data))


@router.put("/{estate_id}", response_model=Estate)
def update_estate(
    estate_id: int,
    estate_data: EstateUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Update an estate. Only the agent who listed it or an admin can update it.

    Fields not included in the request are not updated.
    """
    estate = estate_service.update_estate(db, current_user, estate_id, estate_data)
    return Estate.from_model(estate)


@router.delete("/{estate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_estate(
    estate_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Delete an estate. Only admin users can delete estates.

    An estate can only be deleted if no contract references it.
    """
    estate_service.delete_estate(db, current_user, estate_id)
