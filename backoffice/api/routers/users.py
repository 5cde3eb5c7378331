from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_db, require_roles
from backoffice.db.models.user import User as UserModel
from backoffice.repositories.user import get_all_users_paginated
from backoffice.services.user import get_select_list, get_user, update_user
from backoffice.schemas.user import User, UserSelectItem, UserUpdate
from backoffice.schemas.pagination import OffsetPaginatedResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=OffsetPaginatedResponse[User])
def get_all_users(
    limit: int = Query(100, ge=1, le=100, description="Number of users to return"),
    offset: int = Query(0, ge=0, description="Number of users to skip"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Get all users sorted by name. Only admin users can access this endpoint.
    """
    users, total = get_all_users_paginated(db, limit=limit, offset=offset)
    return OffsetPaginatedResponse(
        items=[User.model_validate(user) for user in users],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/select-list", response_model=list[UserSelectItem])
def get_users_select_list(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Approved users for pickers, e.g. when adding collaborators to a contract."""
    return get_select_list(db)


@router.get("/{user_id}", response_model=User)
def get_user_by_id(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Get a user by ID.

    - Admin can get any user
    - Agents can only get themselves
    """
    return User.model_validate(get_user(db, current_user, user_id))


@router.put("/{user_id}", response_model=User)
def update_user_by_id(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Update a user's name and phone number.

    - Admin can update any user
    - Agents can only update themselves
    """
    return User.model_validate(update_user(db, current_user, user_id, user_data))
