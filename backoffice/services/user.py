import logging

from sqlalchemy.orm import Session

import backoffice.repositories.user as user_repo
from backoffice.core.security import is_valid_phone
from backoffice.db.models.user import User as UserModel
from backoffice.domain.roles import is_admin
from backoffice.errors import (
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
)
from backoffice.schemas.user import UserSelectItem, UserUpdate
from backoffice.services.attachment_store import AttachmentStore

logger = logging.getLogger(__name__)


def get_user(db: Session, actor: UserModel, user_id: int) -> UserModel:
    """
    Get a user visible to ``actor`` (themselves, or anyone for admins).

    Raises:
        ForbiddenError: If a non-admin asks for someone else.
        NotFoundError: If the user does not exist.
    """
    if actor.id != user_id and not is_admin(actor):
        raise ForbiddenError("You can only view your own profile")
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(db: Session, actor: UserModel, user_id: int, user_data: UserUpdate) -> UserModel:
    """
    Update name and phone number of a user.

    - Only the user themselves or an admin
    - Phone number format is checked
    - Name and phone number stay unique
    """
    if actor.id != user_id and not is_admin(actor):
        raise ForbiddenError("You can only update your own profile")

    existing_user = user_repo.get_user_by_id(db, user_id)
    if not existing_user:
        raise NotFoundError("User not found")

    name = user_data.name.strip()
    if not name:
        raise DomainValidationError("Name is required")
    if not is_valid_phone(user_data.phone_number):
        raise DomainValidationError("Phone number must be 11 digits starting with 09")

    same_name = user_repo.get_user_by_name(db, name)
    if same_name and same_name.id != user_id:
        raise DuplicateResourceError("Name already registered")
    same_phone = user_repo.get_user_by_phone(db, user_data.phone_number)
    if same_phone and same_phone.id != user_id:
        raise DuplicateResourceError("Phone number already registered")

    return user_repo.update_user(db, user_id, name=name, phone_number=user_data.phone_number)


def get_select_list(db: Session) -> list[UserSelectItem]:
    """Approved users formatted for a picker: ``name - phone (role)``."""
    return [
        UserSelectItem(
            id=user.id,
            name=user.name,
            phone_number=user.phone_number,
            role=user.role.name,
            display_text=f"{user.name} - {user.phone_number} ({user.role.name})",
        )
        for user in user_repo.get_approved_users(db)
    ]


def approve_user(db: Session, actor: UserModel, user_id: int) -> UserModel:
    """
    Approve a pending user.

    Raises:
        NotFoundError: If the user does not exist.
        DomainValidationError: If the user is already approved.
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.approved:
        raise DomainValidationError("User is already approved")

    user = user_repo.approve_user(db, user_id)
    logger.info("User %s approved by admin %s", user_id, actor.id)
    return user


def reject_user(db: Session, store: AttachmentStore, actor: UserModel, user_id: int) -> None:
    """
    Reject a pending user: delete the account and its ID photo.

    Raises:
        NotFoundError: If the user does not exist.
        DomainValidationError: If the user is approved or an admin.
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.approved or is_admin(user):
        raise DomainValidationError("Only pending users can be rejected")

    id_photo_path = user.id_photo_path
    user_repo.delete_user(db, user_id)
    store.delete_path(id_photo_path)
    logger.info("User %s rejected by admin %s", user_id, actor.id)
