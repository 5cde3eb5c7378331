"""Auth service: registration, login and password change."""

import logging
from dataclasses import dataclass
from datetime import date

from fastapi import UploadFile
from sqlalchemy.orm import Session

import backoffice.repositories.role as role_repo
import backoffice.repositories.user as user_repo
from backoffice.core.config import settings
from backoffice.core.security import (
    create_access_token,
    get_password_hash,
    is_valid_national_id,
    is_valid_phone,
    validate_password,
    verify_password,
)
from backoffice.db.models.user import User as UserModel
from backoffice.domain.roles import AGENT_ROLE
from backoffice.errors import (
    DomainValidationError,
    DuplicateResourceError,
    NotFoundError,
    UnauthorizedError,
)
from backoffice.schemas.user import Token, User
from backoffice.services.attachment_store import IMAGE_EXTENSIONS, AttachmentStore

logger = logging.getLogger(__name__)

ID_PHOTO_CATEGORY = "id-photos"
DEFAULT_ROLE = AGENT_ROLE
MINIMUM_AGE = 18


@dataclass
class Registration:
    name: str | None = None
    phone_number: str | None = None
    national_id: str | None = None
    password: str | None = None
    date_of_birth: str | None = None
    fathers_name: str | None = None
    primary_residence: str | None = None


def _age_on(birth: date, today: date) -> int:
    return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))


def _validate_registration(db: Session, data: Registration) -> date | None:
    if not data.name or not data.name.strip():
        raise DomainValidationError("Name is required")
    if not data.phone_number or not data.national_id or not data.password:
        raise DomainValidationError("Phone number, national ID and password are required")
    if not is_valid_phone(data.phone_number):
        raise DomainValidationError("Phone number must be 11 digits starting with 09")
    if not is_valid_national_id(data.national_id):
        raise DomainValidationError("National ID must be exactly 10 digits")

    is_valid, error_message = validate_password(data.password)
    if not is_valid:
        raise DomainValidationError(error_message)

    birth = None
    if data.date_of_birth:
        try:
            birth = date.fromisoformat(data.date_of_birth[:10])
        except ValueError:
            raise DomainValidationError("Invalid date of birth") from None
        if _age_on(birth, date.today()) < MINIMUM_AGE:
            raise DomainValidationError(f"You must be at least {MINIMUM_AGE} years old")

    if user_repo.get_user_by_name(db, data.name.strip()):
        raise DuplicateResourceError("Name already registered")
    if user_repo.get_user_by_phone(db, data.phone_number):
        raise DuplicateResourceError("Phone number already registered")
    if user_repo.get_user_by_national_id(db, data.national_id):
        raise DuplicateResourceError("National ID already registered")
    return birth


def register(
    db: Session,
    store: AttachmentStore,
    data: Registration,
    id_photo: UploadFile | None,
) -> UserModel:
    """
    Register a new agent. New accounts wait for admin approval unless
    AUTO_APPROVE_USERS is set.

    Raises:
        DomainValidationError: If a field is missing or malformed, or the ID photo is missing.
        DuplicateResourceError: If the name, phone number or national ID is taken.
    """
    if id_photo is None or not id_photo.filename:
        raise DomainValidationError("ID photo is required")
    staged = store.stage(
        id_photo,
        ID_PHOTO_CATEGORY,
        allowed_extensions=IMAGE_EXTENSIONS,
        max_size=settings.max_id_photo_size,
        prefix="id",
    )

    try:
        birth = _validate_registration(db, data)
        role = role_repo.get_role_by_name(db, DEFAULT_ROLE)
        if not role:
            raise NotFoundError(f"Role '{DEFAULT_ROLE}' not found")
        user = user_repo.create_user(
            db,
            name=data.name.strip(),
            phone_number=data.phone_number,
            password_hash=get_password_hash(data.password),
            role_id=role.id,
            national_id=data.national_id,
            date_of_birth=birth,
            fathers_name=data.fathers_name,
            primary_residence=data.primary_residence,
            id_photo_path=staged.path,
            approved=settings.auto_approve_users,
        )
    except Exception:
        db.rollback()
        store.delete_path(staged.path)
        raise

    logger.info("User %s registered (approved=%s)", user.id, user.approved)
    return user


def login(db: Session, name: str, password: str) -> Token:
    """
    Authenticate user by name and password, return JWT access token.

    Raises:
        UnauthorizedError: If name not found or password incorrect.
    """
    user = user_repo.get_user_by_name(db, name)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Incorrect name or password")

    access_token = create_access_token(data={"sub": user.id})
    return Token(
        access_token=access_token,
        token_type="bearer",
        user=User.model_validate(user),
    )


def change_password(
    db: Session, user: UserModel, current_password: str, new_password: str
) -> dict[str, str]:
    """
    Change the password of ``user``.

    Raises:
        DomainValidationError: If the current password is wrong or the new one is invalid.
    """
    if not verify_password(current_password, user.password_hash):
        raise DomainValidationError("Current password is incorrect")

    is_valid, error_message = validate_password(new_password)
    if not is_valid:
        raise DomainValidationError(error_message)

    user_repo.update_user_password(db, user.id, get_password_hash(new_password))
    logger.info("User %s changed their password", user.id)
    return {"message": "Password changed successfully"}
