from datetime import date, datetime, timezone
from sqlalchemy.orm import Session

from backoffice.db.models.user import User as UserModel
from backoffice.errors import NotFoundError


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get a user by ID."""
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def get_user_by_name(db: Session, name: str) -> UserModel | None:
    """Get a user by name (the login identifier)."""
    return db.query(UserModel).filter(UserModel.name == name).first()


def get_user_by_phone(db: Session, phone_number: str) -> UserModel | None:
    """Get a user by phone number."""
    return db.query(UserModel).filter(UserModel.phone_number == phone_number).first()


def get_user_by_national_id(db: Session, national_id: str) -> UserModel | None:
    """Get a user by national ID."""
    return db.query(UserModel).filter(UserModel.national_id == national_id).first()


def get_existing_user_ids(db: Session, user_ids: list[int]) -> set[int]:
    """Return the subset of ``user_ids`` that exist."""
    if not user_ids:
        return set()
    rows = db.query(UserModel.id).filter(UserModel.id.in_(user_ids)).all()
    return {row[0] for row in rows}


def create_user(
    db: Session,
    name: str,
    phone_number: str,
    password_hash: str,
    role_id: int,
    national_id: str | None = None,
    date_of_birth: date | None = None,
    fathers_name: str | None = None,
    primary_residence: str | None = None,
    id_photo_path: str | None = None,
    approved: bool = False,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        name=name,
        phone_number=phone_number,
        password_hash=password_hash,
        role_id=role_id,
        national_id=national_id,
        date_of_birth=date_of_birth,
        fathers_name=fathers_name,
        primary_residence=primary_residence,
        id_photo_path=id_photo_path,
        approved=approved,
        approved_at=datetime.now(timezone.utc) if approved else None,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user_password(db: Session, user_id: int, password_hash: str) -> UserModel:
    """Update a user's password."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.password_hash = password_hash
    db.commit()
    db.refresh(user)
    return user


def update_user(
    db: Session,
    user_id: int,
    name: str | None = None,
    phone_number: str | None = None,
) -> UserModel:
    """Update user fields. Only provided fields will be updated."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if name is not None:
        user.name = name
    if phone_number is not None:
        user.phone_number = phone_number

    db.commit()
    db.refresh(user)
    return user


def approve_user(db: Session, user_id: int) -> UserModel:
    """Mark a user as approved."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.approved = True
    user.approved_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    """Delete a user from the database. Pure data access - no business logic."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    db.delete(user)
    db.commit()


def get_pending_users(db: Session) -> list[UserModel]:
    """Get users waiting for approval, oldest first."""
    return (
        db.query(UserModel)
        .filter(UserModel.approved.is_(False))
        .order_by(UserModel.created_at, UserModel.id)
        .all()
    )


def get_approved_users(db: Session) -> list[UserModel]:
    """Get approved users sorted by name."""
    return (
        db.query(UserModel)
        .filter(UserModel.approved.is_(True))
        .order_by(UserModel.name)
        .all()
    )


def get_all_users_paginated(
    db: Session, limit: int = 100, offset: int = 0
) -> tuple[list[UserModel], int]:
    """
    Get all users with limit/offset pagination, sorted by name for stable pagination.

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel)
    total = query.count()
    users = query.order_by(UserModel.name).offset(offset).limit(limit).all()
    return users, total
