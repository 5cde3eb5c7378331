from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.security import decode_token
from backoffice.db import SessionLocal
from backoffice.db.models.user import User
from backoffice.services.attachment_store import AttachmentStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_attachment_store() -> AttachmentStore:
    """The process-wide attachment store rooted at UPLOAD_DIR."""
    return AttachmentStore(settings.upload_dir, public_prefix="/uploads")


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token. Approval is not checked."""
    payload = decode_token(token)
    if payload is None:
        raise _credentials_error()

    # Only access tokens authenticate requests
    if payload.get("type") != "access":
        raise _credentials_error()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _credentials_error() from None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_error("User not found")

    return user


def get_approved_user(current_user: User = Depends(get_current_user)) -> User:
    """Get the current user, requiring an admin to have approved the account."""
    if not current_user.approved:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is pending approval",
        )
    return current_user


def require_roles(*role_names: str):
    """
    Create a dependency that requires the current (approved) user to have one of the specified roles.

    Args:
        *role_names: Variable number of role name strings to allow

    Returns:
        A dependency function that checks if the user has one of the required roles

    Example:
        Depends(require_roles("admin"))
        Depends(require_roles("admin", "agent"))
    """
    def role_checker(current_user: User = Depends(get_approved_user)) -> User:
        if current_user.role.name not in role_names:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker
