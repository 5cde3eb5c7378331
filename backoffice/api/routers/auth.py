from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_attachment_store, get_current_user, get_db
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.user import PasswordChange, Token, User
from backoffice.services import auth as auth_service
from backoffice.services.attachment_store import AttachmentStore

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register(
    name: str | None = Form(None),
    phone_number: str | None = Form(None),
    national_id: str | None = Form(None),
    password: str | None = Form(None),
    date_of_birth: str | None = Form(None),
    fathers_name: str | None = Form(None),
    primary_residence: str | None = Form(None),
    id_photo: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
):
    """
    Register a new agent account (multipart form, ID photo required).

    The account waits for admin approval unless AUTO_APPROVE_USERS is set.
    """
    user = auth_service.register(
        db,
        store,
        auth_service.Registration(
            name=name,
            phone_number=phone_number,
            national_id=national_id,
            password=password,
            date_of_birth=date_of_birth,
            fathers_name=fathers_name,
            primary_residence=primary_residence,
        ),
        id_photo,
    )
    return User.model_validate(user)


@router.post("/login", response_model=Token)
def login(
    username: str = Form(...),  # OAuth2 uses "username"; it carries the user's name
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """
    Login endpoint - returns JWT token.
    Uses form data for OAuth2 compatibility (Swagger UI authorization).
    Pending accounts can log in, but only /auth/me is open to them.
    """
    return auth_service.login(db, username, password)


@router.get("/me", response_model=User)
def get_current_user_info(current_user: UserModel = Depends(get_current_user)):
    """Get current authenticated user information, approved or not."""
    return User.model_validate(current_user)


@router.post("/change-password")
def change_password(
    password_data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return auth_service.change_password(
        db, current_user, password_data.current_password, password_data.new_password
    )
