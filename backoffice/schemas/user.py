from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.role import Role


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone_number: str
    national_id: str | None = None
    date_of_birth: date | None = None
    fathers_name: str | None = None
    primary_residence: str | None = None
    id_photo_path: str | None = None
    approved: bool
    approved_at: datetime | None = None
    created_at: datetime | None = None
    role: Role


class UserUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone_number: str = Field(..., min_length=1, max_length=20)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str


class UserSelectItem(BaseModel):
    """Compact user entry for pickers in the front-end."""

    id: int
    name: str
    phone_number: str
    role: str
    display_text: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
