from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(alias="DATABASE_URL")

    # JWT Configuration
    secret_key: str = Field(alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # First Admin User
    first_admin_name: str = Field(alias="FIRST_ADMIN_NAME")
    first_admin_phone: str = Field(alias="FIRST_ADMIN_PHONE")
    first_admin_password: str = Field(alias="FIRST_ADMIN_PASSWORD")

    # Registration
    auto_approve_users: bool = Field(default=False, alias="AUTO_APPROVE_USERS")

    # Uploaded files (attachments, ID photos, maps, invoice photos)
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    max_attachment_size: int = Field(
        default=10 * 1024 * 1024, alias="MAX_ATTACHMENT_SIZE"
    )
    max_id_photo_size: int = Field(default=20 * 1024 * 1024, alias="MAX_ID_PHOTO_SIZE")
    max_map_size: int = Field(default=5 * 1024 * 1024, alias="MAX_MAP_SIZE")

    # Diagnostics
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Frontend origin allowed by CORS
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")

    @field_validator("frontend_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str:
        if not v:
            return "INFO"
        return str(v).upper()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
