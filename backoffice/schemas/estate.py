from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.core.security import PHONE_PATTERN
from backoffice.db.models.estate import Estate as EstateModel


class Estate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    creator_name: str | None = None
    phase: int
    project: str
    block: str | None = None
    floor: int
    area: float
    rooms: int
    deed_type: str
    total_floors: int
    units_per_floor: int
    occupancy_status: str
    notes: str
    estate_type: str
    phone_number: str
    price: float
    features: dict[str, Any] | list[Any]
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, estate: EstateModel) -> "Estate":
        item = cls.model_validate(estate)
        item.creator_name = estate.creator.name if estate.creator else None
        return item


class EstateCreate(BaseModel):
    phase: int = Field(..., ge=0, description="Project phase (must be >= 0)")
    project: str = Field(..., min_length=1, max_length=255)
    block: str | None = Field(None, max_length=50)
    floor: int = Field(..., ge=0, description="Floor (must be >= 0)")
    area: float = Field(..., gt=0, description="Area in square meters (must be > 0)")
    rooms: int = Field(..., ge=0, description="Rooms (must be >= 0)")
    deed_type: str = Field(..., min_length=1, max_length=100)
    total_floors: int = Field(..., gt=0, description="Total floors (must be > 0)")
    units_per_floor: int = Field(..., gt=0, description="Units per floor (must be > 0)")
    occupancy_status: str = Field(..., min_length=1, max_length=100)
    notes: str = ""
    estate_type: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., pattern=PHONE_PATTERN.pattern)
    price: float = Field(..., ge=0, description="Price (must be >= 0)")
    features: dict[str, Any] = Field(default_factory=dict)

    @field_validator("project", "deed_type", "occupancy_status", "estate_type")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()


class EstateUpdate(BaseModel):
    phase: int | None = Field(None, ge=0)
    project: str | None = Field(None, min_length=1, max_length=255)
    block: str | None = Field(None, max_length=50)
    floor: int | None = Field(None, ge=0)
    area: float | None = Field(None, gt=0)
    rooms: int | None = Field(None, ge=0)
    deed_type: str | None = Field(None, min_length=1, max_length=100)
    total_floors: int | None = Field(None, gt=0)
    units_per_floor: int | None = Field(None, gt=0)
    occupancy_status: str | None = Field(None, min_length=1, max_length=100)
    notes: str | None = None
    estate_type: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, pattern=PHONE_PATTERN.pattern)
    price: float | None = Field(None, ge=0)
    features: dict[str, Any] | None = None
