from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

from backoffice.db.models.customer import Customer as CustomerModel


class Customer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    creator_name: str | None = None
    name: str
    budget: float
    contact: str
    is_local: str
    demands: str
    previous_deal: str
    notes: str
    estate_type: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, customer: CustomerModel) -> "Customer":
        item = cls.model_validate(customer)
        item.creator_name = customer.creator.name if customer.creator else None
        return item


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    budget: float = Field(800, ge=0)
    contact: str = Field("", max_length=255)
    is_local: Literal["yes", "no"] = "yes"
    demands: str = ""
    previous_deal: Literal["rejected", "successful"] = "rejected"
    notes: str = ""
    estate_type: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    budget: float | None = Field(None, ge=0)
    contact: str | None = Field(None, max_length=255)
    is_local: Literal["yes", "no"] | None = None
    demands: str | None = None
    previous_deal: Literal["rejected", "successful"] | None = None
    notes: str | None = None
    estate_type: str | None = None
