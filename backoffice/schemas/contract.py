from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from backoffice.db.models.contract import Contract as ContractModel
from backoffice.db.models.contract import ContractUser as ContractUserModel
from backoffice.domain.contract_activity import (
    AssociationRole,
    ContractStatus,
    parse_contract_status,
)


class ContractAttachment(BaseModel):
    """A staged file recorded on a contract."""

    original_name: str
    path: str
    size: int
    mime_type: str


class AssociatedUser(BaseModel):
    user_id: int
    role: AssociationRole
    description: str | None = None


class ContractDetail(BaseModel):
    """A contract joined with the display fields of its agent, customer and estate."""

    id: int
    contract_number: str
    user_id: int
    customer_id: int
    estate_id: int
    contract_type: str
    contract_date: date
    amount: float
    duration_months: int | None = None
    payment_method: str
    commission: float
    notes: str
    status: ContractStatus
    attachments: list[ContractAttachment]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    agent_name: str | None = None
    agent_phone: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    estate_project: str | None = None
    estate_block: str | None = None
    estate_floor: int | None = None
    estate_area: float | None = None
    estate_type: str | None = None
    associated_users: list[AssociatedUser] = Field(default_factory=list)

    @classmethod
    def from_model(cls, contract: ContractModel) -> "ContractDetail":
        """
        Flatten a contract and its loaded relations.

        Raises:
            DataQualityError: If the stored status is outside the enumeration.
        """
        agent, customer, estate = contract.user, contract.customer, contract.estate
        return cls(
            id=contract.id,
            contract_number=contract.contract_number,
            user_id=contract.user_id,
            customer_id=contract.customer_id,
            estate_id=contract.estate_id,
            contract_type=contract.contract_type,
            contract_date=contract.contract_date,
            amount=contract.amount,
            duration_months=contract.duration_months,
            payment_method=contract.payment_method,
            commission=contract.commission,
            notes=contract.notes,
            status=parse_contract_status(contract.status),
            attachments=contract.attachments or [],
            created_at=contract.created_at,
            updated_at=contract.updated_at,
            agent_name=agent.name if agent else None,
            agent_phone=agent.phone_number if agent else None,
            customer_name=customer.name if customer else None,
            customer_phone=customer.contact if customer else None,
            estate_project=estate.project if estate else None,
            estate_block=estate.block if estate else None,
            estate_floor=estate.floor if estate else None,
            estate_area=estate.area if estate else None,
            estate_type=estate.estate_type if estate else None,
            associated_users=[
                AssociatedUser(user_id=a.user_id, role=a.role, description=a.description)
                for a in contract.users
            ],
        )


class ContractUpdate(BaseModel):
    contract_type: str | None = Field(None, min_length=1, max_length=100)
    contract_date: date | None = None
    amount: float | None = Field(None, ge=0)
    duration_months: int | None = Field(None, ge=0)
    payment_method: str | None = Field(None, min_length=1, max_length=100)
    commission: float | None = Field(None, ge=0)
    status: str | None = None
    notes: str | None = None


class ContractUserAssociation(BaseModel):
    """An association row joined with the user's display fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    contract_id: int
    user_id: int
    user_name: str | None = None
    user_phone: str | None = None
    description: str | None = None
    role: AssociationRole
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, association: ContractUserModel) -> "ContractUserAssociation":
        item = cls.model_validate(association)
        if association.user is not None:
            item.user_name = association.user.name
            item.user_phone = association.user.phone_number
        return item


class ContractUserUpsert(BaseModel):
    user_id: int
    description: str | None = None
    role: str | None = None


class ContractUserUpdate(BaseModel):
    description: str | None = None
    role: str | None = None


class ContractStats(BaseModel):
    total_contracts: int
    total_amount: float
    total_commission: float
    average_amount: float
    active_contracts: int
    expired_contracts: int
    cancelled_contracts: int
    this_month_contracts: int
    latest_contract_date: date | None = None


class CustomerOption(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    contact: str


class EstateOption(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project: str
    block: str | None = None
    floor: int
    area: float
    estate_type: str
