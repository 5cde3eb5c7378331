from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from backoffice.db.base import Base

ACTIVE_CONTRACT_INDEX = "uq_contracts_active_estate"
CONTRACT_USER_UNIQUE = "uq_contract_users_contract_user"


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        # At most one active contract per estate.
        Index(
            ACTIVE_CONTRACT_INDEX,
            "estate_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_number = Column(String(50), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    estate_id = Column(Integer, ForeignKey("estates.id"), nullable=False, index=True)
    contract_type = Column(String(100), nullable=False)
    contract_date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    duration_months = Column(Integer, nullable=True)
    payment_method = Column(String(100), nullable=False)
    commission = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, index=True)
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", backref="contracts")
    customer = relationship("Customer", backref="contracts")
    estate = relationship("Estate", backref="contracts")
    users = relationship(
        "ContractUser",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractUser.id",
    )


class ContractUser(Base):
    __tablename__ = "contract_users"
    __table_args__ = (UniqueConstraint("contract_id", "user_id", name=CONTRACT_USER_UNIQUE),)

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    contract = relationship("Contract", back_populates="users")
    user = relationship("User")
