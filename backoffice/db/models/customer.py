from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from backoffice.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    budget = Column(Float, nullable=False, default=800)
    contact = Column(String(255), nullable=False, default="")
    is_local = Column(String(3), nullable=False, default="yes")
    demands = Column(Text, nullable=False, default="")
    previous_deal = Column(String(20), nullable=False, default="rejected")
    notes = Column(Text, nullable=False, default="")
    estate_type = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationship
    creator = relationship("User", backref="customers")
