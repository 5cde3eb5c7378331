from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from backoffice.db.base import Base


class Estate(Base):
    __tablename__ = "estates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    phase = Column(Integer, nullable=False)
    project = Column(String(255), nullable=False)
    block = Column(String(50), nullable=True)
    floor = Column(Integer, nullable=False)
    area = Column(Float, nullable=False)
    rooms = Column(Integer, nullable=False)
    deed_type = Column(String(100), nullable=False)
    total_floors = Column(Integer, nullable=False)
    units_per_floor = Column(Integer, nullable=False)
    occupancy_status = Column(String(100), nullable=False)
    notes = Column(Text, nullable=False, default="")
    estate_type = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=False)
    price = Column(Float, nullable=False)
    features = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationship
    creator = relationship("User", backref="estates")
