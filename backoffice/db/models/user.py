from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from backoffice.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False, index=True)
    phone_number = Column(String(20), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    national_id = Column(String(10), unique=True, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    fathers_name = Column(String(200), nullable=True)
    primary_residence = Column(String(500), nullable=True)
    id_photo_path = Column(String(500), nullable=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    approved = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationship
    role = relationship("Role", backref="users")
