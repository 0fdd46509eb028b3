# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base


# System roles, ordered from most to least privileged
class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    INVENTORY_MANAGER = "INVENTORY_MANAGER"
    STAFF = "STAFF"


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.STAFF.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
