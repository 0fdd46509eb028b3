from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base


# Key/value system preference editable by administrators
class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(String, nullable=False)
    category = Column(String(50), nullable=False, default="general", index=True)
    description = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
