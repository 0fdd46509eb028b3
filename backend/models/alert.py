# backend/models/alert.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# How far a stock level has fallen below the product minimum
class AlertSeverity(str, enum.Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    LOW = "LOW"


# Open low-stock condition for a product at a location
class LowStockAlert(Base):
    __tablename__ = "low_stock_alerts"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)

    # Snapshot of the levels at the time the alert was (re)raised
    current_qty = Column(Integer, nullable=False)
    min_qty = Column(Integer, nullable=False)
    severity = Column(String(10), nullable=False, index=True)

    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
    location = relationship("Location")

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_alert_product_location"),
    )
