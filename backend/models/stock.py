# backend/models/stock.py
import enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Movement classification written to the move history ledger
class MoveType(str, enum.Enum):
    RECEIPT = "RECEIPT"
    DELIVERY = "DELIVERY"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    ADJUSTMENT_INCREASE = "ADJUSTMENT_INCREASE"
    ADJUSTMENT_DECREASE = "ADJUSTMENT_DECREASE"


# Quantity of one product held at one location
class Stock(Base):
    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="stocks")
    location = relationship("Location", back_populates="stocks")

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_stock_product_location"),
        CheckConstraint("quantity >= 0", name="ck_stock_quantity_nonnegative"),
    )


# Append-only ledger row, one per product/location touched by a stock mutation
class MoveHistory(Base):
    __tablename__ = "move_history"

    id = Column(Integer, primary_key=True, index=True)
    move_type = Column(String(30), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    # Signed: positive for inbound, negative for outbound
    quantity_changed = Column(Integer, nullable=False)

    # Id of the receipt / delivery / transfer / adjustment that caused the move
    reference_id = Column(Integer, nullable=True, index=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
    location = relationship("Location")
    user = relationship("User")
