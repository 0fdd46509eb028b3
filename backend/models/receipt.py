# backend/models/receipt.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Incoming goods from a vendor; stock changes only when validated
class ReceiptOrder(Base):
    __tablename__ = "receipt_orders"

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String, unique=True, nullable=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total_items = Column(Integer, nullable=False, default=0)
    notes = Column(String, nullable=True)

    is_validated = Column(Boolean, nullable=False, default=False, index=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    validated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    vendor = relationship("Vendor", back_populates="receipts")
    location = relationship("Location")
    user = relationship("User", foreign_keys=[user_id])
    items = relationship("ReceiptItem", back_populates="receipt", cascade="all, delete-orphan")

    @property
    def status(self):
        return "DONE" if self.is_validated else "WAITING"


# A product line on a receipt
class ReceiptItem(Base):
    __tablename__ = "receipt_items"

    id = Column(Integer, primary_key=True, index=True)
    receipt_id = Column(Integer, ForeignKey("receipt_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity_received = Column(Integer, CheckConstraint("quantity_received > 0"), nullable=False)

    receipt = relationship("ReceiptOrder", back_populates="items")
    product = relationship("Product")
