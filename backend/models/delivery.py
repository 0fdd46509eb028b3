# backend/models/delivery.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Outgoing goods leaving a location; stock is deducted on validation
class DeliveryOrder(Base):
    __tablename__ = "delivery_orders"

    id = Column(Integer, primary_key=True, index=True)
    delivery_number = Column(String, unique=True, nullable=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Recipient details printed on the delivery note
    customer_name = Column(String, nullable=True)
    shipping_address = Column(String, nullable=True)

    total_items = Column(Integer, nullable=False, default=0)
    notes = Column(String, nullable=True)

    is_validated = Column(Boolean, nullable=False, default=False, index=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    validated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    location = relationship("Location")
    user = relationship("User", foreign_keys=[user_id])
    items = relationship("DeliveryItem", back_populates="delivery", cascade="all, delete-orphan")

    @property
    def status(self):
        return "DONE" if self.is_validated else "WAITING"


# A product line on a delivery
class DeliveryItem(Base):
    __tablename__ = "delivery_items"

    id = Column(Integer, primary_key=True, index=True)
    delivery_id = Column(Integer, ForeignKey("delivery_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity_delivered = Column(Integer, CheckConstraint("quantity_delivered > 0"), nullable=False)

    delivery = relationship("DeliveryOrder", back_populates="items")
    product = relationship("Product")
