# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Product
# A catalog entry tracked in stock. Quantities live in Stock rows, one per
# location; min_stock is the reorder level used by low-stock alerting.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)

    description = Column(String, nullable=True)
    unit = Column(String, nullable=False, default="pcs")

    # Reorder level and unit price, both guarded by constraints.
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    stocks = relationship("Stock", back_populates="product")
