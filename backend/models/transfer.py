# backend/models/transfer.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Moves a quantity of one product between two locations once applied
class InternalTransfer(Base):
    __tablename__ = "internal_transfers"

    id = Column(Integer, primary_key=True, index=True)
    transfer_number = Column(String, unique=True, nullable=True, index=True)
    from_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    to_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    notes = Column(String, nullable=True)

    is_applied = Column(Boolean, nullable=False, default=False, index=True)
    applied_at = Column(DateTime(timezone=True), nullable=True)
    applied_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    from_location = relationship("Location", foreign_keys=[from_location_id])
    to_location = relationship("Location", foreign_keys=[to_location_id])
    product = relationship("Product")
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint("from_location_id <> to_location_id", name="ck_transfer_distinct_locations"),
    )

    @property
    def status(self):
        return "DONE" if self.is_applied else "WAITING"
