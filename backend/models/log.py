from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Represents system audit logs tracking user actions and events
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Event timestamp and core action details
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_name = Column(String, nullable=True)
    action = Column(String(50), index=True)
    entity = Column(String(50), index=True)
    entity_id = Column(String(50), nullable=True, index=True)
    status = Column(String(20), index=True)

    # Request origin
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)

    # JSON container for flexible context data
    meta = Column(JSON, nullable=True)

    # Relationship to the acting user
    user = relationship("User", lazy="joined", uselist=False)
