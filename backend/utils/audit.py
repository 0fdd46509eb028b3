from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import AuditLog
from models.users import User

def write_log(db: Session, *, user: Optional[User], action, entity, entity_id=None,
              status="SUCCESS", request: Optional[Request] = None, meta=None):
    ip = request.client.host if request is not None and request.client else None
    user_agent = request.headers.get("user-agent") if request is not None else None
    entry = AuditLog(
        user_id=user.id if user else None,
        user_name=user.name if user else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        status=status,
        ip=ip,
        user_agent=(user_agent or "")[:255] or None,
        meta=meta or {},
    )
    db.add(entry)
    db.commit()
