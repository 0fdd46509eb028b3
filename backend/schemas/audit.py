# backend/schemas/audit.py
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional, Any

from schemas.common import ORMBase


class AuditLogOut(ORMBase):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: str
    entity: str
    entity_id: Optional[str] = None
    status: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    meta: Optional[Any] = None


class AuditLogPage(BaseModel):
    items: List[AuditLogOut]
    total: int
    page: int
    page_size: int


class ActionCount(BaseModel):
    action: str
    count: int


class EntityCount(BaseModel):
    entity: str
    count: int


class UserCount(BaseModel):
    user_id: int
    user_name: Optional[str] = None
    count: int


class AuditStats(BaseModel):
    total_logs: int
    action_stats: List[ActionCount]
    entity_stats: List[EntityCount]
    user_activity: List[UserCount]
