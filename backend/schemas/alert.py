# backend/schemas/alert.py
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from schemas.common import ORMBase, Ref


class AlertOut(ORMBase):
    id: int
    current_qty: int
    min_qty: int
    severity: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    product: Ref
    location: Ref


class AlertPage(BaseModel):
    items: List[AlertOut]
    total: int
    page: int
    page_size: int


class AlertStats(BaseModel):
    total: int
    unread: int
    critical: int
    warning: int
    low: int
