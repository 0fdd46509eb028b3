# backend/schemas/adjustment.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase, Ref


# Zero deltas and blank reasons are rejected by the route with 400
class AdjustmentCreate(BaseModel):
    location_id: int
    product_id: int
    quantity_change: int
    reason: Optional[str] = None
    notes: Optional[str] = None


class AdjustmentOut(ORMBase):
    id: int
    adjustment_number: Optional[str] = None
    quantity_change: int
    reason: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    location: Ref
    product: Ref
    user: Ref


class AdjustmentListPage(BaseModel):
    items: List[AdjustmentOut]
    total: int
    page: int
    page_size: int
