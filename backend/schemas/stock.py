# backend/schemas/stock.py
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from schemas.common import ORMBase, Ref


# One row of the move history ledger
class MoveOut(ORMBase):
    id: int
    move_type: str
    quantity_before: int
    quantity_after: int
    quantity_changed: int
    reference_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    product: Ref
    location: Ref
    user: Ref


# Paginated response for move history
class MovePage(BaseModel):
    items: List[MoveOut]
    total: int
    page: int
    page_size: int
