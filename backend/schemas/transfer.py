# backend/schemas/transfer.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase, Ref


class TransferCreate(BaseModel):
    from_location_id: int
    to_location_id: int
    product_id: int
    quantity: int = Field(gt=0)
    notes: Optional[str] = None


class TransferOut(ORMBase):
    id: int
    transfer_number: Optional[str] = None
    status: str
    quantity: int
    notes: Optional[str] = None
    is_applied: bool
    applied_at: Optional[datetime] = None
    applied_by: Optional[int] = None
    created_at: Optional[datetime] = None
    from_location: Ref
    to_location: Ref
    product: Ref
    user: Ref


class TransferListPage(BaseModel):
    items: List[TransferOut]
    total: int
    page: int
    page_size: int
