# backend/schemas/receipt.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase, Ref


class ReceiptItemIn(BaseModel):
    product_id: int
    quantity_received: int = Field(gt=0)


class ReceiptCreate(BaseModel):
    vendor_id: int
    location_id: int
    notes: Optional[str] = None
    items: List[ReceiptItemIn] = Field(min_length=1)


class ReceiptItemOut(ORMBase):
    id: int
    product_id: int
    quantity_received: int
    product: Optional[Ref] = None


class ReceiptOut(ORMBase):
    id: int
    receipt_number: Optional[str] = None
    status: str
    total_items: int
    notes: Optional[str] = None
    is_validated: bool
    validated_at: Optional[datetime] = None
    validated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    vendor: Ref
    location: Ref
    user: Ref
    items: List[ReceiptItemOut] = []


class ReceiptListPage(BaseModel):
    items: List[ReceiptOut]
    total: int
    page: int
    page_size: int
