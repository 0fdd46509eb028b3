# backend/schemas/vendor.py
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase


class VendorCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class VendorOut(ORMBase):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class VendorSummary(VendorOut):
    receipts_count: int = 0


class VendorListPage(BaseModel):
    items: List[VendorSummary]
    total: int
    page: int
    page_size: int


class VendorReceipt(ORMBase):
    id: int
    receipt_number: Optional[str] = None
    total_items: int
    status: str
    created_at: Optional[datetime] = None


class VendorDetail(VendorOut):
    receipts: List[VendorReceipt] = []
