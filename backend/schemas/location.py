# backend/schemas/location.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase


class LocationCreate(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


class LocationOut(ORMBase):
    id: int
    name: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None


# List row with usage counters
class LocationSummary(LocationOut):
    stocks_count: int = 0
    receipts_count: int = 0
    deliveries_count: int = 0


class LocationListPage(BaseModel):
    items: List[LocationSummary]
    total: int
    page: int
    page_size: int


# A product held at the location
class LocationStock(ORMBase):
    product_id: int
    product_name: str
    sku: str
    unit: str
    min_stock: int
    quantity: int


class LocationDetail(LocationOut):
    stocks: List[LocationStock] = []
