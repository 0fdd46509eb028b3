# backend/schemas/delivery.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase, Ref


class DeliveryItemIn(BaseModel):
    product_id: int
    quantity_delivered: int = Field(gt=0)


class DeliveryCreate(BaseModel):
    location_id: int
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    items: List[DeliveryItemIn] = Field(min_length=1)


class DeliveryItemOut(ORMBase):
    id: int
    product_id: int
    quantity_delivered: int
    product: Optional[Ref] = None


class DeliveryOut(ORMBase):
    id: int
    delivery_number: Optional[str] = None
    status: str
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    total_items: int
    notes: Optional[str] = None
    is_validated: bool
    validated_at: Optional[datetime] = None
    validated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    location: Ref
    user: Ref
    items: List[DeliveryItemOut] = []


class DeliveryListPage(BaseModel):
    items: List[DeliveryOut]
    total: int
    page: int
    page_size: int
