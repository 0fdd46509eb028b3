# backend/schemas/product.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase, Ref


def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Name must not be blank")
    return v


# SKUs are stored upper-case so lookups are case-insensitive
def _clean_sku(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if not v:
        raise ValueError("SKU must not be blank")
    return v


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    description: Optional[str] = None
    unit: str = "pcs"
    min_stock: int = Field(default=0, ge=0)
    price: float = Field(default=0.0, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: str) -> str:
        return _clean_sku(v)


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductUpdate(BaseModel):
    """Schema for PUT/PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1)
    sku: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    unit: Optional[str] = None
    min_stock: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: Optional[str]) -> Optional[str]:
        return _clean_sku(v)


# Quantity held at one location
class ProductStock(ORMBase):
    location: Ref
    quantity: int


# Product row as listed, with its stock summed over all locations
class ProductOut(ProductBase):
    id: int
    total_stock: int = 0
    is_low_stock: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductDetail(ProductOut):
    stocks: List[ProductStock] = []


# Paginated response for product listings
class ProductListPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
