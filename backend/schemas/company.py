from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from schemas.common import ORMBase


# Schema for displaying company details
class CompanyOut(ORMBase):
    id: int
    company_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    currency: Optional[str] = None


# Schema for updating company information
class CompanyUpdate(BaseModel):
    company_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
