from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List, Literal

from schemas.common import ORMBase

RoleName = Literal["ADMIN", "INVENTORY_MANAGER", "STAFF"]

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Self-service registration; the role is never taken from the client
class SignupRequest(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)

# Account created by an administrator
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: RoleName = "STAFF"

# Schema for partial user updates
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[RoleName] = None
    password: Optional[str] = Field(None, min_length=6)

# Output schema for user profile details
class UserResponse(ORMBase):
    id: int
    email: str
    name: str
    role: str
    created_at: Optional[datetime] = None

# Returned by signup and login
class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str
    access_token: Optional[str] = None
    token_type: str = "bearer"

# Paginated user list
class UserListPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

# Staff member with counts of the documents they created
class StaffActivity(UserResponse):
    receipts: int = 0
    deliveries: int = 0
    transfers: int = 0
    adjustments: int = 0
