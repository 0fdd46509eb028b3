# backend/schemas/common.py
from pydantic import BaseModel, ConfigDict


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Body of the validate / apply endpoints
class DocumentAction(BaseModel):
    action: str


# Short reference to a related row, embedded in responses
class Ref(ORMBase):
    id: int
    name: str
