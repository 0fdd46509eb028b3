# backend/schemas/settings.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from schemas.common import ORMBase


class SettingOut(ORMBase):
    id: int
    key: str
    value: str
    category: str
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


# Body of PUT /settings/{key}
class SettingUpsert(BaseModel):
    value: str
    category: Optional[str] = None
    description: Optional[str] = None


class SettingBulkItem(SettingUpsert):
    key: str = Field(min_length=1, max_length=100)


class SettingBulkUpdate(BaseModel):
    settings: List[SettingBulkItem] = Field(min_length=1)
