# budget_tracker/schemas/category.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
import uuid

class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)

class CategoryRead(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
