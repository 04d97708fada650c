"""Product type schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProductTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ProductTypeUpdate(ProductTypeCreate):
    pass


class ProductTypeResponse(BaseModel):
    id: int
    name: str
    createdAt: Optional[datetime] = None
