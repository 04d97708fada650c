"""Ingredient price schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

UnitValue = Literal["g", "kg", "ml", "l", "unidad", "docena"]


class IngredientPriceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    unit: UnitValue
    pricePerUnit: float = Field(..., ge=0)
    supplier: Optional[str] = None

    @field_validator("name", "supplier")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if v is not None and not v:
            raise ValueError("Name is required")
        return v


class IngredientPriceUpdate(IngredientPriceCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    unit: Optional[UnitValue] = None
    pricePerUnit: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class IngredientPriceResponse(BaseModel):
    id: int
    name: str
    unit: str
    pricePerUnit: float
    supplier: Optional[str] = None
    updatedAt: Optional[datetime] = None
