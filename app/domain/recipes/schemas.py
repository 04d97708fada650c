"""Recipe schemas - request/response models for recipes and their ingredient lines"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

ProductTypeValue = Literal["Tarta", "Galletas", "Cupcakes", "Macarons", "Otros"]
UnitValue = Literal["g", "kg", "ml", "l", "unidad", "docena"]


class RecipeIngredientInput(BaseModel):
    ingredientId: int
    quantity: float = Field(..., gt=0)
    unit: UnitValue


class RecipeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    productType: ProductTypeValue
    baseLaborHours: float = Field(0, ge=0)
    notes: Optional[str] = None
    recipeIngredients: List[RecipeIngredientInput] = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Recipe name is required")
        return v


class RecipeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    productType: Optional[ProductTypeValue] = None
    baseLaborHours: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    recipeIngredients: Optional[List[RecipeIngredientInput]] = Field(None, min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Recipe name is required")
        return v

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class RecipeIngredientResponse(BaseModel):
    id: int
    ingredientId: int
    ingredientName: Optional[str] = None
    quantity: float
    unit: str


class RecipeResponse(BaseModel):
    id: int
    name: str
    productType: str
    baseLaborHours: float
    notes: Optional[str] = None
    recipeIngredients: List[RecipeIngredientResponse] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
