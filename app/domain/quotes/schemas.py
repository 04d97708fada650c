"""Quote domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class QuoteRequest(BaseModel):
    """Schema for a quote calculation request"""

    recipeId: Optional[int] = None
    productType: Optional[str] = None
    quantity: int = Field(1, ge=1)
    decorationComplexity: Literal["simple", "media", "compleja"] = "simple"
    flavor: Optional[str] = None
    sizeOrWeight: Optional[str] = None
    details: Optional[str] = None

    @model_validator(mode="after")
    def check_recipe_or_product_type(self):
        if self.recipeId is None and not self.productType:
            raise ValueError("Either recipeId or productType is required")
        return self


class ConversionErrorResponse(BaseModel):
    ingredient: str
    fromUnit: str
    toUnit: str


class QuoteResponse(BaseModel):
    """Cost breakdown and recommended price"""

    recipeId: int
    recipeName: str
    productType: str
    quantity: int
    decorationComplexity: str
    flavor: Optional[str] = None
    sizeOrWeight: Optional[str] = None
    details: Optional[str] = None

    cogsIngredients: float
    cogsPackaging: float
    laborHours: float
    directLaborCost: float
    allocatedOverhead: float
    totalCost: float
    profitAmount: float
    basePrice: float
    ivaAmount: float
    finalPrice: float

    missingPrices: list[str] = []
    conversionErrors: list[ConversionErrorResponse] = []
