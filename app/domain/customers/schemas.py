"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_instagram_handle, validate_phone


class CustomerCreate(BaseModel):
    """Schema for creating a new customer"""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    instagramHandle: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) or None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v) or None

    @field_validator("instagramHandle")
    @classmethod
    def check_instagram(cls, v):
        return validate_instagram_handle(v) or None


class CustomerUpdate(CustomerCreate):
    """Schema for updating an existing customer, every field optional"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v


class CustomerOrderSummary(BaseModel):
    id: int
    businessOrderNumber: int
    description: str
    deliveryDate: Optional[datetime] = None
    orderStatus: str
    paymentStatus: str
    totalPrice: float


class CustomerResponse(BaseModel):
    """Schema for customer response"""

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    instagramHandle: Optional[str] = None
    notes: Optional[str] = None
    registrationDate: Optional[datetime] = None
    orders: Optional[list[CustomerOrderSummary]] = None

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse]
    newOffset: Optional[int] = None
    totalCustomers: int
