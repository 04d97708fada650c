"""Order domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import parse_time_hhmm

OrderStatusValue = Literal["Pendiente", "En Preparación", "Listo", "Entregado"]
PaymentStatusValue = Literal["Pendiente", "Parcial", "Pagado", "Cancelado"]
PaymentMethodValue = Literal["Efectivo", "Tarjeta", "Transferencia Bancaria", "Bizum"]


class OrderImage(BaseModel):
    id: str
    url: str

    @field_validator("url")
    @classmethod
    def check_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("Image URL must be an http(s) URL")
        return v


class OrderFields(BaseModel):
    """Fields shared by create and update; values are validated, not required"""

    description: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    deliveryDate: Optional[date] = None
    deliveryTime: Optional[str] = None
    productType: Optional[str] = None
    customizationDetails: Optional[str] = None
    quantity: Optional[int] = Field(None, gt=0)
    sizeOrWeight: Optional[str] = None
    flavor: Optional[str] = None
    allergyInformation: Optional[str] = None
    totalPrice: Optional[float] = Field(None, gt=0)
    paymentStatus: Optional[PaymentStatusValue] = None
    paymentMethod: Optional[PaymentMethodValue] = None
    depositAmount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("deliveryTime")
    @classmethod
    def check_delivery_time(cls, v):
        if not v:
            return None
        parse_time_hhmm(v)
        return v

    @field_validator("description", "productType", "sizeOrWeight", "flavor")
    @classmethod
    def not_blank(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v


class OrderCreate(OrderFields):
    """Schema for creating a new order"""

    customerId: int = Field(..., gt=0)
    description: str
    amount: float = Field(..., gt=0)
    productType: str
    quantity: int = Field(1, gt=0)
    sizeOrWeight: str
    flavor: str
    totalPrice: float = Field(..., gt=0)
    paymentStatus: PaymentStatusValue
    paymentMethod: PaymentMethodValue
    depositAmount: float = Field(0, ge=0)
    createCalendarEvent: bool = False


class OrderUpdate(OrderFields):
    """Schema for updating an order; at least one field must be sent"""

    images: Optional[list[OrderImage]] = None
    orderStatus: Optional[OrderStatusValue] = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class OrderStatusUpdate(BaseModel):
    orderStatus: OrderStatusValue


class PaymentStatusUpdate(BaseModel):
    paymentStatus: PaymentStatusValue
    depositAmount: Optional[float] = Field(None, ge=0)


class OrderHistoryEntry(BaseModel):
    status: str
    timestamp: str
    userId: Optional[int] = None


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: int
    businessOrderNumber: int
    customerId: int
    customerName: Optional[str] = None
    description: str
    amount: float
    orderDate: Optional[datetime] = None
    deliveryDate: Optional[datetime] = None
    orderStatus: str
    productType: str
    customizationDetails: Optional[str] = None
    quantity: int
    sizeOrWeight: Optional[str] = None
    flavor: Optional[str] = None
    allergyInformation: Optional[str] = None
    totalPrice: float
    depositAmount: float
    paymentStatus: str
    paymentMethod: str
    notes: Optional[str] = None
    orderHistory: list[OrderHistoryEntry] = []
    images: list[OrderImage] = []
    googleCalendarEventId: Optional[str] = None

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    newOffset: Optional[int] = None
    totalOrders: int
