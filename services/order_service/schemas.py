from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderItem(BaseModel):
    product_id: int
    product_name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: Optional[str] = None


class OrderCreate(BaseModel):
    items: List[OrderItem] = []
    subtotal: float = Field(ge=0)
    tax: float = Field(default=0, ge=0)
    total: float = Field(ge=0)


class OrderResponse(BaseModel):
    id: str
    user_id: str
    user_email: Optional[str]
    user_name: Optional[str]
    items: List[OrderItem]
    subtotal: float
    shipping: float
    tax: float
    discount: float
    discount_code: Optional[str]
    total: float
    status: str
    payment_intent_id: Optional[str]
    stripe_session_id: Optional[str]
    stripe_payment_status: Optional[str]
    shipping_name: Optional[str]
    shipping_address_line1: Optional[str]
    shipping_address_line2: Optional[str]
    shipping_city: Optional[str]
    shipping_county: Optional[str]
    shipping_postcode: Optional[str]
    shipping_country: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]


class OrderCreatedResponse(BaseModel):
    message: str
    order: OrderResponse
