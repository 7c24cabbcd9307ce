from typing import List, Optional

from pydantic import BaseModel, Field

from services.order_service.schemas import OrderItem


class ShippingAddressIn(BaseModel):
    # All optional so missing parts get a specific message instead of a field error
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None


class CheckoutSessionCreate(BaseModel):
    items: List[OrderItem] = []
    subtotal: float = Field(ge=0)
    tax: float = Field(default=0, ge=0)
    total: float = Field(ge=0)
    shipping_address: Optional[ShippingAddressIn] = None


class CheckoutSessionResponse(BaseModel):
    session_id: str = Field(alias="sessionId")
    url: Optional[str]

    class Config:
        populate_by_name = True


class PaymentIntentCreate(BaseModel):
    items: List[OrderItem] = []
    subtotal: float = Field(ge=0)
    shipping: Optional[float] = Field(default=None, ge=0)
    discount_code: Optional[str] = Field(default=None, alias="discountCode")
    total: float = Field(ge=0)

    class Config:
        populate_by_name = True


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(alias="clientSecret")
    payment_intent_id: str = Field(alias="paymentIntentId")
    order_id: str = Field(alias="orderId")

    class Config:
        populate_by_name = True


class PaymentIntentUpdate(BaseModel):
    payment_intent_id: Optional[str] = Field(default=None, alias="paymentIntentId")
    shipping: Optional[float] = Field(default=None, ge=0)
    discount_code: Optional[str] = Field(default=None, alias="discountCode")

    class Config:
        populate_by_name = True


class PaymentIntentUpdateResponse(BaseModel):
    success: bool
    amount: float


class WebhookAck(BaseModel):
    received: bool
