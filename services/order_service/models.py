import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, JSON, String

from shared.config.database import Base

ORDER_STATUSES = ("pending", "processing", "completed", "cancelled", "paid", "failed")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    user_email = Column(String(255), nullable=True)
    user_name = Column(String(255), nullable=True)

    items = Column(JSON, nullable=False)  # list of order items as submitted at checkout
    subtotal = Column(Float, nullable=False, default=0)
    shipping = Column(Float, nullable=False, default=0)
    tax = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)
    discount_code = Column(String(64), nullable=True)
    total = Column(Float, nullable=False)

    status = Column(String(16), nullable=False, default="pending")  # one of ORDER_STATUSES

    payment_intent_id = Column(String(255), nullable=True, index=True)
    stripe_session_id = Column(String(255), nullable=True)
    stripe_payment_status = Column(String(64), nullable=True)

    shipping_name = Column(String(255), nullable=True)
    shipping_address_line1 = Column(String(255), nullable=True)
    shipping_address_line2 = Column(String(255), nullable=True)
    shipping_city = Column(String(255), nullable=True)
    shipping_county = Column(String(255), nullable=True)
    shipping_postcode = Column(String(16), nullable=True)
    shipping_country = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
