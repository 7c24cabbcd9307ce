"""Mirrors Stripe payment lifecycle events onto stored orders.

Writes are one-way and last-write-wins. An event that would set an order to
the status it already has is skipped, so redelivered events change nothing.
"""
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import storefront_webhook_events_total
from services.order_service.models import Order
from services.order_service.repository import OrderRepository

logger = structlog.get_logger(__name__)

APPLIED = "applied"
UNCHANGED = "unchanged"
ORDER_NOT_FOUND = "order_not_found"
FAILED = "failed"
IGNORED = "ignored"


def _metadata_order_id(obj: dict) -> Optional[str]:
    return (obj.get("metadata") or {}).get("order_id") or None


def _shipping_fields(payment_intent: dict) -> dict:
    shipping = payment_intent.get("shipping") or {}
    fields = {}

    address = shipping.get("address")
    if address:
        fields.update(
            shipping_address_line1=address.get("line1") or None,
            shipping_address_line2=address.get("line2") or None,
            shipping_city=address.get("city") or None,
            shipping_county=address.get("state") or None,
            shipping_postcode=address.get("postal_code") or None,
            shipping_country=address.get("country") or None,
        )

    if shipping.get("name"):
        fields["shipping_name"] = shipping["name"]

    return fields


class WebhookService:

    @staticmethod
    async def handle_event(db: AsyncSession, event: dict) -> str:
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        handler = _HANDLERS.get(event_type)
        if handler is None:
            logger.info("webhook_unhandled_event", event_type=event_type, event_id=event.get("id"))
            outcome = IGNORED
        else:
            outcome = await handler(db, obj)

        storefront_webhook_events_total.labels(event_type=event_type or "unknown", outcome=outcome).inc()
        return outcome

    @staticmethod
    async def _apply(db: AsyncSession, order: Optional[Order], status: str, reference: str, **fields) -> str:
        if order is None:
            logger.error("webhook_order_not_found", reference=reference, target_status=status)
            return ORDER_NOT_FOUND

        if order.status == status:
            logger.info("webhook_status_unchanged", order_id=order.id, status=status)
            return UNCHANGED

        try:
            await OrderRepository.update_order(db, order, status=status, **fields)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("webhook_order_update_failed", order_id=order.id, status=status, error=str(e))
            return FAILED

        logger.info("order_status_updated", order_id=order.id, status=status, reference=reference)
        return APPLIED

    @staticmethod
    async def _order_from_metadata(db: AsyncSession, obj: dict) -> Optional[Order]:
        order_id = _metadata_order_id(obj)
        if not order_id:
            return None
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def checkout_session_completed(db: AsyncSession, session: dict) -> str:
        order = await WebhookService._order_from_metadata(db, session)
        return await WebhookService._apply(
            db,
            order,
            "paid",
            session.get("id", ""),
            stripe_session_id=session.get("id"),
            payment_intent_id=session.get("payment_intent"),
        )

    @staticmethod
    async def checkout_session_expired(db: AsyncSession, session: dict) -> str:
        order = await WebhookService._order_from_metadata(db, session)
        return await WebhookService._apply(
            db,
            order,
            "cancelled",
            session.get("id", ""),
            stripe_session_id=session.get("id"),
        )

    @staticmethod
    async def payment_intent_succeeded(db: AsyncSession, payment_intent: dict) -> str:
        order = await WebhookService._order_from_metadata(db, payment_intent)
        if order is None:
            # Metadata is written after the order insert; fall back to the stored intent id
            logger.warning("webhook_order_id_missing", payment_intent_id=payment_intent.get("id"))
            order = await OrderRepository.get_by_payment_intent(db, payment_intent.get("id", ""))

        return await WebhookService._apply(
            db,
            order,
            "paid",
            payment_intent.get("id", ""),
            payment_intent_id=payment_intent.get("id"),
            stripe_payment_status=payment_intent.get("status"),
            **_shipping_fields(payment_intent),
        )

    @staticmethod
    async def payment_intent_failed(db: AsyncSession, payment_intent: dict) -> str:
        order = await WebhookService._order_from_metadata(db, payment_intent)
        if order is None:
            logger.info("payment_failed_without_order", payment_intent_id=payment_intent.get("id"))
            return ORDER_NOT_FOUND

        return await WebhookService._apply(
            db,
            order,
            "failed",
            payment_intent.get("id", ""),
            payment_intent_id=payment_intent.get("id"),
            stripe_payment_status=payment_intent.get("status"),
        )


_HANDLERS = {
    "checkout.session.completed": WebhookService.checkout_session_completed,
    "checkout.session.expired": WebhookService.checkout_session_expired,
    "payment_intent.succeeded": WebhookService.payment_intent_succeeded,
    "payment_intent.payment_failed": WebhookService.payment_intent_failed,
}
