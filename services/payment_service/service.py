import stripe
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import InvalidRequestError, NotFoundError, UpstreamServiceError
from shared.observability import (
    storefront_checkout_duration_seconds,
    storefront_checkout_total,
    storefront_payment_compensation_total,
)
from shared.security import AuthenticatedUser
from shared.validation import format_uk_postcode, sanitize_input, validate_address
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderItem
from services.order_service.service import OrderService
from services.product_service.service import ProductService
from . import pricing
from .gateway import StripeGateway
from .schemas import (
    CheckoutSessionCreate,
    CheckoutSessionResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentIntentUpdate,
    PaymentIntentUpdateResponse,
)

logger = structlog.get_logger(__name__)

DEFAULT_COUNTRY = "United Kingdom"
AMOUNT_TOLERANCE = 0.01


def _ensure_matches(label: str, submitted: float, expected: float) -> None:
    if abs(submitted - expected) > AMOUNT_TOLERANCE:
        raise InvalidRequestError(
            f"{label} does not match cart",
            details={"submitted": submitted, "expected": expected},
        )


def _check_cart(items: list[OrderItem], subtotal: float) -> None:
    if not items:
        raise InvalidRequestError("Cart is empty")
    pricing.validate_cart_items(items)
    _ensure_matches("Subtotal", subtotal, pricing.calculate_subtotal(items))


def _line_item(item: OrderItem) -> dict:
    """Stripe line item priced and named from the catalog entry."""
    product = ProductService.get_product_by_id(item.product_id)
    images = [item.image] if item.image else ProductService.get_product_images(product)[:1]
    return {
        "price_data": {
            "currency": settings.STRIPE_CURRENCY,
            "product_data": {"name": product.name, "images": images},
            "unit_amount": pricing.to_minor_units(product.price),
        },
        "quantity": item.quantity,
    }


def _intent_metadata(subtotal: float, shipping: float, discount: float, discount_code, total: float) -> dict:
    return {
        "subtotal": str(subtotal),
        "shipping": str(shipping),
        "discount": str(discount),
        "discount_code": discount_code or "",
        "total": str(total),
    }


class PaymentService:

    @staticmethod
    async def create_payment_intent(
        db: AsyncSession, gateway: StripeGateway, user: AuthenticatedUser, data: PaymentIntentCreate
    ) -> PaymentIntentResponse:
        _check_cart(data.items, data.subtotal)

        shipping = data.shipping if data.shipping is not None else pricing.calculate_shipping(data.subtotal)
        discount_code, discount = pricing.resolve_discount(data.discount_code, data.subtotal)
        total = pricing.calculate_total(data.subtotal, shipping, discount)
        _ensure_matches("Order total", data.total, total)
        pricing.ensure_minimum_amount(total)

        metadata = {
            "user_id": user.id,
            "user_email": user.email or "",
            "item_count": str(len(data.items)),
            **_intent_metadata(data.subtotal, shipping, discount, discount_code, total),
        }

        with storefront_checkout_duration_seconds.labels(kind="payment_intent").time():
            try:
                intent = await gateway.create_payment_intent(
                    pricing.to_minor_units(total), settings.STRIPE_CURRENCY, metadata
                )
            except stripe.StripeError as e:
                storefront_checkout_total.labels(kind="payment_intent", status="failed").inc()
                raise UpstreamServiceError("Failed to create payment intent", details=str(e)) from e

            logger.info("payment_intent_created", payment_intent_id=intent.id, user_id=user.id, total=total)

            order = OrderService.new_pending_order(
                user,
                data.items,
                subtotal=data.subtotal,
                shipping=shipping,
                tax=0,
                discount=discount,
                discount_code=discount_code,
                total=total,
                payment_intent_id=intent.id,
            )
            try:
                order = await OrderService.save_new_order(db, order)
            except UpstreamServiceError:
                storefront_checkout_total.labels(kind="payment_intent", status="failed").inc()
                await PaymentService._cancel_orphaned_intent(gateway, intent.id)
                raise

            try:
                await gateway.update_payment_intent(intent.id, metadata={**metadata, "order_id": order.id})
            except stripe.StripeError as e:
                storefront_checkout_total.labels(kind="payment_intent", status="failed").inc()
                raise UpstreamServiceError("Failed to create payment intent", details=str(e)) from e

        storefront_checkout_total.labels(kind="payment_intent", status="success").inc()
        return PaymentIntentResponse(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            order_id=order.id,
        )

    @staticmethod
    async def _cancel_orphaned_intent(gateway: StripeGateway, payment_intent_id: str) -> None:
        """Compensation for a failed order insert: the intent must not stay payable."""
        try:
            await gateway.cancel_payment_intent(payment_intent_id)
        except stripe.StripeError as e:
            logger.critical(
                "payment_intent_cancel_failed",
                payment_intent_id=payment_intent_id,
                error=str(e),
            )
            return
        storefront_payment_compensation_total.inc()
        logger.warning("payment_intent_cancelled", payment_intent_id=payment_intent_id)

    @staticmethod
    async def _restore_intent_amount(
        gateway: StripeGateway, payment_intent_id: str, amount: int, metadata: dict
    ) -> None:
        """Compensation for a failed order update: the intent goes back to the stored total."""
        try:
            await gateway.update_payment_intent(payment_intent_id, amount=amount, metadata=metadata)
        except stripe.StripeError as e:
            logger.critical(
                "payment_intent_restore_failed",
                payment_intent_id=payment_intent_id,
                amount=amount,
                error=str(e),
            )
            return
        storefront_payment_compensation_total.inc()
        logger.warning("payment_intent_amount_restored", payment_intent_id=payment_intent_id, amount=amount)

    @staticmethod
    async def update_payment_intent(
        db: AsyncSession, gateway: StripeGateway, user: AuthenticatedUser, data: PaymentIntentUpdate
    ) -> PaymentIntentUpdateResponse:
        if not data.payment_intent_id:
            raise InvalidRequestError("Payment intent ID is required")

        order = await OrderRepository.get_by_payment_intent(db, data.payment_intent_id)
        if order is None or order.user_id != user.id:
            raise NotFoundError("Order not found")
        if order.status != "pending":
            raise InvalidRequestError("Order can no longer be modified")

        subtotal = order.subtotal
        shipping = data.shipping if data.shipping is not None else order.shipping
        discount_code, discount = pricing.resolve_discount(data.discount_code, subtotal)
        total = pricing.calculate_total(subtotal, shipping, discount)
        pricing.ensure_minimum_amount(total)

        # Read before the write; a rollback expires the instance
        previous_amount = pricing.to_minor_units(order.total)
        previous_metadata = _intent_metadata(
            subtotal, order.shipping, order.discount, order.discount_code, order.total
        )

        try:
            await gateway.update_payment_intent(
                data.payment_intent_id,
                amount=pricing.to_minor_units(total),
                metadata=_intent_metadata(subtotal, shipping, discount, discount_code, total),
            )
        except stripe.StripeError as e:
            raise UpstreamServiceError("Failed to update payment intent", details=str(e)) from e

        try:
            await OrderRepository.update_order(
                db,
                order,
                shipping=shipping,
                discount=discount,
                discount_code=discount_code,
                total=total,
            )
        except SQLAlchemyError as e:
            await db.rollback()
            await PaymentService._restore_intent_amount(
                gateway, data.payment_intent_id, previous_amount, previous_metadata
            )
            raise UpstreamServiceError("Failed to update payment intent", details=str(e)) from e

        logger.info(
            "discount_applied",
            order_id=order.id,
            payment_intent_id=data.payment_intent_id,
            discount_code=discount_code,
            total=total,
        )
        return PaymentIntentUpdateResponse(success=True, amount=total)

    @staticmethod
    async def create_checkout_session(
        db: AsyncSession, gateway: StripeGateway, user: AuthenticatedUser, data: CheckoutSessionCreate
    ) -> CheckoutSessionResponse:
        if not data.items:
            raise InvalidRequestError("Cart is empty")

        address = data.shipping_address
        if address is None:
            raise InvalidRequestError("Shipping address is required")
        if not address.address_line1 or not address.city or not address.postcode:
            raise InvalidRequestError(
                "Shipping address is incomplete. Please provide address line 1, city, and postcode."
            )
        valid, errors = validate_address(address.address_line1, address.city, address.postcode)
        if not valid:
            raise InvalidRequestError(errors[0], details=errors)

        _check_cart(data.items, data.subtotal)
        _ensure_matches("Order total", data.total, pricing.calculate_total(data.subtotal, tax=data.tax))

        order = OrderService.new_pending_order(
            user,
            data.items,
            subtotal=data.subtotal,
            tax=data.tax,
            total=data.total,
            shipping_address_line1=sanitize_input(address.address_line1),
            shipping_address_line2=sanitize_input(address.address_line2) or None,
            shipping_city=sanitize_input(address.city),
            shipping_county=sanitize_input(address.county) or None,
            shipping_postcode=format_uk_postcode(address.postcode),
            shipping_country=sanitize_input(address.country) or DEFAULT_COUNTRY,
        )
        order = await OrderService.save_new_order(db, order)

        line_items = [_line_item(item) for item in data.items]
        if data.tax > 0:
            line_items.append(
                {
                    "price_data": {
                        "currency": settings.STRIPE_CURRENCY,
                        "product_data": {"name": "Tax"},
                        "unit_amount": pricing.to_minor_units(data.tax),
                    },
                    "quantity": 1,
                }
            )

        params = {
            "payment_method_types": ["card"],
            "line_items": line_items,
            "mode": "payment",
            "success_url": f"{settings.SITE_URL}/orders?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{settings.SITE_URL}/checkout",
            "metadata": {"order_id": order.id, "user_id": user.id},
        }
        if user.email:
            params["customer_email"] = user.email

        with storefront_checkout_duration_seconds.labels(kind="checkout_session").time():
            try:
                session = await gateway.create_checkout_session(**params)
            except stripe.StripeError as e:
                storefront_checkout_total.labels(kind="checkout_session", status="failed").inc()
                raise UpstreamServiceError("Failed to create checkout session", details=str(e)) from e

        storefront_checkout_total.labels(kind="checkout_session", status="success").inc()
        logger.info("checkout_session_created", session_id=session.id, order_id=order.id)
        return CheckoutSessionResponse(session_id=session.id, url=session.url)
