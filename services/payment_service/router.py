import stripe
import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import InvalidRequestError, StorefrontError, UpstreamServiceError
from shared.security import AuthenticatedUser, get_current_user
from .gateway import StripeGateway, get_payment_gateway
from .schemas import (
    CheckoutSessionCreate,
    CheckoutSessionResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentIntentUpdate,
    PaymentIntentUpdateResponse,
    WebhookAck,
)
from .service import PaymentService
from .webhooks import WebhookService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Payments"])


@router.post("/checkout", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    payload: CheckoutSessionCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    return await PaymentService.create_checkout_session(db, gateway, user, payload)


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payload: PaymentIntentCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    return await PaymentService.create_payment_intent(db, gateway, user, payload)


@router.post("/update-payment-intent", response_model=PaymentIntentUpdateResponse)
async def update_payment_intent(
    payload: PaymentIntentUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    return await PaymentService.update_payment_intent(db, gateway, user, payload)


@router.post("/webhooks/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise InvalidRequestError("No signature found")

    body = await request.body()
    try:
        event = gateway.verify_webhook(body, signature)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning("webhook_signature_invalid", error=str(e))
        raise InvalidRequestError("Webhook signature verification failed") from e

    try:
        await WebhookService.handle_event(db, event)
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("webhook_handler_failed", event_type=event.get("type"))
        raise UpstreamServiceError("Webhook handler failed") from e

    return {"received": True}
