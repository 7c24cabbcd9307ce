from .setup import setup_observability
from .metrics import (
    storefront_checkout_total,
    storefront_checkout_duration_seconds,
    storefront_payment_compensation_total,
    storefront_webhook_events_total,
    storefront_address_lookup_total,
    storefront_rate_limited_total
)
