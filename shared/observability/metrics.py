from prometheus_client import Counter, Histogram

# Business Metrics
storefront_checkout_total = Counter(
    "storefront_checkout_total",
    "Checkout attempts",
    ["kind", "status"]  # kind: 'payment_intent', 'checkout_session'; status: 'success', 'failed'
)

storefront_checkout_duration_seconds = Histogram(
    "storefront_checkout_duration_seconds",
    "Time spent creating a payment intent or checkout session",
    ["kind"]
)

storefront_payment_compensation_total = Counter(
    "storefront_payment_compensation_total",
    "Payment intents cancelled because the paired order insert failed"
)

storefront_webhook_events_total = Counter(
    "storefront_webhook_events_total",
    "Stripe webhook events received",
    ["event_type", "outcome"]  # outcome: 'applied', 'unchanged', 'order_not_found', 'failed', 'ignored'
)

storefront_address_lookup_total = Counter(
    "storefront_address_lookup_total",
    "Postcode lookups",
    ["outcome"]
)

storefront_rate_limited_total = Counter(
    "storefront_rate_limited_total",
    "Requests rejected by the rate limiter"
)
