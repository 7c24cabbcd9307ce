"""Money rules applied at checkout: shipping, discount codes and totals."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from shared.config import settings
from shared.errors import InvalidRequestError
from services.order_service.schemas import OrderItem
from services.product_service.service import ProductService

# code -> fraction of the subtotal taken off
DISCOUNT_CODES = {
    "SAVE10": Decimal("0.10"),
}

_PENNY = Decimal("0.01")


def _money(value: float | Decimal) -> Decimal:
    return Decimal(str(value)).quantize(_PENNY, rounding=ROUND_HALF_UP)


def to_minor_units(amount: float) -> int:
    """Pounds to pence, rounding half up (12.345 -> 1235)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def unit_price(item: OrderItem) -> float:
    """Catalog price of the line's product; the submitted price only for products not in the catalog."""
    product = ProductService.get_product_by_id(item.product_id)
    return product.price if product is not None else item.price


def calculate_subtotal(items: Iterable[OrderItem]) -> float:
    return float(sum((_money(unit_price(item)) * item.quantity for item in items), Decimal("0")))


def calculate_shipping(subtotal: float) -> float:
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return 0.0
    return settings.SHIPPING_FEE


def normalize_discount_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    cleaned = code.strip().upper()
    return cleaned or None


def resolve_discount(code: Optional[str], subtotal: float) -> tuple[Optional[str], float]:
    """Returns the normalized code and the amount it takes off ``subtotal``.

    No code means no discount. An unrecognized code is rejected.
    """
    normalized = normalize_discount_code(code)
    if normalized is None:
        return None, 0.0

    rate = DISCOUNT_CODES.get(normalized)
    if rate is None:
        raise InvalidRequestError("Invalid discount code")
    return normalized, float(_money(Decimal(str(subtotal)) * rate))


def calculate_total(subtotal: float, shipping: float = 0.0, discount: float = 0.0, tax: float = 0.0) -> float:
    total = _money(subtotal) + _money(shipping) + _money(tax) - _money(discount)
    return float(max(total, Decimal("0")))


def ensure_minimum_amount(total: float) -> None:
    if total < settings.MINIMUM_ORDER_AMOUNT:
        raise InvalidRequestError(f"Minimum order amount is £{settings.MINIMUM_ORDER_AMOUNT:.2f}")


def validate_cart_items(items: list[OrderItem]) -> None:
    """Every line must reference a catalog product at its catalog price, with enough stock."""
    for item in items:
        product = ProductService.get_product_by_id(item.product_id)
        if product is None:
            raise InvalidRequestError(f"Unknown product: {item.product_id}")
        if _money(item.price) != _money(product.price):
            raise InvalidRequestError(
                f"Price mismatch for Product {product.name}",
                details={"submitted": item.price, "expected": product.price},
            )
        if product.stock < item.quantity:
            raise InvalidRequestError(f"Insufficient stock for Product {product.name}")
