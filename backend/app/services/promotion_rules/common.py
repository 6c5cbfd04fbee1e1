from collections.abc import Sequence
from decimal import Decimal

from app.models.promotion import PromotionDiscountType
from app.models.shared import to_decimal
from app.schemas.line_item import LineItem


def line_total(item: LineItem) -> Decimal:
    return to_decimal(item.price) * item.quantity


def cart_subtotal(items: Sequence[LineItem]) -> Decimal:
    return sum((line_total(item) for item in items), Decimal("0"))


def apply_discount(
    base: Decimal,
    discount_type: str | None,
    discount_value: Decimal | None,
    cap_fixed: bool = True,
) -> Decimal:
    """Take a percentage of ``base`` or a fixed amount, capped at ``base`` unless told otherwise."""
    if discount_type is None or discount_value is None:
        raise ValueError("Promotion has no discount_type/discount_value configured")

    value = to_decimal(discount_value)
    kind = PromotionDiscountType(discount_type)

    if kind == PromotionDiscountType.PERCENTAGE:
        return base * value / Decimal(100)
    if cap_fixed:
        return min(value, base)
    return value
