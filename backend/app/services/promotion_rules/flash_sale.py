from collections.abc import Sequence
from decimal import Decimal

from app.schemas.line_item import LineItem
from app.schemas.promotion import FlashSaleRules
from app.services.promotion_rules.common import apply_discount, cart_subtotal


def calculate(
    items: Sequence[LineItem],
    rules: FlashSaleRules,
    discount_type: str | None,
    discount_value: Decimal | None,
) -> Decimal:
    subtotal = cart_subtotal(items)
    if subtotal == 0:
        return Decimal("0")
    return apply_discount(subtotal, discount_type, discount_value)
