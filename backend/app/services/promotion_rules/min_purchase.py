from collections.abc import Sequence
from decimal import Decimal

from app.schemas.line_item import LineItem
from app.schemas.promotion import MinPurchaseRules
from app.services.promotion_rules.common import apply_discount, cart_subtotal


def calculate(
    items: Sequence[LineItem],
    rules: MinPurchaseRules,
    discount_type: str | None,
    discount_value: Decimal | None,
) -> Decimal:
    subtotal = cart_subtotal(items)
    if subtotal < rules.min_amount:
        return Decimal("0")
    # No max field on this type: percentages are uncapped, fixed values apply in full
    return apply_discount(subtotal, discount_type, discount_value, cap_fixed=False)
