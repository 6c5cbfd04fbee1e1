from collections.abc import Sequence
from decimal import Decimal

from app.schemas.line_item import LineItem
from app.schemas.promotion import CategoryDiscountRules
from app.services.promotion_rules.common import apply_discount, cart_subtotal


def calculate(
    items: Sequence[LineItem],
    rules: CategoryDiscountRules,
    discount_type: str | None,
    discount_value: Decimal | None,
) -> Decimal:
    matching = [item for item in items if item.category_id == rules.category_id]
    category_total = cart_subtotal(matching)
    if category_total == 0:
        return Decimal("0")
    return apply_discount(category_total, discount_type, discount_value)
