from collections.abc import Sequence
from decimal import Decimal

from app.models.shared import to_decimal
from app.schemas.line_item import LineItem
from app.schemas.promotion import BuyXGetYRules


def calculate(
    items: Sequence[LineItem],
    rules: BuyXGetYRules,
    discount_type: str | None = None,
    discount_value: Decimal | None = None,
) -> Decimal:
    # Only the first line for the product counts
    item = next((i for i in items if i.product_id == rules.product_id), None)
    if item is None:
        return Decimal("0")

    free_sets = item.quantity // rules.buy_quantity
    return to_decimal(item.price) * free_sets * rules.get_quantity
