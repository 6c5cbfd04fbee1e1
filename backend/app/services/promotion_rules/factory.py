from collections.abc import Callable
from decimal import Decimal

from app.models.promotion import PromotionType
from app.services.promotion_rules import (
    buy_x_get_y,
    category_discount,
    flash_sale,
    min_purchase,
)

# Every calculator takes (items, rules, discount_type, discount_value), where
# rules is the parsed rules model for its promotion type.
CalculatorFn = Callable[..., Decimal]

_CALCULATORS: dict[PromotionType, CalculatorFn] = {
    PromotionType.CATEGORY_DISCOUNT: category_discount.calculate,
    PromotionType.BUY_X_GET_Y: buy_x_get_y.calculate,
    PromotionType.FLASH_SALE: flash_sale.calculate,
    PromotionType.MIN_PURCHASE: min_purchase.calculate,
}


def get_promotion_calculator(promotion_type: PromotionType) -> CalculatorFn | None:
    return _CALCULATORS.get(promotion_type)
