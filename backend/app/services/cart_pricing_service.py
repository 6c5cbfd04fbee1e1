"""Cart pricing: combines automatic promotions, a coupon and shipping into a total."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.shared import quantize_money, to_decimal, utc_now
from app.schemas.line_item import LineItem
from app.services.coupon_service import CouponService, CouponValidationResult
from app.services.promotion_rules.common import cart_subtotal
from app.services.promotion_service import AppliedPromotion, PromotionService

logger = logging.getLogger(__name__)


@dataclass
class CartPricing:
    subtotal: Decimal
    promotion_discount: Decimal
    coupon_discount: Decimal
    shipping_amount: Decimal
    total: Decimal
    free_shipping: bool = False
    applied_promotions: list[AppliedPromotion] = field(default_factory=list)
    coupon: CouponValidationResult | None = None


class CartPricingService:
    """Prices a cart the way checkout does, without recording anything."""

    def __init__(self, db: Session):
        self.db = db
        self.promotion_service = PromotionService(db)
        self.coupon_service = CouponService(db)

    def price_cart(
        self,
        items: Sequence[LineItem],
        coupon_code: str | None = None,
        user_id: UUID | None = None,
        shipping_amount: Decimal = Decimal("0"),
        now: datetime | None = None,
    ) -> CartPricing:
        """Price a cart.

        Promotions and the coupon are both computed against the undiscounted
        subtotal. A rejected coupon contributes nothing and is reported as is.
        The discounted merchandise total never goes below zero; shipping is
        added afterwards unless the coupon grants free shipping.
        """
        now = now or utc_now()
        subtotal = quantize_money(cart_subtotal(items))
        shipping = quantize_money(to_decimal(shipping_amount))

        evaluation = self.promotion_service.apply_promotions(items, now=now)

        coupon_result = None
        coupon_discount = Decimal("0.00")
        free_shipping = False
        if coupon_code:
            coupon_result = self.coupon_service.validate_coupon(
                coupon_code, user_id, subtotal, items, now=now
            )
            if coupon_result.valid:
                coupon_discount = coupon_result.discount_amount or Decimal("0.00")
                free_shipping = coupon_result.free_shipping

        if free_shipping:
            shipping = Decimal("0.00")

        merchandise = max(subtotal - evaluation.total_discount - coupon_discount, Decimal("0.00"))
        total = quantize_money(merchandise + shipping)

        logger.debug(
            "Priced cart: subtotal=%s promotions=%s coupon=%s total=%s",
            subtotal,
            evaluation.total_discount,
            coupon_discount,
            total,
        )
        return CartPricing(
            subtotal=subtotal,
            promotion_discount=evaluation.total_discount,
            coupon_discount=coupon_discount,
            shipping_amount=shipping,
            total=total,
            free_shipping=free_shipping,
            applied_promotions=evaluation.applied_promotions,
            coupon=coupon_result,
        )
