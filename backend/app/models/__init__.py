from app.models.coupon import Coupon, CouponDiscountType
from app.models.coupon_usage import CouponUsage
from app.models.promotion import Promotion, PromotionDiscountType, PromotionType

__all__ = [
    "Coupon",
    "CouponDiscountType",
    "CouponUsage",
    "Promotion",
    "PromotionDiscountType",
    "PromotionType",
]
