from app.repositories.coupon_repository import CouponRepository
from app.repositories.coupon_usage_repository import CouponUsageRepository
from app.repositories.promotion_repository import PromotionRepository

__all__ = [
    "CouponRepository",
    "CouponUsageRepository",
    "PromotionRepository",
]
