from app.schemas.cart import CartPricingRequest, CartPricingResponse
from app.schemas.coupon import (
    CouponAnalyticsResponse,
    CouponCreate,
    CouponResponse,
    CouponSummary,
    CouponUpdate,
    CouponUsageCreate,
    CouponUsageResponse,
    CouponValidateRequest,
    CouponValidationResponse,
)
from app.schemas.line_item import LineItem
from app.schemas.promotion import (
    AppliedPromotionResponse,
    PromotionCreate,
    PromotionEvaluationResponse,
    PromotionResponse,
    PromotionUpdate,
)

__all__ = [
    "AppliedPromotionResponse",
    "CartPricingRequest",
    "CartPricingResponse",
    "CouponAnalyticsResponse",
    "CouponCreate",
    "CouponResponse",
    "CouponSummary",
    "CouponUpdate",
    "CouponUsageCreate",
    "CouponUsageResponse",
    "CouponValidateRequest",
    "CouponValidationResponse",
    "LineItem",
    "PromotionCreate",
    "PromotionEvaluationResponse",
    "PromotionResponse",
    "PromotionUpdate",
]
