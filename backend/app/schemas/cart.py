"""Cart pricing schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.coupon import CouponValidationResponse
from app.schemas.line_item import LineItem
from app.schemas.promotion import AppliedPromotionResponse


class CartPricingRequest(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    coupon_code: str | None = Field(default=None, max_length=50)
    shipping_amount: Decimal = Field(default=Decimal("0"), ge=0)


class CartPricingResponse(BaseModel):
    model_config = {"from_attributes": True}

    subtotal: Decimal
    promotion_discount: Decimal
    applied_promotions: list[AppliedPromotionResponse]
    coupon: CouponValidationResponse | None = None
    coupon_discount: Decimal
    shipping_amount: Decimal
    free_shipping: bool
    total: Decimal
