"""Cart pricing endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_optional_user
from app.core.database import get_db
from app.routers.coupons import validation_to_response
from app.schemas.cart import CartPricingRequest, CartPricingResponse
from app.schemas.promotion import AppliedPromotionResponse
from app.services.cart_pricing_service import CartPricingService

router = APIRouter()


@router.post(
    "/pricing",
    response_model=CartPricingResponse,
    summary="Price cart",
    responses={401: {"description": "Invalid or expired bearer token"}},
)
async def price_cart(
    data: CartPricingRequest,
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> CartPricingResponse:
    """Price a cart with automatic promotions, an optional coupon and shipping.

    Nothing is recorded: the coupon's usage is only counted once the order is
    confirmed.
    """
    pricing = CartPricingService(db).price_cart(
        data.items,
        coupon_code=data.coupon_code,
        user_id=user.id if user else None,
        shipping_amount=data.shipping_amount,
    )
    return CartPricingResponse(
        subtotal=pricing.subtotal,
        promotion_discount=pricing.promotion_discount,
        applied_promotions=[
            AppliedPromotionResponse.model_validate(applied)
            for applied in pricing.applied_promotions
        ],
        coupon=validation_to_response(pricing.coupon) if pricing.coupon else None,
        coupon_discount=pricing.coupon_discount,
        shipping_amount=pricing.shipping_amount,
        free_shipping=pricing.free_shipping,
        total=pricing.total,
    )
