"""Coupon API endpoints: storefront validation and admin management."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_optional_user, require_admin
from app.core.database import get_db
from app.models.coupon import Coupon
from app.models.coupon_usage import CouponUsage
from app.repositories.coupon_repository import CouponRepository
from app.repositories.coupon_usage_repository import CouponUsageRepository
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
from app.services.coupon_service import (
    CouponConflictError,
    CouponService,
    CouponUsageError,
    CouponValidationResult,
)

router = APIRouter()


def validation_to_response(result: CouponValidationResult) -> CouponValidationResponse:
    return CouponValidationResponse(
        valid=result.valid,
        coupon=CouponSummary.model_validate(result.coupon) if result.coupon else None,
        discount_amount=result.discount_amount,
        free_shipping=result.free_shipping,
        error=result.error,
        reason=result.reason.value if result.reason else None,
    )


def _get_coupon_or_404(db: Session, coupon_id: UUID) -> Coupon:
    coupon = CouponRepository(db).get_by_id(coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.post(
    "/validate",
    response_model=CouponValidationResponse,
    summary="Validate coupon code",
    responses={401: {"description": "Invalid or expired bearer token"}},
)
async def validate_coupon(
    data: CouponValidateRequest,
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> CouponValidationResponse:
    """Check a code against a cart total.

    Rejections are reported in the body with ``valid: false``. When the caller
    is authenticated, the token's user is used for the per-user limit.
    """
    user_id = user.id if user else data.user_id
    result = CouponService(db).validate_coupon(
        data.code,
        user_id,
        data.cart_total,
        data.items,
    )
    return validation_to_response(result)


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
    },
)
async def list_coupons(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    search: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[Coupon]:
    """List coupons with optional active filter and code/description search."""
    repo = CouponRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(is_active=is_active, search=search))
    return repo.get_all(
        skip=skip, limit=limit, is_active=is_active, search=search, order_by=order_by
    )


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    """Create a new coupon. The code is stored upper-cased; the caller is recorded as creator."""
    try:
        return CouponService(db).create_coupon(data, created_by=admin.id)
    except CouponConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    return _get_coupon_or_404(db, coupon_id)


@router.patch(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Update coupon",
    responses={
        400: {"description": "Invalid coupon update"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def update_coupon(
    coupon_id: UUID,
    data: CouponUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Coupon:
    """Update the fields present in the request body."""
    try:
        coupon = CouponService(db).update_coupon(coupon_id, data)
    except CouponConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.delete(
    "/{coupon_id}",
    status_code=204,
    summary="Delete coupon",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
        409: {"description": "Coupon has already been used"},
    },
)
async def delete_coupon(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    """Delete a coupon that has never been redeemed."""
    _get_coupon_or_404(db, coupon_id)
    try:
        CouponService(db).delete_coupon(coupon_id)
    except CouponConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None


@router.post(
    "/{coupon_id}/usages",
    response_model=CouponUsageResponse,
    status_code=201,
    summary="Record coupon usage",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
        409: {"description": "Coupon usage limit has been reached"},
    },
)
async def record_coupon_usage(
    coupon_id: UUID,
    data: CouponUsageCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> CouponUsage:
    """Record a redemption for a confirmed order.

    Called by the order service once per order that used the coupon. A 409
    means the limit was reached after the code was validated.
    """
    _get_coupon_or_404(db, coupon_id)
    try:
        return CouponService(db).record_coupon_usage(
            coupon_id=coupon_id,
            user_id=data.user_id,
            order_id=data.order_id,
            discount_amount=data.discount_amount,
        )
    except CouponUsageError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None


@router.get(
    "/{coupon_id}/usages",
    response_model=list[CouponUsageResponse],
    summary="List coupon usages",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
    },
)
async def list_coupon_usages(
    coupon_id: UUID,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[CouponUsage]:
    """List a coupon's usage rows, newest first."""
    _get_coupon_or_404(db, coupon_id)
    repo = CouponUsageRepository(db)
    response.headers["X-Total-Count"] = str(repo.count_by_coupon(coupon_id))
    return repo.get_by_coupon_id(coupon_id, skip=skip, limit=limit)


@router.get(
    "/{coupon_id}/analytics",
    response_model=CouponAnalyticsResponse,
    summary="Get coupon analytics",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon_analytics(
    coupon_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> CouponAnalyticsResponse:
    coupon = _get_coupon_or_404(db, coupon_id)
    return CouponService(db).get_analytics(coupon)
