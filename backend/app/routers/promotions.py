"""Promotion API endpoints: storefront evaluation and admin management."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, require_admin
from app.core.database import get_db
from app.models.promotion import Promotion, PromotionType
from app.repositories.promotion_repository import PromotionRepository
from app.schemas.line_item import LineItem
from app.schemas.promotion import (
    AppliedPromotionResponse,
    PromotionCreate,
    PromotionEvaluationResponse,
    PromotionResponse,
    PromotionUpdate,
)
from app.services.promotion_service import PromotionEvaluation, PromotionService

router = APIRouter()


def evaluation_to_response(evaluation: PromotionEvaluation) -> PromotionEvaluationResponse:
    return PromotionEvaluationResponse(
        total_discount=evaluation.total_discount,
        applied_promotions=[
            AppliedPromotionResponse.model_validate(applied)
            for applied in evaluation.applied_promotions
        ],
    )


@router.post(
    "/apply",
    response_model=PromotionEvaluationResponse,
    summary="Apply automatic promotions",
)
async def apply_promotions(
    items: list[LineItem],
    db: Session = Depends(get_db),
) -> PromotionEvaluationResponse:
    """Evaluate every active promotion against the cart line items.

    Discounts stack. A promotion that fails to evaluate is skipped, so this
    endpoint always answers with a result.
    """
    return evaluation_to_response(PromotionService(db).apply_promotions(items))


@router.get(
    "/active",
    response_model=list[PromotionResponse],
    summary="List active promotions",
)
async def list_active_promotions(db: Session = Depends(get_db)) -> list[Promotion]:
    """List promotions in effect now, highest priority first."""
    return PromotionService(db).get_active_promotions()


@router.get(
    "/",
    response_model=list[PromotionResponse],
    summary="List promotions",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
    },
)
async def list_promotions(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    type: PromotionType | None = None,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[Promotion]:
    repo = PromotionRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(is_active=is_active, promotion_type=type))
    return repo.get_all(
        skip=skip,
        limit=limit,
        is_active=is_active,
        promotion_type=type,
        order_by=order_by,
    )


@router.post(
    "/",
    response_model=PromotionResponse,
    status_code=201,
    summary="Create promotion",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        422: {"description": "Validation error"},
    },
)
async def create_promotion(
    data: PromotionCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Promotion:
    """Create a promotion. ``rules`` must match the promotion type."""
    return PromotionService(db).create_promotion(data)


@router.get(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Get promotion",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Promotion not found"},
    },
)
async def get_promotion(
    promotion_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Promotion:
    promotion = PromotionService(db).get_promotion(promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.patch(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Update promotion",
    responses={
        400: {"description": "Invalid promotion update"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Promotion not found"},
        422: {"description": "Validation error"},
    },
)
async def update_promotion(
    promotion_id: UUID,
    data: PromotionUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> Promotion:
    """Update the fields present in the request body; ``rules`` is replaced whole."""
    try:
        promotion = PromotionService(db).update_promotion(promotion_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.delete(
    "/{promotion_id}",
    status_code=204,
    summary="Delete promotion",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin access required"},
        404: {"description": "Promotion not found"},
    },
)
async def delete_promotion(
    promotion_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    if not PromotionService(db).delete_promotion(promotion_id):
        raise HTTPException(status_code=404, detail="Promotion not found")
