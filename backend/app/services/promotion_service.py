"""Promotion service: automatic promotion evaluation and promotion management."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.promotion import Promotion, PromotionDiscountType, PromotionType
from app.models.shared import as_utc, quantize_money, utc_now
from app.repositories.promotion_repository import PromotionRepository
from app.schemas.line_item import LineItem
from app.schemas.promotion import (
    PromotionCreate,
    PromotionUpdate,
    check_discount_fields,
    check_window,
    normalize_promotion_rules,
    parse_promotion_rules,
)
from app.services.promotion_rules.factory import get_promotion_calculator

logger = logging.getLogger(__name__)

_NON_NULLABLE_FIELDS = ("name", "type", "rules", "priority", "is_active")


@dataclass
class AppliedPromotion:
    """A promotion that contributed to a cart's discount."""

    id: UUID
    name: str
    type: str
    discount: Decimal


@dataclass
class PromotionEvaluation:
    """Result of evaluating automatic promotions against a cart."""

    total_discount: Decimal = Decimal("0.00")
    applied_promotions: list[AppliedPromotion] = field(default_factory=list)


def calculate_promotion_discount(promotion: Promotion, cart_items: Sequence[LineItem]) -> Decimal:
    """Compute one promotion's discount for a cart, rounded to cents.

    Any failure (unknown type, malformed rules, missing discount fields) is
    logged and yields zero.
    """
    try:
        promotion_type = PromotionType(promotion.type)
        calculator = get_promotion_calculator(promotion_type)
        if calculator is None:
            return Decimal("0.00")
        rules = parse_promotion_rules(promotion_type, promotion.rules)  # type: ignore[arg-type]
        discount = calculator(
            cart_items,
            rules,
            promotion.discount_type,
            promotion.discount_value,
        )
    except Exception:
        logger.exception("Failed to evaluate promotion %s (%s)", promotion.id, promotion.type)
        return Decimal("0.00")

    if discount <= 0:
        return Decimal("0.00")
    return quantize_money(discount)


class PromotionService:
    """Service for promotion evaluation and CRUD."""

    def __init__(self, db: Session):
        self.db = db
        self.promotion_repo = PromotionRepository(db)

    def get_active_promotions(self, now: datetime | None = None) -> list[Promotion]:
        """List promotions currently in effect, highest priority first."""
        return self.promotion_repo.get_active(as_utc(now) or utc_now())

    def apply_promotions(
        self,
        cart_items: Sequence[LineItem],
        now: datetime | None = None,
    ) -> PromotionEvaluation:
        """Evaluate every active promotion against the cart and sum the discounts.

        Discounts stack: each promotion is computed against the undiscounted
        cart, and the combined total is not clamped. Never raises.
        """
        try:
            promotions = self.get_active_promotions(now)
        except SQLAlchemyError:
            logger.exception("Failed to load active promotions")
            self.db.rollback()
            return PromotionEvaluation()

        total_discount = Decimal("0.00")
        applied: list[AppliedPromotion] = []

        for promotion in promotions:
            discount = calculate_promotion_discount(promotion, cart_items)
            if discount > 0:
                total_discount += discount
                applied.append(
                    AppliedPromotion(
                        id=promotion.id,  # type: ignore[arg-type]
                        name=str(promotion.name),
                        type=str(promotion.type),
                        discount=discount,
                    )
                )

        return PromotionEvaluation(
            total_discount=quantize_money(total_discount),
            applied_promotions=applied,
        )

    def get_promotion(self, promotion_id: UUID) -> Promotion | None:
        return self.promotion_repo.get_by_id(promotion_id)

    def create_promotion(self, data: PromotionCreate) -> Promotion:
        promotion = self.promotion_repo.create(data)
        logger.info("Created promotion %s (%s)", promotion.id, promotion.type)
        return promotion

    def update_promotion(self, promotion_id: UUID, data: PromotionUpdate) -> Promotion | None:
        """Patch the fields that were sent; ``rules`` replaces the whole payload.

        Returns None if the promotion does not exist.

        Raises:
            ValueError: If the patched promotion would be invalid.
        """
        promotion = self.promotion_repo.get_by_id(promotion_id)
        if not promotion:
            return None

        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        for key in _NON_NULLABLE_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValueError(f"{key} cannot be null")

        promotion_type = PromotionType(update_data.get("type", promotion.type))
        discount_type = update_data.get("discount_type", promotion.discount_type)
        check_discount_fields(
            promotion_type,
            PromotionDiscountType(discount_type) if discount_type else None,
            update_data.get("discount_value", promotion.discount_value),
        )
        check_window(
            as_utc(update_data.get("starts_at", promotion.starts_at)),
            as_utc(update_data.get("ends_at", promotion.ends_at)),
        )

        if "rules" in update_data:
            update_data["rules"] = normalize_promotion_rules(promotion_type, update_data["rules"])
        elif "type" in update_data:
            # Existing rules must still fit the new type
            update_data["rules"] = normalize_promotion_rules(
                promotion_type,
                promotion.rules,  # type: ignore[arg-type]
            )

        for key in ("type", "discount_type"):
            if update_data.get(key) is not None:
                update_data[key] = update_data[key].value

        return self.promotion_repo.update(promotion_id, update_data)

    def delete_promotion(self, promotion_id: UUID) -> bool:
        """Hard-delete a promotion.

        Orders keep their own snapshot of applied promotions, so nothing else
        is touched.
        """
        deleted = self.promotion_repo.delete(promotion_id)
        if deleted:
            logger.info("Deleted promotion %s", promotion_id)
        return deleted
