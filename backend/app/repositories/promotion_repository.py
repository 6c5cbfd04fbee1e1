"""Promotion repository for data access."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.core.sorting import apply_order_by
from app.models.promotion import Promotion, PromotionType
from app.schemas.promotion import PromotionCreate


class PromotionRepository:
    """Repository for Promotion model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self, is_active: bool | None, promotion_type: PromotionType | None
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Promotion)
        if is_active is not None:
            query = query.filter(Promotion.is_active == is_active)
        if promotion_type:
            query = query.filter(Promotion.type == promotion_type.value)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        promotion_type: PromotionType | None = None,
        order_by: str | None = None,
    ) -> list[Promotion]:
        """Get all promotions with optional filters."""
        query = apply_order_by(self._filtered(is_active, promotion_type), Promotion, order_by)
        return query.offset(skip).limit(limit).all()

    def count(
        self, is_active: bool | None = None, promotion_type: PromotionType | None = None
    ) -> int:
        """Count promotions matching the same filters as get_all."""
        return self._filtered(is_active, promotion_type).count()

    def get_active(self, now: datetime) -> list[Promotion]:
        """Get promotions that are switched on and whose window contains ``now``.

        Ordered by priority (highest first), newest first among equal priorities.
        """
        return (
            self.db.query(Promotion)
            .filter(
                Promotion.is_active == True,  # noqa: E712
                or_(Promotion.starts_at.is_(None), Promotion.starts_at <= now),
                or_(Promotion.ends_at.is_(None), Promotion.ends_at >= now),
            )
            .order_by(Promotion.priority.desc(), Promotion.created_at.desc())
            .all()
        )

    def get_by_id(self, promotion_id: UUID) -> Promotion | None:
        """Get a promotion by ID."""
        return self.db.query(Promotion).filter(Promotion.id == promotion_id).first()

    def create(self, data: PromotionCreate) -> Promotion:
        """Create a new promotion."""
        promotion = Promotion(
            name=data.name,
            description=data.description,
            type=data.type.value,
            discount_type=data.discount_type.value if data.discount_type else None,
            discount_value=data.discount_value,
            rules=data.rules,
            priority=data.priority,
            starts_at=data.starts_at,
            ends_at=data.ends_at,
            is_active=data.is_active,
        )
        self.db.add(promotion)
        self.db.commit()
        self.db.refresh(promotion)
        return promotion

    def update(self, promotion_id: UUID, update_data: dict[str, Any]) -> Promotion | None:
        """Apply already-validated field values to a promotion."""
        promotion = self.get_by_id(promotion_id)
        if not promotion:
            return None

        for key, value in update_data.items():
            setattr(promotion, key, value)

        self.db.commit()
        self.db.refresh(promotion)
        return promotion

    def delete(self, promotion_id: UUID) -> bool:
        """Hard-delete a promotion by ID."""
        promotion = self.get_by_id(promotion_id)
        if not promotion:
            return False

        self.db.delete(promotion)
        self.db.commit()
        return True
