"""Coupon repository for data access."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.core.sorting import apply_order_by
from app.models.coupon import Coupon
from app.schemas.coupon import CouponCreate


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self, is_active: bool | None, search: str | None
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Coupon)
        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Coupon.code).like(pattern),
                    func.lower(Coupon.description).like(pattern),
                )
            )
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        search: str | None = None,
        order_by: str | None = None,
    ) -> list[Coupon]:
        """Get all coupons with optional filters."""
        query = apply_order_by(self._filtered(is_active, search), Coupon, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, is_active: bool | None = None, search: str | None = None) -> int:
        """Count coupons matching the same filters as get_all."""
        return self._filtered(is_active, search).count()

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str, active_only: bool = False) -> Coupon | None:
        """Get a coupon by code, ignoring case."""
        query = self.db.query(Coupon).filter(func.upper(Coupon.code) == code.strip().upper())
        if active_only:
            query = query.filter(Coupon.is_active == True)  # noqa: E712
        return query.first()

    def create(self, data: CouponCreate, created_by: UUID | None = None) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=data.code,
            description=data.description,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            min_purchase_amount=data.min_purchase_amount,
            max_discount_amount=data.max_discount_amount,
            usage_limit=data.usage_limit,
            usage_count=0,
            usage_limit_per_user=data.usage_limit_per_user,
            valid_from=data.valid_from,
            valid_to=data.valid_to,
            applicable_to=data.applicable_to.value,
            applicable_ids=data.applicable_ids,
            excluded_ids=data.excluded_ids,
            is_active=data.is_active,
            created_by=created_by,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, coupon_id: UUID, update_data: dict[str, Any]) -> Coupon | None:
        """Apply already-validated field values to a coupon."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        for key, value in update_data.items():
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def increment_usage(self, coupon_id: UUID) -> bool:
        """Increment usage_count unless that would pass usage_limit.

        Runs as one conditional UPDATE and does not commit, so the caller can
        bundle it with the usage row insert. Returns False when no row was
        updated.
        """
        updated = (
            self.db.query(Coupon)
            .filter(
                Coupon.id == coupon_id,
                or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
            )
            .update({Coupon.usage_count: Coupon.usage_count + 1}, synchronize_session=False)
        )
        return updated == 1

    def delete(self, coupon_id: UUID) -> bool:
        """Delete a coupon by ID."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return False

        self.db.delete(coupon)
        self.db.commit()
        return True
