"""CouponUsage repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.coupon_usage import CouponUsage


class CouponUsageRepository:
    """Repository for CouponUsage model. Rows are only ever inserted."""

    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        coupon_id: UUID,
        order_id: UUID,
        discount_amount: Decimal,
        user_id: UUID | None = None,
    ) -> CouponUsage:
        """Stage a usage row in the current transaction without committing."""
        usage = CouponUsage(
            coupon_id=coupon_id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=discount_amount,
        )
        self.db.add(usage)
        self.db.flush()
        return usage

    def get_by_coupon_id(
        self, coupon_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[CouponUsage]:
        """Get a coupon's usage rows, newest first."""
        return (
            self.db.query(CouponUsage)
            .filter(CouponUsage.coupon_id == coupon_id)
            .order_by(CouponUsage.used_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_coupon(self, coupon_id: UUID) -> int:
        return self.db.query(CouponUsage).filter(CouponUsage.coupon_id == coupon_id).count()

    def count_by_coupon_and_user(self, coupon_id: UUID, user_id: UUID) -> int:
        """Count how many times a user has redeemed a coupon."""
        return (
            self.db.query(CouponUsage)
            .filter(CouponUsage.coupon_id == coupon_id, CouponUsage.user_id == user_id)
            .count()
        )

    def count_unique_users(self, coupon_id: UUID) -> int:
        return (
            self.db.query(func.count(func.distinct(CouponUsage.user_id)))
            .filter(CouponUsage.coupon_id == coupon_id)
            .scalar()
            or 0
        )

    def total_discount(self, coupon_id: UUID) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(CouponUsage.discount_amount), 0))
            .filter(CouponUsage.coupon_id == coupon_id)
            .scalar()
        )
        return Decimal(str(total))
