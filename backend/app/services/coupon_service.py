"""Coupon service: code validation, usage recording and coupon management."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.coupon import Coupon, CouponDiscountType
from app.models.coupon_usage import CouponUsage
from app.models.shared import as_utc, quantize_money, to_decimal, utc_now
from app.repositories.coupon_repository import CouponRepository
from app.repositories.coupon_usage_repository import CouponUsageRepository
from app.schemas.coupon import CouponAnalyticsResponse, CouponCreate, CouponUpdate
from app.schemas.line_item import LineItem

logger = logging.getLogger(__name__)

_NON_NULLABLE_FIELDS = (
    "code",
    "discount_type",
    "discount_value",
    "applicable_to",
    "applicable_ids",
    "excluded_ids",
    "is_active",
)


class CouponRejection(str, Enum):
    NOT_FOUND = "not_found"
    NOT_YET_ACTIVE = "not_yet_active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    BELOW_MINIMUM = "below_minimum"
    PER_USER_LIMIT_REACHED = "per_user_limit_reached"


class CouponValidationError(ValueError):
    """A coupon code that cannot be applied to the cart."""

    def __init__(self, reason: CouponRejection, message: str):
        super().__init__(message)
        self.reason = reason


class CouponUsageError(ValueError):
    """A usage that could not be recorded: unknown coupon or limit reached."""


class CouponConflictError(ValueError):
    """The change would break a uniqueness or history constraint."""


@dataclass
class CouponValidationResult:
    """Outcome of validating a coupon code against a cart."""

    valid: bool
    coupon: Coupon | None = None
    discount_amount: Decimal | None = None
    free_shipping: bool = False
    error: str | None = None
    reason: CouponRejection | None = None


def calculate_coupon_discount(coupon: Coupon, cart_total: Decimal) -> Decimal:
    """Compute a coupon's discount on a cart total, rounded to cents.

    Percentage coupons are capped by ``max_discount_amount``; fixed amounts
    never exceed the cart total; free shipping discounts nothing here.
    """
    value = to_decimal(coupon.discount_value)
    discount_type = CouponDiscountType(coupon.discount_type)

    if discount_type == CouponDiscountType.PERCENTAGE:
        discount = cart_total * value / Decimal(100)
        if coupon.max_discount_amount is not None:
            discount = min(discount, to_decimal(coupon.max_discount_amount))
    elif discount_type == CouponDiscountType.FIXED_AMOUNT:
        discount = min(value, cart_total)
    else:
        discount = Decimal("0")

    return quantize_money(discount)


class CouponService:
    """Service for coupon validation, redemption and administration."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.usage_repo = CouponUsageRepository(db)

    def validate_coupon(
        self,
        code: str,
        user_id: UUID | None,
        cart_total: Decimal,
        cart_items: Sequence[LineItem] = (),
        now: datetime | None = None,
    ) -> CouponValidationResult:
        """Check whether a code applies to a cart and compute its discount.

        Rejections are returned in the result, never raised. Validation does
        not reserve a use: the usage count only moves in record_coupon_usage.

        Args:
            code: Code entered by the shopper, any case.
            user_id: The shopper, or None for guests. Guests skip the per-user limit.
            cart_total: Cart subtotal the discount is computed on.
            cart_items: The cart's line items.
            now: Evaluation instant, defaults to the current time.
        """
        cart_total = to_decimal(cart_total)
        try:
            coupon = self._get_applicable_coupon(code, user_id, cart_total, now or utc_now())
        except CouponValidationError as exc:
            logger.info("Coupon %r rejected: %s", code, exc.reason.value)
            return CouponValidationResult(valid=False, error=str(exc), reason=exc.reason)

        return CouponValidationResult(
            valid=True,
            coupon=coupon,
            discount_amount=calculate_coupon_discount(coupon, cart_total),
            free_shipping=coupon.discount_type == CouponDiscountType.FREE_SHIPPING.value,
        )

    def _get_applicable_coupon(
        self,
        code: str,
        user_id: UUID | None,
        cart_total: Decimal,
        now: datetime,
    ) -> Coupon:
        coupon = self.coupon_repo.get_by_code(code, active_only=True)
        if not coupon:
            raise CouponValidationError(CouponRejection.NOT_FOUND, "Invalid coupon code")

        valid_from = as_utc(coupon.valid_from)  # type: ignore[arg-type]
        valid_to = as_utc(coupon.valid_to)  # type: ignore[arg-type]
        if valid_from is not None and now < valid_from:
            raise CouponValidationError(
                CouponRejection.NOT_YET_ACTIVE, "Coupon is not active yet"
            )
        if valid_to is not None and now > valid_to:
            raise CouponValidationError(CouponRejection.EXPIRED, "Coupon has expired")

        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            raise CouponValidationError(
                CouponRejection.EXHAUSTED, "Coupon usage limit has been reached"
            )

        if coupon.min_purchase_amount is not None:
            minimum = to_decimal(coupon.min_purchase_amount)
            if cart_total < minimum:
                raise CouponValidationError(
                    CouponRejection.BELOW_MINIMUM,
                    f"Minimum purchase amount required: {minimum}{settings.CURRENCY_SYMBOL}",
                )

        if user_id is not None and coupon.usage_limit_per_user is not None:
            used = self.usage_repo.count_by_coupon_and_user(
                coupon.id, user_id  # type: ignore[arg-type]
            )
            if used >= coupon.usage_limit_per_user:
                raise CouponValidationError(
                    CouponRejection.PER_USER_LIMIT_REACHED,
                    "Coupon usage limit reached for this user",
                )

        return coupon

    def record_coupon_usage(
        self,
        coupon_id: UUID,
        user_id: UUID | None,
        order_id: UUID,
        discount_amount: Decimal,
    ) -> CouponUsage:
        """Record one redemption of a coupon on a confirmed order.

        Increments the coupon's usage count (only while it is below the limit)
        and inserts the usage row in a single transaction. Call once per order,
        after payment; failures are never retried here.

        Raises:
            CouponUsageError: If the coupon does not exist or its limit was
                reached since validation. The order's discount must be unwound.
            SQLAlchemyError: If the database write fails.
        """
        if not self.coupon_repo.get_by_id(coupon_id):
            raise CouponUsageError(f"Coupon {coupon_id} not found")

        try:
            if not self.coupon_repo.increment_usage(coupon_id):
                raise CouponUsageError("Coupon usage limit has been reached")
            usage = self.usage_repo.add(
                coupon_id=coupon_id,
                order_id=order_id,
                discount_amount=quantize_money(to_decimal(discount_amount)),
                user_id=user_id,
            )
            self.db.commit()
        except CouponUsageError:
            self.db.rollback()
            logger.warning(
                "Rejected usage of coupon %s on order %s: limit reached", coupon_id, order_id
            )
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to record usage of coupon %s on order %s", coupon_id, order_id
            )
            raise

        self.db.refresh(usage)
        logger.info("Recorded usage of coupon %s on order %s", coupon_id, order_id)
        return usage

    def create_coupon(self, data: CouponCreate, created_by: UUID | None = None) -> Coupon:
        if self.coupon_repo.get_by_code(data.code):
            raise CouponConflictError(f"Coupon with code '{data.code}' already exists")
        coupon = self.coupon_repo.create(data, created_by=created_by)
        logger.info("Created coupon %s (%s)", coupon.code, coupon.id)
        return coupon

    def update_coupon(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        """Patch the fields that were sent. Returns None if the coupon does not exist.

        Raises:
            CouponConflictError: If the new code belongs to another coupon.
            ValueError: If the patched coupon would be invalid.
        """
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            return None

        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        for key in _NON_NULLABLE_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValueError(f"{key} cannot be null")

        if "code" in update_data:
            existing = self.coupon_repo.get_by_code(update_data["code"])
            if existing and existing.id != coupon.id:
                raise CouponConflictError(
                    f"Coupon with code '{update_data['code']}' already exists"
                )

        discount_type = CouponDiscountType(update_data.get("discount_type", coupon.discount_type))
        discount_value = to_decimal(update_data.get("discount_value", coupon.discount_value))
        max_discount = update_data.get("max_discount_amount", coupon.max_discount_amount)
        if discount_type == CouponDiscountType.PERCENTAGE and discount_value > 100:
            raise ValueError("Percentage discount_value cannot exceed 100")
        if max_discount is not None and discount_type != CouponDiscountType.PERCENTAGE:
            raise ValueError("max_discount_amount only applies to percentage coupons")

        valid_from = as_utc(update_data.get("valid_from", coupon.valid_from))
        valid_to = as_utc(update_data.get("valid_to", coupon.valid_to))
        if valid_from and valid_to and valid_to < valid_from:
            raise ValueError("valid_to must not be before valid_from")

        if "applicable_to" in update_data:
            update_data["applicable_to"] = update_data["applicable_to"].value
        if "discount_type" in update_data:
            update_data["discount_type"] = discount_type.value

        return self.coupon_repo.update(coupon_id, update_data)

    def delete_coupon(self, coupon_id: UUID) -> bool:
        """Delete a coupon that has never been redeemed.

        Raises:
            CouponConflictError: If usage rows exist; deactivate the coupon instead.
        """
        if self.usage_repo.count_by_coupon(coupon_id) > 0:
            raise CouponConflictError(
                "Cannot delete a coupon that has already been used. Deactivate it instead."
            )
        return self.coupon_repo.delete(coupon_id)

    def get_analytics(self, coupon: Coupon) -> CouponAnalyticsResponse:
        usage_limit = coupon.usage_limit
        total_discount = self.usage_repo.total_discount(coupon.id)  # type: ignore[arg-type]
        remaining_uses = (
            max(usage_limit - coupon.usage_count, 0) if usage_limit is not None else None
        )
        return CouponAnalyticsResponse(
            usage_count=coupon.usage_count,  # type: ignore[arg-type]
            usage_limit=usage_limit,  # type: ignore[arg-type]
            remaining_uses=remaining_uses,  # type: ignore[arg-type]
            unique_users=self.usage_repo.count_unique_users(coupon.id),  # type: ignore[arg-type]
            total_discount=quantize_money(total_discount),
        )
