"""Coupon model for user-entered discount codes."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import MoneyType, UUIDType, generate_uuid, utc_now


class CouponDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


class CouponApplicability(str, Enum):
    ALL = "all"
    CATEGORIES = "categories"
    PRODUCTS = "products"


class Coupon(Base):
    """Coupon model for user-entered discount codes."""

    __tablename__ = "coupons"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String(30), nullable=False)
    discount_value = Column(MoneyType(), nullable=False)

    min_purchase_amount = Column(MoneyType(), nullable=True)
    max_discount_amount = Column(MoneyType(), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    # NULL means unlimited; the default of 1 lives on CouponCreate
    usage_limit_per_user = Column(Integer, nullable=True)

    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_to = Column(DateTime(timezone=True), nullable=True)

    # Stored for the storefront; not checked by validation
    applicable_to = Column(String(30), nullable=False, default=CouponApplicability.ALL.value)
    applicable_ids = Column(JSON, nullable=False, default=list)
    excluded_ids = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by = Column(UUIDType, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
