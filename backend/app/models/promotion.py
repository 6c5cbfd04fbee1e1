"""Promotion model for automatically-applied discounts."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import MoneyType, UUIDType, generate_uuid, utc_now


class PromotionType(str, Enum):
    CATEGORY_DISCOUNT = "category_discount"
    BUY_X_GET_Y = "buy_x_get_y"
    FLASH_SALE = "flash_sale"
    MIN_PURCHASE = "min_purchase"


class PromotionDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Promotion(Base):
    """Promotion model for automatically-applied discounts."""

    __tablename__ = "promotions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    type = Column(String(50), nullable=False, index=True)

    discount_type = Column(String(30), nullable=True)
    discount_value = Column(MoneyType(), nullable=True)

    rules = Column(JSON, nullable=False, default=dict)

    priority = Column(Integer, nullable=False, default=0)

    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
