"""Coupon, coupon validation and coupon usage schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.coupon import CouponApplicability, CouponDiscountType
from app.models.shared import as_utc
from app.schemas.line_item import LineItem


def _normalize_code(value: str | None) -> str | None:
    if value is None:
        return value
    code = value.strip().upper()
    if not code:
        raise ValueError("code must not be blank")
    return code


def _check_coupon_amounts(
    discount_type: CouponDiscountType | None,
    discount_value: Decimal | None,
    max_discount_amount: Decimal | None,
) -> None:
    if (
        discount_type == CouponDiscountType.PERCENTAGE
        and discount_value is not None
        and discount_value > 100
    ):
        raise ValueError("Percentage discount_value cannot exceed 100")
    if (
        max_discount_amount is not None
        and discount_type is not None
        and discount_type != CouponDiscountType.PERCENTAGE
    ):
        raise ValueError("max_discount_amount only applies to percentage coupons")


class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: CouponDiscountType
    discount_value: Decimal = Field(gt=0)
    min_purchase_amount: Decimal | None = Field(default=None, gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    usage_limit: int | None = Field(default=None, gt=0)
    usage_limit_per_user: int | None = Field(default=1, gt=0)
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    applicable_to: CouponApplicability = CouponApplicability.ALL
    applicable_ids: list[str] = Field(default_factory=list)
    excluded_ids: list[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return _normalize_code(value)  # type: ignore[return-value]

    @field_validator("valid_from", "valid_to")
    @classmethod
    def window_in_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @model_validator(mode="after")
    def validate_amounts(self) -> Self:
        _check_coupon_amounts(self.discount_type, self.discount_value, self.max_discount_amount)
        return self

    @model_validator(mode="after")
    def validate_window(self) -> Self:
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not be before valid_from")
        return self


class CouponUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None
    discount_type: CouponDiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    min_purchase_amount: Decimal | None = Field(default=None, gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    usage_limit: int | None = Field(default=None, gt=0)
    usage_limit_per_user: int | None = Field(default=None, gt=0)
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    applicable_to: CouponApplicability | None = None
    applicable_ids: list[str] | None = None
    excluded_ids: list[str] | None = None
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return _normalize_code(value)

    @field_validator("valid_from", "valid_to")
    @classmethod
    def window_in_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int
    usage_limit_per_user: int | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    applicable_to: str
    applicable_ids: list[str]
    excluded_ids: list[str]
    is_active: bool
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    cart_total: Decimal = Field(ge=0)
    user_id: UUID | None = None
    items: list[LineItem] = Field(default_factory=list)


class CouponSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal


class CouponValidationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    valid: bool
    coupon: CouponSummary | None = None
    discount_amount: Decimal | None = None
    free_shipping: bool = False
    error: str | None = None
    reason: str | None = None


class CouponUsageCreate(BaseModel):
    order_id: UUID
    user_id: UUID | None = None
    discount_amount: Decimal = Field(ge=0)


class CouponUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    coupon_id: UUID
    user_id: UUID | None = None
    order_id: UUID
    discount_amount: Decimal
    used_at: datetime


class CouponAnalyticsResponse(BaseModel):
    """Redemption figures for a coupon."""

    usage_count: int
    usage_limit: int | None = None
    remaining_uses: int | None = None
    unique_users: int
    total_discount: Decimal
