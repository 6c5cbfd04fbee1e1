"""Promotion schemas and the per-type rules payloads."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.models.promotion import PromotionDiscountType, PromotionType
from app.models.shared import as_utc


class _Rules(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CategoryDiscountRules(_Rules):
    category_id: str = Field(min_length=1)


class BuyXGetYRules(_Rules):
    product_id: str = Field(min_length=1)
    buy_quantity: int = Field(default=2, ge=1)
    get_quantity: int = Field(default=1, ge=1)


class FlashSaleRules(_Rules):
    pass


class MinPurchaseRules(_Rules):
    min_amount: Decimal = Field(default=Decimal("0"), ge=0)


PromotionRules = CategoryDiscountRules | BuyXGetYRules | FlashSaleRules | MinPurchaseRules

RULES_MODELS: dict[PromotionType, type[PromotionRules]] = {
    PromotionType.CATEGORY_DISCOUNT: CategoryDiscountRules,
    PromotionType.BUY_X_GET_Y: BuyXGetYRules,
    PromotionType.FLASH_SALE: FlashSaleRules,
    PromotionType.MIN_PURCHASE: MinPurchaseRules,
}

# Types whose discount comes from discount_type/discount_value rather than the rules
DISCOUNTED_TYPES = (
    PromotionType.CATEGORY_DISCOUNT,
    PromotionType.FLASH_SALE,
    PromotionType.MIN_PURCHASE,
)


def parse_promotion_rules(
    promotion_type: PromotionType | str, raw: dict[str, Any] | None
) -> PromotionRules:
    """Parse a stored or submitted rules payload into the model for its promotion type.

    Raises:
        ValueError: If the type is unknown or the payload does not match it.
    """
    rules_model = RULES_MODELS[PromotionType(promotion_type)]
    return rules_model.model_validate(raw or {})


def normalize_promotion_rules(
    promotion_type: PromotionType | str, raw: dict[str, Any] | None
) -> dict[str, Any]:
    """Validate a rules payload and return it in its stored JSON form."""
    try:
        parsed = parse_promotion_rules(promotion_type, raw)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        msg = f"Invalid rules for promotion type '{PromotionType(promotion_type).value}': {errors}"
        raise ValueError(msg) from None
    return parsed.model_dump(mode="json")


def check_discount_fields(
    promotion_type: PromotionType,
    discount_type: PromotionDiscountType | None,
    discount_value: Decimal | None,
) -> None:
    if promotion_type in DISCOUNTED_TYPES and (discount_type is None or discount_value is None):
        msg = f"discount_type and discount_value are required for type '{promotion_type.value}'"
        raise ValueError(msg)
    if (
        discount_type == PromotionDiscountType.PERCENTAGE
        and discount_value is not None
        and discount_value > 100
    ):
        raise ValueError("Percentage discount_value cannot exceed 100")


def check_window(starts_at: datetime | None, ends_at: datetime | None) -> None:
    if starts_at is not None and ends_at is not None and ends_at < starts_at:
        raise ValueError("ends_at must not be before starts_at")


class PromotionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    type: PromotionType
    discount_type: PromotionDiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    rules: dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool = True

    @field_validator("starts_at", "ends_at")
    @classmethod
    def window_in_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @model_validator(mode="after")
    def validate_promotion(self) -> Self:
        """Check the discount fields and window, and normalize the rules for the type."""
        check_discount_fields(self.type, self.discount_type, self.discount_value)
        check_window(self.starts_at, self.ends_at)
        self.rules = normalize_promotion_rules(self.type, self.rules)
        return self


class PromotionUpdate(BaseModel):
    """Partial update. ``rules``, when given, replaces the whole payload."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: PromotionType | None = None
    discount_type: PromotionDiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    rules: dict[str, Any] | None = None
    priority: int | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def window_in_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class PromotionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    description: str | None = None
    type: str
    discount_type: str | None = None
    discount_value: Decimal | None = None
    rules: dict[str, Any]
    priority: int
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AppliedPromotionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    type: str
    discount: Decimal


class PromotionEvaluationResponse(BaseModel):
    model_config = {"from_attributes": True}

    total_discount: Decimal
    applied_promotions: list[AppliedPromotionResponse]
