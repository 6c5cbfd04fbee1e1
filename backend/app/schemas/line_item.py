from decimal import Decimal

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    """The only cart shape the discount engine needs."""

    product_id: str = Field(min_length=1)
    category_id: str | None = None
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
