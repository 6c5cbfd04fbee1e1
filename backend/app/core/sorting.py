"""Sorting helper shared by the list endpoints."""

from __future__ import annotations

from sqlalchemy import asc, desc, inspect
from sqlalchemy.orm import Query

from app.core.database import Base


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Order a query by a ``"field:direction"`` string such as ``"priority:desc"``.

    Unknown columns fall back to the default field; an unknown direction falls
    back to the default direction. Only mapped columns are accepted.
    """
    columns = {attr.key for attr in inspect(model).column_attrs}
    field, direction = default_field, default_direction

    if order_by:
        candidate_field, _, candidate_direction = order_by.partition(":")
        if candidate_field in columns:
            field = candidate_field
            direction = candidate_direction or "asc"
            if direction not in ("asc", "desc"):
                direction = default_direction

    order_func = asc if direction == "asc" else desc
    return query.order_by(order_func(getattr(model, field)))
