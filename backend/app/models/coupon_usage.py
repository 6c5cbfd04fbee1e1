"""CouponUsage model: append-only audit of coupon redemptions."""

from sqlalchemy import Column, DateTime, ForeignKey, func

from app.core.database import Base
from app.models.shared import MoneyType, UUIDType, generate_uuid, utc_now


class CouponUsage(Base):
    """One row per redeemed coupon on a confirmed order."""

    __tablename__ = "coupon_usages"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    coupon_id = Column(
        UUIDType, ForeignKey("coupons.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id = Column(UUIDType, nullable=True, index=True)
    order_id = Column(UUIDType, nullable=False, index=True)
    discount_amount = Column(MoneyType(), nullable=False)

    used_at = Column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )
