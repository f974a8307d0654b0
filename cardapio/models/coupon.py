from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, func

from cardapio.core.database import Base


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    # sempre em maiúsculas
    code = Column(String(20), nullable=False, unique=True, index=True)
    discount_type = Column(String(20), nullable=False)  # percentage / fixed
    discount_value = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    min_order_value = Column(Numeric(10, 2), nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    max_uses = Column(Integer, nullable=True)
    uses_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
