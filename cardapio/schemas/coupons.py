from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cardapio.services.pricing import MONEY_MAX


class ValidateCouponPayload(BaseModel):
    code: str = Field(..., max_length=50)
    subtotal: Decimal = Field(..., ge=0, le=MONEY_MAX)


class ValidateCouponResponse(BaseModel):
    valid: bool
    code: Optional[str] = None
    discount: float
    new_total: float
    message: str


class CouponPayload(BaseModel):
    code: str
    discount_type: str
    discount_value: Decimal
    active: bool = True
    min_order_value: Optional[Decimal] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    discount_type: str
    discount_value: float
    active: bool
    min_order_value: Optional[float] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses_count: int
