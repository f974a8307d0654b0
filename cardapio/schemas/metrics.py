from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field

from cardapio.services.phone import format_phone


class MetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    total_orders: int
    total_revenue: float
    average_orders_per_day: float


class TopProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    product_id: int
    product_name: str
    quantity: int
    revenue: float


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    phone: str
    total_orders: int
    total_spent: float
    last_order_at: datetime
    last_order_status: str

    @computed_field
    @property
    def phone_display(self) -> str:
        return format_phone(self.phone)
