from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from cardapio.domain.entities import OrderInput, OrderLineInput
from cardapio.services.phone import format_phone
from cardapio.services.pricing import format_brl


def _coerce_whole_number(value: Any) -> Any:
    # valores fora do formato seguem crus para a validação do pedido
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class OrderLinePayload(BaseModel):
    product_id: int
    quantity: Any = 1
    option_ids: list[int] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, value: Any) -> Any:
        return _coerce_whole_number(value)


class OrderPayload(BaseModel):
    order_type: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    table_number: Optional[Any] = None
    coupon_code: Optional[str] = None
    items: list[OrderLinePayload] = Field(default_factory=list)

    @field_validator("table_number", mode="before")
    @classmethod
    def coerce_table_number(cls, value: Any) -> Any:
        return _coerce_whole_number(value)

    def to_input(self) -> OrderInput:
        return OrderInput(
            order_type=self.order_type,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            table_number=self.table_number,
            coupon_code=self.coupon_code,
            items=tuple(
                OrderLineInput(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    option_ids=tuple(item.option_ids),
                    notes=item.notes,
                )
                for item in self.items
            ),
        )


class OrderItemOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    additional_price: float
    group_id: Optional[int] = None
    group_name: Optional[str] = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    unit_price: float
    quantity: int
    total_price: float
    notes: Optional[str] = None
    options: list[OrderItemOptionResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_type: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    table_number: Optional[int] = None
    status: str
    subtotal: float
    discount: float
    total: float
    coupon_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = Field(default_factory=list)

    @computed_field
    @property
    def customer_phone_display(self) -> str:
        return format_phone(self.customer_phone)

    @computed_field
    @property
    def total_display(self) -> str:
        return format_brl(self.total)


class TrackingResponse(BaseModel):
    result: Literal["single", "multiple", "not_found"]
    orders: list[OrderResponse]
    redirect_to: Optional[str] = None
    message: Optional[str] = None


class OrderStatusPayload(BaseModel):
    status: str
