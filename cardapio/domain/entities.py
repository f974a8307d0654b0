"""Registros imutáveis usados pelos serviços de pedido.

As linhas do banco são convertidas para estes registros na fronteira com o
store (``cardapio.services.store``); nada acima dessa camada lê colunas cruas.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

ORDER_STATUS_RECEIVED = "Recebido"
ORDER_STATUS_PREPARING = "Em Preparo"
ORDER_STATUS_READY = "Pronto"

# ordem do ciclo de vida; o índice define o sentido das transições
ORDER_STATUSES: Tuple[str, ...] = (
    ORDER_STATUS_RECEIVED,
    ORDER_STATUS_PREPARING,
    ORDER_STATUS_READY,
)
ACTIVE_ORDER_STATUSES = frozenset({ORDER_STATUS_RECEIVED, ORDER_STATUS_PREPARING})

ORDER_TYPE_PICKUP = "Retirada"
ORDER_TYPE_DINE_IN = "Consumo no Local"
ORDER_TYPES: Tuple[str, ...] = (ORDER_TYPE_PICKUP, ORDER_TYPE_DINE_IN)

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES: Tuple[str, ...] = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)

SELECTION_SINGLE = "single"
SELECTION_MULTIPLE = "multiple"

ADMIN_ROLES = frozenset({"admin", "owner"})

# limites do seletor de quantidade do cardápio
QUANTITY_MIN = 1
QUANTITY_MAX = 99


@dataclass(frozen=True)
class SelectedOption:
    id: int
    name: str
    additional_price: Decimal
    group_id: Optional[int] = None
    group_name: Optional[str] = None


@dataclass(frozen=True)
class CatalogOptionGroup:
    id: int
    name: str
    selection_type: str
    required: bool
    options: Tuple[SelectedOption, ...] = ()


@dataclass(frozen=True)
class CatalogProduct:
    id: int
    name: str
    price: Decimal
    category_id: int
    active: bool
    sort_order: int = 0
    description: Optional[str] = None
    photo_url: Optional[str] = None
    option_groups: Tuple[CatalogOptionGroup, ...] = ()


@dataclass(frozen=True)
class CategoryRecord:
    id: int
    name: str
    sort_order: int
    active: bool


@dataclass(frozen=True)
class CatalogOption:
    id: int
    option_group_id: int
    name: str
    additional_price: Decimal
    active: bool
    sort_order: int = 0


@dataclass(frozen=True)
class OptionGroupRecord:
    """Grupo como o painel enxerga, com opcionais inativos inclusive."""

    id: int
    name: str
    selection_type: str
    required: bool
    sort_order: int = 0
    options: Tuple[CatalogOption, ...] = ()


@dataclass(frozen=True)
class CartItem:
    id: str
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    options: Tuple[SelectedOption, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderLineInput:
    product_id: int
    quantity: int
    option_ids: Tuple[int, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderInput:
    order_type: Optional[str]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    items: Tuple[OrderLineInput, ...]
    table_number: Optional[int] = None
    coupon_code: Optional[str] = None


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    options: Tuple[SelectedOption, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderItemRecord:
    id: int
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    options: Tuple[SelectedOption, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderRecord:
    id: str
    order_type: str
    customer_name: Optional[str]
    customer_phone: Optional[str]
    table_number: Optional[int]
    status: str
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: Optional[str]
    created_at: datetime
    updated_at: datetime
    items: Tuple[OrderItemRecord, ...] = ()


@dataclass(frozen=True)
class CouponRecord:
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    active: bool = True
    min_order_value: Optional[Decimal] = None
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses_count: int = 0


@dataclass(frozen=True)
class AppliedDiscount:
    code: Optional[str]
    discount: Decimal


@dataclass(frozen=True)
class CouponError:
    kind: str  # not_found | ineligible
    reason: str


@dataclass(frozen=True)
class CallerIdentity:
    user_id: int
    email: str
    role: str


@dataclass(frozen=True)
class MetricsSummary:
    period: str
    total_orders: int
    total_revenue: Decimal
    average_orders_per_day: Decimal


@dataclass(frozen=True)
class TopProduct:
    position: int
    product_id: int
    product_name: str
    quantity: int
    revenue: Decimal


@dataclass(frozen=True)
class CustomerSummary:
    name: Optional[str]
    phone: str
    total_orders: int
    total_spent: Decimal
    last_order_at: datetime
    last_order_status: str
