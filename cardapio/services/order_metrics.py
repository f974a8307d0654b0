"""Relatórios derivados do histórico de pedidos (somente leitura)."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, Iterable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from cardapio.core.config import STORE_TIMEZONE
from cardapio.core.errors import ValidationError
from cardapio.domain.entities import CallerIdentity, CustomerSummary, MetricsSummary, OrderRecord, TopProduct
from cardapio.models.order import Order
from cardapio.models.order_item import OrderItem
from cardapio.models.product import Product
from cardapio.services.authorization import ensure_admin
from cardapio.services.phone import is_valid_phone, normalize_phone
from cardapio.services.pricing import ZERO, to_decimal
from cardapio.services.store import as_utc, order_to_record, store_operation, utcnow

logger = logging.getLogger(__name__)

PERIOD_TODAY = "today"
PERIOD_LAST_7_DAYS = "last7days"
PERIOD_DAYS = {PERIOD_TODAY: 1, PERIOD_LAST_7_DAYS: 7}

TOP_PRODUCTS_DEFAULT_LIMIT = 10
TOP_PRODUCTS_MAX_LIMIT = 50
CUSTOMER_SEARCH_LIMIT = 50
CUSTOMER_SCAN_LIMIT = 500

_PHONE_LIKE = re.compile(r"[\d\s()+-]+")


def period_window(period: str, now: datetime | None = None, tz: str = STORE_TIMEZONE) -> tuple[datetime, datetime]:
    """Início (meia-noite local) e fim (agora) do período, em UTC."""
    days = PERIOD_DAYS.get(period)
    if days is None:
        raise ValidationError({"period": "Período inválido. Use today ou last7days"})
    zone = ZoneInfo(tz)
    now = as_utc(now) or utcnow()
    local_today = now.astimezone(zone).date()
    start_date = local_today - timedelta(days=days - 1)
    start = datetime.combine(start_date, time.min, tzinfo=zone)
    return as_utc(start), now


def summarize_period(period: str, totals: Iterable[Any]) -> MetricsSummary:
    values = [to_decimal(total) for total in totals]
    days = PERIOD_DAYS[period]
    return MetricsSummary(
        period=period,
        total_orders=len(values),
        total_revenue=sum(values, ZERO),
        average_orders_per_day=Decimal(len(values)) / Decimal(days),
    )


def clamp_top_limit(limit: int | None) -> int:
    if limit is None:
        return TOP_PRODUCTS_DEFAULT_LIMIT
    return max(1, min(int(limit), TOP_PRODUCTS_MAX_LIMIT))


def rank_top_products(rows: Iterable[Sequence[Any]], limit: int | None = None) -> list[TopProduct]:
    """Ordena por quantidade desc, receita desc e id asc; ``rows`` = (id, nome, qtd, receita)."""
    merged: dict[int, list[Any]] = {}
    for product_id, product_name, quantity, revenue in rows:
        entry = merged.setdefault(int(product_id), [product_name, 0, ZERO])
        entry[1] += int(quantity or 0)
        entry[2] += to_decimal(revenue)

    ordered = sorted(merged.items(), key=lambda item: (-item[1][1], -item[1][2], item[0]))
    return [
        TopProduct(
            position=position,
            product_id=product_id,
            product_name=name,
            quantity=quantity,
            revenue=revenue,
        )
        for position, (product_id, (name, quantity, revenue)) in enumerate(
            ordered[: clamp_top_limit(limit)], start=1
        )
    ]


def aggregate_customers(orders: Iterable[OrderRecord], limit: int = CUSTOMER_SEARCH_LIMIT) -> list[CustomerSummary]:
    grouped: dict[str, dict[str, Any]] = {}
    for order in orders:
        phone = normalize_phone(order.customer_phone)
        if not phone:
            continue
        entry = grouped.get(phone)
        if entry is None:
            grouped[phone] = {
                "name": order.customer_name,
                "total_orders": 1,
                "total_spent": to_decimal(order.total),
                "last_order_at": order.created_at,
                "last_order_status": order.status,
            }
            continue
        entry["total_orders"] += 1
        entry["total_spent"] += to_decimal(order.total)
        if order.created_at > entry["last_order_at"]:
            entry["name"] = order.customer_name or entry["name"]
            entry["last_order_at"] = order.created_at
            entry["last_order_status"] = order.status

    customers = [
        CustomerSummary(phone=phone, **values)
        for phone, values in grouped.items()
    ]
    customers.sort(key=lambda customer: (customer.name or "").lower())
    customers.sort(key=lambda customer: customer.last_order_at, reverse=True)
    return customers[:limit]


def get_metrics(
    db: Session,
    period: str,
    *,
    caller: CallerIdentity | None,
    now: datetime | None = None,
) -> MetricsSummary:
    ensure_admin(caller, action="get_metrics")
    start, end = period_window(period, now)
    with store_operation("get_metrics", period=period):
        rows = (
            db.query(Order.total)
            .filter(Order.created_at >= start, Order.created_at <= end)
            .all()
        )
    return summarize_period(period, [row.total for row in rows])


def get_top_products(
    db: Session,
    period: str,
    limit: int | None = None,
    *,
    caller: CallerIdentity | None,
    now: datetime | None = None,
) -> list[TopProduct]:
    ensure_admin(caller, action="get_top_products")
    start, end = period_window(period, now)
    with store_operation("get_top_products", period=period, limit=limit):
        rows = (
            db.query(
                OrderItem.product_id,
                OrderItem.product_name,
                func.sum(OrderItem.quantity).label("quantity"),
                func.sum(OrderItem.total_price).label("revenue"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .filter(
                Order.created_at >= start,
                Order.created_at <= end,
                Product.active.is_(True),
            )
            .group_by(OrderItem.product_id, OrderItem.product_name)
            # nome gravado no pedido mais recente vence
            .order_by(func.max(Order.created_at).desc())
            .all()
        )
    return rank_top_products(rows, limit)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _search_filter(term: str):
    digits = normalize_phone(term)
    phone_filter = Order.customer_phone.like(f"%{digits}%")
    name_filter = Order.customer_name.ilike(f"%{_escape_like(term)}%", escape="\\")
    if digits and _PHONE_LIKE.fullmatch(term):
        return phone_filter
    if digits:
        return or_(name_filter, phone_filter)
    return name_filter


def search_customers(
    db: Session,
    term: str | None = None,
    *,
    caller: CallerIdentity | None,
) -> list[CustomerSummary]:
    ensure_admin(caller, action="search_customers")
    if term and not term.strip():
        raise ValidationError({"search": "Termo de busca não pode conter apenas espaços"})
    clean_term = (term or "").strip()

    with store_operation("search_customers", term=clean_term):
        query = db.query(Order).filter(Order.customer_phone.isnot(None))
        if clean_term:
            query = query.filter(_search_filter(clean_term))
        rows = query.order_by(Order.created_at.desc()).limit(CUSTOMER_SCAN_LIMIT).all()
        orders = [order_to_record(row, include_items=False) for row in rows]

    customers = aggregate_customers(orders)
    logger.info(
        "Customer search: term=%s results=%s user_id=%s",
        clean_term,
        len(customers),
        caller.user_id,
    )
    return customers


def list_customer_orders(
    db: Session,
    phone: str,
    *,
    caller: CallerIdentity | None,
) -> list[OrderRecord]:
    ensure_admin(caller, action="list_customer_orders")
    if not is_valid_phone(phone):
        raise ValidationError({"phone": "Telefone deve ter 10 ou 11 dígitos"})
    digits = normalize_phone(phone)

    with store_operation("list_customer_orders", customer_phone=digits):
        rows = (
            db.query(Order)
            .filter(Order.customer_phone == digits)
            .order_by(Order.created_at.desc())
            .limit(CUSTOMER_SCAN_LIMIT)
            .all()
        )
        return [order_to_record(row) for row in rows]
