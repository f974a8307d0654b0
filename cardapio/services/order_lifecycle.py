"""Ciclo de vida do pedido: Recebido -> Em Preparo -> Pronto.

Só há avanço. O painel pode pular etapas (Recebido -> Pronto), mas nunca
voltar; repetir o status atual não altera nada.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from cardapio.core.config import TRACKING_READY_WINDOW_MINUTES
from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.core.request_context import set_request_context
from cardapio.domain.entities import (
    ACTIVE_ORDER_STATUSES,
    ORDER_STATUS_READY,
    ORDER_STATUSES,
    ORDER_TYPES,
    CallerIdentity,
    OrderRecord,
)
from cardapio.models.order import Order
from cardapio.models.order_item import OrderItem
from cardapio.services.authorization import ensure_admin
from cardapio.services.phone import is_valid_phone, normalize_phone
from cardapio.services.store import as_utc, order_to_record, store_operation, utcnow

logger = logging.getLogger(__name__)

TRACKING_SINGLE = "single"
TRACKING_MULTIPLE = "multiple"
TRACKING_NOT_FOUND = "not_found"

ORDER_LIST_DEFAULT_LIMIT = 50
ORDER_LIST_MAX_LIMIT = 100


@dataclass(frozen=True)
class TrackingResult:
    result: str
    orders: tuple[OrderRecord, ...]
    redirect_to: Optional[str] = None


def is_active_order(order: OrderRecord) -> bool:
    return order.status in ACTIVE_ORDER_STATUSES


def advance_status(order: OrderRecord, new_status: str, *, now: datetime | None = None) -> OrderRecord:
    if new_status not in ORDER_STATUSES:
        raise ValidationError({"status": "Status inválido"})
    if order.status not in ORDER_STATUSES:
        raise ValidationError({"status": f"Status atual desconhecido: {order.status}"})

    current_index = ORDER_STATUSES.index(order.status)
    new_index = ORDER_STATUSES.index(new_status)
    if new_index == current_index:
        return order
    if new_index < current_index:
        raise ValidationError({"status": f"Não é possível voltar de {order.status} para {new_status}"})

    return replace(order, status=new_status, updated_at=as_utc(now) or utcnow())


def classify_tracking(orders: Sequence[OrderRecord]) -> TrackingResult:
    if not orders:
        return TrackingResult(result=TRACKING_NOT_FOUND, orders=())
    if len(orders) == 1:
        return TrackingResult(
            result=TRACKING_SINGLE,
            orders=tuple(orders),
            redirect_to=f"/tracking/{orders[0].id}",
        )
    return TrackingResult(result=TRACKING_MULTIPLE, orders=tuple(orders))


def select_tracked_order(result: TrackingResult, order_id: str) -> OrderRecord:
    for order in result.orders:
        if order.id == order_id:
            return order
    raise NotFoundError("Pedido não encontrado")


def track_orders(db: Session, phone: str | None, *, now: datetime | None = None) -> TrackingResult:
    if not is_valid_phone(phone):
        raise ValidationError({"phone": "Telefone deve ter 10 ou 11 dígitos"})
    digits = normalize_phone(phone)
    now = as_utc(now) or utcnow()
    ready_since = now - timedelta(minutes=TRACKING_READY_WINDOW_MINUTES)

    with store_operation("track_orders", customer_phone=digits):
        rows = (
            db.query(Order)
            .filter(
                Order.customer_phone == digits,
                or_(
                    Order.status.in_(sorted(ACTIVE_ORDER_STATUSES)),
                    and_(Order.status == ORDER_STATUS_READY, Order.updated_at >= ready_since),
                ),
            )
            .order_by(Order.created_at.desc())
            .all()
        )
        orders = [order_to_record(row, include_items=False) for row in rows]
    return classify_tracking(orders)


def get_order(db: Session, order_id: str) -> OrderRecord:
    set_request_context(order_id=order_id)
    with store_operation("get_order", order_id=order_id):
        row = (
            db.query(Order)
            .options(selectinload(Order.items).selectinload(OrderItem.options))
            .filter(Order.id == order_id)
            .first()
        )
        if row is None:
            raise NotFoundError("Pedido não encontrado")
        return order_to_record(row)


def advance_order_status(
    db: Session,
    order_id: str,
    new_status: str,
    *,
    caller: CallerIdentity | None,
    now: datetime | None = None,
) -> OrderRecord:
    ensure_admin(caller, action="advance_order_status")
    set_request_context(order_id=order_id)
    with store_operation("advance_order_status", order_id=order_id, status=new_status):
        row = db.query(Order).filter(Order.id == order_id).first()
        if row is None:
            raise NotFoundError("Pedido não encontrado")

        current = order_to_record(row, include_items=False)
        updated = advance_status(current, new_status, now=now)
        if updated is not current:
            try:
                row.status = updated.status
                row.updated_at = updated.updated_at
                db.commit()
            except Exception:
                db.rollback()
                raise
            logger.info(
                "Order status changed: order_id=%s from=%s to=%s user_id=%s",
                order_id,
                current.status,
                updated.status,
                caller.user_id,
                extra={"order_id": order_id},
            )
    return get_order(db, order_id)


def list_orders(
    db: Session,
    *,
    caller: CallerIdentity | None,
    status: str | None = None,
    order_type: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    limit: int = ORDER_LIST_DEFAULT_LIMIT,
) -> list[OrderRecord]:
    ensure_admin(caller, action="list_orders")

    errors: dict[str, str] = {}
    if status is not None and status not in ORDER_STATUSES:
        errors["status"] = "Status inválido"
    if order_type is not None and order_type not in ORDER_TYPES:
        errors["order_type"] = "Tipo de pedido inválido"
    if errors:
        raise ValidationError(errors)
    limit = max(1, min(int(limit), ORDER_LIST_MAX_LIMIT))

    with store_operation("list_orders", status=status, order_type=order_type):
        query = db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.options))
        if status:
            query = query.filter(Order.status == status)
        if order_type:
            query = query.filter(Order.order_type == order_type)
        if created_from is not None:
            query = query.filter(Order.created_at >= as_utc(created_from))
        if created_to is not None:
            query = query.filter(Order.created_at <= as_utc(created_to))
        rows = query.order_by(Order.created_at.desc()).limit(limit).all()
        return [order_to_record(row) for row in rows]
