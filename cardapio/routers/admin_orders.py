from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.orders import OrderResponse, OrderStatusPayload
from cardapio.services.authorization import ensure_admin
from cardapio.services.order_lifecycle import (
    ORDER_LIST_DEFAULT_LIMIT,
    ORDER_LIST_MAX_LIMIT,
    advance_order_status,
    get_order,
    list_orders,
)

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


@router.get("", response_model=list[OrderResponse])
def list_admin_orders(
    status: Optional[str] = Query(default=None),
    order_type: Optional[str] = Query(default=None),
    created_from: Optional[datetime] = Query(default=None),
    created_to: Optional[datetime] = Query(default=None),
    limit: int = Query(default=ORDER_LIST_DEFAULT_LIMIT, ge=1, le=ORDER_LIST_MAX_LIMIT),
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = list_orders(
        db,
        caller=caller,
        status=status,
        order_type=order_type,
        created_from=created_from,
        created_to=created_to,
        limit=limit,
    )
    return [OrderResponse.model_validate(record) for record in records]


@router.get("/{order_id}", response_model=OrderResponse)
def read_admin_order(
    order_id: str,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    ensure_admin(caller, action="read_order")
    return OrderResponse.model_validate(get_order(db, order_id))


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_admin_order_status(
    order_id: str,
    payload: OrderStatusPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    record = advance_order_status(db, order_id, payload.status, caller=caller)
    return OrderResponse.model_validate(record)
