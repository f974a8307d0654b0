from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.schemas.orders import OrderPayload, OrderResponse, TrackingResponse
from cardapio.services.order_lifecycle import TRACKING_NOT_FOUND, get_order, track_orders
from cardapio.services.orders import submit_order

router = APIRouter(prefix="/api/orders", tags=["orders"])
logger = logging.getLogger(__name__)

TRACKING_NOT_FOUND_MESSAGE = "Nenhum pedido ativo encontrado para este telefone"


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderPayload, db: Session = Depends(get_db)):
    record = submit_order(db, payload.to_input())
    return OrderResponse.model_validate(record)


@router.get("/tracking", response_model=TrackingResponse)
def track_customer_orders(
    phone: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    result = track_orders(db, phone)
    return TrackingResponse(
        result=result.result,
        orders=[OrderResponse.model_validate(order) for order in result.orders],
        redirect_to=result.redirect_to,
        message=TRACKING_NOT_FOUND_MESSAGE if result.result == TRACKING_NOT_FOUND else None,
    )


@router.get("/{order_id}", response_model=OrderResponse)
def read_order(order_id: str, db: Session = Depends(get_db)):
    return OrderResponse.model_validate(get_order(db, order_id))
