from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.core.metrics import request_metrics
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.metrics import MetricsResponse, TopProductResponse
from cardapio.services.authorization import ensure_admin
from cardapio.services.order_metrics import (
    PERIOD_TODAY,
    TOP_PRODUCTS_DEFAULT_LIMIT,
    TOP_PRODUCTS_MAX_LIMIT,
    get_metrics,
    get_top_products,
)

router = APIRouter(prefix="/api/admin/metrics", tags=["admin-metrics"])


@router.get("", response_model=MetricsResponse)
def read_metrics(
    period: str = Query(default=PERIOD_TODAY),
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return MetricsResponse.model_validate(get_metrics(db, period, caller=caller))


@router.get("/top-products", response_model=list[TopProductResponse])
def read_top_products(
    period: str = Query(default=PERIOD_TODAY),
    limit: int = Query(default=TOP_PRODUCTS_DEFAULT_LIMIT, ge=1, le=TOP_PRODUCTS_MAX_LIMIT),
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = get_top_products(db, period, limit, caller=caller)
    return [TopProductResponse.model_validate(record) for record in records]


@router.get("/requests")
def read_request_metrics(caller: Optional[CallerIdentity] = Depends(get_caller)):
    ensure_admin(caller, action="read_request_metrics")
    return {"endpoints": request_metrics.snapshot()}
