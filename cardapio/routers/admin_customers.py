from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.metrics import CustomerResponse
from cardapio.schemas.orders import OrderResponse
from cardapio.services.order_metrics import list_customer_orders, search_customers

router = APIRouter(prefix="/api/admin/customers", tags=["admin-customers"])


@router.get("", response_model=list[CustomerResponse])
def list_admin_customers(
    search: Optional[str] = Query(default=None),
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    customers = search_customers(db, search, caller=caller)
    return [CustomerResponse.model_validate(customer) for customer in customers]


@router.get("/{phone}/orders", response_model=list[OrderResponse])
def list_admin_customer_orders(
    phone: str,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = list_customer_orders(db, phone, caller=caller)
    return [OrderResponse.model_validate(record) for record in records]
