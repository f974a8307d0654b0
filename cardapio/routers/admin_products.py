from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.catalog import (
    OptionGroupAdminResponse,
    ProductOptionGroupsPayload,
    ProductPayload,
    ProductResponse,
)
from cardapio.services.catalog import create_product, list_products, update_product
from cardapio.services.option_groups import get_product_option_groups, set_product_option_groups

router = APIRouter(prefix="/api/admin/products", tags=["admin-products"])


@router.get("", response_model=list[ProductResponse])
def list_admin_products(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return [ProductResponse.model_validate(record) for record in list_products(db, caller=caller)]


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_admin_product(
    payload: ProductPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return ProductResponse.model_validate(create_product(db, payload.model_dump(), caller=caller))


@router.put("/{product_id}", response_model=ProductResponse)
def update_admin_product(
    product_id: int,
    payload: ProductPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    record = update_product(db, product_id, payload.model_dump(), caller=caller)
    return ProductResponse.model_validate(record)


@router.get("/{product_id}/option-groups", response_model=list[OptionGroupAdminResponse])
def read_admin_product_option_groups(
    product_id: int,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = get_product_option_groups(db, product_id, caller=caller)
    return [OptionGroupAdminResponse.model_validate(record) for record in records]


@router.put("/{product_id}/option-groups", response_model=list[OptionGroupAdminResponse])
def replace_admin_product_option_groups(
    product_id: int,
    payload: ProductOptionGroupsPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = set_product_option_groups(db, product_id, payload.option_group_ids, caller=caller)
    return [OptionGroupAdminResponse.model_validate(record) for record in records]
