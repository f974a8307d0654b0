from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.catalog import (
    CategoryDeleteResponse,
    CategoryPayload,
    CategoryReorderPayload,
    CategoryResponse,
)
from cardapio.services.categories import (
    create_category,
    delete_category,
    list_categories,
    reorder_categories,
    update_category,
)

router = APIRouter(prefix="/api/admin/categories", tags=["admin-categories"])


@router.get("", response_model=list[CategoryResponse])
def list_admin_categories(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return [CategoryResponse.model_validate(record) for record in list_categories(db, caller=caller)]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_admin_category(
    payload: CategoryPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return CategoryResponse.model_validate(create_category(db, payload.model_dump(), caller=caller))


# antes de /{category_id} para "reorder" não ser lido como id
@router.put("/reorder", response_model=list[CategoryResponse])
def reorder_admin_categories(
    payload: CategoryReorderPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    records = reorder_categories(db, payload.ordered_ids, caller=caller)
    return [CategoryResponse.model_validate(record) for record in records]


@router.put("/{category_id}", response_model=CategoryResponse)
def update_admin_category(
    category_id: int,
    payload: CategoryPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    record = update_category(db, category_id, payload.model_dump(), caller=caller)
    return CategoryResponse.model_validate(record)


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
def delete_admin_category(
    category_id: int,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    deactivated = delete_category(db, category_id, caller=caller)
    return CategoryDeleteResponse(id=category_id, deactivated=deactivated)
