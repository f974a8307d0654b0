from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.catalog import (
    CatalogOptionResponse,
    OptionDeleteResponse,
    OptionGroupAdminResponse,
    OptionGroupDeleteResponse,
    OptionGroupPayload,
    OptionPayload,
)
from cardapio.services.option_groups import (
    create_option,
    create_option_group,
    delete_option,
    delete_option_group,
    list_option_groups,
    update_option,
    update_option_group,
)

router = APIRouter(prefix="/api/admin", tags=["admin-option-groups"])


@router.get("/option-groups", response_model=list[OptionGroupAdminResponse])
def list_admin_option_groups(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return [OptionGroupAdminResponse.model_validate(record) for record in list_option_groups(db, caller=caller)]


@router.post("/option-groups", response_model=OptionGroupAdminResponse, status_code=status.HTTP_201_CREATED)
def create_admin_option_group(
    payload: OptionGroupPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return OptionGroupAdminResponse.model_validate(create_option_group(db, payload.model_dump(), caller=caller))


@router.put("/option-groups/{group_id}", response_model=OptionGroupAdminResponse)
def update_admin_option_group(
    group_id: int,
    payload: OptionGroupPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    record = update_option_group(db, group_id, payload.model_dump(), caller=caller)
    return OptionGroupAdminResponse.model_validate(record)


@router.delete("/option-groups/{group_id}", response_model=OptionGroupDeleteResponse)
def delete_admin_option_group(
    group_id: int,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    deleted = delete_option_group(db, group_id, caller=caller)
    return OptionGroupDeleteResponse(id=group_id, deleted_options_count=deleted)


@router.post("/options", response_model=CatalogOptionResponse, status_code=status.HTTP_201_CREATED)
def create_admin_option(
    payload: OptionPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return CatalogOptionResponse.model_validate(create_option(db, payload.model_dump(), caller=caller))


@router.put("/options/{option_id}", response_model=CatalogOptionResponse)
def update_admin_option(
    option_id: int,
    payload: OptionPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return CatalogOptionResponse.model_validate(update_option(db, option_id, payload.model_dump(), caller=caller))


@router.delete("/options/{option_id}", response_model=OptionDeleteResponse)
def delete_admin_option(
    option_id: int,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    deactivated = delete_option(db, option_id, caller=caller)
    return OptionDeleteResponse(id=option_id, deactivated=deactivated)
