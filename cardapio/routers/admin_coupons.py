from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.schemas.coupons import CouponPayload, CouponResponse
from cardapio.services.coupons import create_coupon, delete_coupon, list_coupons, update_coupon

router = APIRouter(prefix="/api/admin/coupons", tags=["admin-coupons"])


@router.get("", response_model=list[CouponResponse])
def list_admin_coupons(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return [CouponResponse.model_validate(record) for record in list_coupons(db, caller=caller)]


@router.post("", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
def create_admin_coupon(
    payload: CouponPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return CouponResponse.model_validate(create_coupon(db, payload.model_dump(), caller=caller))


@router.put("/{coupon_id}", response_model=CouponResponse)
def update_admin_coupon(
    coupon_id: int,
    payload: CouponPayload,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    record = update_coupon(db, coupon_id, payload.model_dump(), caller=caller)
    return CouponResponse.model_validate(record)


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_admin_coupon(
    coupon_id: int,
    caller: Optional[CallerIdentity] = Depends(get_caller),
    db: Session = Depends(get_db),
):
    delete_coupon(db, coupon_id, caller=caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
