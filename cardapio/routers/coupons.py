from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.domain.entities import CouponError
from cardapio.schemas.coupons import ValidateCouponPayload, ValidateCouponResponse
from cardapio.services.coupons import normalize_code, resolve_coupon
from cardapio.services.pricing import compute_order_total

router = APIRouter(prefix="/api/coupons", tags=["coupons"])


@router.post("/validate", response_model=ValidateCouponResponse)
def validate_coupon(payload: ValidateCouponPayload, db: Session = Depends(get_db)):
    subtotal = payload.subtotal
    if not normalize_code(payload.code):
        return ValidateCouponResponse(valid=False, discount=0.0, new_total=float(subtotal), message="Cupom inválido")

    result = resolve_coupon(db, payload.code, subtotal)
    if isinstance(result, CouponError):
        return ValidateCouponResponse(valid=False, discount=0.0, new_total=float(subtotal), message=result.reason)

    return ValidateCouponResponse(
        valid=True,
        code=result.code,
        discount=float(result.discount),
        new_total=float(compute_order_total(subtotal, result.discount)),
        message="Cupom válido",
    )
