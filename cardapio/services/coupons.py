from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import (
    DISCOUNT_FIXED,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_TYPES,
    AppliedDiscount,
    CallerIdentity,
    CouponError,
    CouponRecord,
)
from cardapio.models.coupon import Coupon
from cardapio.services.authorization import ensure_admin
from cardapio.services.pricing import ZERO, is_money_in_range, round_currency, to_decimal
from cardapio.services.store import as_utc, coupon_to_record, store_operation, utcnow

logger = logging.getLogger(__name__)

COUPON_NOT_FOUND = "not_found"
COUPON_INELIGIBLE = "ineligible"

CODE_MIN_LENGTH = 3
CODE_MAX_LENGTH = 20


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def apply_coupon(
    code: str | None,
    subtotal: Any,
    coupon: CouponRecord | None,
    *,
    now: datetime | None = None,
) -> AppliedDiscount | CouponError:
    """Calcula o desconto de ``code`` sobre ``subtotal``.

    ``coupon`` é o registro encontrado para o código (ou ``None``). Não altera
    nada: o consumo de usos acontece só na gravação do pedido.
    """
    normalized = normalize_code(code)
    if not normalized:
        return AppliedDiscount(code=None, discount=ZERO)

    if coupon is None or normalize_code(coupon.code) != normalized:
        return CouponError(kind=COUPON_NOT_FOUND, reason="Cupom não encontrado")
    if not coupon.active:
        return CouponError(kind=COUPON_INELIGIBLE, reason="Cupom inativo")

    now = as_utc(now) or utcnow()
    starts_at = as_utc(coupon.starts_at)
    if starts_at is not None and starts_at > now:
        return CouponError(kind=COUPON_INELIGIBLE, reason="Cupom ainda não está válido")
    expires_at = as_utc(coupon.expires_at)
    if expires_at is not None and expires_at < now:
        return CouponError(kind=COUPON_INELIGIBLE, reason="Cupom expirado")

    if coupon.max_uses is not None and coupon.uses_count >= coupon.max_uses:
        return CouponError(kind=COUPON_INELIGIBLE, reason="Cupom esgotado")

    amount = to_decimal(subtotal)
    if coupon.min_order_value is not None and amount < to_decimal(coupon.min_order_value):
        return CouponError(kind=COUPON_INELIGIBLE, reason="Valor mínimo do pedido não atingido")

    discount_type = (coupon.discount_type or "").strip().lower()
    if discount_type == DISCOUNT_PERCENTAGE:
        discount = round_currency(amount * to_decimal(coupon.discount_value) / Decimal("100"))
    elif discount_type == DISCOUNT_FIXED:
        discount = to_decimal(coupon.discount_value)
    else:
        return CouponError(kind=COUPON_INELIGIBLE, reason="Tipo de cupom inválido")

    if discount > amount:
        discount = amount
    if discount < 0:
        discount = ZERO

    return AppliedDiscount(code=normalize_code(coupon.code), discount=discount)


def validate_coupon_input(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}

    code = normalize_code(data.get("code"))
    if not code:
        errors["code"] = "Código é obrigatório"
    elif not CODE_MIN_LENGTH <= len(code) <= CODE_MAX_LENGTH:
        errors["code"] = "Código deve ter entre 3 e 20 caracteres"

    discount_type = (data.get("discount_type") or "").strip().lower()
    if discount_type not in DISCOUNT_TYPES:
        errors["discount_type"] = "Tipo de desconto inválido"

    if not is_money_in_range(data.get("discount_value")):
        errors["discount_value"] = "Valor de desconto inválido"
    else:
        value = to_decimal(data.get("discount_value"))
        if discount_type == DISCOUNT_PERCENTAGE and not Decimal("1") <= value <= Decimal("100"):
            errors["discount_value"] = "Desconto percentual deve estar entre 1% e 100%"
        elif discount_type == DISCOUNT_FIXED and value <= 0:
            errors["discount_value"] = "Desconto fixo deve ser maior que zero"

    min_order_value = data.get("min_order_value")
    if min_order_value is not None and not is_money_in_range(min_order_value):
        errors["min_order_value"] = "Valor mínimo deve estar entre 0 e 99999999.99"

    max_uses = data.get("max_uses")
    if max_uses is not None and int(max_uses) < 1:
        errors["max_uses"] = "Limite de usos deve ser maior que zero"

    starts_at = as_utc(data.get("starts_at"))
    expires_at = as_utc(data.get("expires_at"))
    if starts_at is not None and expires_at is not None and expires_at <= starts_at:
        errors["expires_at"] = "Data de expiração deve ser posterior ao início"

    return errors


def find_coupon_by_code(db: Session, code: str | None) -> Optional[CouponRecord]:
    normalized = normalize_code(code)
    if not normalized:
        return None
    with store_operation("find_coupon_by_code", code=normalized):
        row = db.query(Coupon).filter(func.upper(Coupon.code) == normalized).first()
    if row is None:
        return None
    return coupon_to_record(row)


def resolve_coupon(
    db: Session,
    code: str | None,
    subtotal: Any,
    *,
    now: datetime | None = None,
) -> AppliedDiscount | CouponError:
    return apply_coupon(code, subtotal, find_coupon_by_code(db, code), now=now)


def list_coupons(db: Session, *, caller: CallerIdentity | None) -> list[CouponRecord]:
    ensure_admin(caller, action="list_coupons")
    with store_operation("list_coupons"):
        rows = db.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
    return [coupon_to_record(row) for row in rows]


def _apply_fields(row: Coupon, data: Mapping[str, Any]) -> None:
    row.code = normalize_code(data.get("code"))
    row.discount_type = (data.get("discount_type") or "").strip().lower()
    row.discount_value = round_currency(data.get("discount_value"))
    row.active = bool(data.get("active", True))
    min_order_value = data.get("min_order_value")
    row.min_order_value = round_currency(min_order_value) if min_order_value is not None else None
    row.starts_at = as_utc(data.get("starts_at"))
    row.expires_at = as_utc(data.get("expires_at"))
    max_uses = data.get("max_uses")
    row.max_uses = int(max_uses) if max_uses is not None else None


def _code_taken(db: Session, code: str, *, exclude_id: int | None = None) -> bool:
    query = db.query(Coupon.id).filter(func.upper(Coupon.code) == code)
    if exclude_id is not None:
        query = query.filter(Coupon.id != exclude_id)
    return query.first() is not None


def _save(db: Session, row: Coupon, operation: str) -> CouponRecord:
    with store_operation(operation, coupon_id=row.id, code=row.code):
        try:
            db.add(row)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError({"code": "Código de cupom já existe"})
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
    return coupon_to_record(row)


def create_coupon(db: Session, data: Mapping[str, Any], *, caller: CallerIdentity | None) -> CouponRecord:
    ensure_admin(caller, action="create_coupon")
    errors = validate_coupon_input(data)
    if errors:
        raise ValidationError(errors)

    code = normalize_code(data.get("code"))
    with store_operation("create_coupon", code=code):
        taken = _code_taken(db, code)
    if taken:
        raise ValidationError({"code": "Código de cupom já existe"})

    row = Coupon(uses_count=0)
    _apply_fields(row, data)
    record = _save(db, row, "create_coupon")
    logger.info("Coupon created: id=%s code=%s user_id=%s", record.id, record.code, caller.user_id)
    return record


def update_coupon(
    db: Session,
    coupon_id: int,
    data: Mapping[str, Any],
    *,
    caller: CallerIdentity | None,
) -> CouponRecord:
    ensure_admin(caller, action="update_coupon")
    errors = validate_coupon_input(data)
    if errors:
        raise ValidationError(errors)

    code = normalize_code(data.get("code"))
    with store_operation("update_coupon", coupon_id=coupon_id):
        row = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if row is None:
            raise NotFoundError("Cupom não encontrado")
        taken = _code_taken(db, code, exclude_id=coupon_id)
    if taken:
        raise ValidationError({"code": "Código de cupom já existe"})

    _apply_fields(row, data)
    record = _save(db, row, "update_coupon")
    logger.info("Coupon updated: id=%s code=%s user_id=%s", record.id, record.code, caller.user_id)
    return record


def delete_coupon(db: Session, coupon_id: int, *, caller: CallerIdentity | None) -> None:
    ensure_admin(caller, action="delete_coupon")
    with store_operation("delete_coupon", coupon_id=coupon_id):
        row = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if row is None:
            raise NotFoundError("Cupom não encontrado")
        try:
            db.delete(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info("Coupon deleted: id=%s user_id=%s", coupon_id, caller.user_id)
