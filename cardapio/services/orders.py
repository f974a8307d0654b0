from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from cardapio.core.errors import ValidationError
from cardapio.core.request_context import set_request_context
from cardapio.domain.entities import (
    ORDER_STATUS_RECEIVED,
    ORDER_TYPE_DINE_IN,
    CouponError,
    OrderInput,
    OrderRecord,
)
from cardapio.models.coupon import Coupon
from cardapio.models.order import Order
from cardapio.models.order_item import OrderItem
from cardapio.models.order_item_option import OrderItemOption
from cardapio.services.catalog import load_catalog
from cardapio.services.coupons import apply_coupon, find_coupon_by_code, normalize_code
from cardapio.services.order_validation import price_order, validate_order
from cardapio.services.phone import normalize_phone
from cardapio.services.pricing import compute_order_total, compute_subtotal, round_currency
from cardapio.services.store import as_utc, order_to_record, store_operation, utcnow

logger = logging.getLogger(__name__)


def _consume_coupon(db: Session, coupon_id: int) -> bool:
    result = db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            or_(Coupon.max_uses.is_(None), Coupon.uses_count < Coupon.max_uses),
        )
        .values(uses_count=Coupon.uses_count + 1)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


def submit_order(db: Session, order: OrderInput, *, now: datetime | None = None) -> OrderRecord:
    """Valida, reprecifica e grava o pedido com seus itens numa única transação."""
    now = as_utc(now) or utcnow()

    catalog = load_catalog(db, [line.product_id for line in order.items or ()])
    coupon = find_coupon_by_code(db, order.coupon_code)

    errors = validate_order(order, catalog, coupon, now=now)
    if errors:
        logger.info("Order rejected: fields=%s", sorted(errors))
        raise ValidationError(errors)

    lines = price_order(order, catalog)
    subtotal = compute_subtotal(line.total_price for line in lines)
    applied = apply_coupon(order.coupon_code, subtotal, coupon, now=now)
    if isinstance(applied, CouponError):
        raise ValidationError({"coupon_code": applied.reason})
    discount = applied.discount
    total = compute_order_total(subtotal, discount)

    row = Order(
        order_type=order.order_type,
        customer_name=(order.customer_name or "").strip(),
        customer_phone=normalize_phone(order.customer_phone),
        table_number=order.table_number if order.order_type == ORDER_TYPE_DINE_IN else None,
        status=ORDER_STATUS_RECEIVED,
        subtotal=round_currency(subtotal),
        discount=round_currency(discount),
        total=round_currency(total),
        coupon_code=applied.code,
        created_at=now,
        updated_at=now,
    )
    for line in lines:
        item = OrderItem(
            product_id=line.product_id,
            product_name=line.product_name,
            product_price=round_currency(line.unit_price),
            quantity=line.quantity,
            notes=line.notes,
            total_price=round_currency(line.total_price),
        )
        for option in line.options:
            item.options.append(
                OrderItemOption(
                    option_group_id=option.group_id,
                    option_group_name=option.group_name or "",
                    option_id=option.id,
                    option_name=option.name,
                    additional_price=round_currency(option.additional_price),
                )
            )
        row.items.append(item)

    with store_operation("submit_order", customer_phone=row.customer_phone, coupon_code=row.coupon_code):
        try:
            db.add(row)
            if coupon is not None and row.coupon_code:
                if not _consume_coupon(db, coupon.id):
                    raise ValidationError({"coupon_code": "Cupom esgotado"})
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        record = order_to_record(row)

    set_request_context(order_id=record.id)
    logger.info(
        "Order created: order_id=%s type=%s total=%s coupon=%s",
        record.id,
        record.order_type,
        record.total,
        normalize_code(record.coupon_code) or None,
        extra={"order_id": record.id},
    )
    return record
