"""Fronteira com o banco: traduz falhas do SQLAlchemy e converte linhas em registros."""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Any, Callable, Iterator, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from cardapio.core.errors import CardapioError, PersistenceError, StoreTimeoutError
from cardapio.domain.entities import (
    CatalogOption,
    CatalogOptionGroup,
    CatalogProduct,
    CategoryRecord,
    CouponRecord,
    OptionGroupRecord,
    OrderItemRecord,
    OrderRecord,
    SelectedOption,
)
from cardapio.services.pricing import to_decimal

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TIMEOUT_MARKERS = (
    "statement timeout",
    "canceling statement",
    "lock timeout",
    "query_canceled",
    "database is locked",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite devolve datetimes sem fuso; gravamos sempre em UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_timeout_error(exc: BaseException) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, OperationalError):
        message = str(getattr(exc, "orig", exc)).lower()
        return any(marker in message for marker in _TIMEOUT_MARKERS)
    return False


@contextmanager
def store_operation(operation: str, **identifiers: Any) -> Iterator[None]:
    """Converte falhas do banco nos erros tipados de ``cardapio.core.errors``."""
    try:
        yield
    except CardapioError:
        raise
    except SQLAlchemyError as exc:
        occurred_at = utcnow().isoformat()
        if is_timeout_error(exc):
            logger.warning(
                "Store timeout: operation=%s ids=%s at=%s",
                operation,
                identifiers,
                occurred_at,
                extra={"operation": operation},
            )
            raise StoreTimeoutError() from exc
        logger.exception(
            "Store failure: operation=%s ids=%s at=%s",
            operation,
            identifiers,
            occurred_at,
            extra={"operation": operation},
        )
        raise PersistenceError(operation=operation) from exc


def _mapper(kind: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(row: Any, *args: Any, **kwargs: Any) -> T:
            try:
                return func(row, *args, **kwargs)
            except (AttributeError, TypeError, ValueError, InvalidOperation) as exc:
                logger.error(
                    "Row mapping failed: kind=%s id=%s error=%s",
                    kind,
                    getattr(row, "id", None),
                    exc,
                    extra={"operation": f"map_{kind}"},
                )
                raise PersistenceError(operation=f"map_{kind}") from exc

        return wrapper

    return decorator


def _required_str(value: Any) -> str:
    if value is None:
        raise ValueError("missing required text column")
    return str(value)


@_mapper("order_item")
def order_item_to_record(row: Any) -> OrderItemRecord:
    options = tuple(
        SelectedOption(
            id=int(option.option_id),
            name=_required_str(option.option_name),
            additional_price=to_decimal(option.additional_price),
            group_id=int(option.option_group_id),
            group_name=option.option_group_name,
        )
        for option in (row.options or [])
    )
    return OrderItemRecord(
        id=int(row.id),
        product_id=int(row.product_id),
        product_name=_required_str(row.product_name),
        unit_price=to_decimal(row.product_price),
        quantity=int(row.quantity),
        total_price=to_decimal(row.total_price),
        options=options,
        notes=row.notes,
    )


@_mapper("order")
def order_to_record(row: Any, *, include_items: bool = True) -> OrderRecord:
    created_at = as_utc(row.created_at)
    updated_at = as_utc(row.updated_at) or created_at
    if created_at is None:
        raise ValueError("order without created_at")
    items: tuple[OrderItemRecord, ...] = ()
    if include_items:
        items = tuple(order_item_to_record(item) for item in (row.items or []))
    return OrderRecord(
        id=_required_str(row.id),
        order_type=_required_str(row.order_type),
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        table_number=int(row.table_number) if row.table_number is not None else None,
        status=_required_str(row.status),
        subtotal=to_decimal(row.subtotal),
        discount=to_decimal(row.discount),
        total=to_decimal(row.total),
        coupon_code=row.coupon_code,
        created_at=created_at,
        updated_at=updated_at,
        items=items,
    )


@_mapper("coupon")
def coupon_to_record(row: Any) -> CouponRecord:
    return CouponRecord(
        id=int(row.id),
        code=_required_str(row.code),
        discount_type=_required_str(row.discount_type),
        discount_value=to_decimal(row.discount_value),
        active=bool(row.active),
        min_order_value=to_decimal(row.min_order_value) if row.min_order_value is not None else None,
        starts_at=as_utc(row.starts_at),
        expires_at=as_utc(row.expires_at),
        max_uses=int(row.max_uses) if row.max_uses is not None else None,
        uses_count=int(row.uses_count or 0),
    )


@_mapper("product")
def product_to_record(row: Any, option_groups: tuple[CatalogOptionGroup, ...] = ()) -> CatalogProduct:
    return CatalogProduct(
        id=int(row.id),
        name=_required_str(row.name),
        price=to_decimal(row.price),
        category_id=int(row.category_id),
        active=bool(row.active),
        sort_order=int(row.sort_order or 0),
        description=row.description,
        photo_url=row.photo_url,
        option_groups=option_groups,
    )


@_mapper("option_group")
def option_group_to_record(row: Any, options: list[Any]) -> CatalogOptionGroup:
    return CatalogOptionGroup(
        id=int(row.id),
        name=_required_str(row.name),
        selection_type=_required_str(row.selection_type),
        required=bool(row.required),
        options=tuple(
            SelectedOption(
                id=int(option.id),
                name=_required_str(option.name),
                additional_price=to_decimal(option.additional_price),
                group_id=int(row.id),
                group_name=row.name,
            )
            for option in options
        ),
    )


@_mapper("category")
def category_to_record(row: Any) -> CategoryRecord:
    return CategoryRecord(
        id=int(row.id),
        name=_required_str(row.name),
        sort_order=int(row.sort_order or 0),
        active=bool(row.active),
    )


@_mapper("option")
def option_to_record(row: Any) -> CatalogOption:
    return CatalogOption(
        id=int(row.id),
        option_group_id=int(row.option_group_id),
        name=_required_str(row.name),
        additional_price=to_decimal(row.additional_price),
        active=bool(row.active),
        sort_order=int(row.sort_order or 0),
    )


@_mapper("option_group_admin")
def option_group_to_admin_record(row: Any, options: list[Any]) -> OptionGroupRecord:
    return OptionGroupRecord(
        id=int(row.id),
        name=_required_str(row.name),
        selection_type=_required_str(row.selection_type),
        required=bool(row.required),
        sort_order=int(row.sort_order or 0),
        options=tuple(option_to_record(option) for option in options),
    )
