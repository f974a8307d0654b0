"""Carrinho em memória (antes do envio do pedido).

Política de agrupamento: uma linha idêntica a outra já existente (mesmo
produto, mesmos adicionais com os mesmos preços em qualquer ordem e mesma
observação) soma a quantidade na linha existente em vez de criar outra.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import (
    QUANTITY_MAX,
    QUANTITY_MIN,
    AppliedDiscount,
    CartItem,
    CouponError,
    CouponRecord,
    SelectedOption,
)
from cardapio.services.coupons import apply_coupon
from cardapio.services.pricing import ZERO, compute_line_total, compute_order_total, compute_subtotal, to_decimal


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: Optional[str] = None
    coupon_error: Optional[CouponError] = None


def _normalize_notes(notes: str | None) -> Optional[str]:
    cleaned = (notes or "").strip()
    return cleaned or None


def _options_key(options: Iterable[SelectedOption]) -> tuple:
    return tuple(sorted((option.id, to_decimal(option.additional_price)) for option in options))


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not QUANTITY_MIN <= quantity <= QUANTITY_MAX:
        raise ValidationError({"quantity": f"Quantidade deve estar entre {QUANTITY_MIN} e {QUANTITY_MAX}"})
    return quantity


def _line_key(product_id: int, options: Iterable[SelectedOption], notes: str | None) -> tuple:
    return (product_id, _options_key(options), notes)


class Cart:
    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._items: list[CartItem] = []
        self._coupon: Optional[CouponRecord] = None
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    @property
    def coupon(self) -> Optional[CouponRecord]:
        return self._coupon

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def subtotal(self) -> Decimal:
        return compute_subtotal(item.total_price for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        raise NotFoundError("Item não encontrado no carrinho")

    def _find_identical(self, key: tuple, *, skip: int | None = None) -> int | None:
        for index, existing in enumerate(self._items):
            if index == skip:
                continue
            if _line_key(existing.product_id, existing.options, existing.notes) == key:
                return index
        return None

    def _with_quantity(self, item: CartItem, quantity: int) -> CartItem:
        quantity = _validate_quantity(quantity)
        return replace(
            item,
            quantity=quantity,
            total_price=compute_line_total(item.unit_price, item.options, quantity),
        )

    def add_item(
        self,
        *,
        product_id: int,
        product_name: str,
        unit_price: Any,
        quantity: int = 1,
        options: Iterable[SelectedOption] = (),
        notes: str | None = None,
    ) -> CartItem:
        quantity = _validate_quantity(quantity)
        options = tuple(options)
        notes = _normalize_notes(notes)
        price = to_decimal(unit_price)

        index = self._find_identical(_line_key(product_id, options, notes))
        if index is not None:
            existing = self._items[index]
            merged = self._with_quantity(existing, existing.quantity + quantity)
            self._items[index] = merged
            return merged

        item = CartItem(
            id=self._id_factory(),
            product_id=product_id,
            product_name=product_name,
            unit_price=price,
            quantity=quantity,
            total_price=compute_line_total(price, options, quantity),
            options=options,
            notes=notes,
        )
        self._items.append(item)
        return item

    def update_item(
        self,
        item_id: str,
        *,
        quantity: int | None = None,
        options: Iterable[SelectedOption] | None = None,
        notes: str | None = None,
    ) -> CartItem:
        index = self._index_of(item_id)
        current = self._items[index]

        new_quantity = _validate_quantity(quantity) if quantity is not None else current.quantity
        new_options = tuple(options) if options is not None else current.options
        new_notes = _normalize_notes(notes) if notes is not None else current.notes

        updated = replace(
            current,
            quantity=new_quantity,
            options=new_options,
            notes=new_notes,
            total_price=compute_line_total(current.unit_price, new_options, new_quantity),
        )
        # a edição pode deixar a linha igual a outra: as duas viram uma só
        twin = self._find_identical(_line_key(updated.product_id, updated.options, updated.notes), skip=index)
        if twin is None:
            self._items[index] = updated
            return updated

        keep, drop = min(index, twin), max(index, twin)
        survivor = self._items[keep] if keep == twin else updated
        merged = self._with_quantity(survivor, self._items[twin].quantity + updated.quantity)
        self._items[keep] = merged
        del self._items[drop]
        return merged

    def remove_item(self, item_id: str) -> None:
        del self._items[self._index_of(item_id)]
        if not self._items:
            self._coupon = None

    def clear(self) -> None:
        self._items.clear()
        self._coupon = None

    def apply_coupon(
        self,
        code: str | None,
        coupon: CouponRecord | None,
        *,
        now: datetime | None = None,
    ) -> AppliedDiscount | CouponError:
        result = apply_coupon(code, self.subtotal, coupon, now=now)
        if isinstance(result, AppliedDiscount) and result.code:
            self._coupon = coupon
        return result

    def remove_coupon(self) -> None:
        self._coupon = None

    def totals(self, *, now: datetime | None = None) -> CartTotals:
        subtotal = self.subtotal
        if self._coupon is None:
            return CartTotals(subtotal=subtotal, discount=ZERO, total=subtotal)

        # o desconto acompanha o subtotal atual do carrinho
        result = apply_coupon(self._coupon.code, subtotal, self._coupon, now=now)
        if isinstance(result, CouponError):
            return CartTotals(
                subtotal=subtotal,
                discount=ZERO,
                total=subtotal,
                coupon_code=self._coupon.code,
                coupon_error=result,
            )
        return CartTotals(
            subtotal=subtotal,
            discount=result.discount,
            total=compute_order_total(subtotal, result.discount),
            coupon_code=result.code,
        )
