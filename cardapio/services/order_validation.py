"""Validação de pedidos antes da gravação.

Todas as regras são verificadas de forma independente e todos os erros são
devolvidos juntos, no formato ``{campo: mensagem}``. Nenhuma função aqui faz
I/O: o catálogo e o cupom chegam já carregados.

Pedidos de retirada ignoram o número da mesa (é gravado como ``None``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional

from cardapio.core.errors import ValidationError
from cardapio.domain.entities import (
    ORDER_TYPE_DINE_IN,
    ORDER_TYPES,
    QUANTITY_MAX,
    QUANTITY_MIN,
    SELECTION_SINGLE,
    CatalogProduct,
    CouponError,
    CouponRecord,
    OrderInput,
    OrderLineInput,
    PricedLine,
    SelectedOption,
)
from cardapio.services.coupons import apply_coupon, normalize_code
from cardapio.services.phone import is_valid_phone
from cardapio.services.pricing import MONEY_MAX, compute_line_total, compute_subtotal

CUSTOMER_NAME_MIN_LENGTH = 3
CUSTOMER_NAME_MAX_LENGTH = 100
TABLE_NUMBER_MIN = 1
TABLE_NUMBER_MAX = 999
NOTES_MAX_LENGTH = 500
QUANTITY_ERROR = f"Quantidade deve estar entre {QUANTITY_MIN} e {QUANTITY_MAX}"
ORDER_TOTAL_ERROR = "Valor do pedido excede o limite permitido"


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _price_line(line: OrderLineInput, product: Optional[CatalogProduct]) -> tuple[Optional[PricedLine], Optional[str]]:
    if not (_is_positive_int(line.quantity) and line.quantity <= QUANTITY_MAX):
        return None, QUANTITY_ERROR
    if product is None or not product.active:
        return None, "Produto indisponível"
    if line.notes and len(line.notes.strip()) > NOTES_MAX_LENGTH:
        return None, "Observação deve ter no máximo 500 caracteres"

    available: dict[int, SelectedOption] = {}
    for group in product.option_groups:
        for option in group.options:
            available[option.id] = option

    if len(set(line.option_ids)) != len(line.option_ids):
        return None, "Opcional repetido"

    selected: list[SelectedOption] = []
    for option_id in line.option_ids:
        option = available.get(option_id)
        if option is None:
            return None, "Opcional inválido para este produto"
        selected.append(option)

    for group in product.option_groups:
        chosen = [option for option in selected if option.group_id == group.id]
        if group.required and not chosen:
            return None, f"Selecione uma opção em {group.name}"
        if group.selection_type == SELECTION_SINGLE and len(chosen) > 1:
            return None, f"Selecione apenas uma opção em {group.name}"

    options = tuple(selected)
    return (
        PricedLine(
            product_id=product.id,
            product_name=product.name,
            unit_price=product.price,
            quantity=line.quantity,
            total_price=compute_line_total(product.price, options, line.quantity),
            options=options,
            notes=(line.notes or "").strip() or None,
        ),
        None,
    )


def _price_lines(
    order: OrderInput,
    catalog: Mapping[int, CatalogProduct],
) -> tuple[list[PricedLine], dict[str, str]]:
    lines: list[PricedLine] = []
    errors: dict[str, str] = {}
    for index, line in enumerate(order.items or ()):
        priced, error = _price_line(line, catalog.get(line.product_id))
        if error:
            errors[f"items.{index}"] = error
        else:
            lines.append(priced)
    return lines, errors


def price_order(order: OrderInput, catalog: Mapping[int, CatalogProduct]) -> list[PricedLine]:
    """Reprecifica as linhas com os preços atuais do catálogo."""
    lines, errors = _price_lines(order, catalog)
    if errors:
        raise ValidationError(errors)
    return lines


def validate_order(
    order: OrderInput,
    catalog: Mapping[int, CatalogProduct],
    coupon: CouponRecord | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, str]:
    errors: dict[str, str] = {}

    name = (order.customer_name or "").strip()
    if not name:
        errors["customer_name"] = "Nome é obrigatório"
    elif not CUSTOMER_NAME_MIN_LENGTH <= len(name) <= CUSTOMER_NAME_MAX_LENGTH:
        errors["customer_name"] = "Nome deve ter entre 3 e 100 caracteres"

    if not (order.customer_phone or "").strip():
        errors["customer_phone"] = "Telefone é obrigatório"
    elif not is_valid_phone(order.customer_phone):
        errors["customer_phone"] = "Telefone deve ter 10 ou 11 dígitos"

    if not order.order_type:
        errors["order_type"] = "Tipo de pedido é obrigatório"
    elif order.order_type not in ORDER_TYPES:
        errors["order_type"] = "Tipo de pedido inválido"
    elif order.order_type == ORDER_TYPE_DINE_IN:
        table_number = order.table_number
        if table_number is None:
            errors["table_number"] = "Número da mesa é obrigatório"
        elif not (
            _is_positive_int(table_number) and TABLE_NUMBER_MIN <= table_number <= TABLE_NUMBER_MAX
        ):
            errors["table_number"] = "Número da mesa deve estar entre 1 e 999"

    lines: list[PricedLine] = []
    if not order.items:
        errors["items"] = "Carrinho vazio"
    else:
        lines, line_errors = _price_lines(order, catalog)
        errors.update(line_errors)
        if not line_errors and compute_subtotal(line.total_price for line in lines) > MONEY_MAX:
            errors["items"] = ORDER_TOTAL_ERROR

    if normalize_code(order.coupon_code):
        subtotal = compute_subtotal(line.total_price for line in lines)
        result = apply_coupon(order.coupon_code, subtotal, coupon, now=now)
        if isinstance(result, CouponError):
            errors["coupon_code"] = result.reason

    return errors
