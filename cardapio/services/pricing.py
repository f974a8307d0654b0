from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

CENT = Decimal("0.01")
ZERO = Decimal("0")
# maior valor que cabe em Numeric(10, 2)
MONEY_MAX = Decimal("99999999.99")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


def is_money_in_range(value: Any) -> bool:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        return False
    return amount.is_finite() and ZERO <= amount <= MONEY_MAX


def round_currency(value: Any) -> Decimal:
    """Arredonda para centavos. Usar só na exibição ou ao gravar no banco."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _additional_price(option: Any) -> Decimal:
    if isinstance(option, Mapping):
        return to_decimal(option.get("additional_price"))
    return to_decimal(getattr(option, "additional_price", None))


def compute_line_total(unit_price: Any, selected_options: Iterable[Any], quantity: int) -> Decimal:
    """(preço unitário + soma dos adicionais) * quantidade, sem arredondar."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValueError("quantity must be a positive integer")

    price = to_decimal(unit_price)
    if price < 0:
        raise ValueError("unit_price must be non-negative")

    extras = ZERO
    for option in selected_options:
        additional = _additional_price(option)
        if additional < 0:
            raise ValueError("additional_price must be non-negative")
        extras += additional

    return (price + extras) * quantity


def compute_subtotal(line_totals: Iterable[Any]) -> Decimal:
    return sum((to_decimal(total) for total in line_totals), ZERO)


def compute_order_total(subtotal: Any, discount: Any) -> Decimal:
    total = to_decimal(subtotal) - to_decimal(discount)
    if total < 0:
        return ZERO
    return total


def format_brl(value: Any) -> str:
    amount = round_currency(value)
    sign = "-" if amount < 0 else ""
    integer_part, cents = f"{abs(amount):.2f}".split(".")
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return f"{sign}R$ {'.'.join(groups)},{cents}"
