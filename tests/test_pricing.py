from decimal import Decimal
from itertools import permutations
from types import SimpleNamespace

import pytest

from cardapio.domain.entities import SelectedOption
from cardapio.services.phone import format_phone, is_valid_phone, normalize_phone
from cardapio.services.pricing import (
    compute_line_total,
    compute_order_total,
    compute_subtotal,
    format_brl,
    round_currency,
)


def _option(price: str, option_id: int = 1) -> SelectedOption:
    return SelectedOption(id=option_id, name=f"Opcional {option_id}", additional_price=Decimal(price))


@pytest.mark.parametrize(
    ("unit_price", "prices", "quantity", "expected"),
    [
        ("25.90", [], 1, "25.90"),
        ("25.90", ["3.00"], 1, "28.90"),
        ("25.90", ["3.00", "2.50", "1.50"], 1, "32.90"),
        ("25.90", ["3.00"], 2, "57.80"),
        ("0", ["3.00"], 1, "3.00"),
    ],
)
def test_compute_line_total_known_values(unit_price, prices, quantity, expected):
    options = [_option(price, index) for index, price in enumerate(prices, start=1)]

    total = compute_line_total(Decimal(unit_price), options, quantity)

    assert round_currency(total) == Decimal(expected)


def test_compute_line_total_ignores_option_order():
    options = [_option("3.00", 1), _option("2.50", 2), _option("1.50", 3), _option("0.10", 4)]

    totals = {compute_line_total(Decimal("25.90"), list(order), 3) for order in permutations(options)}

    assert totals == {Decimal("99.00")}


def test_compute_line_total_accepts_zero_price_options_and_mappings():
    options = [_option("0.00", 1), {"additional_price": "3.00"}, SimpleNamespace(additional_price=0)]

    assert compute_line_total("10", options, 1) == Decimal("13.00")


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
def test_compute_line_total_rejects_invalid_quantity(quantity):
    with pytest.raises(ValueError):
        compute_line_total(Decimal("10"), [], quantity)


def test_compute_line_total_rejects_negative_prices():
    with pytest.raises(ValueError):
        compute_line_total(Decimal("-1"), [], 1)
    with pytest.raises(ValueError):
        compute_line_total(Decimal("1"), [_option("-0.50")], 1)


def test_subtotal_rounds_once_at_the_end():
    # três linhas de 0.005 somam 0.015 -> 0.02; arredondar cada linha daria 0.03
    subtotal = compute_subtotal([Decimal("0.005"), Decimal("0.005"), Decimal("0.005")])

    assert round_currency(subtotal) == Decimal("0.02")


def test_compute_order_total_never_negative():
    assert compute_order_total(Decimal("10.00"), Decimal("4.00")) == Decimal("6.00")
    assert compute_order_total(Decimal("10.00"), Decimal("15.00")) == Decimal("0")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("25.9"), "R$ 25,90"),
        (Decimal("0"), "R$ 0,00"),
        (Decimal("1234.5"), "R$ 1.234,50"),
        (Decimal("1234567.891"), "R$ 1.234.567,89"),
    ],
)
def test_format_brl(value, expected):
    assert format_brl(value) == expected


def test_phone_helpers():
    assert normalize_phone("(11) 98765-4321") == "11987654321"
    assert format_phone("11987654321") == "(11) 98765-4321"
    assert format_phone("1134567890") == "(11) 3456-7890"
    assert format_phone("123") == "123"
    assert is_valid_phone("(11) 3456-7890") is True
    assert is_valid_phone("987654321") is False
    assert is_valid_phone("119876543210") is False
    assert is_valid_phone(None) is False
