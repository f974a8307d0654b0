from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cardapio.domain.entities import AppliedDiscount, CouponError, CouponRecord
from cardapio.services.coupons import apply_coupon, validate_coupon_input

NOW = datetime(2026, 10, 17, 15, 0, tzinfo=timezone.utc)


def _coupon(**overrides) -> CouponRecord:
    data = {
        "id": 1,
        "code": "PROMO10",
        "discount_type": "percentage",
        "discount_value": Decimal("10"),
    }
    data.update(overrides)
    return CouponRecord(**data)


def test_no_code_is_always_valid_with_zero_discount():
    for code in (None, "", "   "):
        result = apply_coupon(code, Decimal("50.00"), None, now=NOW)
        assert result == AppliedDiscount(code=None, discount=Decimal("0"))


def test_unknown_code_is_not_found():
    result = apply_coupon("NAOEXISTE", Decimal("50.00"), None, now=NOW)

    assert isinstance(result, CouponError)
    assert result.kind == "not_found"
    assert result.reason == "Cupom não encontrado"


def test_lookup_is_case_insensitive():
    result = apply_coupon("  promo10 ", Decimal("64.30"), _coupon(), now=NOW)

    assert result == AppliedDiscount(code="PROMO10", discount=Decimal("6.43"))


def test_percentage_discount_is_rounded_to_cents():
    result = apply_coupon("PROMO10", Decimal("57.85"), _coupon(), now=NOW)

    assert result.discount == Decimal("5.79")


def test_fixed_discount_is_capped_at_subtotal():
    coupon = _coupon(discount_type="fixed", discount_value=Decimal("30"))

    result = apply_coupon("PROMO10", Decimal("12.50"), coupon, now=NOW)

    assert result.discount == Decimal("12.50")


@pytest.mark.parametrize(
    ("overrides", "subtotal", "reason"),
    [
        ({"active": False}, "50", "Cupom inativo"),
        ({"expires_at": NOW - timedelta(minutes=1)}, "50", "Cupom expirado"),
        ({"starts_at": NOW + timedelta(days=1)}, "50", "Cupom ainda não está válido"),
        ({"max_uses": 3, "uses_count": 3}, "50", "Cupom esgotado"),
        ({"min_order_value": Decimal("60")}, "59.99", "Valor mínimo do pedido não atingido"),
        ({"discount_type": "brinde"}, "50", "Tipo de cupom inválido"),
    ],
)
def test_ineligible_coupons_report_reason(overrides, subtotal, reason):
    result = apply_coupon("PROMO10", Decimal(subtotal), _coupon(**overrides), now=NOW)

    assert result == CouponError(kind="ineligible", reason=reason)


def test_naive_expiry_is_treated_as_utc():
    coupon = _coupon(expires_at=datetime(2026, 10, 17, 16, 0))

    assert isinstance(apply_coupon("PROMO10", Decimal("10"), coupon, now=NOW), AppliedDiscount)


def test_revalidation_is_idempotent():
    coupon = _coupon(max_uses=1, uses_count=0)

    first = apply_coupon("PROMO10", Decimal("80"), coupon, now=NOW)
    second = apply_coupon("PROMO10", Decimal("80"), coupon, now=NOW)

    assert first == second == AppliedDiscount(code="PROMO10", discount=Decimal("8.00"))
    assert coupon.uses_count == 0


def test_validate_coupon_input_accepts_valid_data():
    assert validate_coupon_input({"code": "natal20", "discount_type": "percentage", "discount_value": 20}) == {}
    assert validate_coupon_input({"code": "DESC5", "discount_type": "fixed", "discount_value": "5.00"}) == {}


def test_validate_coupon_input_reports_every_field():
    errors = validate_coupon_input(
        {
            "code": "AB",
            "discount_type": "percentage",
            "discount_value": 101,
            "min_order_value": -1,
            "max_uses": 0,
            "starts_at": NOW,
            "expires_at": NOW - timedelta(days=1),
        }
    )

    assert errors == {
        "code": "Código deve ter entre 3 e 20 caracteres",
        "discount_value": "Desconto percentual deve estar entre 1% e 100%",
        "min_order_value": "Valor mínimo deve estar entre 0 e 99999999.99",
        "max_uses": "Limite de usos deve ser maior que zero",
        "expires_at": "Data de expiração deve ser posterior ao início",
    }


def test_validate_coupon_input_code_and_type_rules():
    assert validate_coupon_input({"code": " ", "discount_type": "fixed", "discount_value": 0}) == {
        "code": "Código é obrigatório",
        "discount_value": "Desconto fixo deve ser maior que zero",
    }
    assert validate_coupon_input({"code": "A" * 21, "discount_type": "x", "discount_value": 1}) == {
        "code": "Código deve ter entre 3 e 20 caracteres",
        "discount_type": "Tipo de desconto inválido",
    }


@pytest.mark.parametrize("amount", ["1e30", "NaN", "abc"])
def test_validate_coupon_input_rejects_amounts_that_do_not_fit_a_column(amount):
    errors = validate_coupon_input(
        {"code": "GIGANTE", "discount_type": "fixed", "discount_value": amount, "min_order_value": amount}
    )

    assert errors == {
        "discount_value": "Valor de desconto inválido",
        "min_order_value": "Valor mínimo deve estar entre 0 e 99999999.99",
    }
