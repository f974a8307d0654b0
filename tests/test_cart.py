from decimal import Decimal

import pytest

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import AppliedDiscount, CouponError, CouponRecord, SelectedOption
from cardapio.services.cart import Cart

BACON = SelectedOption(id=100, name="Bacon", additional_price=Decimal("3.00"), group_id=10)
CHEDDAR = SelectedOption(id=101, name="Cheddar", additional_price=Decimal("2.50"), group_id=10)


def _cart() -> Cart:
    ids = iter(f"item-{index}" for index in range(1, 100))
    return Cart(id_factory=lambda: next(ids))


def _burger(cart: Cart, **overrides):
    data = {
        "product_id": 1,
        "product_name": "X-Burger",
        "unit_price": Decimal("25.90"),
        "quantity": 1,
        "options": [BACON],
    }
    data.update(overrides)
    return cart.add_item(**data)


def test_add_item_computes_line_total():
    cart = _cart()

    item = _burger(cart, quantity=2)

    assert item.id == "item-1"
    assert item.total_price == Decimal("57.80")
    assert cart.subtotal == Decimal("57.80")


def test_identical_configuration_is_merged_regardless_of_option_order():
    cart = _cart()
    _burger(cart, options=[BACON, CHEDDAR])

    merged = _burger(cart, options=[CHEDDAR, BACON], quantity=2)

    assert len(cart.items) == 1
    assert merged.id == "item-1"
    assert merged.quantity == 3
    assert merged.total_price == Decimal("94.20")


def test_different_notes_or_options_create_new_lines():
    cart = _cart()
    _burger(cart)
    _burger(cart, notes="sem cebola")
    _burger(cart, options=[])
    cart.add_item(product_id=2, product_name="Refrigerante", unit_price="6.50", quantity=2)

    assert len(cart.items) == 4
    assert cart.item_count == 5
    assert cart.subtotal == Decimal("28.90") * 2 + Decimal("25.90") + Decimal("13.00")


def test_blank_notes_match_missing_notes():
    cart = _cart()
    _burger(cart, notes="   ")
    _burger(cart)

    assert len(cart.items) == 1
    assert cart.items[0].notes is None


def test_update_item_recomputes_total():
    cart = _cart()
    item = _burger(cart)

    updated = cart.update_item(item.id, quantity=3, options=[BACON, CHEDDAR])

    assert updated.total_price == Decimal("94.20")
    assert cart.subtotal == Decimal("94.20")
    assert cart.item_count == 3


def test_update_item_rejects_zero_quantity_and_unknown_items():
    cart = _cart()
    item = _burger(cart)

    with pytest.raises(ValidationError) as exc:
        cart.update_item(item.id, quantity=0)
    assert exc.value.errors == {"quantity": "Quantidade deve estar entre 1 e 99"}

    with pytest.raises(NotFoundError):
        cart.update_item("nao-existe", quantity=1)


def test_add_item_rejects_zero_quantity():
    with pytest.raises(ValidationError):
        _burger(_cart(), quantity=0)


def test_quantity_is_capped_at_99_including_merges():
    cart = _cart()

    with pytest.raises(ValidationError):
        _burger(cart, quantity=100)
    with pytest.raises(ValidationError):
        _burger(cart, quantity=10**27)

    item = _burger(cart, quantity=98)
    with pytest.raises(ValidationError):
        _burger(cart, quantity=2)
    assert cart.items == (item,)


def test_edited_line_is_folded_into_identical_line():
    cart = _cart()
    with_bacon = _burger(cart)
    plain = _burger(cart, options=[])

    merged = cart.update_item(plain.id, options=[BACON])

    assert len(cart.items) == 1
    assert merged.id == with_bacon.id
    assert merged.quantity == 2
    assert merged.total_price == Decimal("57.80")

    again = _burger(cart)
    assert len(cart.items) == 1
    assert again.quantity == 3


def test_folding_keeps_the_earlier_line_position():
    cart = _cart()
    plain = _burger(cart, options=[])
    cart.add_item(product_id=2, product_name="Refrigerante", unit_price="6.50")
    _burger(cart, notes="sem cebola", options=[])

    merged = cart.update_item("item-3", notes="")

    assert [item.id for item in cart.items] == [plain.id, "item-2"]
    assert merged.quantity == 2
    assert cart.item_count == 3


def test_remove_and_clear():
    cart = _cart()
    first = _burger(cart)
    _burger(cart, options=[])

    cart.remove_item(first.id)
    assert [item.id for item in cart.items] == ["item-2"]

    cart.clear()
    assert cart.is_empty
    assert cart.subtotal == Decimal("0")
    assert cart.item_count == 0


def test_coupon_discount_follows_subtotal():
    cart = _cart()
    item = _burger(cart, quantity=2)
    coupon = CouponRecord(id=1, code="PROMO10", discount_type="percentage", discount_value=Decimal("10"))

    result = cart.apply_coupon("promo10", coupon)
    assert result == AppliedDiscount(code="PROMO10", discount=Decimal("5.78"))

    cart.update_item(item.id, quantity=1)
    totals = cart.totals()
    assert totals.discount == Decimal("2.89")
    assert totals.total == Decimal("26.01")


def test_coupon_that_stops_applying_reports_error_without_discount():
    cart = _cart()
    item = _burger(cart, quantity=2)
    coupon = CouponRecord(
        id=2,
        code="MIN50",
        discount_type="fixed",
        discount_value=Decimal("5"),
        min_order_value=Decimal("50"),
    )
    cart.apply_coupon("MIN50", coupon)

    cart.update_item(item.id, quantity=1)
    totals = cart.totals()

    assert totals.discount == Decimal("0")
    assert totals.total == totals.subtotal
    assert totals.coupon_error == CouponError(kind="ineligible", reason="Valor mínimo do pedido não atingido")


def test_rejected_coupon_is_not_kept_and_clear_drops_coupon():
    cart = _cart()
    _burger(cart)

    assert isinstance(cart.apply_coupon("XYZ", None), CouponError)
    assert cart.coupon is None

    coupon = CouponRecord(id=1, code="PROMO10", discount_type="percentage", discount_value=Decimal("10"))
    cart.apply_coupon("PROMO10", coupon)
    assert cart.coupon == coupon

    cart.clear()
    assert cart.coupon is None
    assert cart.totals().discount == Decimal("0")
