import pytest

from cardapio.services.catalog import (
    validate_category_input,
    validate_option_group_input,
    validate_option_input,
    validate_product_input,
)


def _product(**overrides):
    data = {"name": "X-Burger", "price": "25.90", "category_id": 1, "description": "Pão, carne e queijo"}
    data.update(overrides)
    return data


@pytest.mark.parametrize(("length", "valid"), [(2, False), (3, True), (60, True), (61, False)])
def test_product_name_length_boundaries(length, valid):
    errors = validate_product_input(_product(name="x" * length))

    if valid:
        assert errors == {}
    else:
        assert errors == {"name": "Nome deve ter entre 3 e 60 caracteres"}


def test_product_input_reports_every_error():
    errors = validate_product_input({"name": "  ", "price": -1, "category_id": None, "description": "d" * 501})

    assert errors == {
        "name": "Nome é obrigatório",
        "description": "Descrição deve ter no máximo 500 caracteres",
        "price": "Preço deve estar entre 0 e 99999999.99",
        "category_id": "Categoria é obrigatória",
    }


def test_product_price_zero_is_valid_and_garbage_is_not():
    assert validate_product_input(_product(price=0)) == {}
    assert validate_product_input(_product(price="abc")) == {"price": "Preço deve estar entre 0 e 99999999.99"}


@pytest.mark.parametrize(("length", "valid"), [(2, False), (3, True), (40, True), (41, False)])
def test_category_name_length_boundaries(length, valid):
    errors = validate_category_input({"name": "c" * length})

    assert (errors == {}) is valid


def test_option_group_requires_known_selection_type():
    assert validate_option_group_input({"name": "Adicionais", "selection_type": "multiple"}) == {}
    assert validate_option_group_input({"name": "Adicionais", "selection_type": "todos"}) == {
        "selection_type": 'Tipo de seleção deve ser "single" ou "multiple"'
    }


def test_option_input_rules():
    assert validate_option_input({"name": "Bacon", "additional_price": 0, "option_group_id": 10}) == {}
    assert validate_option_input({"name": "Ba", "additional_price": -0.5, "option_group_id": None}) == {
        "name": "Nome deve ter entre 3 e 60 caracteres",
        "additional_price": "Preço adicional deve estar entre 0 e 99999999.99",
        "option_group_id": "Grupo de opcionais é obrigatório",
    }


def test_prices_above_column_capacity_are_rejected():
    assert validate_product_input(_product(price="99999999.99")) == {}
    assert validate_product_input(_product(price="1e30")) == {"price": "Preço deve estar entre 0 e 99999999.99"}
    assert validate_option_input({"name": "Bacon", "additional_price": "Infinity", "option_group_id": 10}) == {
        "additional_price": "Preço adicional deve estar entre 0 e 99999999.99"
    }
