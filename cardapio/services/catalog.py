from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import SELECTION_MULTIPLE, SELECTION_SINGLE, CallerIdentity, CatalogProduct
from cardapio.models.category import Category
from cardapio.models.option import Option
from cardapio.models.option_group import OptionGroup
from cardapio.models.product import Product
from cardapio.models.product_option_group import ProductOptionGroup
from cardapio.services.authorization import ensure_admin
from cardapio.services.pricing import is_money_in_range, round_currency
from cardapio.services.store import option_group_to_record, product_to_record, store_operation

logger = logging.getLogger(__name__)

PRODUCT_NAME_MIN_LENGTH = 3
PRODUCT_NAME_MAX_LENGTH = 60
PRODUCT_DESCRIPTION_MAX_LENGTH = 500
CATEGORY_NAME_MIN_LENGTH = 3
CATEGORY_NAME_MAX_LENGTH = 40
OPTION_GROUP_NAME_MAX_LENGTH = 40
OPTION_NAME_MAX_LENGTH = 60
PRICE_ERROR = "Preço deve estar entre 0 e 99999999.99"
ADDITIONAL_PRICE_ERROR = "Preço adicional deve estar entre 0 e 99999999.99"


def _check_name(errors: dict[str, str], value: Any, minimum: int, maximum: int) -> None:
    name = (value or "").strip()
    if not name:
        errors["name"] = "Nome é obrigatório"
    elif not minimum <= len(name) <= maximum:
        errors["name"] = f"Nome deve ter entre {minimum} e {maximum} caracteres"


def validate_product_input(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, data.get("name"), PRODUCT_NAME_MIN_LENGTH, PRODUCT_NAME_MAX_LENGTH)

    description = data.get("description") or ""
    if len(description) > PRODUCT_DESCRIPTION_MAX_LENGTH:
        errors["description"] = "Descrição deve ter no máximo 500 caracteres"

    price = data.get("price")
    if price is None or not is_money_in_range(price):
        errors["price"] = PRICE_ERROR

    if not data.get("category_id"):
        errors["category_id"] = "Categoria é obrigatória"
    return errors


def validate_category_input(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, data.get("name"), CATEGORY_NAME_MIN_LENGTH, CATEGORY_NAME_MAX_LENGTH)
    return errors


def validate_option_group_input(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, data.get("name"), 3, OPTION_GROUP_NAME_MAX_LENGTH)
    if data.get("selection_type") not in (SELECTION_SINGLE, SELECTION_MULTIPLE):
        errors["selection_type"] = 'Tipo de seleção deve ser "single" ou "multiple"'
    return errors


def validate_option_input(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, data.get("name"), 3, OPTION_NAME_MAX_LENGTH)
    additional_price = data.get("additional_price", 0)
    if additional_price is not None and not is_money_in_range(additional_price):
        errors["additional_price"] = ADDITIONAL_PRICE_ERROR
    if not data.get("option_group_id"):
        errors["option_group_id"] = "Grupo de opcionais é obrigatório"
    return errors


def _load_option_groups(db: Session, product_ids: Iterable[int]) -> dict[int, list]:
    ids = list(product_ids)
    if not ids:
        return {}

    links = (
        db.query(ProductOptionGroup.product_id, OptionGroup)
        .join(OptionGroup, OptionGroup.id == ProductOptionGroup.option_group_id)
        .filter(ProductOptionGroup.product_id.in_(ids))
        .order_by(OptionGroup.sort_order.asc(), OptionGroup.id.asc())
        .all()
    )
    group_ids = {group.id for _, group in links}
    options_by_group: dict[int, list[Option]] = {}
    if group_ids:
        option_rows = (
            db.query(Option)
            .filter(Option.option_group_id.in_(group_ids), Option.active.is_(True))
            .order_by(Option.sort_order.asc(), Option.id.asc())
            .all()
        )
        for option in option_rows:
            options_by_group.setdefault(option.option_group_id, []).append(option)

    groups_by_product: dict[int, list] = {}
    for product_id, group in links:
        groups_by_product.setdefault(product_id, []).append(
            option_group_to_record(group, options_by_group.get(group.id, []))
        )
    return groups_by_product


def load_catalog(db: Session, product_ids: Iterable[int]) -> dict[int, CatalogProduct]:
    """Produtos (com grupos e opcionais ativos) indexados por id."""
    ids = sorted({int(product_id) for product_id in product_ids})
    if not ids:
        return {}
    with store_operation("load_catalog", product_ids=ids):
        rows = db.query(Product).filter(Product.id.in_(ids)).all()
        groups = _load_option_groups(db, ids)
    return {row.id: product_to_record(row, tuple(groups.get(row.id, []))) for row in rows}


def list_products(db: Session, *, caller: CallerIdentity | None) -> list[CatalogProduct]:
    ensure_admin(caller, action="list_products")
    with store_operation("list_products"):
        rows = db.query(Product).order_by(Product.category_id.asc(), Product.sort_order.asc(), Product.id.asc()).all()
        groups = _load_option_groups(db, [row.id for row in rows])
    return [product_to_record(row, tuple(groups.get(row.id, []))) for row in rows]


def _apply_product_fields(db: Session, row: Product, data: Mapping[str, Any]) -> None:
    row.name = data["name"].strip()
    row.description = (data.get("description") or "").strip() or None
    row.price = round_currency(data["price"])
    row.category_id = int(data["category_id"])
    row.photo_url = data.get("photo_url")
    row.active = bool(data.get("active", True))
    row.sort_order = int(data.get("sort_order") or 0)

    option_group_ids = data.get("option_group_ids")
    if option_group_ids is None:
        return
    db.query(ProductOptionGroup).filter(ProductOptionGroup.product_id == row.id).delete(synchronize_session=False)
    for group_id in dict.fromkeys(int(group_id) for group_id in option_group_ids):
        db.add(ProductOptionGroup(product_id=row.id, option_group_id=group_id))


def _check_references(db: Session, data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    if db.query(Category.id).filter(Category.id == int(data["category_id"])).first() is None:
        errors["category_id"] = "Categoria não encontrada"
    group_ids = set(data.get("option_group_ids") or [])
    if group_ids:
        found = {row.id for row in db.query(OptionGroup.id).filter(OptionGroup.id.in_(group_ids)).all()}
        if found != group_ids:
            errors["option_group_ids"] = "Grupo de opcionais não encontrado"
    return errors


def _save_product(db: Session, row: Product, data: Mapping[str, Any], operation: str) -> CatalogProduct:
    with store_operation(operation, product_id=row.id):
        try:
            if row.id is None:
                db.add(row)
                db.flush()
            _apply_product_fields(db, row, data)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        groups = _load_option_groups(db, [row.id])
    return product_to_record(row, tuple(groups.get(row.id, [])))


def create_product(db: Session, data: Mapping[str, Any], *, caller: CallerIdentity | None) -> CatalogProduct:
    ensure_admin(caller, action="create_product")
    errors = validate_product_input(data)
    if errors:
        raise ValidationError(errors)
    with store_operation("create_product"):
        errors = _check_references(db, data)
    if errors:
        raise ValidationError(errors)

    row = Product(
        name=data["name"].strip(),
        price=round_currency(data["price"]),
        category_id=int(data["category_id"]),
    )
    record = _save_product(db, row, data, "create_product")
    logger.info("Product created: id=%s user_id=%s", record.id, caller.user_id)
    return record


def update_product(
    db: Session,
    product_id: int,
    data: Mapping[str, Any],
    *,
    caller: CallerIdentity | None,
) -> CatalogProduct:
    ensure_admin(caller, action="update_product")
    errors = validate_product_input(data)
    if errors:
        raise ValidationError(errors)
    with store_operation("update_product", product_id=product_id):
        row = db.query(Product).filter(Product.id == product_id).first()
        if row is None:
            raise NotFoundError("Produto não encontrado")
        errors = _check_references(db, data)
    if errors:
        raise ValidationError(errors)

    record = _save_product(db, row, data, "update_product")
    logger.info("Product updated: id=%s user_id=%s", record.id, caller.user_id)
    return record


def get_public_product(db: Session, product_id: int) -> CatalogProduct:
    """Produto ativo com os grupos e opcionais que o cliente pode escolher."""
    product = load_catalog(db, [product_id]).get(product_id)
    if product is None or not product.active:
        raise NotFoundError("Produto não encontrado")
    return product
