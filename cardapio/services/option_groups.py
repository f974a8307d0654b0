from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy.orm import Session

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import CallerIdentity, CatalogOption, OptionGroupRecord
from cardapio.models.option import Option
from cardapio.models.option_group import OptionGroup
from cardapio.models.order_item_option import OrderItemOption
from cardapio.models.product import Product
from cardapio.models.product_option_group import ProductOptionGroup
from cardapio.services.authorization import ensure_admin
from cardapio.services.catalog import validate_option_group_input, validate_option_input
from cardapio.services.pricing import round_currency
from cardapio.services.store import option_group_to_admin_record, option_to_record, store_operation

logger = logging.getLogger(__name__)


def _admin_groups(db: Session, groups: Sequence[OptionGroup]) -> list[OptionGroupRecord]:
    group_ids = [group.id for group in groups]
    options_by_group: dict[int, list[Option]] = {}
    if group_ids:
        rows = (
            db.query(Option)
            .filter(Option.option_group_id.in_(group_ids))
            .order_by(Option.sort_order.asc(), Option.id.asc())
            .all()
        )
        for option in rows:
            options_by_group.setdefault(option.option_group_id, []).append(option)
    return [option_group_to_admin_record(group, options_by_group.get(group.id, [])) for group in groups]


def _get_group(db: Session, group_id: int) -> OptionGroup:
    row = db.query(OptionGroup).filter(OptionGroup.id == group_id).first()
    if row is None:
        raise NotFoundError("Grupo de opcionais não encontrado")
    return row


def list_option_groups(db: Session, *, caller: CallerIdentity | None) -> list[OptionGroupRecord]:
    ensure_admin(caller, action="list_option_groups")
    with store_operation("list_option_groups"):
        groups = db.query(OptionGroup).order_by(OptionGroup.sort_order.asc(), OptionGroup.id.asc()).all()
        return _admin_groups(db, groups)


def _apply_group_fields(row: OptionGroup, data: Mapping[str, Any]) -> None:
    row.name = data["name"].strip()
    row.selection_type = data["selection_type"]
    row.required = bool(data.get("required", False))
    row.sort_order = int(data.get("sort_order") or 0)


def _save_group(db: Session, row: OptionGroup, data: Mapping[str, Any], operation: str) -> OptionGroupRecord:
    with store_operation(operation, option_group_id=row.id):
        try:
            _apply_group_fields(row, data)
            if row.id is None:
                db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        return _admin_groups(db, [row])[0]


def create_option_group(
    db: Session, data: Mapping[str, Any], *, caller: CallerIdentity | None
) -> OptionGroupRecord:
    ensure_admin(caller, action="create_option_group")
    errors = validate_option_group_input(data)
    if errors:
        raise ValidationError(errors)
    record = _save_group(db, OptionGroup(), data, "create_option_group")
    logger.info("Option group created: id=%s user_id=%s", record.id, caller.user_id)
    return record


def update_option_group(
    db: Session,
    group_id: int,
    data: Mapping[str, Any],
    *,
    caller: CallerIdentity | None,
) -> OptionGroupRecord:
    ensure_admin(caller, action="update_option_group")
    errors = validate_option_group_input(data)
    if errors:
        raise ValidationError(errors)
    with store_operation("update_option_group", option_group_id=group_id):
        row = _get_group(db, group_id)
    record = _save_group(db, row, data, "update_option_group")
    logger.info("Option group updated: id=%s user_id=%s", record.id, caller.user_id)
    return record


def delete_option_group(db: Session, group_id: int, *, caller: CallerIdentity | None) -> int:
    """Remove o grupo, seus opcionais e os vínculos com produtos; retorna quantos opcionais saíram.

    Pedidos antigos guardam cópia dos opcionais, então não perdem nada.
    """
    ensure_admin(caller, action="delete_option_group")
    with store_operation("delete_option_group", option_group_id=group_id):
        row = _get_group(db, group_id)
        try:
            deleted_options = (
                db.query(Option).filter(Option.option_group_id == group_id).delete(synchronize_session=False)
            )
            db.query(ProductOptionGroup).filter(ProductOptionGroup.option_group_id == group_id).delete(
                synchronize_session=False
            )
            db.delete(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info(
        "Option group deleted: id=%s options=%s user_id=%s",
        group_id,
        deleted_options,
        caller.user_id,
    )
    return deleted_options


def _check_option(db: Session, data: Mapping[str, Any]) -> None:
    errors = validate_option_input(data)
    if not errors and db.query(OptionGroup.id).filter(OptionGroup.id == int(data["option_group_id"])).first() is None:
        errors["option_group_id"] = "Grupo de opcionais não encontrado"
    if errors:
        raise ValidationError(errors)


def _save_option(db: Session, row: Option, data: Mapping[str, Any], operation: str) -> CatalogOption:
    with store_operation(operation, option_id=row.id):
        try:
            row.option_group_id = int(data["option_group_id"])
            row.name = data["name"].strip()
            row.additional_price = round_currency(data.get("additional_price") or 0)
            row.active = bool(data.get("active", True))
            row.sort_order = int(data.get("sort_order") or 0)
            if row.id is None:
                db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        return option_to_record(row)


def create_option(db: Session, data: Mapping[str, Any], *, caller: CallerIdentity | None) -> CatalogOption:
    ensure_admin(caller, action="create_option")
    with store_operation("create_option"):
        _check_option(db, data)
    record = _save_option(db, Option(), data, "create_option")
    logger.info("Option created: id=%s group_id=%s user_id=%s", record.id, record.option_group_id, caller.user_id)
    return record


def update_option(
    db: Session,
    option_id: int,
    data: Mapping[str, Any],
    *,
    caller: CallerIdentity | None,
) -> CatalogOption:
    ensure_admin(caller, action="update_option")
    with store_operation("update_option", option_id=option_id):
        row = db.query(Option).filter(Option.id == option_id).first()
        if row is None:
            raise NotFoundError("Opcional não encontrado")
        _check_option(db, data)
    record = _save_option(db, row, data, "update_option")
    logger.info("Option updated: id=%s user_id=%s", record.id, caller.user_id)
    return record


def delete_option(db: Session, option_id: int, *, caller: CallerIdentity | None) -> bool:
    """Opcional já vendido é só desativado; retorna ``True`` nesse caso."""
    ensure_admin(caller, action="delete_option")
    with store_operation("delete_option", option_id=option_id):
        row = db.query(Option).filter(Option.id == option_id).first()
        if row is None:
            raise NotFoundError("Opcional não encontrado")
        ordered = db.query(OrderItemOption.id).filter(OrderItemOption.option_id == option_id).first() is not None
        try:
            if ordered:
                row.active = False
            else:
                db.delete(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info(
        "Option %s: id=%s user_id=%s",
        "deactivated" if ordered else "deleted",
        option_id,
        caller.user_id,
    )
    return ordered


def _product_groups(db: Session, product_id: int) -> list[OptionGroupRecord]:
    groups = (
        db.query(OptionGroup)
        .join(ProductOptionGroup, ProductOptionGroup.option_group_id == OptionGroup.id)
        .filter(ProductOptionGroup.product_id == product_id)
        .order_by(OptionGroup.sort_order.asc(), OptionGroup.id.asc())
        .all()
    )
    return _admin_groups(db, groups)


def _ensure_product(db: Session, product_id: int) -> None:
    if db.query(Product.id).filter(Product.id == product_id).first() is None:
        raise NotFoundError("Produto não encontrado")


def get_product_option_groups(
    db: Session, product_id: int, *, caller: CallerIdentity | None
) -> list[OptionGroupRecord]:
    ensure_admin(caller, action="get_product_option_groups")
    with store_operation("get_product_option_groups", product_id=product_id):
        _ensure_product(db, product_id)
        return _product_groups(db, product_id)


def set_product_option_groups(
    db: Session,
    product_id: int,
    option_group_ids: Iterable[int],
    *,
    caller: CallerIdentity | None,
) -> list[OptionGroupRecord]:
    """Substitui todos os grupos vinculados ao produto pela lista informada."""
    ensure_admin(caller, action="set_product_option_groups")
    group_ids = list(dict.fromkeys(int(group_id) for group_id in option_group_ids))
    with store_operation("set_product_option_groups", product_id=product_id, option_group_ids=group_ids):
        _ensure_product(db, product_id)
        if group_ids:
            found = {row.id for row in db.query(OptionGroup.id).filter(OptionGroup.id.in_(group_ids)).all()}
            if found != set(group_ids):
                raise ValidationError({"option_group_ids": "Grupo de opcionais não encontrado"})
        try:
            db.query(ProductOptionGroup).filter(ProductOptionGroup.product_id == product_id).delete(
                synchronize_session=False
            )
            for group_id in group_ids:
                db.add(ProductOptionGroup(product_id=product_id, option_group_id=group_id))
            db.commit()
        except Exception:
            db.rollback()
            raise
        records = _product_groups(db, product_id)
    logger.info(
        "Product option groups replaced: product_id=%s groups=%s user_id=%s",
        product_id,
        group_ids,
        caller.user_id,
    )
    return records
