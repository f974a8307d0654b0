from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from cardapio.core.errors import NotFoundError, ValidationError
from cardapio.domain.entities import CallerIdentity, CategoryRecord
from cardapio.models.category import Category
from cardapio.models.product import Product
from cardapio.services.authorization import ensure_admin
from cardapio.services.catalog import validate_category_input
from cardapio.services.store import category_to_record, store_operation

logger = logging.getLogger(__name__)


def list_categories(db: Session, *, caller: CallerIdentity | None) -> list[CategoryRecord]:
    ensure_admin(caller, action="list_categories")
    with store_operation("list_categories"):
        rows = db.query(Category).order_by(Category.sort_order.asc(), Category.id.asc()).all()
    return [category_to_record(row) for row in rows]


def _get_category(db: Session, category_id: int) -> Category:
    row = db.query(Category).filter(Category.id == category_id).first()
    if row is None:
        raise NotFoundError("Categoria não encontrada")
    return row


def create_category(db: Session, data: Mapping[str, Any], *, caller: CallerIdentity | None) -> CategoryRecord:
    ensure_admin(caller, action="create_category")
    errors = validate_category_input(data)
    if errors:
        raise ValidationError(errors)

    with store_operation("create_category"):
        # nova categoria entra no fim do cardápio
        last_position = db.query(func.max(Category.sort_order)).scalar()
        row = Category(
            name=data["name"].strip(),
            sort_order=(last_position or 0) + 1,
            active=True if data.get("active") is None else bool(data["active"]),
        )
        try:
            db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        record = category_to_record(row)
    logger.info("Category created: id=%s user_id=%s", record.id, caller.user_id)
    return record


def update_category(
    db: Session,
    category_id: int,
    data: Mapping[str, Any],
    *,
    caller: CallerIdentity | None,
) -> CategoryRecord:
    ensure_admin(caller, action="update_category")
    errors = validate_category_input(data)
    if errors:
        raise ValidationError(errors)

    with store_operation("update_category", category_id=category_id):
        row = _get_category(db, category_id)
        try:
            row.name = data["name"].strip()
            if data.get("active") is not None:
                row.active = bool(data["active"])
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(row)
        record = category_to_record(row)
    logger.info("Category updated: id=%s user_id=%s", record.id, caller.user_id)
    return record


def delete_category(db: Session, category_id: int, *, caller: CallerIdentity | None) -> bool:
    """Remove a categoria; com produtos vinculados ela só é desativada.

    Retorna ``True`` quando a categoria foi desativada em vez de removida.
    """
    ensure_admin(caller, action="delete_category")
    with store_operation("delete_category", category_id=category_id):
        row = _get_category(db, category_id)
        in_use = db.query(Product.id).filter(Product.category_id == category_id).first() is not None
        try:
            if in_use:
                row.active = False
            else:
                db.delete(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info(
        "Category %s: id=%s user_id=%s",
        "deactivated" if in_use else "deleted",
        category_id,
        caller.user_id,
    )
    return in_use


def reorder_categories(
    db: Session,
    ordered_ids: Sequence[int],
    *,
    caller: CallerIdentity | None,
) -> list[CategoryRecord]:
    ensure_admin(caller, action="reorder_categories")
    ids = [int(category_id) for category_id in ordered_ids or []]
    if not ids:
        raise ValidationError({"ordered_ids": "Informe a ordem das categorias"})
    if len(set(ids)) != len(ids):
        raise ValidationError({"ordered_ids": "Categoria repetida na ordenação"})

    with store_operation("reorder_categories", category_ids=ids):
        rows = {row.id: row for row in db.query(Category).filter(Category.id.in_(ids)).all()}
        missing = [category_id for category_id in ids if category_id not in rows]
        if missing:
            raise ValidationError({"ordered_ids": f"Categoria não encontrada: {missing[0]}"})
        try:
            for position, category_id in enumerate(ids):
                rows[category_id].sort_order = position
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info("Categories reordered: ids=%s user_id=%s", ids, caller.user_id)
    return list_categories(db, caller=caller)
