from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import cardapio.models  # noqa: F401
from cardapio.core.database import Base, get_db
from cardapio.core.exception_handlers import register_exception_handlers
from cardapio.deps import get_caller
from cardapio.models.coupon import Coupon
from cardapio.models.product_option_group import ProductOptionGroup
from cardapio.routers.admin_coupons import router as admin_coupons_router
from cardapio.routers.admin_products import router as admin_products_router
from tests.fixtures_data import ADMIN_CALLER, CASHIER_CALLER, COUPON_PAYLOAD, seed_catalog


def _build_client(caller=ADMIN_CALLER):
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    seed_catalog(db)

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(admin_coupons_router)
    app.include_router(admin_products_router)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_caller] = lambda: caller

    return TestClient(app), db


def test_coupon_crud_normalizes_code():
    client, db = _build_client()

    created = client.post("/api/admin/coupons", json=COUPON_PAYLOAD)
    assert created.status_code == 201
    body = created.json()
    assert body["code"] == "NATAL20"
    assert body["discount_value"] == 20.0
    assert body["uses_count"] == 0

    updated = client.put(
        f"/api/admin/coupons/{body['id']}",
        json={**COUPON_PAYLOAD, "discount_value": 15, "max_uses": 100},
    )
    assert updated.status_code == 200
    assert updated.json()["discount_value"] == 15.0
    assert updated.json()["max_uses"] == 100

    codes = [coupon["code"] for coupon in client.get("/api/admin/coupons").json()]
    assert "NATAL20" in codes

    deleted = client.delete(f"/api/admin/coupons/{body['id']}")
    assert deleted.status_code == 204
    assert db.query(Coupon).filter(Coupon.code == "NATAL20").first() is None


def test_duplicate_coupon_code_is_rejected_case_insensitively():
    client, _db = _build_client()

    response = client.post("/api/admin/coupons", json={**COUPON_PAYLOAD, "code": "promo10"})

    assert response.status_code == 422
    assert response.json()["errors"] == {"code": "Código de cupom já existe"}


def test_invalid_coupon_reports_every_field():
    client, _db = _build_client()

    response = client.post(
        "/api/admin/coupons",
        json={
            "code": "AB",
            "discount_type": "percentage",
            "discount_value": 150,
            "min_order_value": -1,
            "max_uses": 0,
        },
    )

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"code", "discount_value", "min_order_value", "max_uses"}


def test_update_unknown_coupon_is_404():
    client, _db = _build_client()

    response = client.put("/api/admin/coupons/999", json=COUPON_PAYLOAD)

    assert response.status_code == 404


def test_coupon_routes_require_admin_role():
    client, _db = _build_client(caller=CASHIER_CALLER)

    assert client.get("/api/admin/coupons").status_code == 403
    assert client.post("/api/admin/coupons", json=COUPON_PAYLOAD).status_code == 403


def test_create_product_with_option_groups():
    client, db = _build_client()

    response = client.post(
        "/api/admin/products",
        json={"name": "X-Salada", "price": "22.5", "category_id": 1, "option_group_ids": [10, 10]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["price"] == 22.50
    assert [group["id"] for group in body["option_groups"]] == [10]
    assert db.query(ProductOptionGroup).filter(ProductOptionGroup.product_id == body["id"]).count() == 1


def test_create_product_validation_errors():
    client, _db = _build_client()

    invalid = client.post("/api/admin/products", json={"name": "X", "price": "-1", "category_id": 1})
    assert invalid.status_code == 422
    assert invalid.json()["errors"] == {
        "name": "Nome deve ter entre 3 e 60 caracteres",
        "price": "Preço deve estar entre 0 e 99999999.99",
    }

    missing_refs = client.post(
        "/api/admin/products",
        json={"name": "Batata", "price": "9.90", "category_id": 99, "option_group_ids": [77]},
    )
    assert missing_refs.status_code == 422
    assert missing_refs.json()["errors"] == {
        "category_id": "Categoria não encontrada",
        "option_group_ids": "Grupo de opcionais não encontrado",
    }


def test_update_product_replaces_option_groups_only_when_sent():
    client, _db = _build_client()

    kept = client.put("/api/admin/products/1", json={"name": "X-Burger", "price": "27.00", "category_id": 1})
    assert kept.status_code == 200
    assert kept.json()["price"] == 27.0
    assert {group["id"] for group in kept.json()["option_groups"]} == {10, 20}

    replaced = client.put(
        "/api/admin/products/1",
        json={"name": "X-Burger", "price": "27.00", "category_id": 1, "option_group_ids": [20]},
    )
    assert [group["id"] for group in replaced.json()["option_groups"]] == [20]

    assert client.put("/api/admin/products/999", json={"name": "Nada", "price": "1", "category_id": 1}).status_code == 404


def test_list_products_includes_inactive_items():
    client, _db = _build_client()

    products = client.get("/api/admin/products").json()

    assert [product["id"] for product in products] == [1, 2, 3]
    assert products[2]["active"] is False
