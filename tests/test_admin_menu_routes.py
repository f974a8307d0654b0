from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import cardapio.models  # noqa: F401
from cardapio.core.database import Base, get_db
from cardapio.core.exception_handlers import register_exception_handlers
from cardapio.deps import get_caller
from cardapio.models.category import Category
from cardapio.models.option import Option
from cardapio.models.product_option_group import ProductOptionGroup
from cardapio.routers.admin_categories import router as admin_categories_router
from cardapio.routers.admin_option_groups import router as admin_option_groups_router
from cardapio.routers.admin_products import router as admin_products_router
from cardapio.routers.orders import router as orders_router
from cardapio.routers.products import router as products_router
from tests.fixtures_data import ADMIN_CALLER, CASHIER_CALLER, PICKUP_ORDER_PAYLOAD, seed_catalog


def _build_client(caller=ADMIN_CALLER, seed=True):
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    if seed:
        seed_catalog(db)

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(orders_router)
    app.include_router(products_router)
    app.include_router(admin_products_router)
    app.include_router(admin_categories_router)
    app.include_router(admin_option_groups_router)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_caller] = lambda: caller

    return TestClient(app), db


def test_menu_can_be_built_from_an_empty_store():
    client, _db = _build_client(seed=False)

    lanches = client.post("/api/admin/categories", json={"name": "Lanches"})
    bebidas = client.post("/api/admin/categories", json={"name": "Bebidas"})
    assert lanches.status_code == 201
    assert (lanches.json()["sort_order"], bebidas.json()["sort_order"]) == (1, 2)
    assert lanches.json()["active"] is True

    product = client.post(
        "/api/admin/products",
        json={"name": "Suco de Laranja", "price": "8.00", "category_id": bebidas.json()["id"]},
    )
    assert product.status_code == 201
    assert product.json()["category_id"] == bebidas.json()["id"]


def test_category_update_and_validation():
    client, _db = _build_client()

    renamed = client.put("/api/admin/categories/1", json={"name": "Hambúrgueres", "active": False})
    assert renamed.status_code == 200
    assert renamed.json() == {"id": 1, "name": "Hambúrgueres", "sort_order": 0, "active": False}

    invalid = client.post("/api/admin/categories", json={"name": "AB"})
    assert invalid.status_code == 422
    assert invalid.json()["errors"] == {"name": "Nome deve ter entre 3 e 40 caracteres"}

    assert client.put("/api/admin/categories/99", json={"name": "Sobremesas"}).status_code == 404


def test_reorder_categories():
    client, _db = _build_client()
    bebidas = client.post("/api/admin/categories", json={"name": "Bebidas"}).json()

    reordered = client.put("/api/admin/categories/reorder", json={"ordered_ids": [bebidas["id"], 1]})

    assert reordered.status_code == 200
    assert [(category["id"], category["sort_order"]) for category in reordered.json()] == [
        (bebidas["id"], 0),
        (1, 1),
    ]

    empty = client.put("/api/admin/categories/reorder", json={"ordered_ids": []})
    assert empty.status_code == 422
    assert empty.json()["errors"] == {"ordered_ids": "Informe a ordem das categorias"}

    unknown = client.put("/api/admin/categories/reorder", json={"ordered_ids": [1, 42]})
    assert unknown.status_code == 422
    assert unknown.json()["errors"] == {"ordered_ids": "Categoria não encontrada: 42"}


def test_category_with_products_is_only_deactivated():
    client, db = _build_client()
    bebidas = client.post("/api/admin/categories", json={"name": "Bebidas"}).json()

    in_use = client.delete("/api/admin/categories/1")
    unused = client.delete(f"/api/admin/categories/{bebidas['id']}")

    assert in_use.json() == {"id": 1, "deactivated": True}
    assert unused.json() == {"id": bebidas["id"], "deactivated": False}
    assert db.query(Category).filter(Category.id == 1).first().active is False
    assert db.query(Category).filter(Category.id == bebidas["id"]).first() is None


def test_option_group_crud_and_cascading_delete():
    client, db = _build_client()

    created = client.post(
        "/api/admin/option-groups",
        json={"name": "Molhos", "selection_type": "multiple", "required": False},
    )
    assert created.status_code == 201
    assert created.json()["options"] == []

    updated = client.put(
        f"/api/admin/option-groups/{created.json()['id']}",
        json={"name": "Molhos da casa", "selection_type": "single", "required": True},
    )
    assert updated.json()["selection_type"] == "single"
    assert updated.json()["required"] is True

    invalid = client.post("/api/admin/option-groups", json={"name": "Molhos", "selection_type": "todos"})
    assert invalid.status_code == 422
    assert set(invalid.json()["errors"]) == {"selection_type"}

    deleted = client.delete("/api/admin/option-groups/10")
    assert deleted.json() == {"id": 10, "deleted_options_count": 3}
    assert db.query(Option).filter(Option.option_group_id == 10).count() == 0
    assert db.query(ProductOptionGroup).filter(ProductOptionGroup.option_group_id == 10).count() == 0
    assert client.delete("/api/admin/option-groups/10").status_code == 404


def test_option_create_update_and_reference_check():
    client, _db = _build_client()

    created = client.post(
        "/api/admin/options",
        json={"name": "Picles", "option_group_id": 10, "additional_price": "1.2"},
    )
    assert created.status_code == 201
    assert created.json()["additional_price"] == 1.20
    assert created.json()["active"] is True

    updated = client.put(
        f"/api/admin/options/{created.json()['id']}",
        json={"name": "Picles extra", "option_group_id": 10, "additional_price": "2"},
    )
    assert updated.json()["name"] == "Picles extra"
    assert updated.json()["additional_price"] == 2.0

    orphan = client.post("/api/admin/options", json={"name": "Picles", "option_group_id": 77})
    assert orphan.status_code == 422
    assert orphan.json()["errors"] == {"option_group_id": "Grupo de opcionais não encontrado"}


def test_option_already_ordered_is_deactivated_instead_of_deleted():
    client, db = _build_client()
    client.post("/api/orders", json=PICKUP_ORDER_PAYLOAD)

    ordered = client.delete("/api/admin/options/100")
    never_ordered = client.delete("/api/admin/options/102")

    assert ordered.json() == {"id": 100, "deactivated": True}
    assert never_ordered.json() == {"id": 102, "deactivated": False}
    assert db.query(Option).filter(Option.id == 100).first().active is False
    assert db.query(Option).filter(Option.id == 102).first() is None

    groups = client.get("/api/admin/option-groups").json()
    adicionais = next(group for group in groups if group["id"] == 10)
    assert [(option["id"], option["active"]) for option in adicionais["options"]] == [(100, False), (101, True)]

    public = client.get("/api/products/1").json()
    public_adicionais = next(group for group in public["option_groups"] if group["id"] == 10)
    assert [option["id"] for option in public_adicionais["options"]] == [101]


def test_product_option_groups_are_listed_and_replaced():
    client, _db = _build_client()

    current = client.get("/api/admin/products/1/option-groups")
    assert [group["id"] for group in current.json()] == [10, 20]

    replaced = client.put("/api/admin/products/1/option-groups", json={"option_group_ids": [20, 20]})
    assert replaced.status_code == 200
    assert [group["id"] for group in replaced.json()] == [20]
    assert [group["id"] for group in client.get("/api/products/1").json()["option_groups"]] == [20]

    unknown_group = client.put("/api/admin/products/1/option-groups", json={"option_group_ids": [99]})
    assert unknown_group.status_code == 422
    assert unknown_group.json()["errors"] == {"option_group_ids": "Grupo de opcionais não encontrado"}

    assert client.get("/api/admin/products/999/option-groups").status_code == 404


def test_public_product_detail():
    client, _db = _build_client(caller=None)

    burger = client.get("/api/products/1")
    assert burger.status_code == 200
    assert burger.json()["name"] == "X-Burger"
    assert [group["id"] for group in burger.json()["option_groups"]] == [10, 20]

    for product_id in (3, 999):
        missing = client.get(f"/api/products/{product_id}")
        assert missing.status_code == 404
        assert missing.json()["detail"] == "Produto não encontrado"


def test_menu_admin_routes_require_admin_role():
    client, _db = _build_client(caller=CASHIER_CALLER)

    assert client.get("/api/admin/categories").status_code == 403
    molhos = {"name": "Molhos", "selection_type": "single"}
    assert client.post("/api/admin/option-groups", json=molhos).status_code == 403
    assert client.delete("/api/admin/options/100").status_code == 403

    anonymous, _db = _build_client(caller=None)
    assert anonymous.put("/api/admin/categories/reorder", json={"ordered_ids": [1]}).status_code == 401
