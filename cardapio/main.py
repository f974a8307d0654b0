import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardapio.core.config import CORS_ORIGINS, DATABASE_URL
from cardapio.core.database import Base, SessionLocal, engine
from cardapio.core.exception_handlers import register_exception_handlers
from cardapio.core.logging_setup import configure_logging
from cardapio.middleware.observability import ObservabilityMiddleware
import cardapio.models  # garante que os models são importados antes do create_all
from cardapio.routers.admin_auth import router as admin_auth_router
from cardapio.routers.admin_categories import router as admin_categories_router
from cardapio.routers.admin_coupons import router as admin_coupons_router
from cardapio.routers.admin_customers import router as admin_customers_router
from cardapio.routers.admin_metrics import router as admin_metrics_router
from cardapio.routers.admin_option_groups import router as admin_option_groups_router
from cardapio.routers.admin_orders import router as admin_orders_router
from cardapio.routers.admin_products import router as admin_products_router
from cardapio.routers.coupons import router as coupons_router
from cardapio.routers.orders import router as orders_router
from cardapio.routers.products import router as products_router
from cardapio.services.admin_auth import bootstrap_admin

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"


def _bootstrap_initial_admin() -> None:
    db = SessionLocal()
    try:
        admin = bootstrap_admin(db)
        if admin is None:
            logger.info("%s skipped", BOOTSTRAP_PREFIX)
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        # Cria tabelas (dev). Migrações ficam fora deste serviço.
        Base.metadata.create_all(bind=engine)
        _bootstrap_initial_admin()
    except Exception:
        logger.exception("%s ERROR startup failed database=%s", BOOTSTRAP_PREFIX, DATABASE_URL.split(":", 1)[0])
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Cardápio API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)
register_exception_handlers(app)

# Routers
app.include_router(orders_router)
app.include_router(coupons_router)
app.include_router(products_router)
app.include_router(admin_auth_router)
app.include_router(admin_orders_router)
app.include_router(admin_metrics_router)
app.include_router(admin_customers_router)
app.include_router(admin_coupons_router)
app.include_router(admin_products_router)
app.include_router(admin_categories_router)
app.include_router(admin_option_groups_router)


@app.get("/")
def root():
    return {"status": "ok", "service": "cardapio"}


@app.get("/health")
def health():
    return {"status": "ok"}
