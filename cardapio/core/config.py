import os
from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cardapio.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_STAGE = ENV_NORMALIZED in {"stage", "staging", "homolog"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

# Loja
STORE_TIMEZONE = os.getenv("STORE_TIMEZONE", "America/Sao_Paulo").strip() or "America/Sao_Paulo"
STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS", "30"))
TRACKING_READY_WINDOW_MINUTES = int(os.getenv("TRACKING_READY_WINDOW_MINUTES", "120"))

# CORS
_cors_env = os.getenv("ORIGENS_CORS", os.getenv("CORS_ORIGINS", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Sessão admin (cookie assinado)
ADMIN_SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET", "")
ADMIN_SESSION_MAX_AGE_SECONDS = int(os.getenv("ADMIN_SESSION_MAX_AGE_SECONDS", "604800"))
ADMIN_SESSION_COOKIE_SECURE = _env_flag("ADMIN_SESSION_COOKIE_SECURE", "0" if IS_DEV else "1")
ADMIN_SESSION_COOKIE_SAMESITE = os.getenv(
    "ADMIN_SESSION_COOKIE_SAMESITE",
    "lax" if IS_DEV else "none",
).strip().lower()
if ADMIN_SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    ADMIN_SESSION_COOKIE_SAMESITE = "lax" if IS_DEV else "none"
if ADMIN_SESSION_COOKIE_SAMESITE == "none" and not ADMIN_SESSION_COOKIE_SECURE:
    ADMIN_SESSION_COOKIE_SAMESITE = "lax"

# Bootstrap do primeiro admin
DEV_ADMIN_EMAIL = os.getenv("DEV_ADMIN_EMAIL", "admin@example.com").strip()
DEV_ADMIN_PASSWORD = os.getenv("DEV_ADMIN_PASSWORD", "").strip()
DEV_ADMIN_NAME = os.getenv("DEV_ADMIN_NAME", "Admin").strip() or "Admin"
