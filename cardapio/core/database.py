from __future__ import annotations

from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from cardapio.core.config import DATABASE_URL, STORE_TIMEOUT_SECONDS


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": STORE_TIMEOUT_SECONDS,
            },
        }

    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_timeout": STORE_TIMEOUT_SECONDS,
    }
    if url.startswith("postgresql"):
        # Consultas que passam do limite são canceladas pelo próprio banco.
        options["connect_args"] = {
            "options": f"-c statement_timeout={STORE_TIMEOUT_SECONDS * 1000}",
        }
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
