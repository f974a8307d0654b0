from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.domain.entities import CallerIdentity
from cardapio.services.admin_auth import ADMIN_SESSION_COOKIE, caller_from_session


def get_caller(request: Request, db: Session = Depends(get_db)) -> Optional[CallerIdentity]:
    """Identidade explícita do chamador; ``None`` para visitantes anônimos.

    A checagem de papel fica nos serviços (``ensure_admin``), que recebem a
    identidade como parâmetro.
    """
    caller = caller_from_session(db, request.cookies.get(ADMIN_SESSION_COOKIE))
    request.state.caller = caller
    return caller
