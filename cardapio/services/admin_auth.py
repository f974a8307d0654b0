from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy import func
from sqlalchemy.orm import Session

from cardapio.core.config import (
    ADMIN_SESSION_COOKIE_SAMESITE,
    ADMIN_SESSION_COOKIE_SECURE,
    ADMIN_SESSION_MAX_AGE_SECONDS,
    ADMIN_SESSION_SECRET,
    DEV_ADMIN_EMAIL,
    DEV_ADMIN_NAME,
    DEV_ADMIN_PASSWORD,
)
from cardapio.domain.entities import CallerIdentity
from cardapio.models.admin_user import AdminUser
from cardapio.services.passwords import hash_password, verify_password
from cardapio.services.store import store_operation

logger = logging.getLogger(__name__)

ADMIN_SESSION_COOKIE = "admin_session"
ADMIN_SESSION_SALT = "admin-session"


def _serializer() -> URLSafeTimedSerializer:
    if not ADMIN_SESSION_SECRET:
        raise RuntimeError("ADMIN_SESSION_SECRET não configurado.")
    return URLSafeTimedSerializer(ADMIN_SESSION_SECRET, salt=ADMIN_SESSION_SALT)


def create_admin_session(user_id: int) -> str:
    return _serializer().dumps(
        {"user_id": int(user_id), "exp": int(time.time()) + ADMIN_SESSION_MAX_AGE_SECONDS}
    )


def decode_admin_session(token: str | None) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    try:
        payload = _serializer().loads(token, max_age=ADMIN_SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if exp is not None:
        try:
            if int(exp) < int(time.time()):
                return None
        except (TypeError, ValueError):
            return None
    return payload


def set_admin_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=ADMIN_SESSION_COOKIE,
        value=token,
        max_age=ADMIN_SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite=ADMIN_SESSION_COOKIE_SAMESITE,
        secure=ADMIN_SESSION_COOKIE_SECURE,
        path="/",
    )


def clear_admin_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=ADMIN_SESSION_COOKIE,
        httponly=True,
        samesite=ADMIN_SESSION_COOKIE_SAMESITE,
        secure=ADMIN_SESSION_COOKIE_SECURE,
        path="/",
    )


def to_caller(user: AdminUser) -> CallerIdentity:
    return CallerIdentity(user_id=int(user.id), email=user.email, role=user.role or "")


def authenticate_admin(db: Session, email: str, password: str) -> Optional[AdminUser]:
    normalized_email = (email or "").strip().lower()
    with store_operation("authenticate_admin", email=normalized_email):
        user = (
            db.query(AdminUser)
            .filter(func.lower(AdminUser.email) == normalized_email, AdminUser.active.is_(True))
            .first()
        )
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Admin login failed: email=%s", normalized_email)
        return None
    return user


def caller_from_session(db: Session, token: str | None) -> Optional[CallerIdentity]:
    """Identidade do admin a partir do cookie; ``None`` quando anônimo ou inválido."""
    payload = decode_admin_session(token)
    if not payload:
        return None
    try:
        user_id = int(payload.get("user_id"))
    except (TypeError, ValueError):
        return None

    with store_operation("caller_from_session", user_id=user_id):
        user = (
            db.query(AdminUser)
            .filter(AdminUser.id == user_id, AdminUser.active.is_(True))
            .first()
        )
    if user is None:
        return None
    return to_caller(user)


def bootstrap_admin(db: Session) -> Optional[AdminUser]:
    """Cria o primeiro admin a partir de DEV_ADMIN_* quando a tabela está vazia."""
    if not DEV_ADMIN_EMAIL or not DEV_ADMIN_PASSWORD:
        return None
    if db.query(AdminUser.id).first() is not None:
        return None

    admin = AdminUser(
        email=DEV_ADMIN_EMAIL.lower(),
        name=DEV_ADMIN_NAME,
        password_hash=hash_password(DEV_ADMIN_PASSWORD),
        role="owner",
        active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Bootstrap admin created: email=%s", admin.email)
    return admin
