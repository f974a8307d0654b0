from __future__ import annotations

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)

# pbkdf2_sha256 para novos hashes; bcrypt só para verificar hashes antigos.
_pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        logger.warning("Unrecognized password hash format")
        return False
