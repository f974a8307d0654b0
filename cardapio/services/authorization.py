from __future__ import annotations

import logging

from cardapio.core.errors import ForbiddenError, NotAuthenticatedError
from cardapio.domain.entities import ADMIN_ROLES, CallerIdentity

logger = logging.getLogger(__name__)


def normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def log_access_denied(*, reason: str, caller: CallerIdentity | None, action: str) -> None:
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s action=%s",
        reason,
        getattr(caller, "user_id", None),
        getattr(caller, "role", None),
        action,
        extra={"reason": reason, "action": action},
    )


def ensure_admin(caller: CallerIdentity | None, *, action: str) -> CallerIdentity:
    """Garante que a identidade recebida pode executar operações administrativas."""
    if caller is None:
        log_access_denied(reason=NotAuthenticatedError.reason, caller=None, action=action)
        raise NotAuthenticatedError()
    if normalize_role(caller.role) not in ADMIN_ROLES:
        log_access_denied(reason=ForbiddenError.reason, caller=caller, action=action)
        raise ForbiddenError()
    return caller
