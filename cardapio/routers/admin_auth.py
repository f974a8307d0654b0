from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from cardapio.core.database import get_db
from cardapio.deps import get_caller
from cardapio.domain.entities import CallerIdentity
from cardapio.services.admin_auth import (
    authenticate_admin,
    clear_admin_session_cookie,
    create_admin_session,
    set_admin_session_cookie,
)
from cardapio.services.authorization import ensure_admin

router = APIRouter(prefix="/api/admin/auth", tags=["admin-auth"])
logger = logging.getLogger(__name__)


class AdminLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminIdentityRead(BaseModel):
    user_id: int
    email: str
    role: str


@router.post("/login", response_model=AdminIdentityRead)
def admin_login(payload: AdminLoginPayload, response: Response, db: Session = Depends(get_db)):
    user = authenticate_admin(db, payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")

    set_admin_session_cookie(response, create_admin_session(user.id))
    logger.info("Admin login: user_id=%s", user.id)
    return AdminIdentityRead(user_id=user.id, email=user.email, role=user.role)


@router.post("/logout")
def admin_logout(response: Response):
    clear_admin_session_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=AdminIdentityRead)
def admin_me(caller: Optional[CallerIdentity] = Depends(get_caller)):
    caller = ensure_admin(caller, action="read_session")
    return AdminIdentityRead(user_id=caller.user_id, email=caller.email, role=caller.role)
