"""Authentication router - user register, login, logout."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import PRINCIPAL_USER, Principal, open_session, require_user, revoke_session
from api.serializers import user_json
from database import get_db
from database.models import User
from database.schemas import LoginIn, RegisterIn
from domain import accounts

logger = logging.getLogger("sampling.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    body: RegisterIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Create an account and sign it in straight away."""
    user = await accounts.register(db, body.email, body.password, body.password_confirmation, body.name)
    token = await open_session(db, PRINCIPAL_USER, user.id, request)
    logger.info("User registered: %s", user.email)
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user_json(user),
        "message": "アカウントが作成されました",
    }


@router.post("/login")
async def login(
    body: LoginIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await accounts.authenticate(db, User, body.email, body.password)
    token = await open_session(db, PRINCIPAL_USER, user.id, request)
    logger.info("User login: %s", user.email)
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user_json(user),
        "message": "ログインしました",
    }


@router.post("/logout")
async def logout(
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the session behind the current token."""
    await revoke_session(db, principal.session_id, "logout")
    logger.info("User logout: %s", principal.user.email)
    return {"message": "ログアウトしました"}
