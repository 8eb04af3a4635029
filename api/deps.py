"""JWT authentication dependencies for FastAPI.

Two independent identity domains (users and admins) share the token format;
the ``kind`` claim says which table ``sub`` refers to. Every token is bound to
an ``AuthSession`` row through its ``sid`` claim so logout can revoke it.
"""

import os
import secrets
import warnings
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Annotated

from dotenv import load_dotenv
from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from database.models import Admin, AuthSession, User, utcnow
from database.schemas import MAX_ROW_ID
from domain.errors import Unauthorized

load_dotenv()

_env_secret = os.getenv("JWT_SECRET_KEY", "")

if not _env_secret:
    if os.getenv("ENVIRONMENT", "").lower() == "production":
        raise RuntimeError("JWT_SECRET_KEY must be set in production!")
    _env_secret = secrets.token_urlsafe(32)
    warnings.warn("JWT_SECRET_KEY was not set - using a per-process random key")

JWT_SECRET_KEY = _env_secret
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

PRINCIPAL_USER = "user"
PRINCIPAL_ADMIN = "admin"
PRINCIPAL_ANONYMOUS = "anonymous"

_bearer_scheme = HTTPBearer(auto_error=False)

MAX_PAGE = 100_000

PathId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


@dataclass
class Principal:
    kind: str = PRINCIPAL_ANONYMOUS
    user: User | None = None
    admin: Admin | None = None
    session_id: str | None = None

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user else None


def create_access_token(principal_id: int, kind: str, session_id: str) -> str:
    """Create a JWT access token bound to an auth session."""
    expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS)
    payload = {
        "sub": str(principal_id),
        "kind": kind,
        "sid": session_id,
        "exp": expire,
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


async def open_session(db: AsyncSession, kind: str, principal_id: int, request: Request | None = None) -> str:
    """Persist a new auth session and return the signed token."""
    session_id = secrets.token_urlsafe(32)
    ip = None
    ua = None
    if request is not None:
        ip = request.headers.get("X-Forwarded-For", request.client.host if request.client else "unknown")
        ua = request.headers.get("User-Agent", "")[:500]
    db.add(AuthSession(
        principal_type=kind,
        principal_id=principal_id,
        session_token=session_id,
        ip_address=ip,
        user_agent=ua,
        is_active=True,
        expires_at=utcnow() + timedelta(hours=JWT_EXPIRE_HOURS),
    ))
    await db.commit()
    return create_access_token(principal_id, kind, session_id)


async def revoke_session(db: AsyncSession, session_id: str | None, reason: str = "logout") -> None:
    if not session_id:
        return
    result = await db.execute(select(AuthSession).where(AuthSession.session_token == session_id))
    auth_session = result.scalar_one_or_none()
    if auth_session is not None and auth_session.is_active:
        auth_session.is_active = False
        auth_session.revoked_at = utcnow()
        auth_session.revoke_reason = reason
        await db.commit()


async def _resolve(token: str, db: AsyncSession) -> Principal:
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("トークンが無効か期限切れです")

    sub, kind, sid = payload.get("sub"), payload.get("kind"), payload.get("sid")
    if sub is None or not str(sub).isdigit() or kind not in (PRINCIPAL_USER, PRINCIPAL_ADMIN) or not sid:
        raise Unauthorized("トークンが無効です")

    result = await db.execute(
        select(AuthSession).where(
            AuthSession.session_token == sid,
            AuthSession.principal_type == kind,
            AuthSession.principal_id == int(sub),
            AuthSession.is_active == True,  # noqa: E712
        )
    )
    auth_session = result.scalar_one_or_none()
    if auth_session is None or (auth_session.expires_at and auth_session.expires_at < utcnow()):
        raise Unauthorized("セッションが無効です。再度ログインしてください")

    model = User if kind == PRINCIPAL_USER else Admin
    account = await db.get(model, int(sub))
    if account is None:
        raise Unauthorized("アカウントが見つかりません")

    if kind == PRINCIPAL_USER:
        return Principal(kind=kind, user=account, session_id=sid)
    return Principal(kind=kind, admin=account, session_id=sid)


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the caller; missing or unusable tokens yield an anonymous principal."""
    if not credentials:
        return Principal()
    try:
        return await _resolve(credentials.credentials, db)
    except Unauthorized:
        return Principal()


async def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if not credentials:
        raise Unauthorized("ログインが必要です")
    principal = await _resolve(credentials.credentials, db)
    if principal.kind != PRINCIPAL_USER:
        raise Unauthorized("ログインが必要です")
    return principal


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if not credentials:
        raise Unauthorized("管理者権限が必要です")
    principal = await _resolve(credentials.credentials, db)
    if principal.kind != PRINCIPAL_ADMIN:
        raise Unauthorized("管理者権限が必要です")
    return principal
