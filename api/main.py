"""FastAPI app entrypoint."""

import logging
import os
import time
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from api.logging_config import setup_logging
from api.routers import admin, auth, campaigns, users
from database import async_session, init_db
from domain import accounts
from domain.errors import DomainError

logger = logging.getLogger("sampling.api")


async def _ensure_master_account():
    """Create the initial admin account if it does not exist."""
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password = os.getenv("ADMIN_PASSWORD", "admin1234")

    if admin_password == "admin1234":
        logger.warning(
            "ADMIN_PASSWORD is using default value. "
            "Change it in .env for production!"
        )

    async with async_session() as session:
        await accounts.ensure_admin(session, admin_email, admin_password)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise the database and the bootstrap admin on startup."""
    setup_logging()
    logger.info("Sampling API starting up")
    await init_db()
    await _ensure_master_account()
    try:
        yield
    finally:
        logger.info("Sampling API shutting down")
        from database import engine
        await engine.dispose()
        logger.info("Database engine disposed")


app = FastAPI(
    title="Sampling API",
    description="商品サンプリングキャンペーン: 応募・当選・配送・レビュー",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

_cors_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3001")
CORS_ORIGINS = [o.strip() for o in _cors_origins.split(",") if o.strip()]


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject standard security headers into every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = time.time() - start
        logger.info(
            "%s %s -> %d (%.2fs)",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Exception handlers: every failure is rendered as {"error": ...}
# ---------------------------------------------------------------------------
@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("Domain failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None) or {}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field} {err.get('msg', 'is invalid')}".strip())
    return JSONResponse(status_code=422, content={"error": ", ".join(messages)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s (type=%s)",
        request.method,
        request.url.path,
        str(exc),
        type(exc).__name__,
    )
    logger.debug(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


app.include_router(auth.router)
app.include_router(campaigns.router)
app.include_router(users.router)
app.include_router(admin.router)


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API docs."""
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/docs")


@app.get("/health")
async def health():
    from database import engine

    health_status = {"status": "ok", "service": "sampling-api", "version": "0.1.0"}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["database"] = f"error: {str(e)}"
    return health_status
