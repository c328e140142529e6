"""
Storefront - Application Entry Point
=====================================
FastAPI app initialization, middleware, exception handlers, background
session sweep, and router registration.
"""

import asyncio
import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from config.database import Base, engine
from common.deadline import start_deadline
from common.exceptions import StorefrontError, AuthError
from modules.auth.service import CredentialService
from modules.auth.sessions import SessionStore, build_session_store

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")
scheduler_logger = logging.getLogger("storefront.scheduler")
request_logger = logging.getLogger("storefront.requests")

# ==========================================
# Import ALL models so Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401,E402
from modules.catalog.models import Product, ProductImage  # noqa: F401,E402
from modules.cart.models import Cart, CartItem  # noqa: F401,E402
from modules.order.models import Order, OrderItem  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router  # noqa: E402
from modules.catalog.routes import router as catalog_router  # noqa: E402
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.order.routes import router as order_router  # noqa: E402


# ==========================================
# Background Scheduler: Expired Session Sweep
# ==========================================
def _sweep_sessions(store: SessionStore):
    """Background job: evict expired sessions so the store doesn't grow between validations."""
    try:
        count = store.sweep()
        if count:
            scheduler_logger.info(f"Evicted {count} expired sessions")
    except Exception as e:
        scheduler_logger.error(f"Session sweep error: {e}")


def _make_lifespan(create_tables: bool, start_scheduler: bool):

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            # Auto-create any missing tables (safe for existing tables)
            Base.metadata.create_all(bind=engine)

        scheduler = None
        if start_scheduler:
            scheduler = BackgroundScheduler()
            scheduler.add_job(
                _sweep_sessions, "interval",
                minutes=settings.SESSION_SWEEP_INTERVAL_MINUTES,
                args=[app.state.session_store],
                id="session_sweep",
            )
            scheduler.start()
            scheduler_logger.info(
                f"Background scheduler started (sessions: {settings.SESSION_SWEEP_INTERVAL_MINUTES}m)"
            )
        yield
        if scheduler:
            scheduler.shutdown()
            scheduler_logger.info("Background scheduler stopped")

    return lifespan


# ==========================================
# Exception handlers
# ==========================================
async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Business errors -> JSON with a machine-readable kind."""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    response = JSONResponse(
        {"error": exc.kind, "message": exc.message},
        status_code=exc.status_code,
    )
    if isinstance(exc, AuthError) and exc.clear_cookie:
        response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "InvalidRequest", "message": "Invalid request", "detail": exc.errors()},
        status_code=400,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        {"error": "InternalError", "message": "Internal server error"},
        status_code=500,
    )


# ==========================================
# Middleware helpers
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico")
_SENSITIVE_KEYS = re.compile(r"(password|token|session_id)=[^&]*", re.IGNORECASE)


def _mask_query(query: str) -> str:
    return _SENSITIVE_KEYS.sub(lambda m: m.group(0).split("=")[0] + "=***", query)


# ==========================================
# Create App
# ==========================================
def create_app(
    session_store: SessionStore = None,
    create_tables: bool = True,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Build the application. One session store per app, shared by the auth gate
    and the credential service; tests pass their own.
    """
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=_make_lifespan(create_tables, start_scheduler),
    )

    # An empty MemorySessionStore is falsy (__len__), so test against None
    store = session_store if session_store is not None else build_session_store()
    app.state.session_store = store
    app.state.credential_service = CredentialService(store)

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ==========================================
    # Middleware: Request Timeout
    # ==========================================
    @app.middleware("http")
    async def request_timeout(request: Request, call_next):
        start_deadline(request, settings.REQUEST_TIMEOUT_SECONDS)
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.error(f"Timeout on {request.method} {request.url.path}")
            return JSONResponse(
                {"error": "Timeout", "message": "Request took too long"},
                status_code=504,
            )

    # ==========================================
    # Middleware: Request Log
    # ==========================================
    @app.middleware("http")
    async def request_log(request: Request, call_next):
        path = request.url.path
        if path.startswith(_SKIP_PATHS):
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        elapsed_ms = int((time.time() - start) * 1000)

        account = getattr(request.state, "account_id", None) or "anonymous"
        query = f"?{_mask_query(request.url.query)}" if request.url.query else ""
        request_logger.info(
            f"{request.method} {path}{query} -> {response.status_code} ({elapsed_ms}ms) [{account}]"
        )
        return response

    # ==========================================
    # Register Routers
    # ==========================================
    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(cart_router)
    app.include_router(order_router)

    # ==========================================
    # Health check
    # ==========================================
    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "1.0.0"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
