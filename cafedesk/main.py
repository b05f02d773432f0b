"""
Cafe Desk - FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError

from cafedesk import models  # noqa: F401  registers every table on Base.metadata
from cafedesk.api import (
    auth,
    employees,
    gallery,
    health,
    invoices,
    login_history,
    menu,
    notifications,
    orders,
    public,
    reports,
    settings as settings_api,
    tables,
)
from cafedesk.core.config import get_settings
from cafedesk.core.errors import CafeError
from cafedesk.core.redis_client import close_redis
from cafedesk.db.database import Base, async_session, engine
from cafedesk.db.staff_ops import ensure_bootstrap_admin
from cafedesk.db.table_ops import ensure_tables
from cafedesk.middleware.auth import JWTAuthMiddleware
from cafedesk.middleware.idempotency import IdempotencyMiddleware
from cafedesk.middleware.rate_limiter import SlidingWindowRateLimiter

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (Alembic handles migrations in production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        await ensure_tables(session)
        await ensure_bootstrap_admin(session)
    logger.info("%s %s ready", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    # Shutdown
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Cafe Desk",
    description="Cafe ordering, billing and back-office API: tables, orders, GST invoices, reports, staff.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)


# ── Error mapping ─────────────────────────────────────────────────────────────
@app.exception_handler(CafeError)
async def cafe_error_handler(request: Request, exc: CafeError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "The data store is unavailable. Please retry.", "error": "store_error"},
    )


# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production via env var
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The last one added runs first: rate limit, then auth, then idempotency.
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(JWTAuthMiddleware)
app.add_middleware(SlidingWindowRateLimiter)

# ── Prometheus Metrics ────────────────────────────────────────────────────────
if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(public.router)
app.include_router(auth.router)
app.include_router(orders.router)
app.include_router(tables.router)
app.include_router(invoices.router)
app.include_router(menu.router)
app.include_router(gallery.router)
app.include_router(reports.router)
app.include_router(notifications.router)
app.include_router(employees.router)
app.include_router(login_history.router)
app.include_router(settings_api.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
