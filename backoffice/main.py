"""
Back-office API service

Customers, products, orders and sales reports behind one FastAPI app,
with structured logging and health endpoints.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backoffice.core import RequestLoggingMiddleware, ServiceHealth, get_logger, setup_logging
from backoffice.core_settings import get_settings
from backoffice.api import customers, orders, products, reports
from backoffice.application.cache import get_customer_cache
from backoffice.application.errors import ServiceError
from backoffice.infrastructure.db import get_db, init_models

settings = get_settings()

setup_logging(
    service_name=settings.SERVICE_NAME,
    level=settings.LOG_LEVEL,
    service_version=settings.SERVICE_VERSION,
)
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Service starting",
        extra={"extra_fields": {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}},
    )
    try:
        init_models()
    except Exception:
        logger.exception("Database schema initialization failed")
        raise
    yield
    logger.info("Service stopped")

app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Store back-office: customers, products, orders and sales reports",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(
        f"{type(exc).__name__}: {exc.detail}",
        extra={"extra_fields": {"status_code": exc.status_code}},
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

health = ServiceHealth(
    settings.SERVICE_NAME,
    settings.SERVICE_VERSION,
    get_db,
    extra_metrics=lambda: {"customer_cache_generation": get_customer_cache().generation},
)
app.include_router(health.create_health_router())

for module in (customers, products, orders, reports):
    app.include_router(module.router)

@app.get("/")
def root():
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "status": "running",
        "docs": app.docs_url,
    }
