"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from billwise.api.middleware import RequestIDMiddleware, MetricsMiddleware
from billwise.api.v1 import (
    accounts,
    billers,
    budget,
    installments,
    projections,
    savings,
    schedules,
    transactions,
    trash,
)
from billwise.infrastructure.database.schema import verify_schema
from billwise.infrastructure.database.session import engine
from billwise.infrastructure.observability.logging import setup_logging
from billwise.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail fast when migrations haven't been applied
    if settings.verify_schema_on_startup:
        verify_schema(engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Billwise",
        description="Personal budgeting: bills, installments and payment reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(billers.router, prefix="/v1", tags=["billers"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(schedules.router, prefix="/v1", tags=["schedules"])
    app.include_router(budget.router, prefix="/v1", tags=["budget"])
    app.include_router(projections.router, prefix="/v1", tags=["projections"])
    app.include_router(savings.router, prefix="/v1", tags=["savings"])
    app.include_router(trash.router, prefix="/v1", tags=["trash"])

    return app


app = create_app()
