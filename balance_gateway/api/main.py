"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from balance_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from balance_gateway.api.v1 import balance, simulation, closeouts, incidents
from balance_gateway.infrastructure.observability.logging import setup_logging
from balance_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Venue Available Balance Gateway",
        description="Settlement balance views, simulations, cash closeouts and settlement incidents for venues",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
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
    app.include_router(balance.router, prefix="/v1", tags=["balance"])
    app.include_router(simulation.router, prefix="/v1", tags=["simulation"])
    app.include_router(closeouts.router, prefix="/v1", tags=["cash-closeouts"])
    app.include_router(incidents.router, prefix="/v1", tags=["settlement-incidents"])

    return app


app = create_app()
