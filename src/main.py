"""
Alertmanager Webhook for ServiceNow - Main Application
======================================================

Receives Prometheus Alertmanager notifications and reconciles each alert
group with a ServiceNow incident: create it when missing, update it with
the latest alert state otherwise.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Reconciliation service, gateway interface, DTOs
- Domain: Alert group entities, group key and incident field rules
- Infrastructure: ServiceNow client, YAML config provider
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, Response

# Configuration and Core
from src.config import settings
from src.core import ApplicationException

# Incidents Module
from src.incidents.application import GroupKeyLocks, ReconciliationService
from src.incidents.infrastructure import ServiceNowClient, YAMLConfigProvider
from src.incidents.interfaces import webhook_router

# Logging and Metrics
from src.shared.infrastructure.logging import setup_logging, get_logger
from src.shared.infrastructure.metrics import render_latest
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    MetricsMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load ServiceNow configuration (fails startup when invalid)
    3. Create ServiceNow client and reconciliation service

    SHUTDOWN:
    1. Close ServiceNow client
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting webhook", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    config_provider = YAMLConfigProvider(settings.config_file)
    config = config_provider.get_config()

    servicenow_client = ServiceNowClient.from_config(
        config,
        timeout=settings.servicenow_timeout_seconds
    )

    locks = GroupKeyLocks() if settings.serialize_by_group_key else None

    app.state.settings = settings
    app.state.reconciliation_service = ReconciliationService(
        gateway=servicenow_client,
        defaults=config_provider.get_incident_defaults(),
        group_key_field=config.service_now.incident_group_key_field,
        locks=locks
    )

    logger.info("Webhook started successfully", extra={
        "servicenow_url": config.service_now.base_url,
        "serialize_by_group_key": settings.serialize_by_group_key
    })

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down webhook")

    await servicenow_client.close()

    logger.info("Webhook shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Alertmanager Webhook for ServiceNow",
    description="""
    ## Alertmanager → ServiceNow incident bridge

    **Endpoints:**
    - `POST /webhook` - Receive an Alertmanager notification
    - `GET /metrics` - Prometheus metrics
    - `GET /health` - Health check

    One incident per alert group: the group labels, sorted by name, form the
    group key stored on the incident in the configured column.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === Middleware (last added runs first) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(webhook_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    The service is stateless; it only reports whether the ServiceNow
    configuration was loaded at startup.
    """
    configured = getattr(request.app.state, "reconciliation_service", None) is not None
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "servicenow_config": "loaded" if configured else "not_loaded"
        }
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics."""
    payload, content_type = render_latest()
    return Response(content=payload, media_type=content_type)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
        "endpoints": [
            "POST /webhook - Receive Alertmanager notification",
            "GET /metrics - Prometheus metrics"
        ]
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
