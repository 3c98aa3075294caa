"""
FastAPI application factory for the lead intake service.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.concurrency import run_in_threadpool

from lead_intake import __version__
from lead_intake.config.settings import IntakeSettings, get_settings
from lead_intake.core.logging import setup_logging
from lead_intake.core.middleware import RequestLoggingMiddleware
from lead_intake.infrastructure.sms import SMSNotifier, create_notifier
from lead_intake.storage import EnrollmentStore, create_store
from lead_intake.webhooks.api import create_webhook_router
from lead_intake.webhooks.services import EnrollmentIntakeService


def create_app(
    settings: IntakeSettings | None = None,
    store: EnrollmentStore | None = None,
    notifier: SMSNotifier | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Create the lead intake application.

    Args:
        settings: Service settings (loaded from the environment when omitted)
        store: Enrollment store (built from settings when omitted)
        notifier: SMS notifier (built from settings when omitted)
        configure_logging: Install the loguru stdout sink

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging("lead-intake", settings.log_level, enable_json=settings.log_json)

    store = store or create_store(settings)
    notifier = notifier or create_notifier(settings)
    intake_service = EnrollmentIntakeService(
        store=store,
        notifier=notifier,
        require_telephone=settings.require_telephone,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        logger.info(f"🚀 Starting {settings.app_name} ({store.backend_name} store)")
        yield
        logger.info(f"🛑 Shutting down {settings.app_name}")
        await notifier.aclose()
        store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Framer enrollment webhook receiver",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.intake_service = intake_service

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(create_webhook_router())

    @app.get("/")
    async def root():
        """Service information."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "storage_backend": store.backend_name,
            "sms_enabled": settings.sms_enabled,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    async def health_check():
        """Service and store health."""
        store_health = await run_in_threadpool(store.health_check)
        return {
            "service": "lead-intake",
            "status": "healthy" if store_health.get("status") == "healthy" else "degraded",
            "store": store_health,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
