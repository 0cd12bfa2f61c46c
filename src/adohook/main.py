"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from adohook import __version__
from adohook.config import Settings, settings
from adohook.credentials import CredentialProvider, build_credential
from adohook.hooks.build import BuildCompleteHandler
from adohook.hooks.dispatcher import HookDispatcher
from adohook.hooks.verifier import NotificationVerifier
from adohook.logging_config import configure_logging, json_logs_enabled

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=json_logs_enabled(settings))

logger = logging.getLogger(__name__)


def build_dispatcher(
    config: Settings,
    client: httpx.AsyncClient,
    credentials: CredentialProvider,
) -> HookDispatcher:
    """Wire the verifier and the known event handlers into a dispatcher."""
    verifier = NotificationVerifier(
        client,
        config.verification_url_base,
        timeout=config.verify_timeout_seconds,
    )
    dispatcher = HookDispatcher(
        credentials,
        verifier,
        audience=config.ado_resource,
        always_verify=config.always_verify,
    )
    build_handler = BuildCompleteHandler()
    dispatcher.register(build_handler.event_type, build_handler)
    return dispatcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared HTTP client, credential cache and dispatcher."""
    client = httpx.AsyncClient(timeout=settings.verify_timeout_seconds)

    credentials = CredentialProvider(
        build_credential(settings, client),
        default_audience=settings.ado_resource,
        refresh_margin_seconds=settings.token_refresh_margin_seconds,
    )
    # Tolerates failure: the identity endpoint is often late during startup.
    await credentials.initialize()

    app.state.http_client = client
    app.state.credentials = credentials
    app.state.dispatcher = build_dispatcher(settings, client, credentials)

    logger.info(
        "adohook started (organization=%s, always_verify=%s)",
        settings.verification_url_base,
        settings.always_verify,
    )
    yield

    # Shutdown
    await client.aclose()
    logger.info("adohook shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="ADO hook receiver",
        version=__version__,
        description="Verifies Azure DevOps service-hook notifications and dispatches them by event type.",
        lifespan=lifespan,
    )

    from adohook.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    # Register error handlers
    from adohook.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    from adohook.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
