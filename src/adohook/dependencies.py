"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from adohook.credentials import CredentialProvider
from adohook.hooks.dispatcher import HookDispatcher


def get_dispatcher(request: Request) -> HookDispatcher:
    """Return the dispatcher built during application startup."""
    return request.app.state.dispatcher


def get_credentials(request: Request) -> CredentialProvider:
    """Return the shared credential provider."""
    return request.app.state.credentials


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


# Type aliases for dependency injection
Dispatcher = Annotated[HookDispatcher, Depends(get_dispatcher)]
Credentials = Annotated[CredentialProvider, Depends(get_credentials)]
TraceId = Annotated[str, Depends(get_trace_id)]
