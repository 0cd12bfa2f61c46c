"""Health check endpoints."""

from fastapi import APIRouter

from adohook import __version__
from adohook.dependencies import Credentials

router = APIRouter()


@router.get("/health")
async def liveness():
    """Liveness probe: 200 whenever the process is serving."""
    return {"status": "alive", "service": "adohook", "version": __version__}


@router.get("/health/ready")
async def readiness(credentials: Credentials):
    """Report whether a token is cached.

    Always 200: a token that could not be fetched at startup is retried per
    request, so it must not take the instance out of rotation.
    """
    return {
        "status": "ready",
        "checks": {"credentials": "ok" if credentials.has_token else "pending"},
    }
