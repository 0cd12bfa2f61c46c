"""Master API router."""

from fastapi import APIRouter

from adohook.api.routes import health, hooks

api_router = APIRouter()
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(hooks.router)
