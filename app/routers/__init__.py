"""API routers for the carecircle backend."""
from fastapi import APIRouter

from . import agreements, alerts, contradictions, health


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(alerts.router)
    api_router.include_router(contradictions.router)
    api_router.include_router(agreements.router)
    return api_router
