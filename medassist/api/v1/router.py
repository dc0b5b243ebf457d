"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from medassist.api.v1 import health, invoices, sends
from medassist.core.config import get_config


def get_api_router() -> APIRouter:
    api_router = APIRouter(prefix=get_config().API_PREFIX)
    api_router.include_router(health.router)
    api_router.include_router(invoices.router)
    api_router.include_router(sends.router)
    return api_router
