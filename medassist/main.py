"""Application entrypoint: ``uvicorn medassist.main:app``."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from medassist.api.v1.router import get_api_router
from medassist.core.config import get_config
from medassist.core.exceptions import (
    ConfigurationError,
    MedAssistException,
    MissingEntityError,
    RenderFailure,
    StateConflictError,
    TransportFailure,
    ValidationError,
)
from medassist.core.startup import bootstrap
from medassist.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)

# Checked in order; a send event that is both missing and conflicting is a 404.
_STATUS_BY_ERROR: tuple[tuple[type[MedAssistException], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MissingEntityError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (TransportFailure, status.HTTP_502_BAD_GATEWAY),
    (RenderFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: MedAssistException) -> int:
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_domain_error(request: Request, exc: MedAssistException) -> JSONResponse:
    status_code = status_for(exc)
    envelope = ErrorEnvelope(
        error_code=exc.error_code,
        detail=exc.message,
        field=getattr(exc, "field", None),
        send_id=getattr(exc, "send_id", None),
    )
    if status_code >= 500 and not isinstance(exc, TransportFailure):
        logger.error(
            "api.request.failed",
            extra={"event": "api.request.failed", "path": request.url.path, "error_code": exc.error_code},
        )
    return JSONResponse(status_code=status_code, content=envelope.model_dump(exclude_none=True))


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap()
    yield


def create_app(run_bootstrap: bool = True) -> FastAPI:
    """Build the API; tests pass ``run_bootstrap=False`` to skip schema creation and checks."""
    cfg = get_config()
    app = FastAPI(
        title=cfg.APP_NAME,
        version=cfg.APP_VERSION,
        debug=cfg.DEBUG,
        lifespan=lifespan if run_bootstrap else None,
    )
    app.add_exception_handler(MedAssistException, handle_domain_error)
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# ASGI app for `uvicorn medassist.main:app`.
app = create_app()
