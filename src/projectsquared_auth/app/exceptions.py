from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from projectsquared_auth.clients.oauth import OAuthClientError


logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(httpx.HTTPError)
    async def httpx_error_handler(_, exc: httpx.HTTPError):
        return JSONResponse(status_code=502, content={"detail": f"External API error: {str(exc)}"})

    @app.exception_handler(OAuthClientError)
    async def oauth_error_handler(_, exc: OAuthClientError):
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "error": exc.error, "error_description": exc.description},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_, exc: Exception):
        logger.exception("unhandled error", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
