from __future__ import annotations

from fastapi import APIRouter, Request


router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check() -> dict:
    return {"status": "healthy", "service": "projectsquared-auth"}


@router.get("/")
async def index(request: Request) -> dict:
    return {
        "user": request.session.get("user"),
        "auth_error": request.session.get("auth_error"),
        "strategies": request.app.state.authenticator.names(),
    }
