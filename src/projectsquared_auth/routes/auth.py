from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from projectsquared_auth.authenticator import Authenticator, AuthStrategy, StrategyNotFoundError
from projectsquared_auth.clients.oauth import OAuthClientError
from projectsquared_auth.security import code_challenge_s256, generate_code_verifier, generate_state
from projectsquared_auth.settings import get_settings
from projectsquared_auth.strategy import InternalOAuthError


router = APIRouter(prefix="/auth", tags=["auth"])

# Session keys
STATE_KEY = "oauth_state"
VERIFIER_KEY = "code_verifier"


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def _strategy(name: str, authenticator: Authenticator) -> AuthStrategy:
    try:
        return authenticator.get(name)
    except StrategyNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown authentication strategy: {name}")


def _error_payload(error: BaseException) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": "authentication_failed", "error_description": str(error)}
    cause = error.oauth_error if isinstance(error, InternalOAuthError) else None
    if isinstance(cause, OAuthClientError):
        payload["error"] = cause.error or "oauth_error"
        payload["status_code"] = cause.status_code
    return payload


@router.get("/{name}/login")
async def login(name: str, request: Request, authenticator: Authenticator = Depends(get_authenticator)):
    strategy = _strategy(name, authenticator)
    state = generate_state()

    # Persist minimal state needed for callback validation
    request.session[STATE_KEY] = state
    code_challenge = None
    if get_settings().projectsquared.use_pkce:
        code_verifier = generate_code_verifier()
        request.session[VERIFIER_KEY] = code_verifier
        code_challenge = code_challenge_s256(code_verifier)

    return RedirectResponse(url=strategy.authorization_url(state, code_challenge=code_challenge))


@router.get("/{name}/callback")
async def callback(name: str, request: Request, authenticator: Authenticator = Depends(get_authenticator)):
    strategy = _strategy(name, authenticator)

    # Provider sign-in error
    if "error" in request.query_params:
        request.session["auth_error"] = {
            "error": request.query_params.get("error"),
            "error_description": request.query_params.get("error_description"),
        }
        return RedirectResponse(url="/")

    # Validate state
    state_param = request.query_params.get("state")
    if not state_param or state_param != request.session.get(STATE_KEY):
        raise HTTPException(status_code=400, detail="Invalid state (check cookie SameSite/HTTPS)")

    code_param = request.query_params.get("code")
    if not code_param:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    result = await strategy.authenticate(code_param, code_verifier=request.session.get(VERIFIER_KEY))

    # Rotate transient values
    for k in (STATE_KEY, VERIFIER_KEY):
        request.session.pop(k, None)

    if result.error is not None:
        request.session["auth_error"] = _error_payload(result.error)
    elif not result.user:
        request.session["auth_error"] = {"error": "access_denied", "error_description": result.info}
    else:
        request.session["user"] = result.user
        request.session.pop("auth_error", None)

    return RedirectResponse(url="/")


@router.post("/logout")
@router.get("/logout")
async def logout(request: Request):
    request.session.clear()
    return RedirectResponse(url="/")
