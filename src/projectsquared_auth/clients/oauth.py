from __future__ import annotations

from typing import Any, Dict, Mapping

import httpx
from authlib.common.urls import add_params_to_uri


class OAuthClientError(Exception):
    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        description: str | None = None,
        status_code: int | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.description = description
        self.status_code = status_code
        self.details = dict(details or {})


class OAuthConfigurationError(OAuthClientError):
    """Raised when client configuration is incomplete."""


class OAuthTokenError(OAuthClientError):
    """Raised when the token endpoint returns an error."""


class HttpOAuth2Client:
    """Generic OAuth 2.0 authorization-code client that uses httpx for provider interactions.

    Knows nothing about a particular provider: endpoint URLs and credentials
    are supplied by the strategy that owns it.
    """

    def __init__(
        self,
        *,
        authorization_url: str,
        token_url: str,
        client_id: str,
        client_secret: str | None = None,
        callback_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not client_id:
            raise OAuthConfigurationError("OAuth2 client requires a client_id", error="configuration_error")
        if not authorization_url or not token_url:
            raise OAuthConfigurationError(
                "OAuth2 client requires authorization_url and token_url",
                error="configuration_error",
            )
        self.authorization_endpoint = authorization_url
        self.token_endpoint = token_url
        self.client_id = client_id
        self.callback_url = callback_url
        self._client_secret = client_secret
        self._timeout = timeout

    def build_authorization_url(
        self,
        *,
        state: str,
        scope: str | None = None,
        redirect_uri: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
        extra_params: Mapping[str, Any] | None = None,
    ) -> str:
        params: Dict[str, Any] = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": redirect_uri or self.callback_url,
            "scope": scope,
            "state": state,
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = code_challenge_method or "S256"
        if extra_params:
            params.update(extra_params)
        return add_params_to_uri(
            self.authorization_endpoint,
            [(str(k), str(v)) for k, v in params.items() if v is not None],
        )

    async def exchange_code(
        self,
        *,
        code: str,
        redirect_uri: str | None = None,
        code_verifier: str | None = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
        }
        redirect = redirect_uri or self.callback_url
        if redirect:
            data["redirect_uri"] = redirect
        if code_verifier:
            data["code_verifier"] = code_verifier
        if self._client_secret:
            data["client_secret"] = self._client_secret

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self.token_endpoint,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise OAuthTokenError(
                "Network error during token exchange",
                error="network_error",
                description=str(exc),
            ) from exc

        payload = _safe_json(resp)
        if resp.status_code >= 400:
            raise OAuthTokenError(
                "Token exchange failed",
                error=_error_code(payload),
                description=_error_description(payload, resp.text),
                status_code=resp.status_code,
                details=payload,
            )
        if not payload.get("access_token"):
            raise OAuthTokenError(
                "Token response did not include an access_token",
                error="invalid_token_response",
                status_code=resp.status_code,
                details=payload,
            )
        return payload

    async def get(self, url: str, access_token: str) -> tuple[str, httpx.Response]:
        """Authenticated GET returning the raw body text and the response."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise OAuthClientError(
                "Network error during authenticated request",
                error="network_error",
                description=str(exc),
            ) from exc

        if resp.status_code >= 400:
            raise OAuthClientError(
                "Authenticated request failed",
                error="http_error",
                description=resp.text,
                status_code=resp.status_code,
                details={"status_code": resp.status_code, "data": resp.text},
            )
        return resp.text, resp


def _safe_json(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {"raw": resp.text}
    if not isinstance(data, dict):
        return {"raw": resp.text}
    return data


def _error_code(payload: Mapping[str, Any]) -> str | None:
    for key in ("error", "error_code", "code"):
        value = payload.get(key)
        if isinstance(value, str):
            return value
    return None


def _error_description(payload: Mapping[str, Any], default: str) -> str:
    for key in ("error_description", "errorReason", "message", "error_message"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return default
