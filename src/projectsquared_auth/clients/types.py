from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx


class OAuth2Client(Protocol):
    authorization_endpoint: str
    token_endpoint: str
    client_id: str
    callback_url: str | None

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
        ...

    async def exchange_code(
        self,
        *,
        code: str,
        redirect_uri: str | None = None,
        code_verifier: str | None = None,
    ) -> Mapping[str, Any]:
        ...

    async def get(self, url: str, access_token: str) -> tuple[str, httpx.Response]:
        ...
