"""Project Squared authentication strategy.

Authenticates users by delegating to Project Squared over OAuth 2.0. The
strategy owns a generic OAuth2 client configured with the Project Squared
endpoints and turns the provider's profile response into a :class:`Profile`.

Example::

    def verify(access_token, refresh_token, profile):
        return users.find_or_create(profile.id)

    strategy = ProjectSquaredStrategy(
        StrategyOptions(
            client_id="123-456-789",
            client_secret="shhh-its-a-secret",
            callback_url="https://www.example.net/auth/projectsquared/callback",
        ),
        verify,
    )
    authenticator.use(strategy)
"""
from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from projectsquared_auth.clients.oauth import HttpOAuth2Client, OAuthClientError
from projectsquared_auth.clients.types import OAuth2Client
from projectsquared_auth.profile import Profile, ProfileFormatError, ProfileIdField, build_profile
from projectsquared_auth.settings import Settings


logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://idbroker.webex.com/idb/oauth2/v1/authorize"
TOKEN_URL = "https://idbroker.webex.com/idb/oauth2/v1/access_token"
PROFILE_URL = "https://conv-a.wbx2.com/conversation/api/v1/users"

VerifyFunction = Callable[[str, Optional[str], Profile], Union[Any, Awaitable[Any]]]


class InternalOAuthError(Exception):
    """Wraps an OAuth2 client failure with a strategy-level message."""

    def __init__(self, message: str, oauth_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.oauth_error = oauth_error

    def __str__(self) -> str:
        if self.oauth_error is None:
            return self.args[0]
        return f"{self.args[0]}: {self.oauth_error}"


@dataclass(frozen=True)
class StrategyOptions:
    client_id: str
    client_secret: str | None
    callback_url: str
    authorization_url: str | None = None
    token_url: str | None = None
    profile_url: str | None = None
    scope: str | None = None
    profile_id_field: ProfileIdField = "id"


@dataclass(frozen=True)
class ProfileResult:
    """Either a profile or the error that prevented building one."""

    profile: Profile | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if (self.profile is None) == (self.error is None):
            raise ValueError("ProfileResult needs exactly one of profile or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Profile:
        if self.error is not None:
            raise self.error
        return self.profile  # type: ignore[return-value]


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a callback: a user, a rejected login (``info``), or an error."""

    user: Any = None
    error: BaseException | None = None
    info: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.user)


class ProjectSquaredStrategy:
    name = "projectsquared"

    def __init__(
        self,
        options: StrategyOptions,
        verify: VerifyFunction,
        *,
        client: OAuth2Client | None = None,
    ) -> None:
        self.options = options
        self.authorization_endpoint = options.authorization_url or AUTHORIZATION_URL
        self.token_endpoint = options.token_url or TOKEN_URL
        self.profile_url = options.profile_url or PROFILE_URL
        self._verify = verify
        self._oauth2: OAuth2Client = client or HttpOAuth2Client(
            authorization_url=self.authorization_endpoint,
            token_url=self.token_endpoint,
            client_id=options.client_id,
            client_secret=options.client_secret,
            callback_url=options.callback_url,
        )

    @classmethod
    def from_settings(cls, settings: Settings, verify: VerifyFunction) -> "ProjectSquaredStrategy":
        s = settings.projectsquared
        return cls(
            StrategyOptions(
                client_id=s.client_id,
                client_secret=s.client_secret,
                callback_url=s.callback_url,
                authorization_url=s.authorization_url,
                token_url=s.token_url,
                profile_url=s.profile_url,
                scope=s.scope,
                profile_id_field=s.profile_id_field,
            ),
            verify,
        )

    def authorization_url(self, state: str, *, code_challenge: str | None = None) -> str:
        return self._oauth2.build_authorization_url(
            state=state,
            scope=self.options.scope,
            redirect_uri=self.options.callback_url,
            code_challenge=code_challenge,
            code_challenge_method="S256" if code_challenge else None,
        )

    async def user_profile(self, access_token: str) -> ProfileResult:
        """Fetch the Project Squared user profile for ``access_token``.

        Never raises for provider-side problems: transport failures come back
        as :class:`InternalOAuthError`, an unparseable body as the
        decoder error itself.
        """
        try:
            body, _ = await self._oauth2.get(self.profile_url, access_token)
        except OAuthClientError as exc:
            logger.warning("profile fetch failed: %s", exc.description or exc)
            return ProfileResult(error=InternalOAuthError("failed to fetch user profile", exc))

        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as exc:
            # JSONDecodeError, oversized integers, nesting deeper than the decoder allows
            logger.warning("profile response is not valid JSON: %s", type(exc).__name__)
            return ProfileResult(error=exc)

        try:
            profile = build_profile(body, data, id_field=self.options.profile_id_field)
        except ProfileFormatError as exc:
            logger.warning("unusable profile response: %s", exc)
            return ProfileResult(error=exc)
        return ProfileResult(profile=profile)

    async def authenticate(self, code: str, *, code_verifier: str | None = None) -> AuthResult:
        """Complete the authorization-code flow and run the verify function."""
        try:
            token = await self._oauth2.exchange_code(
                code=code,
                redirect_uri=self.options.callback_url,
                code_verifier=code_verifier,
            )
        except OAuthClientError as exc:
            logger.warning("token exchange failed: %s", exc.description or exc)
            return AuthResult(error=InternalOAuthError("failed to obtain access token", exc))

        access_token = token["access_token"]
        refresh_token = token.get("refresh_token")

        result = await self.user_profile(access_token)
        if not result.ok:
            return AuthResult(error=result.error)

        try:
            user = self._verify(access_token, refresh_token, result.profile)
            if inspect.isawaitable(user):
                user = await user
        except Exception as exc:
            return AuthResult(error=exc)

        if not user:
            return AuthResult(info="verification rejected the profile")
        return AuthResult(user=user)
