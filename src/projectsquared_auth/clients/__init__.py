from projectsquared_auth.clients.oauth import (
    HttpOAuth2Client,
    OAuthClientError,
    OAuthConfigurationError,
    OAuthTokenError,
)
from projectsquared_auth.clients.types import OAuth2Client

__all__ = [
    "HttpOAuth2Client",
    "OAuth2Client",
    "OAuthClientError",
    "OAuthConfigurationError",
    "OAuthTokenError",
]
