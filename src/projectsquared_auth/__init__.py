from projectsquared_auth.authenticator import Authenticator, AuthStrategy, StrategyNotFoundError
from projectsquared_auth.profile import PROVIDER, Profile, ProfileEmail, ProfileFormatError, build_profile
from projectsquared_auth.strategy import (
    AuthResult,
    InternalOAuthError,
    ProfileResult,
    ProjectSquaredStrategy,
    StrategyOptions,
)

Strategy = ProjectSquaredStrategy

__all__ = [
    "PROVIDER",
    "AuthResult",
    "AuthStrategy",
    "Authenticator",
    "InternalOAuthError",
    "Profile",
    "ProfileEmail",
    "ProfileFormatError",
    "ProfileResult",
    "ProjectSquaredStrategy",
    "Strategy",
    "StrategyNotFoundError",
    "StrategyOptions",
    "build_profile",
]
