from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from projectsquared_auth.strategy import AuthResult


class AuthStrategy(Protocol):
    name: str

    def authorization_url(self, state: str, *, code_challenge: str | None = None) -> str:
        ...

    async def authenticate(self, code: str, *, code_verifier: str | None = None) -> AuthResult:
        ...


class StrategyNotFoundError(KeyError):
    """Raised when no strategy is registered under the requested name."""


class Authenticator:
    """Registry of named authentication strategies used by the login routes."""

    def __init__(self) -> None:
        self._strategies: Dict[str, AuthStrategy] = {}

    def use(self, strategy: AuthStrategy, name: Optional[str] = None) -> "Authenticator":
        key = name or getattr(strategy, "name", None)
        if not key:
            raise ValueError("Authentication strategies must have a name")
        self._strategies[key] = strategy
        return self

    def unuse(self, name: str) -> "Authenticator":
        self._strategies.pop(name, None)
        return self

    def get(self, name: str) -> AuthStrategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise StrategyNotFoundError(name) from None

    def names(self) -> List[str]:
        return sorted(self._strategies)
