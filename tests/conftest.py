import pytest

from projectsquared_auth.settings.config import get_settings


@pytest.fixture
def settings_env(monkeypatch):
    """Configure a Project Squared client through the environment."""
    monkeypatch.setenv("PROJECTSQUARED_AUTH_PROJECTSQUARED__CLIENT_ID", "client-123")
    monkeypatch.setenv("PROJECTSQUARED_AUTH_PROJECTSQUARED__CLIENT_SECRET", "shhh")
    monkeypatch.setenv(
        "PROJECTSQUARED_AUTH_PROJECTSQUARED__CALLBACK_URL",
        "https://test/auth/projectsquared/callback",
    )
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield get_settings()
    get_settings.cache_clear()  # type: ignore[attr-defined]
