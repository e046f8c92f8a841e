from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as pkg_version
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _package_version(default: str = "0.1.0") -> str:
    try:
        return pkg_version("projectsquared-auth")
    except PackageNotFoundError:
        return default


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    reload: bool = True
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = "info"

    # Local TLS certs; both must be set to serve HTTPS
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_certfile and self.ssl_keyfile)

    def ssl_kwargs(self) -> Dict[str, str]:
        if not self.tls_enabled:
            return {}
        return {"ssl_certfile": self.ssl_certfile, "ssl_keyfile": self.ssl_keyfile}  # type: ignore[dict-item]


class CorsSettings(BaseModel):
    allow_origins: str = "*"  # comma-separated or "*"
    allow_methods: str = "GET,POST"  # comma-separated
    allow_headers: str = "*"  # comma-separated or "*"

    def origins(self) -> List[str]:
        value = self.allow_origins.strip()
        if value in ("", "*"):
            return ["*"]
        return [part.strip() for part in value.split(",") if part.strip()]

    def methods(self) -> List[str]:
        value = self.allow_methods.strip()
        return [part.strip().upper() for part in value.split(",") if part.strip()]

    def headers(self) -> List[str]:
        value = self.allow_headers.strip()
        if value in ("", "*"):
            return ["*"]
        return [part.strip() for part in value.split(",") if part.strip()]


class SessionSettings(BaseModel):
    secret_key: str = "dev-secret-change-me"
    cookie_name: str = "projectsquared_session"
    https_only: bool = False  # set together with TLS and an https callback_url


class ProjectSquaredSettings(BaseModel):
    # OAuth client
    client_id: str = ""
    client_secret: Optional[str] = None
    callback_url: str = "http://localhost:8000/auth/projectsquared/callback"
    scope: Optional[str] = None  # space-separated
    use_pkce: bool = False

    # Endpoint overrides; unset means the provider defaults
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    profile_url: Optional[str] = None

    # Flat profile responses carry the user id under this key ("id" or "user_id")
    profile_id_field: Literal["id", "user_id"] = "id"


class LoggingSettings(BaseModel):
    as_json: bool = False


class Settings(BaseSettings):
    """Application settings loaded from environment (and .env)."""

    # App metadata
    app_name: str = "Project Squared Auth"
    app_version: str = Field(default_factory=_package_version)

    # Groups
    server: ServerSettings = ServerSettings()
    cors: CorsSettings = CorsSettings()
    session: SessionSettings = SessionSettings()
    projectsquared: ProjectSquaredSettings = ProjectSquaredSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_prefix="PROJECTSQUARED_AUTH_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
