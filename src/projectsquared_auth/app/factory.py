from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from projectsquared_auth.authenticator import Authenticator
from projectsquared_auth.profile import Profile
from projectsquared_auth.settings import get_settings
from projectsquared_auth.routes import auth_router, system_router
from projectsquared_auth.middleware.request_id import RequestIDMiddleware
from projectsquared_auth.app.exceptions import register_exception_handlers
from projectsquared_auth.app.logging_config import configure_logging
from projectsquared_auth.strategy import ProjectSquaredStrategy


def session_user(access_token: str, refresh_token: Optional[str], profile: Profile) -> dict:
    """Default verify function: the normalized profile becomes the session user."""
    return profile.as_dict()


def create_app(authenticator: Optional[Authenticator] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        authenticator: Strategy registry to serve. When omitted, one is built
            with the Project Squared strategy from settings.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    configure_logging(settings.logging.as_json, settings.server.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Project Squared OAuth 2.0 login",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.server.debug,
    )

    if authenticator is None:
        authenticator = Authenticator()
        if settings.projectsquared.client_id:
            authenticator.use(ProjectSquaredStrategy.from_settings(settings, session_user))
    app.state.authenticator = authenticator

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins(),
        allow_credentials=True,
        allow_methods=settings.cors.methods(),
        allow_headers=settings.cors.headers(),
    )

    # Sessions
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session.secret_key,
        session_cookie=settings.session.cookie_name,
        same_site="lax",
        https_only=settings.session.https_only,
    )

    # Routers
    app.include_router(system_router)
    app.include_router(auth_router)

    # Middleware
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    return app
