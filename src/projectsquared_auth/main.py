"""
Main entry point for the Project Squared login service.
"""
import logging

from dotenv import load_dotenv
import uvicorn
from projectsquared_auth.app import create_app
from projectsquared_auth.settings import get_settings

# Load environment variables from a .env file if present
load_dotenv()

# Create the FastAPI application
app = create_app()

logger = logging.getLogger("projectsquared_auth")


def main() -> None:
    """Main entry point for running the application."""
    s = get_settings()
    if not s.projectsquared.client_id:
        logger.warning("PROJECTSQUARED_AUTH_PROJECTSQUARED__CLIENT_ID is not set; no strategy is registered")

    ssl_kwargs = s.server.ssl_kwargs()
    scheme = "https" if ssl_kwargs else "http"
    if ssl_kwargs:
        logger.info("TLS enabled: cert=%s key=%s", s.server.ssl_certfile, s.server.ssl_keyfile)
    else:
        logger.info(
            "TLS disabled: serving HTTP. Set PROJECTSQUARED_AUTH_SERVER__SSL_CERTFILE and __SSL_KEYFILE."
        )
    if not s.projectsquared.callback_url.startswith(f"{scheme}://"):
        logger.warning(
            "callback_url %s does not match the %s listener; the provider redirect will not reach this server",
            s.projectsquared.callback_url,
            scheme,
        )

    uvicorn.run(
        "projectsquared_auth.main:app",
        host=s.server.host,
        port=s.server.port,
        reload=s.server.reload,
        log_level=s.server.log_level,
        **ssl_kwargs,
    )


if __name__ == "__main__":
    main()
