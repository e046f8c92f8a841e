from projectsquared_auth.routes.auth import router as auth_router
from projectsquared_auth.routes.system import router as system_router

__all__ = ["auth_router", "system_router"]
