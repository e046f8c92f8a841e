from projectsquared_auth.app.factory import create_app

__all__ = ["create_app"]
