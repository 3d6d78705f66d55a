"""HTTP routes for the stateless session service."""

from stateless_session.routes.session import router as session_router

__all__ = ["session_router"]
