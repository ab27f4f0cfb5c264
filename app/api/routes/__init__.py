"""HTTP routers, one module per resource."""

from .matches import router as matches_router
from .projects import router as projects_router
from .users import router as users_router

__all__ = ["users_router", "projects_router", "matches_router"]
