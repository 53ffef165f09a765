"""API routes."""

from .jobs import router as jobs_router
from .pay import router as pay_router
from .users import router as users_router

__all__ = ["jobs_router", "pay_router", "users_router"]
