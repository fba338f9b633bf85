"""API Routers."""

from .system import router as system_router
from .ping import router as ping_router
from .checks import router as checks_router
from .metrics import router as metrics_router

__all__ = [
    "system_router",
    "ping_router",
    "checks_router",
    "metrics_router",
]
