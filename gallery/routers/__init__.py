# Routers package
from . import pages_router
from . import pictures_router

__all__ = [
    "pages_router",
    "pictures_router",
]
