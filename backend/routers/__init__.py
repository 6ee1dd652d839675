from backend.routers.contact import router as contact_router
from backend.routers.health import router as health_router

__all__ = [
    "contact_router",
    "health_router",
]
