"""
API Module
FastAPI routers for the DoseTrack application
"""

from config import settings
from api.users import router as users_router
from api.medications import router as medications_router
from api.categories import router as categories_router
from api.schedule import router as schedule_router
from api.doses import router as doses_router
from api.adherence import router as adherence_router

from api.deps import (
    get_db,
    get_current_user_id,
    services,
)


__all__ = [
    # Routers
    "users_router",
    "medications_router",
    "categories_router",
    "schedule_router",
    "doses_router",
    "adherence_router",
    # Dependencies
    "get_db",
    "get_current_user_id",
    "services",
]


def include_routers(app):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(users_router, prefix=settings.API_PREFIX)
    app.include_router(medications_router, prefix=settings.API_PREFIX)
    app.include_router(categories_router, prefix=settings.API_PREFIX)
    app.include_router(schedule_router, prefix=settings.API_PREFIX)
    app.include_router(doses_router, prefix=settings.API_PREFIX)
    app.include_router(adherence_router, prefix=settings.API_PREFIX)
