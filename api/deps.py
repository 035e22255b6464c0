"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.orm import Session

from database import get_db
from errors import NotFoundError


async def get_current_user_id(
    x_user_id: int = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db)
) -> int:
    """
    Acting user for the request.

    Authentication is handled upstream; this only checks the user exists.
    Store outages surface as TransientStoreError (503).
    """
    from services.dose_store import DoseStore

    try:
        DoseStore(db).fetch_user(x_user_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown user {x_user_id}"
        )

    return x_user_id


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_user_service():
        from services.user_service import user_service
        return user_service

    @staticmethod
    def get_medication_service():
        from services.medication_service import medication_service
        return medication_service

    @staticmethod
    def get_category_service():
        from services.category_service import category_service
        return category_service

    @staticmethod
    def get_adherence_service():
        from services.adherence_service import adherence_service
        return adherence_service


# Service dependency instances
services = ServiceDependency()
