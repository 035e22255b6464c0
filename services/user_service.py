"""
User Service
Business logic for user profiles
"""

import logging
from typing import Dict, Optional, Any
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from sqlalchemy.orm import Session

from config import settings
from database import get_db_context
from errors import ValidationError
import models
from services.dose_store import DoseStore


logger = logging.getLogger(__name__)


def validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name}") from e
    return name


class UserService:
    """
    Service for user profile operations
    """

    async def create_user(
        self,
        email: str,
        display_name: Optional[str] = None,
        timezone: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.User:
        """
        Register a user profile

        Args:
            email: User email (unique)
            display_name: Name shown in the app
            timezone: IANA zone for schedules (default from settings)
            db: Database session (optional)

        Returns:
            Created User object
        """
        def _create(session: Session) -> models.User:
            if DoseStore(session).find_user_by_email(email):
                raise ValidationError(f"User with email {email} already exists")

            user = models.User(
                email=email,
                display_name=display_name,
                timezone=validate_timezone(timezone or settings.DEFAULT_TIMEZONE)
            )

            session.add(user)
            session.commit()
            session.refresh(user)

            logger.info(f"Created user {user.id}")
            return user

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_user(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> models.User:
        """Get user by ID"""
        def _get(session: Session) -> models.User:
            return DoseStore(session).fetch_user(user_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_user(
        self,
        user_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> models.User:
        """Update display name and/or timezone"""
        def _update(session: Session) -> models.User:
            user = DoseStore(session).fetch_user(user_id)

            if updates.get("timezone") is not None:
                user.timezone = validate_timezone(updates["timezone"])
            if "display_name" in updates:
                user.display_name = updates["display_name"]

            user.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(user)
            return user

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)


# Singleton instance
user_service = UserService()
