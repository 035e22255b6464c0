"""
Category Service
Grouping of medications into user-defined categories
"""

import logging
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from database import get_db_context
from errors import ValidationError
import models
from services.dose_store import DoseStore


logger = logging.getLogger(__name__)


def _check_unique_name(store: DoseStore, user_id: int, name: str) -> None:
    if store.find_category_by_name(user_id, name):
        raise ValidationError(f"Category '{name}' already exists")


class CategoryService:
    """
    Service for medication categories
    """

    async def create_category(
        self,
        user_id: int,
        name: str,
        db: Optional[Session] = None
    ) -> models.Category:
        def _create(session: Session) -> models.Category:
            store = DoseStore(session)
            store.fetch_user(user_id)
            _check_unique_name(store, user_id, name)

            category = models.Category(user_id=user_id, name=name)
            session.add(category)
            session.commit()
            session.refresh(category)

            logger.info(f"Created category {name} for user {user_id}")
            return category

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_user_categories(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> List[models.Category]:
        def _get(session: Session) -> List[models.Category]:
            return DoseStore(session).fetch_categories(user_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def rename_category(
        self,
        user_id: int,
        category_id: int,
        name: str,
        db: Optional[Session] = None
    ) -> models.Category:
        def _rename(session: Session) -> models.Category:
            store = DoseStore(session)
            category = store.fetch_owned_category(user_id, category_id)
            if category.name != name:
                _check_unique_name(store, user_id, name)
                category.name = name
                category.updated_at = datetime.utcnow()
                session.commit()
                session.refresh(category)
            return category

        if db:
            return _rename(db)

        with get_db_context() as session:
            return _rename(session)

    async def delete_category(
        self,
        user_id: int,
        category_id: int,
        db: Optional[Session] = None
    ) -> None:
        """Delete a category; its medications are kept, uncategorized"""
        def _delete(session: Session) -> None:
            category = DoseStore(session).fetch_owned_category(user_id, category_id)
            session.query(models.Medication).filter(
                models.Medication.category_id == category_id
            ).update({models.Medication.category_id: None}, synchronize_session=False)
            session.delete(category)
            session.commit()
            logger.info(f"Deleted category {category_id} for user {user_id}")

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)


# Singleton instance
category_service = CategoryService()
