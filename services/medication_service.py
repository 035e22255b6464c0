"""
Medication Service
Business logic for medication management
"""

import logging
from typing import Callable, Dict, List, Optional, Any
from datetime import datetime, date
from sqlalchemy.orm import Session

from database import get_db_context
from errors import ValidationError
import models
from services.dose_store import DoseStore, local_today, utc_now


logger = logging.getLogger(__name__)


def validate_schedule_fields(
    frequency_per_day: int,
    start_date: date,
    end_date: Optional[date]
) -> None:
    if frequency_per_day is None or frequency_per_day < 1:
        raise ValidationError(f"frequency_per_day must be >= 1, got {frequency_per_day}")
    if end_date is not None and end_date < start_date:
        raise ValidationError(
            f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}"
        )


def _check_category(store: DoseStore, user_id: int, category_id: Optional[int]) -> None:
    if category_id is not None:
        store.fetch_owned_category(user_id, category_id)


class MedicationService:
    """
    Service for medication-related operations

    Default start and end dates are the user's local day on the injected clock.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    async def add_medication(
        self,
        user_id: int,
        name: str,
        dose: str,
        frequency_per_day: int = 1,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Add a new medication for a user

        Args:
            user_id: Owning user
            name: Medication name
            dose: Dose description (e.g., "500mg")
            frequency_per_day: Number of doses per day
            start_date: First day of treatment (default: the user's today)
            end_date: Last day of treatment, inclusive
            category_id: Optional category
            db: Database session

        Returns:
            Created Medication object
        """
        def _add(session: Session) -> models.Medication:
            store = DoseStore(session)
            user = store.fetch_user(user_id)
            first_day = start_date or local_today(user, self.clock())
            validate_schedule_fields(frequency_per_day, first_day, end_date)
            _check_category(store, user_id, category_id)

            medication = models.Medication(
                user_id=user_id,
                name=name,
                dose=dose,
                frequency_per_day=frequency_per_day,
                start_date=first_day,
                end_date=end_date,
                category_id=category_id
            )

            session.add(medication)
            session.commit()
            session.refresh(medication)

            logger.info(f"Added medication {name} for user {user_id}")
            return medication

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> models.Medication:
        """Get a medication owned by the user"""
        def _get(session: Session) -> models.Medication:
            return DoseStore(session).get_owned_medication(user_id, medication_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_user_medications(
        self,
        user_id: int,
        active_from: Optional[date] = None,
        active_to: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Medications of a user, optionally only those active within a date range"""
        def _get(session: Session) -> List[models.Medication]:
            if active_from and active_to and active_from > active_to:
                raise ValidationError("active_from is after active_to")
            medications = DoseStore(session).fetch_medications(user_id, active_from, active_to)
            return sorted(medications, key=lambda m: m.name.lower())

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_medication(
        self,
        user_id: int,
        medication_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> models.Medication:
        """Update medication information"""
        def _update(session: Session) -> models.Medication:
            store = DoseStore(session)
            medication = store.get_owned_medication(user_id, medication_id)

            allowed_fields = {
                'name', 'dose', 'frequency_per_day', 'start_date',
                'end_date', 'category_id'
            }

            changes = {k: v for k, v in updates.items() if k in allowed_fields}
            validate_schedule_fields(
                changes.get('frequency_per_day', medication.frequency_per_day),
                changes.get('start_date', medication.start_date),
                changes.get('end_date', medication.end_date)
            )
            if 'category_id' in changes:
                _check_category(store, user_id, changes['category_id'])

            for field, value in changes.items():
                setattr(medication, field, value)

            medication.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(medication)

            logger.info(f"Updated medication {medication_id}: {sorted(changes)}")
            return medication

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def discontinue_medication(
        self,
        user_id: int,
        medication_id: int,
        end_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """End a medication; it stops generating doses after end_date (default: the user's today)"""
        def _last_day(session: Session) -> date:
            return end_date or local_today(DoseStore(session).fetch_user(user_id), self.clock())

        if db:
            last_day = _last_day(db)
        else:
            with get_db_context() as session:
                last_day = _last_day(session)

        return await self.update_medication(
            user_id,
            medication_id,
            {'end_date': last_day},
            db
        )

    async def delete_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> None:
        """Delete a medication along with its dose logs"""
        def _delete(session: Session) -> None:
            medication = DoseStore(session).get_owned_medication(user_id, medication_id)
            session.delete(medication)
            session.commit()
            logger.info(f"Deleted medication {medication_id} for user {user_id}")

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)


# Singleton instance
medication_service = MedicationService()
