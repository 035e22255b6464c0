"""
Dose Store
Persistence boundary for medications and dose logs
"""

import logging
import time
from typing import Any, Callable, Iterable, List, Optional, TypeVar
from datetime import datetime, date
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_, func
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

import models
from config import settings
from errors import AuthorizationError, DuplicateLogError, NotFoundError, TransientStoreError
from tools.schedule_generator import instant_key, to_utc, UTC


logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (OperationalError, PoolTimeoutError)


def utc_now() -> datetime:
    return datetime.now(UTC)


def user_zone(user: models.User) -> ZoneInfo:
    return ZoneInfo(user.timezone or settings.DEFAULT_TIMEZONE)


def local_today(user: models.User, now: datetime) -> date:
    """The user's calendar day at `now`"""
    return to_utc(now).astimezone(user_zone(user)).date()


def to_naive_utc(value: datetime) -> datetime:
    return to_utc(value).replace(tzinfo=None)


def to_storage(value: datetime) -> datetime:
    """Naive UTC at minute precision, as stored for scheduled times"""
    return instant_key(value).replace(tzinfo=None)


def from_storage(value: datetime) -> datetime:
    """Aware UTC from a stored naive value"""
    return value.replace(tzinfo=UTC)


class DoseStore:
    """
    SQLAlchemy-backed store.

    Reads are retried on transient failures up to `max_attempts` with a
    linear backoff. The at-most-once guarantee for dose logs comes from
    the unique constraint on (medication_id, scheduled_time).
    """

    def __init__(
        self,
        session: Session,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.session = session
        self.max_attempts = (
            settings.STORE_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        self.backoff_seconds = (
            settings.STORE_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self._sleep = sleep

    def _run(self, description: str, operation: Callable[[], T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except TRANSIENT_ERRORS as e:
                self.session.rollback()
                if attempt >= self.max_attempts:
                    logger.error(f"{description} failed after {attempt} attempts: {e}")
                    raise TransientStoreError(
                        f"{description} failed after {attempt} attempts"
                    ) from e
                logger.warning(f"{description} failed (attempt {attempt}), retrying: {e}")
                self._sleep(self.backoff_seconds * attempt)

    # ==================== USERS ====================

    def fetch_user(self, user_id: int) -> models.User:
        user = self._run(
            f"fetch user {user_id}",
            lambda: self.session.query(models.User).filter(models.User.id == user_id).first()
        )
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def find_user_by_email(self, email: str) -> Optional[models.User]:
        return self._run(
            "find user by email",
            lambda: self.session.query(models.User).filter(models.User.email == email).first()
        )

    # ==================== CATEGORIES ====================

    def fetch_categories(self, user_id: int) -> List[models.Category]:
        return self._run(
            f"fetch categories for user {user_id}",
            lambda: self.session.query(models.Category).filter(
                models.Category.user_id == user_id
            ).order_by(models.Category.name).all()
        )

    def find_category_by_name(self, user_id: int, name: str) -> Optional[models.Category]:
        return self._run(
            f"find category {name!r} for user {user_id}",
            lambda: self.session.query(models.Category).filter(
                and_(
                    models.Category.user_id == user_id,
                    models.Category.name == name
                )
            ).first()
        )

    def fetch_owned_category(self, user_id: int, category_id: int) -> models.Category:
        """Load a category, checking the acting user owns it"""
        category = self._run(
            f"fetch category {category_id}",
            lambda: self.session.query(models.Category).filter(
                models.Category.id == category_id
            ).first()
        )
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        if category.user_id != user_id:
            logger.warning(
                f"User {user_id} attempted to access category {category_id} "
                f"owned by user {category.user_id}"
            )
            raise AuthorizationError(f"Category {category_id} does not belong to user {user_id}")
        return category

    # ==================== MEDICATIONS ====================

    def fetch_medications(
        self,
        user_id: int,
        active_from: Optional[date] = None,
        active_to: Optional[date] = None
    ) -> List[models.Medication]:
        """Medications of a user whose active interval overlaps [active_from, active_to]"""
        def _fetch() -> List[models.Medication]:
            query = self.session.query(models.Medication).filter(
                models.Medication.user_id == user_id
            )
            if active_to is not None:
                query = query.filter(models.Medication.start_date <= active_to)
            if active_from is not None:
                query = query.filter(
                    or_(
                        models.Medication.end_date.is_(None),
                        models.Medication.end_date >= active_from
                    )
                )
            return query.order_by(models.Medication.id).all()

        return self._run(f"fetch medications for user {user_id}", _fetch)

    def get_owned_medication(self, user_id: int, medication_id: int) -> models.Medication:
        """Load a medication, checking the acting user owns it"""
        medication = self._run(
            f"fetch medication {medication_id}",
            lambda: self.session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()
        )
        if not medication:
            raise NotFoundError(f"Medication {medication_id} not found")
        if medication.user_id != user_id:
            logger.warning(
                f"User {user_id} attempted to access medication {medication_id} "
                f"owned by user {medication.user_id}"
            )
            raise AuthorizationError(f"Medication {medication_id} does not belong to user {user_id}")
        return medication

    # ==================== DOSE LOGS ====================

    def fetch_dose_logs(
        self,
        medication_ids: Iterable[int],
        start_at: datetime,
        end_at: datetime
    ) -> List[models.DoseLog]:
        """Logs for the medications with scheduled_time in [start_at, end_at)"""
        ids = list(medication_ids)
        if not ids:
            return []

        def _fetch() -> List[models.DoseLog]:
            return self.session.query(models.DoseLog).filter(
                and_(
                    models.DoseLog.medication_id.in_(ids),
                    models.DoseLog.scheduled_time >= to_storage(start_at),
                    models.DoseLog.scheduled_time < to_storage(end_at)
                )
            ).order_by(models.DoseLog.scheduled_time, models.DoseLog.medication_id).all()

        return self._run("fetch dose logs", _fetch)

    def find_dose_log(self, medication_id: int, scheduled_at: datetime) -> Optional[models.DoseLog]:
        return self._run(
            f"find dose log for medication {medication_id}",
            lambda: self.session.query(models.DoseLog).filter(
                and_(
                    models.DoseLog.medication_id == medication_id,
                    models.DoseLog.scheduled_time == to_storage(scheduled_at)
                )
            ).first()
        )

    def insert_dose_log(
        self,
        medication_id: int,
        scheduled_at: datetime,
        actual_at: datetime,
        taken_on_time: bool,
        reward_earned: bool,
        missed: bool = False
    ) -> models.DoseLog:
        """
        Insert exactly one dose log or none.

        Raises:
            DuplicateLogError: a log already exists for this occurrence
            IntegrityError: any other constraint failure, e.g. the
                medication was deleted before the insert
            TransientStoreError: the write failed for infrastructural reasons
        """
        def _insert() -> models.DoseLog:
            log = models.DoseLog(
                medication_id=medication_id,
                scheduled_time=to_storage(scheduled_at),
                actual_time=to_naive_utc(actual_at),
                taken_on_time=taken_on_time,
                reward_earned=reward_earned,
                missed=missed
            )
            self.session.add(log)
            self.session.commit()
            self.session.refresh(log)
            return log

        try:
            return self._run(f"insert dose log for medication {medication_id}", _insert)
        except IntegrityError as e:
            self.session.rollback()
            existing = self.find_dose_log(medication_id, scheduled_at)
            if existing is None:
                logger.error(f"Insert dose log for medication {medication_id} violated a constraint: {e}")
                raise
            raise DuplicateLogError(
                f"Dose for medication {medication_id} at "
                f"{instant_key(scheduled_at).isoformat()} is already recorded",
                existing=existing
            ) from e

    def fetch_user_dose_logs(
        self,
        user_id: int,
        start_at: datetime,
        end_at: datetime
    ) -> List[Any]:
        """(DoseLog, Medication) rows of a user with scheduled_time in [start_at, end_at)"""
        def _fetch() -> List[Any]:
            return self.session.query(models.DoseLog, models.Medication).join(
                models.Medication, models.Medication.id == models.DoseLog.medication_id
            ).filter(
                and_(
                    models.Medication.user_id == user_id,
                    models.DoseLog.scheduled_time >= to_storage(start_at),
                    models.DoseLog.scheduled_time < to_storage(end_at)
                )
            ).order_by(models.DoseLog.scheduled_time, models.Medication.name).all()

        return self._run(f"fetch dose history for user {user_id}", _fetch)

    def count_rewarded_doses(self, user_id: int) -> int:
        def _count() -> int:
            return self.session.query(func.count(models.DoseLog.id)).join(
                models.Medication, models.Medication.id == models.DoseLog.medication_id
            ).filter(
                and_(
                    models.Medication.user_id == user_id,
                    models.DoseLog.reward_earned == True
                )
            ).scalar() or 0

        return self._run(f"count rewards for user {user_id}", _count)
