"""
Adherence Service
Schedule view, dose marking and adherence analytics shared by every screen
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime, date, time, timedelta, tzinfo
from sqlalchemy.orm import Session

from config import settings, dosetrack_config
from database import get_db_context
from errors import ValidationError
import models
from services.dose_recorder import DoseRecorder
from services.dose_store import DoseStore, local_today, user_zone, utc_now
from tools.adherence_aggregator import AdherenceSummary, aggregate
from tools.dose_classifier import ClassifiedOccurrence, classify
from tools.dose_outcome import Missed, RewardPolicy, Taken, badge_for, on_time_reward, reward_points
from tools.schedule_generator import DailyWindow, MedicationPlan, generate, validate_range


logger = logging.getLogger(__name__)


# Local days whose midnights convert to UTC in every zone
FIRST_DAY = date.min + timedelta(days=1)
LAST_DAY = date.max - timedelta(days=1)


def check_range(start_date: date, end_date: date) -> None:
    """Reject reversed, out-of-range or oversized windows of local days"""
    validate_range(start_date, end_date, max_days=settings.MAX_RANGE_DAYS)
    if start_date < FIRST_DAY or end_date > LAST_DAY:
        raise ValidationError(
            f"Dates must fall between {FIRST_DAY.isoformat()} and {LAST_DAY.isoformat()}"
        )


def window_start(end_date: date, days: int) -> date:
    """First day of a `days`-long window ending on end_date"""
    return date.fromordinal(max(end_date.toordinal() - days + 1, FIRST_DAY.toordinal()))


def day_bounds(start_date: date, end_date: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """[local midnight of start_date, local midnight after end_date)"""
    start_at = datetime.combine(start_date, time.min, tzinfo=tz)
    end_at = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=tz)
    return start_at, end_at


class AdherenceService:
    """
    Service for dose scheduling, recording and adherence analysis

    The clock is injected and read once per operation.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        reward_policy: RewardPolicy = on_time_reward
    ):
        self.clock = clock
        self.reward_policy = reward_policy

    @property
    def window(self) -> DailyWindow:
        return DailyWindow(settings.DAILY_WINDOW_START_HOUR, settings.DAILY_WINDOW_END_HOUR)

    @property
    def threshold(self) -> timedelta:
        return timedelta(hours=settings.ON_TIME_THRESHOLD_HOURS)

    def _classify_range(
        self,
        store: DoseStore,
        user: models.User,
        start_date: date,
        end_date: date,
        now: datetime
    ) -> List[ClassifiedOccurrence]:
        tz = user_zone(user)
        medications = store.fetch_medications(user.id, start_date, end_date)
        occurrences = generate(
            [MedicationPlan.from_model(m) for m in medications],
            start_date,
            end_date,
            window=self.window,
            tz=tz
        )
        start_at, end_at = day_bounds(start_date, end_date, tz)
        logs = store.fetch_dose_logs([m.id for m in medications], start_at, end_at)
        return classify(occurrences, logs, now, self.threshold)

    async def get_schedule_view(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[ClassifiedOccurrence]:
        """
        Classified occurrences for a range of the user's local days

        Args:
            user_id: Acting user
            start_date: First day (default: today in the user's zone)
            end_date: Last day, inclusive (default: start_date)
            db: Database session

        Returns:
            Ordered list of ClassifiedOccurrence
        """
        def _get(session: Session) -> List[ClassifiedOccurrence]:
            store = DoseStore(session)
            user = store.fetch_user(user_id)
            now = self.clock()
            first = start_date or local_today(user, now)
            last = end_date or first
            check_range(first, last)
            return self._classify_range(store, user, first, last, now)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    def _recorder(self, store: DoseStore) -> DoseRecorder:
        return DoseRecorder(
            store,
            window=self.window,
            threshold=self.threshold,
            reward_policy=self.reward_policy
        )

    async def mark_taken(
        self,
        user_id: int,
        medication_id: int,
        scheduled_at: datetime,
        taken_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.DoseLog:
        """Record a dose as taken, at `taken_at` or now"""
        def _mark(session: Session) -> models.DoseLog:
            now = self.clock()
            return self._recorder(DoseStore(session)).record(
                user_id,
                medication_id,
                scheduled_at,
                Taken(actual_at=taken_at or now),
                recorded_at=now
            )

        if db:
            return _mark(db)

        with get_db_context() as session:
            return _mark(session)

    async def mark_missed(
        self,
        user_id: int,
        medication_id: int,
        scheduled_at: datetime,
        db: Optional[Session] = None
    ) -> models.DoseLog:
        """Record a dose as missed; allowed before the grace window closes"""
        def _mark(session: Session) -> models.DoseLog:
            return self._recorder(DoseStore(session)).record(
                user_id,
                medication_id,
                scheduled_at,
                Missed(),
                recorded_at=self.clock()
            )

        if db:
            return _mark(db)

        with get_db_context() as session:
            return _mark(session)

    async def get_adherence_summary(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        db: Optional[Session] = None
    ) -> AdherenceSummary:
        """
        Adherence over a window of local days

        Defaults to the last SUMMARY_DEFAULT_DAYS days ending today.
        """
        def _get(session: Session) -> AdherenceSummary:
            store = DoseStore(session)
            user = store.fetch_user(user_id)
            tz = user_zone(user)
            now = self.clock()
            last = end_date or local_today(user, now)
            first = start_date or window_start(last, settings.SUMMARY_DEFAULT_DAYS)
            check_range(first, last)

            classified = self._classify_range(store, user, first, last, now)
            summary = aggregate(
                classified,
                first,
                last,
                tz=tz,
                limit=settings.MOST_MISSED_LIMIT if limit is None else limit
            )
            logger.info(
                f"Adherence for user {user_id} {first}..{last}: "
                f"{summary.adherence_percentage}% ({summary.taken} taken, {summary.missed} missed)"
            )
            return summary

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_dose_history(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Recorded dose logs in a window of local days, oldest first"""
        def _get(session: Session) -> Dict[str, Any]:
            store = DoseStore(session)
            user = store.fetch_user(user_id)
            tz = user_zone(user)
            last = end_date or local_today(user, self.clock())
            first = start_date or window_start(last, settings.SUMMARY_DEFAULT_DAYS)
            check_range(first, last)

            start_at, end_at = day_bounds(first, last, tz)
            entries = [
                {"dose_log": log, "medication_name": medication.name}
                for log, medication in store.fetch_user_dose_logs(user.id, start_at, end_at)
            ]
            return {"start_date": first, "end_date": last, "entries": entries}

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_reward_summary(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Reward points earned from on-time doses and the badge they unlock"""
        def _get(session: Session) -> Dict[str, Any]:
            store = DoseStore(session)
            store.fetch_user(user_id)
            rewarded = store.count_rewarded_doses(user_id)
            points = reward_points(rewarded, settings.REWARD_POINTS_PER_DOSE)
            return {
                "user_id": user_id,
                "rewarded_doses": rewarded,
                "points": points,
                "badge": badge_for(points, dosetrack_config.BADGE_TIERS)
            }

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
adherence_service = AdherenceService()
