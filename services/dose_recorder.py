"""
Dose Recorder
Records the outcome of one occurrence, at most once
"""

import logging
from typing import Optional
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import models
from errors import DuplicateLogError, ValidationError
from services.dose_store import DoseStore
from tools.dose_classifier import ON_TIME_THRESHOLD
from tools.dose_outcome import DoseOutcome, Missed, RewardPolicy, Taken, is_on_time, on_time_reward
from tools.schedule_generator import (
    DailyWindow,
    MedicationPlan,
    instant_key,
    occurrences_for_day,
)


logger = logging.getLogger(__name__)


class DoseRecorder:
    """
    Writes dose logs through a DoseStore.

    The store's unique constraint decides races between concurrent
    recorders; this class never checks for an existing log first.
    """

    def __init__(
        self,
        store: DoseStore,
        window: Optional[DailyWindow] = None,
        threshold: timedelta = ON_TIME_THRESHOLD,
        reward_policy: RewardPolicy = on_time_reward
    ):
        self.store = store
        self.window = window or DailyWindow()
        self.threshold = threshold
        self.reward_policy = reward_policy

    def _check_occurrence(self, medication: models.Medication, scheduled_at: datetime) -> None:
        """The instant must be one the generator produces for this medication"""
        tz = ZoneInfo(medication.user.timezone)
        local_day = scheduled_at.astimezone(tz).date()
        plan = MedicationPlan.from_model(medication)
        expected = {
            occurrence.log_key
            for occurrence in occurrences_for_day(plan, local_day, self.window, tz)
        }
        if (medication.id, instant_key(scheduled_at)) not in expected:
            raise ValidationError(
                f"{scheduled_at.isoformat()} is not a scheduled dose of medication {medication.id}"
            )

    def record(
        self,
        user_id: int,
        medication_id: int,
        scheduled_at: datetime,
        outcome: DoseOutcome,
        recorded_at: datetime
    ) -> models.DoseLog:
        """
        Record one outcome for (medication, scheduled instant).

        Args:
            user_id: Acting user; must own the medication
            medication_id: Medication ID
            scheduled_at: Scheduled instant of the occurrence
            outcome: Taken(actual_at) or Missed()
            recorded_at: Clock reading for this request; used as the
                actual time of a missed record

        Returns:
            The created DoseLog

        Raises:
            AuthorizationError, NotFoundError, ValidationError,
            DuplicateLogError, TransientStoreError
        """
        medication = self.store.get_owned_medication(user_id, medication_id)
        scheduled_at = instant_key(scheduled_at)
        self._check_occurrence(medication, scheduled_at)

        if isinstance(outcome, Taken):
            actual_at = outcome.actual_at
            taken_on_time = is_on_time(scheduled_at, actual_at, self.threshold)
            reward_earned = bool(self.reward_policy(outcome, taken_on_time))
            missed = False
        elif isinstance(outcome, Missed):
            actual_at = recorded_at
            taken_on_time = False
            reward_earned = False
            missed = True
        else:
            raise ValidationError(f"Unknown dose outcome: {outcome!r}")

        try:
            log = self.store.insert_dose_log(
                medication_id=medication.id,
                scheduled_at=scheduled_at,
                actual_at=actual_at,
                taken_on_time=taken_on_time,
                reward_earned=reward_earned,
                missed=missed
            )
        except DuplicateLogError:
            logger.info(
                f"Dose for medication {medication_id} at {scheduled_at.isoformat()} "
                f"already recorded (user {user_id})"
            )
            raise

        logger.info(
            f"Recorded {'missed' if missed else 'taken'} dose for medication {medication_id} "
            f"at {scheduled_at.isoformat()} (on_time={taken_on_time}, reward={reward_earned})"
        )
        return log
