"""
Dose Classifier
Assigns every occurrence a status from the recorded logs and a single clock reading
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from config import dosetrack_config
from tools.schedule_generator import Occurrence, instant_key, to_utc


# Dose is "due" from its scheduled instant until this long after it
ON_TIME_THRESHOLD = timedelta(hours=4)


class DoseStatus(str, Enum):
    """Status of one scheduled dose"""
    PENDING = "pending"
    DUE = "due"
    TAKEN = "taken"
    MISSED = "missed"


@dataclass(frozen=True)
class ClassifiedOccurrence:
    """An occurrence with its status and the log that decided it, if any"""
    occurrence: Occurrence
    status: DoseStatus
    dose_log: Optional[Any] = field(default=None, compare=False)


def log_key(dose_log: Any) -> Tuple[Any, datetime]:
    return (dose_log.medication_id, instant_key(dose_log.scheduled_time))


def index_logs(dose_logs: Iterable[Any]) -> Dict[Tuple[Any, datetime], Any]:
    """Map (medication id, minute instant) to its dose log"""
    return {log_key(log): log for log in dose_logs}


def classify_occurrence(
    occurrence: Occurrence,
    dose_log: Optional[Any],
    now: datetime,
    threshold: timedelta = ON_TIME_THRESHOLD
) -> DoseStatus:
    """
    Status of a single occurrence.

    A log flagged missed wins over the clock; any other log means taken.
    Without a log the status follows the clock: pending before the
    scheduled instant, due up to and including scheduled + threshold,
    missed after that.
    """
    if dose_log is not None:
        if getattr(dose_log, "missed", False):
            return DoseStatus.MISSED
        return DoseStatus.TAKEN

    scheduled = to_utc(occurrence.scheduled_at)
    now = to_utc(now)
    if now < scheduled:
        return DoseStatus.PENDING
    if now > scheduled + threshold:
        return DoseStatus.MISSED
    return DoseStatus.DUE


def classify(
    occurrences: Iterable[Occurrence],
    dose_logs: Iterable[Any],
    now: datetime,
    threshold: timedelta = ON_TIME_THRESHOLD
) -> List[ClassifiedOccurrence]:
    """
    Classify occurrences against recorded logs.

    `now` is read once by the caller and used for the whole pass.
    Logs match on medication id and scheduled instant to the minute.
    """
    logs_by_key = index_logs(dose_logs)
    classified = []
    for occurrence in occurrences:
        dose_log = logs_by_key.get(occurrence.log_key)
        classified.append(
            ClassifiedOccurrence(
                occurrence=occurrence,
                status=classify_occurrence(occurrence, dose_log, now, threshold),
                dose_log=dose_log,
            )
        )
    return classified


def status_label(status: DoseStatus, view: str = "reminders") -> str:
    """Display label for a status on the given screen"""
    labels = dosetrack_config.STATUS_LABELS.get(view)
    if labels is None:
        raise ValueError(f"Unknown view: {view}")
    return labels[DoseStatus(status).value]
