"""
Schedule Generator
Expands medications into the dose occurrences expected over a date range
"""

import logging
import math
from typing import Any, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, date, time, timedelta, timezone, tzinfo

from errors import ValidationError


logger = logging.getLogger(__name__)


UTC = timezone.utc


def truncate_to_minute(value: datetime) -> datetime:
    """Drop seconds and microseconds"""
    return value.replace(second=0, microsecond=0)


def to_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def instant_key(value: datetime) -> datetime:
    """Minute-precision UTC instant used to compare scheduled times"""
    return truncate_to_minute(to_utc(value))


@dataclass(frozen=True)
class DailyWindow:
    """Hours of the day across which doses are spread"""
    start_hour: float = 8.0
    end_hour: float = 20.0

    def __post_init__(self):
        if not (0 <= self.start_hour < self.end_hour <= 24):
            raise ValidationError(
                f"Invalid daily window {self.start_hour}-{self.end_hour}: "
                "expected 0 <= start < end <= 24"
            )

    @property
    def span_hours(self) -> float:
        return self.end_hour - self.start_hour


@dataclass(frozen=True)
class MedicationPlan:
    """The parts of a medication that drive scheduling"""
    id: Any
    name: str
    frequency_per_day: int
    start_date: date
    end_date: Optional[date] = None

    @classmethod
    def from_model(cls, medication: Any) -> "MedicationPlan":
        return cls(
            id=medication.id,
            name=medication.name,
            frequency_per_day=medication.frequency_per_day,
            start_date=medication.start_date,
            end_date=medication.end_date,
        )

    def is_active_on(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


@dataclass(frozen=True)
class Occurrence:
    """
    One expected dose. Two occurrences are the same iff medication id,
    dose number and scheduled instant all match.
    """
    medication_id: Any
    dose_number: int  # 1-based
    scheduled_at: datetime
    medication_name: str = field(default="", compare=False)

    @property
    def key(self) -> Tuple[Any, int, datetime]:
        return (self.medication_id, self.dose_number, instant_key(self.scheduled_at))

    @property
    def log_key(self) -> Tuple[Any, datetime]:
        """Key a dose log is matched on"""
        return (self.medication_id, instant_key(self.scheduled_at))


def dose_offsets(frequency_per_day: int, window: DailyWindow) -> List[timedelta]:
    """
    Offsets from local midnight for each dose of the day.

    Dose i (0-based) sits at start_hour + i * span / frequency hours,
    with the fractional hour rounded half-up to whole minutes.
    """
    if frequency_per_day < 1:
        raise ValidationError(f"frequency_per_day must be >= 1, got {frequency_per_day}")

    offsets = []
    for i in range(frequency_per_day):
        hour = window.start_hour + i * window.span_hours / frequency_per_day
        whole_hours = math.floor(hour)
        minutes = math.floor((hour % 1) * 60 + 0.5)
        offsets.append(timedelta(hours=whole_hours, minutes=minutes))
    return offsets


def occurrences_for_day(
    medication: MedicationPlan,
    day: date,
    window: DailyWindow,
    tz: tzinfo = UTC
) -> List[Occurrence]:
    """Occurrences of one medication on one local calendar day"""
    if not medication.is_active_on(day):
        return []

    midnight = datetime.combine(day, time.min, tzinfo=tz)
    return [
        Occurrence(
            medication_id=medication.id,
            dose_number=index + 1,
            scheduled_at=midnight + offset,
            medication_name=medication.name,
        )
        for index, offset in enumerate(dose_offsets(medication.frequency_per_day, window))
    ]


def validate_range(range_start: date, range_end: date, max_days: Optional[int] = None) -> None:
    if range_start > range_end:
        raise ValidationError(
            f"Range start {range_start.isoformat()} is after range end {range_end.isoformat()}"
        )
    days = (range_end - range_start).days + 1
    if max_days is not None and days > max_days:
        raise ValidationError(f"Range of {days} days exceeds the limit of {max_days} days")


def validate_medication(medication: MedicationPlan) -> None:
    if medication.frequency_per_day is None or medication.frequency_per_day < 1:
        raise ValidationError(
            f"Medication {medication.id} has non-positive frequency_per_day "
            f"({medication.frequency_per_day})"
        )
    if medication.end_date is not None and medication.end_date < medication.start_date:
        raise ValidationError(
            f"Medication {medication.id} ends before it starts"
        )


def iter_days(range_start: date, range_end: date) -> Iterable[date]:
    # Never steps past range_end, so a range ending on date.max is fine
    for offset in range((range_end - range_start).days + 1):
        yield range_start + timedelta(days=offset)


def _sort_key(occurrence: Occurrence):
    return (to_utc(occurrence.scheduled_at), occurrence.medication_id, occurrence.dose_number)


def generate(
    medications: Iterable[MedicationPlan],
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
    window: Optional[DailyWindow] = None,
    tz: tzinfo = UTC,
    today: Optional[date] = None
) -> List[Occurrence]:
    """
    Generate every expected dose in [range_start, range_end].

    Args:
        medications: Medications to expand
        range_start: First local day (default: today)
        range_end: Last local day, inclusive (default: range_start)
        window: Daily dosing window (default: 08:00-20:00)
        tz: Zone whose wall clock the doses are placed on
        today: Injected current date used for the default bounds

    Returns:
        Occurrences ordered by instant, then medication id, then dose number
    """
    if range_start is None:
        if today is None:
            raise ValidationError("range_start or today is required")
        range_start = today
    if range_end is None:
        range_end = range_start
    validate_range(range_start, range_end)

    window = window or DailyWindow()
    plans = list(medications)
    for plan in plans:
        validate_medication(plan)

    occurrences: List[Occurrence] = []
    for day in iter_days(range_start, range_end):
        for plan in plans:
            occurrences.extend(occurrences_for_day(plan, day, window, tz))

    occurrences.sort(key=_sort_key)
    logger.debug(
        f"Generated {len(occurrences)} occurrences for {len(plans)} medications "
        f"between {range_start} and {range_end}"
    )
    return occurrences
