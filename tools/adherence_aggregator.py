"""
Adherence Aggregator
Reduces classified occurrences over a window into adherence statistics
"""

from typing import Any, Dict, Iterable, List
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, tzinfo

from errors import ValidationError
from tools.dose_classifier import ClassifiedOccurrence, DoseStatus
from tools.schedule_generator import UTC, iter_days, to_utc, validate_range


DEFAULT_MOST_MISSED_LIMIT = 5


@dataclass
class DailyAdherence:
    day: date
    adherence_percentage: float
    taken: int = 0
    missed: int = 0


@dataclass
class MissedMedication:
    medication_id: Any
    medication_name: str
    missed_count: int


@dataclass
class AdherenceSummary:
    """Adherence over a window of local calendar days"""
    window_start: date
    window_end: date
    adherence_percentage: float
    taken: int = 0
    missed: int = 0
    daily: List[DailyAdherence] = field(default_factory=list)
    most_missed: List[MissedMedication] = field(default_factory=list)


def adherence_percentage(taken: int, missed: int) -> float:
    """Taken / (taken + missed) as a percentage to 2 decimals; 0.0 when nothing is eligible"""
    total = taken + missed
    if total == 0:
        return 0.0
    return round(100 * taken / total, 2)


def rank_most_missed(
    missed_by_medication: Dict[Any, int],
    names: Dict[Any, str],
    limit: int = DEFAULT_MOST_MISSED_LIMIT
) -> List[MissedMedication]:
    """Descending by missed count, ties by name; medications with no misses are left out"""
    ranked = [
        MissedMedication(
            medication_id=medication_id,
            medication_name=names.get(medication_id, ""),
            missed_count=count,
        )
        for medication_id, count in missed_by_medication.items()
        if count > 0
    ]
    ranked.sort(key=lambda m: m.medication_name)
    ranked.sort(key=lambda m: m.missed_count, reverse=True)
    return ranked[:limit]


def aggregate(
    classified: Iterable[ClassifiedOccurrence],
    window_start: date,
    window_end: date,
    tz: tzinfo = UTC,
    limit: int = DEFAULT_MOST_MISSED_LIMIT
) -> AdherenceSummary:
    """
    Summarize adherence for [window_start, window_end].

    Only taken and missed occurrences count; pending and due doses are
    not held against adherence yet. Days are the local calendar days of
    `tz`, matching the generator's day boundaries. Every day in the
    window is reported, at 0% when it had nothing eligible.
    """
    validate_range(window_start, window_end)
    if limit < 0:
        raise ValidationError(f"limit must be >= 0, got {limit}")

    taken_by_day: Dict[date, int] = defaultdict(int)
    missed_by_day: Dict[date, int] = defaultdict(int)
    missed_by_medication: Dict[Any, int] = defaultdict(int)
    names: Dict[Any, str] = {}

    for item in classified:
        if item.status not in (DoseStatus.TAKEN, DoseStatus.MISSED):
            continue
        occurrence = item.occurrence
        day = to_utc(occurrence.scheduled_at).astimezone(tz).date()
        if day < window_start or day > window_end:
            continue

        names[occurrence.medication_id] = occurrence.medication_name
        if item.status == DoseStatus.TAKEN:
            taken_by_day[day] += 1
        else:
            missed_by_day[day] += 1
            missed_by_medication[occurrence.medication_id] += 1

    daily = [
        DailyAdherence(
            day=day,
            adherence_percentage=adherence_percentage(taken_by_day[day], missed_by_day[day]),
            taken=taken_by_day[day],
            missed=missed_by_day[day],
        )
        for day in iter_days(window_start, window_end)
    ]

    taken = sum(taken_by_day.values())
    missed = sum(missed_by_day.values())
    return AdherenceSummary(
        window_start=window_start,
        window_end=window_end,
        adherence_percentage=adherence_percentage(taken, missed),
        taken=taken,
        missed=missed,
        daily=daily,
        most_missed=rank_most_missed(missed_by_medication, names, limit),
    )
