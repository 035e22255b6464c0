"""
Tools Package
Pure scheduling, classification and analytics core for DoseTrack
"""

from .schedule_generator import (
    DailyWindow,
    MedicationPlan,
    Occurrence,
    generate,
    occurrences_for_day,
    instant_key,
)

from .dose_classifier import (
    DoseStatus,
    ClassifiedOccurrence,
    ON_TIME_THRESHOLD,
    classify,
    classify_occurrence,
    status_label,
)

from .dose_outcome import (
    Taken,
    Missed,
    DoseOutcome,
    RewardPolicy,
    is_on_time,
    on_time_reward,
    badge_for,
)

from .adherence_aggregator import (
    AdherenceSummary,
    DailyAdherence,
    MissedMedication,
    adherence_percentage,
    aggregate,
)

__all__ = [
    # Schedule Generator
    "DailyWindow",
    "MedicationPlan",
    "Occurrence",
    "generate",
    "occurrences_for_day",
    "instant_key",

    # Dose Classifier
    "DoseStatus",
    "ClassifiedOccurrence",
    "ON_TIME_THRESHOLD",
    "classify",
    "classify_occurrence",
    "status_label",

    # Outcomes and rewards
    "Taken",
    "Missed",
    "DoseOutcome",
    "RewardPolicy",
    "is_on_time",
    "on_time_reward",
    "badge_for",

    # Adherence Aggregator
    "AdherenceSummary",
    "DailyAdherence",
    "MissedMedication",
    "adherence_percentage",
    "aggregate",
]
