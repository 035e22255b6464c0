"""
Dose outcomes and reward policy
"""

from typing import Callable, List, Optional, Tuple, Union
from dataclasses import dataclass
from datetime import datetime, timedelta

from tools.schedule_generator import to_utc


@dataclass(frozen=True)
class Taken:
    """Dose taken at `actual_at`"""
    actual_at: datetime


@dataclass(frozen=True)
class Missed:
    """Dose explicitly recorded as missed"""


DoseOutcome = Union[Taken, Missed]

# (outcome, taken_on_time) -> reward earned
RewardPolicy = Callable[[DoseOutcome, bool], bool]


def is_on_time(scheduled_at: datetime, actual_at: datetime, threshold: timedelta) -> bool:
    """Taken no later than threshold after the scheduled instant"""
    return to_utc(actual_at) <= to_utc(scheduled_at) + threshold


def on_time_reward(outcome: DoseOutcome, taken_on_time: bool) -> bool:
    """Reward every on-time dose"""
    return isinstance(outcome, Taken) and taken_on_time


def reward_points(rewarded_doses: int, points_per_dose: int) -> int:
    return rewarded_doses * points_per_dose


def badge_for(points: int, tiers: List[Tuple[str, int]]) -> Optional[str]:
    """Highest badge whose threshold `points` reaches; tiers are (name, minimum)"""
    for name, minimum in sorted(tiers, key=lambda tier: tier[1], reverse=True):
        if points >= minimum:
            return name
    return None
