"""
Adherence Schemas
Pydantic models for adherence analytics responses
"""

from typing import Optional, List
from datetime import date
from pydantic import BaseModel, Field


class DailyAdherence(BaseModel):
    """Adherence for one local day"""
    day: date
    adherence_percentage: float = Field(..., ge=0, le=100)
    taken: int
    missed: int


class MissedMedication(BaseModel):
    """Missed dose count of one medication"""
    medication_id: int
    medication_name: str
    missed_count: int


class AdherenceSummaryResponse(BaseModel):
    """Adherence over a window"""
    user_id: int
    start_date: date
    end_date: date
    adherence_percentage: float = Field(..., ge=0, le=100)
    taken: int
    missed: int
    daily: List[DailyAdherence]
    most_missed: List[MissedMedication]


class RewardSummary(BaseModel):
    """Reward points from on-time doses"""
    user_id: int
    rewarded_doses: int
    points: int
    badge: Optional[str] = None
