"""
Dose Schemas
Pydantic models for the schedule view and dose recording
"""

from typing import Optional, List
from datetime import datetime, date, timezone
from pydantic import BaseModel, ConfigDict, field_serializer
from enum import Enum


class DoseStatusEnum(str, Enum):
    """Dose status values"""
    PENDING = "pending"
    DUE = "due"
    TAKEN = "taken"
    MISSED = "missed"


class ScheduleViewEnum(str, Enum):
    """Screens with their own status vocabulary"""
    REMINDERS = "reminders"
    LOGGING = "logging"


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


# ==================== REQUEST SCHEMAS ====================

class DoseTaken(BaseModel):
    """Schema for marking a dose taken"""
    medication_id: int
    scheduled_time: datetime
    taken_at: Optional[datetime] = None


class DoseMissed(BaseModel):
    """Schema for marking a dose missed"""
    medication_id: int
    scheduled_time: datetime


# ==================== RESPONSE SCHEMAS ====================

class DoseLogResponse(BaseModel):
    """Schema for dose log response; stored times are UTC"""
    id: int
    medication_id: int
    scheduled_time: datetime
    actual_time: datetime
    taken_on_time: bool
    reward_earned: bool
    missed: bool
    logged_at: Optional[datetime] = None
    already_recorded: bool = False

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("scheduled_time", "actual_time")
    def serialize_utc(self, value: datetime) -> str:
        return _utc_iso(value)


class DoseLogEntry(DoseLogResponse):
    """Dose log with medication name, for history tables"""
    medication_name: str


class DoseLogHistory(BaseModel):
    start_date: date
    end_date: date
    entries: List[DoseLogEntry]
    total_entries: int


class ScheduledDose(BaseModel):
    """One classified occurrence"""
    medication_id: int
    medication_name: str
    dose_number: int
    scheduled_time: datetime
    status: DoseStatusEnum
    label: str
    dose_log_id: Optional[int] = None


class ScheduleView(BaseModel):
    view: ScheduleViewEnum
    doses: List[ScheduledDose]
