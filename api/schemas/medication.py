"""
Medication Schemas
Pydantic models for medication and category requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict, model_validator


# ==================== BASE SCHEMAS ====================

class MedicationBase(BaseModel):
    """Base medication schema"""
    name: str = Field(..., min_length=1, max_length=255)
    dose: str = Field(..., min_length=1, max_length=100)
    frequency_per_day: int = Field(default=1, ge=1, le=24)


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(MedicationBase):
    """Schema for creating a new medication"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[int] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class MedicationUpdate(BaseModel):
    """Schema for updating medication"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dose: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency_per_day: Optional[int] = Field(None, ge=1, le=24)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_id: Optional[int] = None


class MedicationDiscontinue(BaseModel):
    """Schema for discontinuing a medication"""
    end_date: Optional[date] = None


class CategoryCreate(BaseModel):
    """Schema for creating or renaming a category"""
    name: str = Field(..., min_length=1, max_length=100)


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(MedicationBase):
    """Schema for medication response"""
    id: int
    user_id: int
    start_date: date
    end_date: Optional[date] = None
    category_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MedicationList(BaseModel):
    """List of medications"""
    medications: List[MedicationResponse]
    total: int


class CategoryResponse(BaseModel):
    """Schema for category response"""
    id: int
    user_id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
