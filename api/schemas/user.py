"""
User Schemas
Pydantic models for user profile requests and responses
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, ConfigDict


class UserCreate(BaseModel):
    """Schema for registering a user"""
    email: EmailStr
    display_name: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50)


class UserUpdate(BaseModel):
    """Schema for updating a user profile"""
    display_name: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50)


class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    email: str
    display_name: Optional[str] = None
    timezone: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
