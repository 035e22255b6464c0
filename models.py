"""
Database Models
SQLAlchemy ORM models for DoseTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Date, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from config import settings, TableNames
from database import Base


# ==================== MODELS ====================

class User(Base):
    """Profile of the person tracking their medications"""
    __tablename__ = TableNames.USERS

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(100))

    # Wall-clock zone used for schedules and day boundaries
    timezone = Column(String(50), nullable=False, default=settings.DEFAULT_TIMEZONE)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    medications = relationship("Medication", back_populates="user", cascade="all, delete-orphan")
    categories = relationship("Category", back_populates="user", cascade="all, delete-orphan")


class Category(Base):
    """User-defined grouping for medications"""
    __tablename__ = TableNames.CATEGORIES

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="categories")
    medications = relationship("Medication", back_populates="category")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )


class Medication(Base):
    """A medication and its daily dosing frequency"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))

    name = Column(String(255), nullable=False)
    dose = Column(String(100), nullable=False)  # free text, e.g. "500mg"
    frequency_per_day = Column(Integer, nullable=False, default=1)

    # Active interval, end date inclusive
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="medications")
    category = relationship("Category", back_populates="medications")
    dose_logs = relationship("DoseLog", back_populates="medication", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("frequency_per_day >= 1", name="ck_medication_frequency"),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_medication_dates"),
        Index("ix_medications_user_start", "user_id", "start_date"),
    )


class DoseLog(Base):
    """Recorded outcome of one scheduled dose"""
    __tablename__ = TableNames.DOSE_LOGS

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False)

    # Naive UTC, truncated to the minute
    scheduled_time = Column(DateTime, nullable=False)
    actual_time = Column(DateTime, nullable=False)

    taken_on_time = Column(Boolean, nullable=False, default=False)
    reward_earned = Column(Boolean, nullable=False, default=False)
    missed = Column(Boolean, nullable=False, default=False)

    logged_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    medication = relationship("Medication", back_populates="dose_logs")

    __table_args__ = (
        UniqueConstraint("medication_id", "scheduled_time", name="uq_dose_log_occurrence"),
        Index("ix_dose_logs_scheduled", "scheduled_time"),
    )
