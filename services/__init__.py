"""
Services Module
Business logic layer for the DoseTrack application
"""

from services.dose_store import DoseStore
from services.dose_recorder import DoseRecorder
from services.user_service import UserService, user_service
from services.medication_service import MedicationService, medication_service
from services.category_service import CategoryService, category_service
from services.adherence_service import AdherenceService, adherence_service


__all__ = [
    # Persistence and recording
    "DoseStore",
    "DoseRecorder",
    # Service classes
    "UserService",
    "MedicationService",
    "CategoryService",
    "AdherenceService",
    # Singleton instances
    "user_service",
    "medication_service",
    "category_service",
    "adherence_service",
]
