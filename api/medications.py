"""
Medications API Router
Endpoints for medication management
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, status, Query, Response
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    MedicationDiscontinue,
    MedicationResponse,
    MedicationList,
)


router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Add a new medication

    - **name**: Medication name
    - **dose**: Dose description (e.g., "500mg")
    - **frequency_per_day**: Doses per day, spread across the daily window
    """
    medication_service = services.get_medication_service()

    return await medication_service.add_medication(
        user_id=user_id,
        name=medication_data.name,
        dose=medication_data.dose,
        frequency_per_day=medication_data.frequency_per_day,
        start_date=medication_data.start_date,
        end_date=medication_data.end_date,
        category_id=medication_data.category_id,
        db=db
    )


@router.get("/", response_model=MedicationList)
async def list_medications(
    active_from: Optional[date] = Query(None, description="Only medications active on or after this day"),
    active_to: Optional[date] = Query(None, description="Only medications active on or before this day"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Get the user's medications
    """
    medication_service = services.get_medication_service()

    medications = await medication_service.get_user_medications(
        user_id,
        active_from=active_from,
        active_to=active_to,
        db=db
    )

    return MedicationList(
        medications=[MedicationResponse.model_validate(m) for m in medications],
        total=len(medications)
    )


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a medication"""
    medication_service = services.get_medication_service()
    return await medication_service.get_medication(user_id, medication_id, db=db)


@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: int,
    updates: MedicationUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a medication"""
    medication_service = services.get_medication_service()
    return await medication_service.update_medication(
        user_id,
        medication_id,
        updates.model_dump(exclude_unset=True),
        db=db
    )


@router.post("/{medication_id}/discontinue", response_model=MedicationResponse)
async def discontinue_medication(
    medication_id: int,
    body: MedicationDiscontinue,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Set the medication's end date (default: today); past logs are kept"""
    medication_service = services.get_medication_service()
    return await medication_service.discontinue_medication(
        user_id,
        medication_id,
        end_date=body.end_date,
        db=db
    )


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a medication and its dose logs"""
    medication_service = services.get_medication_service()
    await medication_service.delete_medication(user_id, medication_id, db=db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
