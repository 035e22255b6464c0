"""
Doses API Router
Endpoints for marking doses taken or missed
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, status, Query, Response
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.dose import (
    DoseTaken,
    DoseMissed,
    DoseLogResponse,
    DoseLogEntry,
    DoseLogHistory,
)
from errors import DuplicateLogError


router = APIRouter(prefix="/doses", tags=["doses"])


def _already_recorded(error: DuplicateLogError, response: Response) -> DoseLogResponse:
    """A repeated mark is a no-op success returning the stored log"""
    if error.existing is None:
        raise error
    response.status_code = status.HTTP_200_OK
    return DoseLogResponse.model_validate(error.existing).model_copy(
        update={"already_recorded": True}
    )


@router.post("/taken", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
async def mark_taken(
    dose_data: DoseTaken,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Mark a dose taken

    - **scheduled_time**: Scheduled time from the schedule view
    - **taken_at**: When it was taken (default: now)

    Returns 201 with the new log, or 200 with `already_recorded` when
    the dose was logged before.
    """
    adherence_service = services.get_adherence_service()

    try:
        log = await adherence_service.mark_taken(
            user_id,
            dose_data.medication_id,
            dose_data.scheduled_time,
            taken_at=dose_data.taken_at,
            db=db
        )
    except DuplicateLogError as e:
        return _already_recorded(e, response)

    return DoseLogResponse.model_validate(log)


@router.post("/missed", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
async def mark_missed(
    dose_data: DoseMissed,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Mark a dose missed

    Allowed before the grace window closes; the dose then stays missed.
    """
    adherence_service = services.get_adherence_service()

    try:
        log = await adherence_service.mark_missed(
            user_id,
            dose_data.medication_id,
            dose_data.scheduled_time,
            db=db
        )
    except DuplicateLogError as e:
        return _already_recorded(e, response)

    return DoseLogResponse.model_validate(log)


@router.get("/logs", response_model=DoseLogHistory)
async def get_dose_logs(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Recorded dose logs for a window of local days (default: last 7 days)
    """
    adherence_service = services.get_adherence_service()

    history = await adherence_service.get_dose_history(
        user_id,
        start_date=start_date,
        end_date=end_date,
        db=db
    )

    entries = [
        DoseLogEntry(
            **DoseLogResponse.model_validate(item["dose_log"]).model_dump(),
            medication_name=item["medication_name"]
        )
        for item in history["entries"]
    ]

    return DoseLogHistory(
        start_date=history["start_date"],
        end_date=history["end_date"],
        entries=entries,
        total_entries=len(entries)
    )
