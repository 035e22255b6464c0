"""
Schedule API Router
Classified dose schedule shared by the reminders and logging screens
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.dose import ScheduledDose, ScheduleView, ScheduleViewEnum
from tools.dose_classifier import status_label


router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/", response_model=ScheduleView)
async def get_schedule(
    start_date: Optional[date] = Query(None, description="First local day (default: today)"),
    end_date: Optional[date] = Query(None, description="Last local day, inclusive"),
    view: ScheduleViewEnum = Query(ScheduleViewEnum.REMINDERS, description="Status vocabulary"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Every expected dose in the range with its status

    Scheduled times are in the user's timezone. Echo `scheduled_time`
    back unchanged when marking a dose.
    """
    adherence_service = services.get_adherence_service()

    classified = await adherence_service.get_schedule_view(
        user_id,
        start_date=start_date,
        end_date=end_date,
        db=db
    )

    doses = [
        ScheduledDose(
            medication_id=item.occurrence.medication_id,
            medication_name=item.occurrence.medication_name,
            dose_number=item.occurrence.dose_number,
            scheduled_time=item.occurrence.scheduled_at,
            status=item.status.value,
            label=status_label(item.status, view.value),
            dose_log_id=item.dose_log.id if item.dose_log is not None else None
        )
        for item in classified
    ]

    return ScheduleView(
        view=view,
        doses=doses
    )
