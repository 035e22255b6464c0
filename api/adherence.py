"""
Adherence API Router
Endpoints for adherence analytics and rewards
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.adherence import (
    AdherenceSummaryResponse,
    DailyAdherence,
    MissedMedication,
    RewardSummary,
)


router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.get("/summary", response_model=AdherenceSummaryResponse)
async def get_adherence_summary(
    start_date: Optional[date] = Query(None, description="First local day (default: 6 days before end_date)"),
    end_date: Optional[date] = Query(None, description="Last local day (default: today)"),
    limit: Optional[int] = Query(None, ge=0, le=50, description="Size of the most-missed list"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Adherence percentage, per-day series and most-missed medications

    Pending and still-due doses are not counted.
    """
    adherence_service = services.get_adherence_service()

    summary = await adherence_service.get_adherence_summary(
        user_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        db=db
    )

    return AdherenceSummaryResponse(
        user_id=user_id,
        start_date=summary.window_start,
        end_date=summary.window_end,
        adherence_percentage=summary.adherence_percentage,
        taken=summary.taken,
        missed=summary.missed,
        daily=[
            DailyAdherence(
                day=d.day,
                adherence_percentage=d.adherence_percentage,
                taken=d.taken,
                missed=d.missed
            ) for d in summary.daily
        ],
        most_missed=[
            MissedMedication(
                medication_id=m.medication_id,
                medication_name=m.medication_name,
                missed_count=m.missed_count
            ) for m in summary.most_missed
        ]
    )


@router.get("/rewards", response_model=RewardSummary)
async def get_rewards(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Reward points and badge"""
    adherence_service = services.get_adherence_service()

    result = await adherence_service.get_reward_summary(user_id, db=db)
    return RewardSummary(**result)
