"""
Users API Router
Endpoints for user profiles
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.user import UserCreate, UserUpdate, UserResponse


router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a user profile

    - **email**: Unique email
    - **timezone**: IANA zone used for dose times and day boundaries
    """
    user_service = services.get_user_service()

    return await user_service.create_user(
        email=user_data.email,
        display_name=user_data.display_name,
        timezone=user_data.timezone,
        db=db
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the acting user's profile"""
    user_service = services.get_user_service()
    return await user_service.get_user(user_id, db=db)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    updates: UserUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update display name or timezone"""
    user_service = services.get_user_service()
    return await user_service.update_user(
        user_id,
        updates.model_dump(exclude_unset=True),
        db=db
    )
