"""
Categories API Router
Endpoints for medication categories
"""

from typing import List
from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user_id, services
from api.schemas.medication import CategoryCreate, CategoryResponse


router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    category_service = services.get_category_service()
    return await category_service.create_category(user_id, category_data.name, db=db)


@router.get("/", response_model=List[CategoryResponse])
async def list_categories(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    category_service = services.get_category_service()
    return await category_service.get_user_categories(user_id, db=db)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def rename_category(
    category_id: int,
    category_data: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    category_service = services.get_category_service()
    return await category_service.rename_category(
        user_id, category_id, category_data.name, db=db
    )


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a category; its medications become uncategorized"""
    category_service = services.get_category_service()
    await category_service.delete_category(user_id, category_id, db=db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
