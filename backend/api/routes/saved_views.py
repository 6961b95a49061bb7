"""
Saved article-list view routes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.saved_views import (
    SavedViewCreateRequest,
    SavedViewResponse,
    SavedViewUpdateRequest,
)
from infrastructure.database.connection import get_db
from services.saved_views import SavedViewService

router = APIRouter(prefix="/saved-views", tags=["saved-views"])


@router.get("", response_model=list[SavedViewResponse])
async def list_views(db: AsyncSession = Depends(get_db)):
    """
    Saved views, the default view first.
    """
    return await SavedViewService(db).list_views()


@router.post("", response_model=SavedViewResponse, status_code=status.HTTP_201_CREATED)
async def create_view(request: SavedViewCreateRequest, db: AsyncSession = Depends(get_db)):
    """
    Save a view. Marking it as default clears any other default.
    """
    view = await SavedViewService(db).create_view(**request.model_dump())
    await db.commit()
    return view


@router.get("/{view_id}", response_model=SavedViewResponse)
async def get_view(view_id: str, db: AsyncSession = Depends(get_db)):
    return await SavedViewService(db).get_view(view_id)


@router.put("/{view_id}", response_model=SavedViewResponse)
async def update_view(
    view_id: str,
    request: SavedViewUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    view = await SavedViewService(db).update_view(view_id, **request.model_dump(exclude_unset=True))
    await db.commit()
    return view


@router.delete("/{view_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_view(view_id: str, db: AsyncSession = Depends(get_db)):
    await SavedViewService(db).delete_view(view_id)
    await db.commit()
