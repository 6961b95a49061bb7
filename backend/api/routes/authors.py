"""
Author API routes.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.authors import (
    AuthorCreateRequest,
    AuthorDetailResponse,
    AuthorListItem,
    AuthorListResponse,
    AuthorResponse,
    AuthorUpdateRequest,
)
from infrastructure.database.connection import get_db
from services.authors import AuthorService

router = APIRouter(prefix="/authors", tags=["authors"])


@router.get("", response_model=AuthorListResponse)
async def list_authors(
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """
    List authors by surname with their article counts.
    """
    rows, total = await AuthorService(db).list_authors(search=search, page=page, limit=page_size)
    items = []
    for author, article_count in rows:
        item = AuthorListItem.model_validate(author)
        item.article_count = article_count
        items.append(item)
    return AuthorListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.post("", response_model=AuthorResponse, status_code=status.HTTP_201_CREATED)
async def create_author(
    request: AuthorCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an author. Emails are unique (case-insensitive).
    """
    author = await AuthorService(db).create_author(**request.model_dump(mode="json"))
    await db.commit()
    return author


@router.get("/{author_id}", response_model=AuthorDetailResponse)
async def get_author(author_id: str, db: AsyncSession = Depends(get_db)):
    """
    Author with their articles and earnings.
    """
    return await AuthorService(db).get_author_detail(author_id)


@router.put("/{author_id}", response_model=AuthorResponse)
async def update_author(
    author_id: str,
    request: AuthorUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    author = await AuthorService(db).update_author(
        author_id, **request.model_dump(mode="json", exclude_unset=True)
    )
    await db.commit()
    return author


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_author(author_id: str, db: AsyncSession = Depends(get_db)):
    """
    Delete an author. Authors with articles cannot be deleted.
    """
    await AuthorService(db).delete_author(author_id)
    await db.commit()
