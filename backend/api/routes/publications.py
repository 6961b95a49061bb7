"""
Volume and issue routes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.articles import ArticleListItem
from api.schemas.publications import (
    AssignArticlesRequest,
    IssueCreateRequest,
    IssueResponse,
    IssueUpdateRequest,
    LegacyMigrationResponse,
    VolumeCreateRequest,
    VolumeResponse,
    VolumeUpdateRequest,
)
from infrastructure.database.connection import get_db
from infrastructure.database.models import Issue, Volume
from services.publications import PublicationService

router = APIRouter(tags=["publications"])


def _issue_response(issue: Issue, counts: dict[str, int]) -> IssueResponse:
    response = IssueResponse.model_validate(issue)
    response.article_count = counts.get(issue.id, 0)
    return response


def _volume_response(volume: Volume, counts: dict[str, int]) -> VolumeResponse:
    response = VolumeResponse.model_validate(volume)
    response.issues = sorted(
        (_issue_response(i, counts) for i in volume.issues),
        key=lambda i: i.issue_number,
    )
    return response


# ============================================================================
# Volumes
# ============================================================================


@router.get("/volumes", response_model=list[VolumeResponse])
async def list_volumes(db: AsyncSession = Depends(get_db)):
    """
    All volumes, newest first, with their issues and article counts.
    """
    rows = await PublicationService(db).list_volumes()
    return [_volume_response(volume, counts) for volume, counts in rows]


@router.post("/volumes", response_model=VolumeResponse, status_code=status.HTTP_201_CREATED)
async def create_volume(request: VolumeCreateRequest, db: AsyncSession = Depends(get_db)):
    volume = await PublicationService(db).create_volume(**request.model_dump())
    await db.commit()
    return _volume_response(volume, {})


@router.post("/volumes/migrate-legacy", response_model=LegacyMigrationResponse)
async def migrate_legacy(db: AsyncSession = Depends(get_db)):
    """
    Build volumes and issues from the legacy volume/issue numbers on articles.
    """
    stats = await PublicationService(db).migrate_legacy()
    await db.commit()
    return stats


@router.get("/volumes/{volume_id}", response_model=VolumeResponse)
async def get_volume(volume_id: str, db: AsyncSession = Depends(get_db)):
    service = PublicationService(db)
    volume = await service.get_volume(volume_id)
    return _volume_response(volume, await service.issue_article_counts())


@router.put("/volumes/{volume_id}", response_model=VolumeResponse)
async def update_volume(
    volume_id: str,
    request: VolumeUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    service = PublicationService(db)
    volume = await service.update_volume(volume_id, **request.model_dump(exclude_unset=True))
    counts = await service.issue_article_counts()
    await db.commit()
    return _volume_response(volume, counts)


@router.delete("/volumes/{volume_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_volume(volume_id: str, db: AsyncSession = Depends(get_db)):
    """
    Delete a volume and its issues. Articles are unassigned, not deleted.
    """
    await PublicationService(db).delete_volume(volume_id)
    await db.commit()


# ============================================================================
# Issues
# ============================================================================


@router.post("/issues", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
async def create_issue(request: IssueCreateRequest, db: AsyncSession = Depends(get_db)):
    issue = await PublicationService(db).create_issue(
        request.volume_id, **request.model_dump(exclude={"volume_id"})
    )
    await db.commit()
    return _issue_response(issue, {})


@router.get("/issues/{issue_id}", response_model=IssueResponse)
async def get_issue(issue_id: str, db: AsyncSession = Depends(get_db)):
    service = PublicationService(db)
    issue = await service.get_issue(issue_id)
    return _issue_response(issue, await service.issue_article_counts())


@router.put("/issues/{issue_id}", response_model=IssueResponse)
async def update_issue(
    issue_id: str,
    request: IssueUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    service = PublicationService(db)
    issue = await service.update_issue(issue_id, **request.model_dump(exclude_unset=True))
    counts = await service.issue_article_counts()
    await db.commit()
    return _issue_response(issue, counts)


@router.delete("/issues/{issue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_issue(issue_id: str, db: AsyncSession = Depends(get_db)):
    await PublicationService(db).delete_issue(issue_id)
    await db.commit()


@router.get("/issues/{issue_id}/articles", response_model=list[ArticleListItem])
async def list_issue_articles(issue_id: str, db: AsyncSession = Depends(get_db)):
    return await PublicationService(db).list_issue_articles(issue_id)


@router.post("/issues/{issue_id}/articles", response_model=dict[str, int])
async def assign_articles(
    issue_id: str,
    request: AssignArticlesRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Assign articles to an issue, keeping their legacy volume/issue numbers in step.
    """
    assigned = await PublicationService(db).assign_articles(issue_id, request.article_ids)
    await db.commit()
    return {"assigned": assigned}
