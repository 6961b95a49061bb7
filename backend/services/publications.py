"""
Publication service: volumes, issues and the legacy volume/issue migration.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import ConflictError, NotFoundError
from infrastructure.database.models import Article, Issue, Volume

logger = logging.getLogger(__name__)

VOLUME_FIELDS = ("volume_number", "year", "start_date", "end_date", "description")
ISSUE_FIELDS = ("issue_number", "title", "release_date", "description")


class PublicationService:
    """Volume and issue management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Volumes
    # ------------------------------------------------------------------

    async def get_volume(self, volume_id: str) -> Volume:
        result = await self.db.execute(
            select(Volume)
            .options(selectinload(Volume.issues))
            .where(Volume.id == volume_id)
            .execution_options(populate_existing=True)
        )
        volume = result.scalar_one_or_none()
        if not volume:
            raise NotFoundError("Volume not found")
        return volume

    async def list_volumes(self) -> list[tuple[Volume, dict[str, int]]]:
        """Volumes (newest first) with per-issue article counts."""
        result = await self.db.execute(
            select(Volume)
            .options(selectinload(Volume.issues))
            .order_by(Volume.volume_number.desc())
        )
        volumes = list(result.scalars().all())
        counts = await self.issue_article_counts()
        return [(v, {i.id: counts.get(i.id, 0) for i in v.issues}) for v in volumes]

    async def issue_article_counts(self) -> dict[str, int]:
        """Article count per issue id."""
        result = await self.db.execute(
            select(Article.issue_id, func.count(Article.id))
            .where(Article.issue_id.is_not(None))
            .group_by(Article.issue_id)
        )
        return {issue_id: count for issue_id, count in result.all()}

    async def _volume_number_taken(self, number: int, exclude_id: Optional[str] = None) -> bool:
        query = select(Volume.id).where(Volume.volume_number == number)
        if exclude_id:
            query = query.where(Volume.id != exclude_id)
        return (await self.db.scalar(query)) is not None

    async def create_volume(self, **fields) -> Volume:
        if await self._volume_number_taken(fields["volume_number"]):
            raise ConflictError(f"Volume {fields['volume_number']} already exists")
        volume = Volume(**{k: v for k, v in fields.items() if k in VOLUME_FIELDS})
        self.db.add(volume)
        await self.db.flush()
        logger.info("Created volume %s", volume.volume_number)
        return await self.get_volume(volume.id)

    async def update_volume(self, volume_id: str, **fields) -> Volume:
        volume = await self.get_volume(volume_id)
        number = fields.get("volume_number")
        if number is not None and await self._volume_number_taken(number, exclude_id=volume_id):
            raise ConflictError(f"Volume {number} already exists")
        for key, value in fields.items():
            if key in VOLUME_FIELDS:
                setattr(volume, key, value)
        await self.db.flush()
        return await self.get_volume(volume_id)

    async def delete_volume(self, volume_id: str) -> None:
        """Delete a volume and its issues; their articles are detached, not deleted."""
        await self.get_volume(volume_id)
        issue_ids = select(Issue.id).where(Issue.volume_id == volume_id)
        await self.db.execute(
            update(Article).where(Article.issue_id.in_(issue_ids)).values(issue_id=None)
        )
        await self.db.execute(delete(Issue).where(Issue.volume_id == volume_id))
        await self.db.execute(delete(Volume).where(Volume.id == volume_id))
        await self.db.flush()
        logger.info("Deleted volume %s", volume_id)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issue(self, issue_id: str) -> Issue:
        result = await self.db.execute(
            select(Issue)
            .options(selectinload(Issue.volume))
            .where(Issue.id == issue_id)
            .execution_options(populate_existing=True)
        )
        issue = result.scalar_one_or_none()
        if not issue:
            raise NotFoundError("Issue not found")
        return issue

    async def _issue_number_taken(self, volume_id: str, number: int, exclude_id: Optional[str] = None) -> bool:
        query = select(Issue.id).where(Issue.volume_id == volume_id, Issue.issue_number == number)
        if exclude_id:
            query = query.where(Issue.id != exclude_id)
        return (await self.db.scalar(query)) is not None

    async def create_issue(self, volume_id: str, **fields) -> Issue:
        volume = await self.get_volume(volume_id)
        if await self._issue_number_taken(volume_id, fields["issue_number"]):
            raise ConflictError(
                f"Issue {fields['issue_number']} already exists in volume {volume.volume_number}"
            )
        issue = Issue(volume_id=volume_id, **{k: v for k, v in fields.items() if k in ISSUE_FIELDS})
        self.db.add(issue)
        await self.db.flush()
        return await self.get_issue(issue.id)

    async def update_issue(self, issue_id: str, **fields) -> Issue:
        issue = await self.get_issue(issue_id)
        number = fields.get("issue_number")
        if number is not None and await self._issue_number_taken(issue.volume_id, number, exclude_id=issue_id):
            raise ConflictError(f"Issue {number} already exists in this volume")
        for key, value in fields.items():
            if key in ISSUE_FIELDS:
                setattr(issue, key, value)
        await self.db.flush()
        return await self.get_issue(issue_id)

    async def delete_issue(self, issue_id: str) -> None:
        await self.get_issue(issue_id)
        await self.db.execute(update(Article).where(Article.issue_id == issue_id).values(issue_id=None))
        await self.db.execute(delete(Issue).where(Issue.id == issue_id))
        await self.db.flush()

    async def list_issue_articles(self, issue_id: str) -> list[Article]:
        await self.get_issue(issue_id)
        result = await self.db.execute(
            select(Article)
            .options(selectinload(Article.author), selectinload(Article.attachments))
            .where(Article.issue_id == issue_id)
            .order_by(Article.title)
        )
        return list(result.scalars().all())

    async def assign_articles(self, issue_id: str, article_ids: list[str]) -> int:
        issue = await self.get_issue(issue_id)
        result = await self.db.execute(
            update(Article)
            .where(Article.id.in_(article_ids))
            .values(
                issue_id=issue.id,
                volume=issue.volume.volume_number,
                issue=issue.issue_number,
            )
        )
        await self.db.flush()
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Legacy migration
    # ------------------------------------------------------------------

    async def migrate_legacy(self) -> dict[str, int]:
        """
        Create volumes and issues from the integer volume/issue columns on
        articles and link those articles to the new issues.

        Existing volumes and issues are reused; only articles without an
        issue_id are linked.
        """
        result = await self.db.execute(
            select(Article.volume, Article.issue)
            .where(Article.volume.is_not(None), Article.issue.is_not(None))
            .distinct()
        )
        pairs: dict[int, set[int]] = {}
        for volume_number, issue_number in result.all():
            pairs.setdefault(volume_number, set()).add(issue_number)

        stats = {"volumes_created": 0, "issues_created": 0, "articles_linked": 0}
        for volume_number in sorted(pairs):
            volume = (
                await self.db.execute(select(Volume).where(Volume.volume_number == volume_number))
            ).scalar_one_or_none()
            if volume is None:
                volume = Volume(volume_number=volume_number)
                self.db.add(volume)
                await self.db.flush()
                stats["volumes_created"] += 1

            for issue_number in sorted(pairs[volume_number]):
                issue = (
                    await self.db.execute(
                        select(Issue).where(
                            Issue.volume_id == volume.id, Issue.issue_number == issue_number
                        )
                    )
                ).scalar_one_or_none()
                if issue is None:
                    issue = Issue(volume_id=volume.id, issue_number=issue_number)
                    self.db.add(issue)
                    await self.db.flush()
                    stats["issues_created"] += 1

                linked = await self.db.execute(
                    update(Article)
                    .where(
                        Article.volume == volume_number,
                        Article.issue == issue_number,
                        Article.issue_id.is_(None),
                    )
                    .values(issue_id=issue.id)
                )
                stats["articles_linked"] += linked.rowcount or 0

        await self.db.flush()
        logger.info("Legacy volume/issue migration: %s", stats)
        return stats
