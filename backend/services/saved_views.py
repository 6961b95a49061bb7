"""
Saved article-list views.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError, ValidationError
from infrastructure.database.models import SavedArticleView

logger = logging.getLogger(__name__)

VIEW_FIELDS = ("name", "is_default", "status", "tier", "search", "sort_by", "sort_order", "view_mode")


class SavedViewService:
    """CRUD for saved views. At most one view is the default."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_views(self) -> list[SavedArticleView]:
        result = await self.db.execute(
            select(SavedArticleView).order_by(SavedArticleView.is_default.desc(), SavedArticleView.name)
        )
        return list(result.scalars().all())

    async def get_view(self, view_id: str) -> SavedArticleView:
        view = await self.db.get(SavedArticleView, view_id)
        if not view:
            raise NotFoundError("Saved view not found")
        return view

    async def _clear_default(self, keep_id: str | None = None) -> None:
        query = update(SavedArticleView).where(SavedArticleView.is_default.is_(True))
        if keep_id:
            query = query.where(SavedArticleView.id != keep_id)
        await self.db.execute(query.values(is_default=False).execution_options(synchronize_session="fetch"))

    async def create_view(self, **fields) -> SavedArticleView:
        if not (fields.get("name") or "").strip():
            raise ValidationError("View name is required")
        if fields.get("is_default"):
            await self._clear_default()
        view = SavedArticleView(**{k: v for k, v in fields.items() if k in VIEW_FIELDS})
        view.name = view.name.strip()
        self.db.add(view)
        await self.db.flush()
        logger.info("Created saved view %s", view.name)
        return view

    async def update_view(self, view_id: str, **fields) -> SavedArticleView:
        view = await self.get_view(view_id)
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("View name is required")
        if fields.get("is_default"):
            await self._clear_default(keep_id=view_id)
        for key, value in fields.items():
            if key in VIEW_FIELDS:
                setattr(view, key, value)
        await self.db.flush()
        return view

    async def delete_view(self, view_id: str) -> None:
        view = await self.get_view(view_id)
        await self.db.delete(view)
        await self.db.flush()
