"""
Author (contributor) service.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.utils import escape_like
from core.exceptions import ConflictError, NotFoundError, ValidationError
from infrastructure.database.models import Article, Author, AuthorType, ContributorRole

logger = logging.getLogger(__name__)

AUTHOR_FIELDS = (
    "given_name",
    "surname",
    "email",
    "role",
    "author_type",
    "student_type",
    "auto_deposit_available",
    "etransfer_email",
)

# NOT NULL columns that a partial update may not clear
REQUIRED_FIELDS = ("given_name", "surname", "email", "role", "auto_deposit_available")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AuthorService:
    """CRUD and lookups for contributors."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_author(self, author_id: str) -> Author:
        author = await self.db.get(Author, author_id)
        if not author:
            raise NotFoundError("Author not found")
        return author

    async def get_by_email(self, email: str) -> Optional[Author]:
        result = await self.db.execute(
            select(Author).where(func.lower(Author.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def create_author(self, **fields) -> Author:
        email = normalize_email(fields.get("email"))
        if not email:
            raise ValidationError("Email is required")
        if await self.get_by_email(email):
            raise ConflictError(f"An author with email {email} already exists")

        values = {k: v for k, v in fields.items() if k in AUTHOR_FIELDS and v is not None}
        values["email"] = email
        if values.get("author_type") and values["author_type"] != AuthorType.STUDENT.value:
            values.pop("student_type", None)

        author = Author(**values)
        self.db.add(author)
        await self.db.flush()
        logger.info("Created author %s", author.id)
        return author

    async def find_or_create_author(
        self,
        email: str,
        given_name: str,
        surname: str = "",
        role: Optional[str] = None,
        **extra,
    ) -> tuple[Author, bool]:
        """Return (author, created). Existing authors are matched by email and left unchanged."""
        existing = await self.get_by_email(email)
        if existing:
            return existing, False
        author = await self.create_author(
            email=email,
            given_name=given_name,
            surname=surname,
            role=role or ContributorRole.GUEST_CONTRIBUTOR.value,
            **extra,
        )
        return author, True

    async def update_author(self, author_id: str, **fields) -> Author:
        """Partial update. Non-student author types clear student_type."""
        author = await self.get_author(author_id)
        nulls = [key for key in REQUIRED_FIELDS if key in fields and fields[key] is None]
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")

        if "email" in fields and fields["email"] is not None:
            email = normalize_email(fields["email"])
            if email != author.email:
                other = await self.get_by_email(email)
                if other and other.id != author.id:
                    raise ConflictError(f"An author with email {email} already exists")
            fields["email"] = email

        for key, value in fields.items():
            if key in AUTHOR_FIELDS:
                setattr(author, key, value)

        if author.author_type and author.author_type != AuthorType.STUDENT.value:
            author.student_type = None

        await self.db.flush()
        return author

    async def delete_author(self, author_id: str) -> None:
        author = await self.get_author(author_id)
        count = await self.db.scalar(
            select(func.count()).select_from(Article).where(Article.author_id == author_id)
        )
        if count:
            raise ConflictError(f"Author has {count} article(s) and cannot be deleted")
        await self.db.execute(delete(Author).where(Author.id == author.id))
        await self.db.flush()
        logger.info("Deleted author %s", author_id)

    async def list_authors(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[tuple[Author, int]], int]:
        """Authors ordered by surname, each paired with their article count."""
        article_count = (
            select(func.count(Article.id))
            .where(Article.author_id == Author.id)
            .correlate(Author)
            .scalar_subquery()
        )
        query = select(Author, article_count.label("article_count"))
        count_query = select(func.count()).select_from(Author)

        if search:
            pattern = f"%{escape_like(search)}%"
            condition = or_(
                Author.given_name.ilike(pattern, escape="\\"),
                Author.surname.ilike(pattern, escape="\\"),
                Author.email.ilike(pattern, escape="\\"),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = await self.db.scalar(count_query) or 0
        result = await self.db.execute(
            query.order_by(Author.surname, Author.given_name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [(row[0], row[1] or 0) for row in result.all()], total

    async def get_author_detail(self, author_id: str) -> dict:
        """Author with their articles and payment stats."""
        author = await self.get_author(author_id)
        result = await self.db.execute(
            select(Article)
            .where(Article.author_id == author_id)
            .order_by(Article.submitted_at.desc().nulls_last(), Article.created_at.desc())
        )
        articles = list(result.scalars().all())
        paid = [a for a in articles if a.payment_status]
        return {
            "author": author,
            "articles": articles,
            "stats": {
                "total_articles": len(articles),
                "paid_articles": len(paid),
                "total_earnings": sum(a.payment_amount or 0 for a in paid),
            },
        }
