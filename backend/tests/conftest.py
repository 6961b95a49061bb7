"""
Pytest configuration and shared fixtures for backend tests.
"""

import io
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import datetime, timezone
from typing import AsyncGenerator
from uuid import uuid4

from docx import Document
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import after path is set
from adapters.storage import LocalStorageAdapter
from api.dependencies import get_storage
from infrastructure.database.connection import get_db
from infrastructure.database.models import (
    Article,
    ArticleTier,
    Author,
    AuthorType,
    Base,
    InternalStatus,
    Issue,
    Volume,
)


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage(tmp_path) -> LocalStorageAdapter:
    """Local storage rooted in a per-test temporary directory."""
    return LocalStorageAdapter(base_path=str(tmp_path / "uploads"))


@pytest.fixture
async def async_client(
    db_session: AsyncSession, storage: LocalStorageAdapter
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture
async def author(db_session: AsyncSession) -> Author:
    """A student author eligible for payment."""
    author = Author(
        id=str(uuid4()),
        given_name="Jane",
        surname="Doe",
        email="jane.doe@example.com",
        author_type=AuthorType.STUDENT.value,
        student_type="Undergrad",
    )
    db_session.add(author)
    await db_session.commit()
    return author


@pytest.fixture
async def faculty_author(db_session: AsyncSession) -> Author:
    author = Author(
        id=str(uuid4()),
        given_name="Prof",
        surname="Smith",
        email="prof.smith@example.com",
        author_type=AuthorType.FACULTY.value,
    )
    db_session.add(author)
    await db_session.commit()
    return author


@pytest.fixture
async def article(db_session: AsyncSession, author: Author) -> Article:
    """A Tier 2 article awaiting review."""
    article = Article(
        id=str(uuid4()),
        author_id=author.id,
        title="Campus Garden Grows",
        article_tier=ArticleTier.TIER_2.value,
        internal_status=InternalStatus.PENDING_REVIEW.value,
        content="# Campus Garden\n\nThe garden **grew** this year.",
        submitted_at=datetime(2024, 3, 15, tzinfo=timezone.utc),
    )
    db_session.add(article)
    await db_session.commit()
    return article


@pytest.fixture
async def volume_with_issue(db_session: AsyncSession) -> tuple[Volume, Issue]:
    volume = Volume(id=str(uuid4()), volume_number=5, year=2024)
    issue = Issue(id=str(uuid4()), volume_id=volume.id, issue_number=2, title="Spring")
    db_session.add_all([volume, issue])
    await db_session.commit()
    return volume, issue


def make_docx(*paragraphs: tuple[str, str]) -> bytes:
    """Build a .docx from (style, text) pairs."""
    doc = Document()
    for style, text in paragraphs:
        doc.add_paragraph(text, style=style)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def docx_bytes() -> bytes:
    return make_docx(
        ("Heading 1", "Garden Report"),
        ("Normal", "Tomatoes and beans."),
        ("List Bullet", "Water daily"),
    )


# Minimal PNG header; content is never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def docx_factory():
    return make_docx
