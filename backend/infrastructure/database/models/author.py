"""
Author (contributor) database model.
"""

from enum import Enum
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Boolean, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .article import Article


class ContributorRole(str, Enum):
    """Contributor role enumeration."""

    STAFF_WRITER = "Staff Writer"
    GUEST_CONTRIBUTOR = "Guest Contributor"
    EDITOR = "Editor"
    PHOTOGRAPHER = "Photographer"
    GRAPHIC_DESIGNER = "Graphic Designer"
    OTHER = "Other"


class AuthorType(str, Enum):
    """Author affiliation. Only students are eligible for payment."""

    STUDENT = "Student"
    FACULTY = "Faculty"
    STAFF = "Staff"
    OTHER = "Other"


class StudentType(str, Enum):
    """Student level (only meaningful for AuthorType.STUDENT)."""

    UNDERGRAD = "Undergrad"
    GRAD = "Grad"
    ALUMNI = "Alumni"
    OTHER = "Other"


class Author(Base, TimestampMixin):
    """Contributor who submits articles."""

    __tablename__ = "authors"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    given_name: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(
        String(50),
        default=ContributorRole.GUEST_CONTRIBUTOR.value,
        nullable=False,
    )
    author_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    student_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Payment details
    auto_deposit_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    etransfer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Relationships
    articles: Mapped[List["Article"]] = relationship("Article", back_populates="author")

    def __repr__(self) -> str:
        return f"<Author(id={self.id}, email={self.email})>"

    @property
    def full_name(self) -> str:
        return f"{self.given_name} {self.surname}".strip()

    @property
    def is_payment_eligible(self) -> bool:
        """Faculty and staff contributions are unpaid."""
        return self.author_type not in (AuthorType.FACULTY.value, AuthorType.STAFF.value)
