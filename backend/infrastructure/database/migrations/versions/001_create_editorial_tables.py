"""Create editorial tables

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "authors",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("given_name", sa.String(length=255), nullable=False),
        sa.Column("surname", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="Guest Contributor"),
        sa.Column("author_type", sa.String(length=50), nullable=True),
        sa.Column("student_type", sa.String(length=50), nullable=True),
        sa.Column("auto_deposit_available", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("etransfer_email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_authors_email", "authors", ["email"])

    op.create_table(
        "volumes",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("volume_number", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("volume_number"),
    )

    op.create_table(
        "issues",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("volume_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("issue_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["volume_id"], ["volumes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("volume_id", "issue_number", name="uq_issue_volume_number"),
    )
    op.create_index("ix_issues_volume_id", "issues", ["volume_id"])

    op.create_table(
        "articles",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("article_tier", sa.String(length=50), nullable=False, server_default="Tier 1 (Basic)"),
        sa.Column("internal_status", sa.String(length=50), nullable=False, server_default="Draft"),
        sa.Column("automation_status", sa.String(length=50), nullable=False, server_default="Completed"),
        sa.Column("prefers_anonymity", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("article_file_path", sa.String(length=1000), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("feedback_letter", sa.Text(), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default="false"),
        # Payment (amounts in cents)
        sa.Column("payment_status", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("payment_amount", sa.Integer(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_is_manual", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("payment_rate_snapshot", sa.JSON(), nullable=True),
        sa.Column("payment_calculated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("has_research_bonus", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("has_time_sensitive_bonus", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("has_professional_photos", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("has_professional_graphics", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("has_multimedia_bonus", sa.Boolean(), nullable=True),
        # Publication
        sa.Column("volume", sa.Integer(), nullable=True),
        sa.Column("issue", sa.Integer(), nullable=True),
        sa.Column("issue_id", postgresql.UUID(as_uuid=False), nullable=True),
        # Intake
        sa.Column("form_response_id", sa.String(length=255), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["author_id"], ["authors.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_articles_author_id", "articles", ["author_id"])
    op.create_index("ix_articles_internal_status", "articles", ["internal_status"])
    op.create_index("ix_articles_issue_id", "articles", ["issue_id"])
    op.create_index("ix_articles_form_response_id", "articles", ["form_response_id"])

    op.create_table(
        "attachments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("article_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("attachment_type", sa.String(length=50), nullable=False, server_default="other"),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("original_file_name", sa.String(length=500), nullable=False),
        sa.Column("file_path", sa.String(length=1000), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("photo_number", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["article_id"], ["articles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_attachments_article_id", "attachments", ["article_id"])

    op.create_table(
        "article_multimedia_types",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("article_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("multimedia_type", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["article_id"], ["articles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("article_id", "multimedia_type", name="uq_article_multimedia_type"),
    )
    op.create_index("ix_article_multimedia_types_article_id", "article_multimedia_types", ["article_id"])

    op.create_table(
        "article_notes",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("article_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["article_id"], ["articles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_article_notes_article_id", "article_notes", ["article_id"])

    op.create_table(
        "status_history",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("article_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("from_status", sa.String(length=50), nullable=True),
        sa.Column("to_status", sa.String(length=50), nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=True),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["article_id"], ["articles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_status_history_article_id", "status_history", ["article_id"])

    op.create_table(
        "payment_rate_config",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("tier1_rate", sa.Integer(), nullable=False, server_default="2000"),
        sa.Column("tier2_rate", sa.Integer(), nullable=False, server_default="3500"),
        sa.Column("tier3_rate", sa.Integer(), nullable=False, server_default="5000"),
        sa.Column("research_bonus", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("multimedia_bonus", sa.Integer(), nullable=False, server_default="500"),
        sa.Column("time_sensitive_bonus", sa.Integer(), nullable=False, server_default="500"),
        sa.Column("professional_photo_bonus", sa.Integer(), nullable=False, server_default="1500"),
        sa.Column("professional_graphic_bonus", sa.Integer(), nullable=False, server_default="1500"),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "payment_rate_history",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("rates_snapshot", sa.JSON(), nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "saved_article_views",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("status", sa.String(length=50), nullable=True),
        sa.Column("tier", sa.String(length=50), nullable=True),
        sa.Column("search", sa.String(length=255), nullable=True),
        sa.Column("sort_by", sa.String(length=50), nullable=True),
        sa.Column("sort_order", sa.String(length=10), nullable=True),
        sa.Column("view_mode", sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("saved_article_views")
    op.drop_table("payment_rate_history")
    op.drop_table("payment_rate_config")
    op.drop_index("ix_status_history_article_id", table_name="status_history")
    op.drop_table("status_history")
    op.drop_index("ix_article_notes_article_id", table_name="article_notes")
    op.drop_table("article_notes")
    op.drop_index("ix_article_multimedia_types_article_id", table_name="article_multimedia_types")
    op.drop_table("article_multimedia_types")
    op.drop_index("ix_attachments_article_id", table_name="attachments")
    op.drop_table("attachments")
    op.drop_index("ix_articles_form_response_id", table_name="articles")
    op.drop_index("ix_articles_issue_id", table_name="articles")
    op.drop_index("ix_articles_internal_status", table_name="articles")
    op.drop_index("ix_articles_author_id", table_name="articles")
    op.drop_table("articles")
    op.drop_index("ix_issues_volume_id", table_name="issues")
    op.drop_table("issues")
    op.drop_table("volumes")
    op.drop_index("ix_authors_email", table_name="authors")
    op.drop_table("authors")
