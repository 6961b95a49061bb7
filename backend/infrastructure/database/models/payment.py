"""
Payment rate configuration models.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, utc_now


class PaymentRateConfig(Base, TimestampMixin):
    """Current payment rates in cents. A single row is kept."""

    __tablename__ = "payment_rate_config"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Tier rates
    tier1_rate: Mapped[int] = mapped_column(Integer, default=2000, nullable=False)
    tier2_rate: Mapped[int] = mapped_column(Integer, default=3500, nullable=False)
    tier3_rate: Mapped[int] = mapped_column(Integer, default=5000, nullable=False)

    # Bonuses
    research_bonus: Mapped[int] = mapped_column(Integer, default=1000, nullable=False)
    multimedia_bonus: Mapped[int] = mapped_column(Integer, default=500, nullable=False)
    time_sensitive_bonus: Mapped[int] = mapped_column(Integer, default=500, nullable=False)
    professional_photo_bonus: Mapped[int] = mapped_column(Integer, default=1500, nullable=False)
    professional_graphic_bonus: Mapped[int] = mapped_column(Integer, default=1500, nullable=False)

    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class PaymentRateHistory(Base):
    """Snapshot of rates written each time the config changes."""

    __tablename__ = "payment_rate_history"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    rates_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
