"""
Payment service.

Persists rate configuration and applies the payment calculator to articles.
Manual amounts are protected from recalculation unless explicitly requested.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.domain.payment import (
    BonusFlags,
    PaymentCalculation,
    PaymentRates,
    calculate_payment,
    resolve_multimedia_bonus,
)
from core.exceptions import ConflictError, NotFoundError, ValidationError
from infrastructure.database.models import Article, PaymentRateConfig, PaymentRateHistory

logger = logging.getLogger(__name__)

BONUS_FLAG_FIELDS = (
    "has_research_bonus",
    "has_time_sensitive_bonus",
    "has_professional_photos",
    "has_professional_graphics",
    "has_multimedia_bonus",
)


def bonus_flags_for(article: Article) -> BonusFlags:
    """Build calculator flags from an article. Expects multimedia_types loaded."""
    return BonusFlags(
        has_multimedia=resolve_multimedia_bonus(
            article.has_multimedia_bonus,
            [m.multimedia_type for m in article.multimedia_types],
        ),
        has_research_bonus=article.has_research_bonus,
        has_time_sensitive_bonus=article.has_time_sensitive_bonus,
        has_professional_photos=article.has_professional_photos,
        has_professional_graphics=article.has_professional_graphics,
    )


class PaymentService:
    """Rate configuration and article payment operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_config_row(self) -> Optional[PaymentRateConfig]:
        result = await self.db.execute(
            select(PaymentRateConfig).order_by(PaymentRateConfig.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_rates(self) -> PaymentRates:
        """Stored rates, or the defaults when nothing has been configured."""
        config = await self.get_config_row()
        return PaymentRates.from_config(config) if config else PaymentRates()

    async def update_rates(
        self,
        rates: PaymentRates,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PaymentRateConfig:
        """Upsert the rate config and record the new rates in the history table."""
        for name, value in rates.snapshot().items():
            if value < 0:
                raise ValidationError(f"{name} cannot be negative")

        config = await self.get_config_row()
        if config is None:
            config = PaymentRateConfig(**rates.snapshot(), updated_by=changed_by)
            self.db.add(config)
        else:
            for name, value in rates.snapshot().items():
                setattr(config, name, value)
            config.updated_by = changed_by

        self.db.add(
            PaymentRateHistory(
                rates_snapshot=rates.snapshot(),
                changed_by=changed_by,
                notes=notes,
            )
        )
        await self.db.flush()
        logger.info("Payment rates updated by %s", changed_by or "unknown")
        return config

    async def list_rate_history(self, limit: int = 50) -> list[PaymentRateHistory]:
        result = await self.db.execute(
            select(PaymentRateHistory).order_by(PaymentRateHistory.changed_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def _get_article(self, article_id: str) -> Article:
        result = await self.db.execute(
            select(Article)
            .options(selectinload(Article.multimedia_types))
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        article = result.scalar_one_or_none()
        if not article:
            raise NotFoundError("Article not found")
        return article

    async def preview_payment(self, article_id: str) -> PaymentCalculation:
        """Calculate without saving."""
        article = await self._get_article(article_id)
        return calculate_payment(article.article_tier, bonus_flags_for(article), await self.get_rates())

    async def calculate_article_payment(
        self,
        article_id: str,
        recalculate: bool = False,
    ) -> PaymentCalculation:
        """
        Calculate and store an article's payment.

        Args:
            article_id: Article to price
            recalculate: Overwrite a manually set amount

        Returns:
            The stored PaymentCalculation

        Raises:
            ConflictError: If the amount was set manually and recalculate is False
        """
        article = await self._get_article(article_id)
        if article.payment_is_manual and not recalculate:
            raise ConflictError("Payment was set manually; pass recalculate=true to overwrite it")
        return await self._apply_calculation(article)

    async def _apply_calculation(self, article: Article) -> PaymentCalculation:
        calculation = calculate_payment(
            article.article_tier, bonus_flags_for(article), await self.get_rates()
        )
        article.payment_amount = calculation.total_amount
        article.payment_rate_snapshot = calculation.to_dict()
        article.payment_calculated_at = calculation.calculated_at
        article.payment_is_manual = False
        await self.db.flush()
        logger.info("Calculated payment for article %s: %d cents", article.id, calculation.total_amount)
        return calculation

    async def set_manual_payment(self, article_id: str, amount: int) -> Article:
        if amount < 0:
            raise ValidationError("Payment amount cannot be negative")
        article = await self._get_article(article_id)
        article.payment_amount = amount
        article.payment_is_manual = True
        article.payment_calculated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return article

    async def mark_payment_complete(self, article_id: str, amount: Optional[int] = None) -> Article:
        article = await self._get_article(article_id)
        if amount is not None:
            if amount < 0:
                raise ValidationError("Payment amount cannot be negative")
            article.payment_amount = amount
        article.payment_status = True
        article.paid_at = datetime.now(timezone.utc)
        await self.db.flush()
        logger.info("Marked article %s as paid", article_id)
        return article

    async def mark_payment_unpaid(self, article_id: str) -> Article:
        article = await self._get_article(article_id)
        article.payment_status = False
        article.paid_at = None
        await self.db.flush()
        return article

    async def update_bonus_flags(self, article_id: str, **flags) -> Article:
        """Update the given flags only, then recalculate unless the amount is manual."""
        article = await self._get_article(article_id)
        for name, value in flags.items():
            if name in BONUS_FLAG_FIELDS:
                setattr(article, name, value)
        await self.db.flush()
        if not article.payment_is_manual:
            await self._apply_calculation(article)
        return article
