"""
Payment rate configuration routes.

Per-article payment endpoints live on the article routes.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.payments import (
    PaymentRateHistoryResponse,
    PaymentRatesSchema,
    PaymentRatesUpdateRequest,
)
from core.domain.payment import PaymentRates
from infrastructure.database.connection import get_db
from services.payments import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/rates", response_model=PaymentRatesSchema)
async def get_rates(db: AsyncSession = Depends(get_db)):
    """
    Current rates in cents, or the defaults when none are stored.
    """
    return (await PaymentService(db).get_rates()).snapshot()


@router.put("/rates", response_model=PaymentRatesSchema)
async def update_rates(
    request: PaymentRatesUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the rate table. Existing article amounts are not recalculated.
    """
    rates = PaymentRates(**request.model_dump(exclude={"changed_by", "notes"}))
    await PaymentService(db).update_rates(rates, request.changed_by, request.notes)
    await db.commit()
    return rates.snapshot()


@router.get("/rates/history", response_model=list[PaymentRateHistoryResponse])
async def get_rate_history(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService(db).list_rate_history(limit=limit)
