"""
Payment API schemas. All amounts are in cents.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PaymentRatesSchema(BaseModel):
    """Rate table."""

    tier1_rate: int = Field(..., ge=0)
    tier2_rate: int = Field(..., ge=0)
    tier3_rate: int = Field(..., ge=0)
    research_bonus: int = Field(..., ge=0)
    multimedia_bonus: int = Field(..., ge=0)
    time_sensitive_bonus: int = Field(..., ge=0)
    professional_photo_bonus: int = Field(..., ge=0)
    professional_graphic_bonus: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class PaymentRatesUpdateRequest(PaymentRatesSchema):
    changed_by: str | None = Field(None, max_length=255)
    notes: str | None = None


class PaymentRateHistoryResponse(BaseModel):
    id: str
    rates_snapshot: dict[str, int]
    changed_by: str | None = None
    notes: str | None = None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BonusItemSchema(BaseModel):
    type: str
    amount: int

    model_config = ConfigDict(from_attributes=True)


class PaymentCalculationResponse(BaseModel):
    """Itemised payment breakdown."""

    tier_name: str
    tier_rate: int
    bonuses: list[BonusItemSchema]
    base_amount: int
    bonus_amount: int
    total_amount: int
    calculated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalculatePaymentRequest(BaseModel):
    recalculate: bool = Field(default=False, description="Overwrite a manually set amount")


class ManualPaymentRequest(BaseModel):
    amount: int = Field(..., ge=0, description="Amount in cents")


class MarkPaidRequest(BaseModel):
    amount: int | None = Field(None, ge=0, description="Final amount in cents, if different")


class BonusFlagsRequest(BaseModel):
    """Only the flags that are sent are changed."""

    has_research_bonus: bool | None = None
    has_time_sensitive_bonus: bool | None = None
    has_professional_photos: bool | None = None
    has_professional_graphics: bool | None = None
    has_multimedia_bonus: bool | None = None
