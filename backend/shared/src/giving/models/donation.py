"""Donation ledger and giving category models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import DonationFrequency, DonationStatus


class DonationRecord(BaseModel):
    """A donation tracked in the local ledger, keyed by payment reference.

    Amounts are stored in ZAR as Decimal (DynamoDB numbers).
    """

    payment_reference: str = Field(..., description="m_payment_id sent to PayFast")
    user_id: str | None = Field(default=None, description="Donor's user ID")
    category_id: str | None = Field(default=None, description="Giving category ID")
    amount: Decimal = Field(..., ge=0, description="Requested amount in ZAR")
    is_recurring: bool = False
    frequency: DonationFrequency | None = None
    payment_method: str = "payfast"
    status: DonationStatus = DonationStatus.PENDING
    gateway_payment_id: str | None = Field(
        default=None, description="PayFast pf_payment_id"
    )
    donor_name: str | None = None
    donor_email: str | None = None
    item_name: str | None = None
    item_description: str | None = None
    amount_gross: Decimal | None = None
    amount_fee: Decimal | None = None
    amount_net: Decimal | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = Field(
        default=None, description="When the terminal ITN was applied"
    )


class GivingCategory(BaseModel):
    """A giving category with its fundraising goal and raised total."""

    model_config = ConfigDict(strict=True)

    category_id: str
    title: str
    description: str = ""
    goal: Decimal = Field(default=Decimal("0"), ge=0)
    raised: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True


class ThankYouNotification(BaseModel):
    """Push notification sent after a donation completes."""

    model_config = ConfigDict(strict=True)

    title: str
    body: str
    user_ids: list[str] | None = None
    category: str = "giving"
    data: dict[str, str] | None = None
