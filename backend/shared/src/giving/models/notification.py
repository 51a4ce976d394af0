"""PayFast ITN (Instant Transaction Notification) models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import DonationStatus, GatewayPaymentStatus, WebhookOutcome
from .errors import ErrorCode


class WebhookNotification(BaseModel):
    """Inbound ITN payload after its signature has been verified.

    Values arrive as form strings; amounts and custom ints are coerced.
    Unknown fields are ignored so new gateway fields do not break parsing.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    m_payment_id: str = Field(..., min_length=1, description="Our payment reference")
    pf_payment_id: str = Field(..., min_length=1, description="PayFast payment ID")
    payment_status: str = Field(..., min_length=1)
    item_name: str | None = None
    item_description: str | None = None
    amount_gross: Decimal
    amount_fee: Decimal | None = None
    amount_net: Decimal | None = None
    custom_str1: str | None = None
    custom_str2: str | None = None
    custom_str3: str | None = None
    custom_str4: str | None = None
    custom_str5: str | None = None
    custom_int1: int | None = None
    custom_int2: int | None = None
    custom_int3: int | None = None
    custom_int4: int | None = None
    custom_int5: int | None = None
    name_first: str | None = None
    name_last: str | None = None
    email_address: str | None = None
    merchant_id: str
    token: str | None = None
    billing_date: str | None = None
    signature: str

    @model_validator(mode="before")
    @classmethod
    def blank_as_missing(cls, data: Any) -> Any:
        """PayFast posts unused fields as empty strings."""
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if not (isinstance(value, str) and not value.strip())
            }
        return data

    @property
    def gateway_status(self) -> GatewayPaymentStatus | None:
        """payment_status as a known gateway status, or None if unrecognised."""
        try:
            return GatewayPaymentStatus(self.payment_status)
        except ValueError:
            return None

    @property
    def category_id(self) -> str | None:
        return self.custom_str1 or None

    @property
    def user_id(self) -> str | None:
        return self.custom_str2 or None

    @property
    def donor_name(self) -> str | None:
        name = " ".join(part for part in (self.name_first, self.name_last) if part)
        return name or None


class WebhookResult(BaseModel):
    """Outcome of handling a single webhook delivery."""

    model_config = ConfigDict(strict=True)

    outcome: WebhookOutcome
    payment_reference: str | None = None
    status: DonationStatus | None = Field(
        default=None,
        description="Ledger status after processing",
    )
    error_code: ErrorCode | None = None
    reason: str | None = None

    @property
    def acknowledged(self) -> bool:
        """True when the gateway should stop retrying this delivery."""
        return self.outcome is not WebhookOutcome.REJECTED
