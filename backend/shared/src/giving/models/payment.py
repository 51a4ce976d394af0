"""Payment request models for the PayFast hosted payment page."""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .enums import DonationFrequency, GatewayEnvironment

TWO_PLACES = Decimal("0.01")


def format_amount(amount: Decimal) -> str:
    """Render an amount the way PayFast expects it: two decimal places."""
    return str(Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


class DonationIntent(BaseModel):
    """What the app knows about a donation before the donor is redirected."""

    amount: Decimal = Field(..., gt=0, description="Donation amount in ZAR")
    category_id: str = Field(..., min_length=1, description="Giving category ID")
    category_title: str = Field(..., min_length=1, examples=["General Fund"])
    category_description: str | None = Field(default=None)
    user_id: str = Field(..., min_length=1, description="Donor's user ID")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    is_recurring: bool = Field(default=False, description="Monthly donation flag")

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        rounded = v.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        if rounded <= 0:
            raise ValueError("amount must be at least 0.01")
        return rounded

    @property
    def frequency(self) -> DonationFrequency:
        return DonationFrequency.MONTHLY if self.is_recurring else DonationFrequency.ONCE_OFF


class PaymentRequest(BaseModel):
    """Outbound PayFast payment request.

    Field names are the PayFast wire names. Optional fields left as None are
    omitted from the canonical string and the redirect URL.
    """

    model_config = ConfigDict(frozen=True)

    # Merchant details
    merchant_id: str
    merchant_key: str
    return_url: str | None = None
    cancel_url: str | None = None
    notify_url: str | None = None

    # Customer details
    name_first: str | None = None
    name_last: str | None = None
    email_address: str | None = None
    cell_number: str | None = None

    # Transaction details
    m_payment_id: str = Field(..., description="Unique payment reference")
    amount: str = Field(..., description="Amount with two decimal places")
    item_name: str
    item_description: str | None = None
    custom_int1: int | None = None
    custom_int2: int | None = None
    custom_int3: int | None = None
    custom_int4: int | None = None
    custom_int5: int | None = None
    custom_str1: str | None = None
    custom_str2: str | None = None
    custom_str3: str | None = None
    custom_str4: str | None = None
    custom_str5: str | None = None

    # Transaction options
    email_confirmation: int | None = None
    confirmation_address: str | None = None
    payment_method: str | None = None

    # Subscriptions
    subscription_type: int | None = None
    billing_date: str | None = None
    recurring_amount: str | None = None
    frequency: int | None = None
    cycles: int | None = None

    @field_validator("amount")
    @classmethod
    def positive_amount(cls, v: str) -> str:
        try:
            value = Decimal(v)
        except ArithmeticError as e:
            raise ValueError(f"amount is not a number: {v!r}") from e
        if value <= 0:
            raise ValueError("amount must be greater than zero")
        return format_amount(value)

    def to_fields(self) -> dict[str, str]:
        """Return the set fields as wire strings, keyed by PayFast name."""
        return {
            name: str(value)
            for name, value in self.model_dump(exclude_none=True).items()
        }


class PaymentRedirect(BaseModel):
    """Result of building a redirect to the hosted payment page."""

    model_config = ConfigDict(strict=True)

    url: str = Field(
        ...,
        description="Self-contained redirect URL including the signature",
        examples=["https://sandbox.payfast.co.za/eng/process?merchant_id=10000100&..."],
    )
    payment_reference: str = Field(..., description="m_payment_id of this attempt")
    signature: str = Field(..., description="MD5 signature appended to the URL")
    environment: GatewayEnvironment
