"""API models for the donation redirect endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from giving.models.enums import GatewayEnvironment
from giving.models.payment import DonationIntent


class DonationRedirectRequest(DonationIntent):
    """Request to start a PayFast donation.

    The amount is rounded to cents; category and donor details are echoed
    back by PayFast in the ITN through custom_str1-custom_str3.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "amount": "250.00",
                    "category_id": "cat-building-fund",
                    "category_title": "Building Fund",
                    "category_description": "New church hall",
                    "user_id": "user-42",
                    "first_name": "Jane",
                    "last_name": "Doe",
                    "email": "jane@example.com",
                    "is_recurring": False,
                }
            ]
        },
    )


class RedirectResponse(BaseModel):
    """Signed redirect to the PayFast hosted payment page."""

    model_config = ConfigDict(strict=True)

    redirect_url: str = Field(
        ...,
        description="URL to send the donor to, signature included",
        examples=["https://sandbox.payfast.co.za/eng/process?merchant_id=10000100&..."],
    )
    payment_reference: str = Field(
        ...,
        description="m_payment_id used to match the ITN",
        examples=["donation_1700000000000_user-42"],
    )
    environment: GatewayEnvironment = Field(
        ...,
        description="Gateway environment the URL points at",
    )
