"""Pydantic models for the giving gateway."""

from .donation import DonationRecord, GivingCategory, ThankYouNotification
from .enums import (
    GATEWAY_STATUS_MAP,
    DonationFrequency,
    DonationStatus,
    GatewayEnvironment,
    GatewayPaymentStatus,
    WebhookOutcome,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    WEBHOOK_REJECTIONS,
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    ErrorResponse,
    GivingError,
    LedgerUnavailableError,
    MalformedPayloadError,
    ReferenceCollisionError,
    SignatureMismatchError,
)
from .notification import WebhookNotification, WebhookResult
from .payment import DonationIntent, PaymentRedirect, PaymentRequest, format_amount

__all__ = [
    # Enums
    "DonationFrequency",
    "DonationStatus",
    "GatewayEnvironment",
    "GatewayPaymentStatus",
    "WebhookOutcome",
    "GATEWAY_STATUS_MAP",
    # Payment
    "DonationIntent",
    "PaymentRedirect",
    "PaymentRequest",
    "format_amount",
    # Notification
    "WebhookNotification",
    "WebhookResult",
    # Donation
    "DonationRecord",
    "GivingCategory",
    "ThankYouNotification",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "GivingError",
    "LedgerUnavailableError",
    "MalformedPayloadError",
    "ReferenceCollisionError",
    "SignatureMismatchError",
    "WEBHOOK_REJECTIONS",
]
