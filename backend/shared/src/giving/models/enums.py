"""Enumeration types for giving data models."""

from enum import Enum


class GatewayEnvironment(str, Enum):
    """PayFast environment a merchant account belongs to."""

    SANDBOX = "sandbox"
    LIVE = "live"


class DonationStatus(str, Enum):
    """Status of a donation in the local ledger.

    Every status other than PENDING is terminal.
    """

    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not DonationStatus.PENDING


class GatewayPaymentStatus(str, Enum):
    """payment_status vocabulary sent by PayFast in an ITN."""

    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class DonationFrequency(str, Enum):
    """Recurrence flag carried in custom_str3."""

    MONTHLY = "monthly"
    ONCE_OFF = "once-off"


class WebhookOutcome(str, Enum):
    """Result of handling one webhook delivery."""

    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


# Gateway status -> ledger status. PENDING has no entry: the record stays as is.
GATEWAY_STATUS_MAP: dict[GatewayPaymentStatus, DonationStatus] = {
    GatewayPaymentStatus.COMPLETE: DonationStatus.COMPLETE,
    GatewayPaymentStatus.FAILED: DonationStatus.FAILED,
    GatewayPaymentStatus.CANCELLED: DonationStatus.CANCELLED,
}
