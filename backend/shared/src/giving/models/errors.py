"""Standard error codes for the giving gateway.

Every failure the gateway can report carries one of these codes so that
callers (the HTTP layer, the app, audit tooling) get a machine-readable
reason alongside a human message and a recovery hint.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes reported by the giving gateway."""

    # Configuration
    CONFIGURATION_MISSING = "ERR_CONFIG"

    # Webhook rejections (ERR_WEBHOOK_001-ERR_WEBHOOK_003)
    MERCHANT_MISMATCH = "ERR_WEBHOOK_001"
    SIGNATURE_MISMATCH = "ERR_WEBHOOK_002"
    MALFORMED_PAYLOAD = "ERR_WEBHOOK_003"

    # Ledger
    LEDGER_UNAVAILABLE = "ERR_LEDGER"
    REFERENCE_COLLISION = "ERR_REFERENCE"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CONFIGURATION_MISSING: "Payment gateway configuration is missing",
    ErrorCode.MERCHANT_MISMATCH: "Notification merchant does not match this account",
    ErrorCode.SIGNATURE_MISMATCH: "Notification signature is invalid",
    ErrorCode.MALFORMED_PAYLOAD: "Notification payload could not be parsed",
    ErrorCode.LEDGER_UNAVAILABLE: "Donation ledger is unavailable",
    ErrorCode.REFERENCE_COLLISION: "Could not allocate a unique payment reference",
}

# Recovery suggestions for operators and callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.CONFIGURATION_MISSING: "Check PAYFAST_* environment variables or SSM parameters",
    ErrorCode.MERCHANT_MISMATCH: "Verify the notify_url is only registered for this merchant",
    ErrorCode.SIGNATURE_MISMATCH: "Verify the passphrase matches the merchant dashboard",
    ErrorCode.MALFORMED_PAYLOAD: "Send an application/x-www-form-urlencoded ITN body",
    ErrorCode.LEDGER_UNAVAILABLE: "Retry later",
    ErrorCode.REFERENCE_COLLISION: "Try the donation again",
}


class ErrorResponse(BaseModel):
    """Standard error body returned to gateway and app callers."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class GivingError(Exception):
    """Base exception for giving gateway failures.

    Subclasses pin the error code; callers can still pass one explicitly.
    """

    code: ErrorCode = ErrorCode.CONFIGURATION_MISSING

    def __init__(
        self,
        details: Optional[dict[str, str]] = None,
        code: Optional[ErrorCode] = None,
    ):
        if code is not None:
            self.code = code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse body."""
        return ErrorResponse.from_code(self.code, self.details)


class ConfigurationError(GivingError):
    """Credentials or required payment fields are missing."""

    code = ErrorCode.CONFIGURATION_MISSING


class AuthenticationError(GivingError):
    """Notification merchant_id differs from the configured merchant."""

    code = ErrorCode.MERCHANT_MISMATCH


class SignatureMismatchError(GivingError):
    """Recomputed notification signature differs from the received one."""

    code = ErrorCode.SIGNATURE_MISMATCH


class MalformedPayloadError(GivingError):
    """Notification body could not be parsed or lacks required fields."""

    code = ErrorCode.MALFORMED_PAYLOAD


class LedgerUnavailableError(GivingError):
    """Donation ledger storage failed; the gateway should retry."""

    code = ErrorCode.LEDGER_UNAVAILABLE


class ReferenceCollisionError(GivingError):
    """No unique payment reference could be reserved."""

    code = ErrorCode.REFERENCE_COLLISION


# Errors that end a webhook delivery with a client-side rejection.
WEBHOOK_REJECTIONS: tuple[type[GivingError], ...] = (
    AuthenticationError,
    SignatureMismatchError,
    MalformedPayloadError,
)
