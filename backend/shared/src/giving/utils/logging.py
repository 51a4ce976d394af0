"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helpers for donation and webhook logging with redacted payloads

Usage:
    from giving.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Processing donation", extra={"payment_reference": "donation_..."})
"""

import logging
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Never written to logs, not even masked.
SECRET_FIELDS = frozenset({"signature", "passphrase", "merchant_key", "token"})

# Personal data, logged masked.
PERSONAL_FIELDS = frozenset(
    {"name_first", "name_last", "email_address", "cell_number", "donor_name", "donor_email"}
)


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def mask_value(value: Any) -> str:
    """Mask a personal value, keeping its first character as a hint."""
    text = str(value)
    if len(text) <= 1:
        return "*"
    return f"{text[0]}***"


def redact_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    """Return a copy of a payload that is safe to log.

    Secret fields are dropped entirely and personal fields are masked.
    """
    redacted: dict[str, str] = {}
    for key, value in fields.items():
        if key in SECRET_FIELDS:
            continue
        if key in PERSONAL_FIELDS and value:
            redacted[key] = mask_value(value)
        else:
            redacted[key] = str(value)
    return redacted


def log_donation_operation(
    logger: logging.Logger,
    operation: str,
    *,
    payment_reference: str | None = None,
    category_id: str | None = None,
    amount: Any = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a donation operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "build_redirect", "increment_category")
        payment_reference: m_payment_id if available
        category_id: Giving category if relevant
        amount: Amount in ZAR if relevant
        status: Donation status
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if payment_reference:
        context["payment_reference"] = payment_reference
    if category_id:
        context["category_id"] = category_id
    if amount is not None:
        context["amount"] = str(amount)
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Donation operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_webhook_event(
    logger: logging.Logger,
    payment_status: str | None,
    payment_reference: str | None,
    *,
    gateway_payment_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    payload: Mapping[str, Any] | None = None,
    **extra: Any,
) -> None:
    """Log a PayFast ITN with structured context.

    Args:
        logger: Logger instance
        payment_status: Gateway payment_status (COMPLETE, FAILED, ...)
        payment_reference: m_payment_id from the notification
        gateway_payment_id: pf_payment_id if available
        result: Processing result (received, accepted, duplicate, rejected)
        error: Error message if processing failed
        payload: Raw fields; logged through redact_fields
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "payment_status": payment_status or "unknown",
        "payment_reference": payment_reference or "unknown",
    }

    if gateway_payment_id:
        context["gateway_payment_id"] = gateway_payment_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error
    if payload is not None:
        context["payload"] = redact_fields(payload)

    context.update(extra)

    msg_parts = [f"PayFast ITN: {context['payment_status']} ({context['payment_reference']})"]
    if result:
        msg_parts.append(f"result={result}")
    if gateway_payment_id:
        msg_parts.append(f"pf_payment_id={gateway_payment_id}")
    if error:
        msg_parts.append(f"error={error}")
    if payload is not None:
        msg_parts.append(f"payload={context['payload']}")

    message = " | ".join(msg_parts)

    if result in ("error", "rejected"):
        logger.error(message, extra=context)
    elif result in ("duplicate", "skipped"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
