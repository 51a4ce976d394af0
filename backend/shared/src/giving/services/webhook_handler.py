"""Webhook handler for PayFast ITN (Instant Transaction Notification) posts.

Provides business logic for authenticating, verifying and reconciling ITNs
separate from HTTP routing concerns, so it can be unit tested without HTTP
and reused from any transport.

Processing order for one delivery:
    parse -> merchant check -> signature check -> validate -> reconcile

Nothing in the ledger is read or written until the merchant and signature
checks have passed. PayFast retries until it gets a 2xx, so redelivery of a
notification that was already applied is acknowledged as a duplicate and
repeats no side effects.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl

from pydantic import ValidationError

from giving.models.donation import DonationRecord
from giving.models.enums import (
    GATEWAY_STATUS_MAP,
    DonationFrequency,
    DonationStatus,
    WebhookOutcome,
)
from giving.models.errors import (
    WEBHOOK_REJECTIONS,
    AuthenticationError,
    GivingError,
    LedgerUnavailableError,
    MalformedPayloadError,
    SignatureMismatchError,
)
from giving.models.notification import WebhookNotification, WebhookResult
from giving.utils.logging import get_logger, log_donation_operation, log_webhook_event

from .notification_service import build_thank_you
from .signature import verify_notification_signature

if TYPE_CHECKING:
    from giving.config import GatewayConfig

    from .ledger import CategoryTotals, DonationLedger, NotificationDispatcher

logger = get_logger(__name__)


def parse_form_body(raw_body: bytes | str) -> dict[str, str]:
    """Parse an application/x-www-form-urlencoded body into a field map.

    Field order is preserved as received.

    Raises:
        MalformedPayloadError: If the body is empty, not UTF-8, not form
            encoded, or repeats a field.
    """
    if isinstance(raw_body, bytes):
        try:
            text = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(details={"reason": "body is not UTF-8"}) from e
    else:
        text = raw_body

    text = text.strip()
    if not text:
        raise MalformedPayloadError(details={"reason": "empty body"})

    try:
        pairs = parse_qsl(text, keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise MalformedPayloadError(details={"reason": "body is not form encoded"}) from e

    fields: dict[str, str] = {}
    for name, value in pairs:
        if name in fields:
            raise MalformedPayloadError(details={"reason": f"repeated field {name}"})
        fields[name] = value
    return fields


class WebhookHandler:
    """Authenticates PayFast ITNs and applies them to the donation ledger.

    State machine per donation: pending -> complete | failed | cancelled,
    every target terminal. Only the delivery that wins the pending ->
    complete transition credits the giving category, in the same ledger
    transaction, and thanks the donor. A payment_status outside the known
    vocabulary is acknowledged without a transition.
    """

    def __init__(
        self,
        config: "GatewayConfig",
        ledger: "DonationLedger",
        categories: "CategoryTotals",
        notifier: "NotificationDispatcher",
    ) -> None:
        """Initialize webhook handler.

        Args:
            config: Gateway configuration (expected merchant, passphrase)
            ledger: Donation ledger
            categories: Category raised-total store
            notifier: Fire-and-forget notification dispatcher
        """
        self.config = config
        self.ledger = ledger
        self.categories = categories
        self.notifier = notifier

    # Validation

    def authenticate(self, fields: dict[str, str]) -> None:
        """Reject notifications addressed to another merchant.

        Raises:
            AuthenticationError: If merchant_id differs from the configured one.
        """
        received = fields.get("merchant_id", "").strip()
        if received != self.config.expected_merchant_id:
            raise AuthenticationError(details={"merchant_id": received or "missing"})

    def verify(self, fields: dict[str, str]) -> None:
        """Recompute the signature over every received field but ``signature``.

        Raises:
            SignatureMismatchError: If the signature is missing or differs.
        """
        if not verify_notification_signature(fields, self.config.passphrase):
            raise SignatureMismatchError(
                details={"payment_reference": fields.get("m_payment_id", "missing")}
            )

    def validate(self, fields: dict[str, str]) -> WebhookNotification:
        """Validate verified fields into a WebhookNotification.

        Raises:
            MalformedPayloadError: If required fields are missing or invalid.
        """
        try:
            return WebhookNotification.model_validate(fields)
        except ValidationError as e:
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise MalformedPayloadError(details={"invalid_fields": ",".join(invalid)}) from e

    # Processing

    def process(self, raw_body: bytes | str) -> WebhookResult:
        """Authenticate, verify and reconcile one delivery.

        Raises:
            MalformedPayloadError: Unparseable body or invalid fields.
            AuthenticationError: Merchant mismatch.
            SignatureMismatchError: Signature mismatch.
            LedgerUnavailableError: Storage failure; the gateway should retry.
        """
        fields = parse_form_body(raw_body)
        log_webhook_event(
            logger,
            fields.get("payment_status"),
            fields.get("m_payment_id"),
            gateway_payment_id=fields.get("pf_payment_id"),
            result="received",
        )

        self.authenticate(fields)
        self.verify(fields)
        notification = self.validate(fields)
        return self.reconcile(notification)

    def handle_webhook(self, raw_body: bytes | str) -> WebhookResult:
        """Process a delivery, turning rejections into a result.

        Returns:
            accepted, duplicate, or rejected with an error code

        Raises:
            LedgerUnavailableError: Storage failure; the gateway should retry.
        """
        try:
            return self.process(raw_body)
        except WEBHOOK_REJECTIONS as e:
            return self._rejected(raw_body, e)

    def _rejected(self, raw_body: bytes | str, error: GivingError) -> WebhookResult:
        try:
            fields = parse_form_body(raw_body)
        except MalformedPayloadError:
            fields = {}

        log_webhook_event(
            logger,
            fields.get("payment_status"),
            fields.get("m_payment_id"),
            gateway_payment_id=fields.get("pf_payment_id"),
            result="rejected",
            error=error.code.value,
            payload=fields,
            details=error.details,
        )
        return WebhookResult(
            outcome=WebhookOutcome.REJECTED,
            payment_reference=fields.get("m_payment_id") or None,
            error_code=error.code,
            reason=error.message,
        )

    # Reconciliation

    def reconcile(self, notification: WebhookNotification) -> WebhookResult:
        """Apply a verified notification to the ledger.

        Args:
            notification: Authenticated, verified notification

        Returns:
            accepted or duplicate result with the ledger status
        """
        reference = notification.m_payment_id
        record = self.ledger.get(reference)
        if record is None:
            record = self._backfill(notification)

        if record.status.is_terminal:
            return self._duplicate(notification, record.status)

        if record.amount and notification.amount_gross != record.amount:
            logger.warning(
                "Amount mismatch for %s: requested %s, gateway reported %s",
                reference,
                record.amount,
                notification.amount_gross,
            )

        gateway_status = notification.gateway_status
        if gateway_status is None:
            logger.warning(
                "Unrecognised payment_status %r for %s, status left unchanged",
                notification.payment_status,
                reference,
            )
        target = GATEWAY_STATUS_MAP.get(gateway_status) if gateway_status else None
        updates: dict[str, Any] = {
            "gateway_payment_id": notification.pf_payment_id,
            "amount_gross": notification.amount_gross,
            "amount_fee": notification.amount_fee,
            "amount_net": notification.amount_net,
        }
        if target is not None:
            updates["status"] = target
            updates["processed_at"] = dt.datetime.now(dt.UTC)

        credit_category = None
        category_id = record.category_id or notification.category_id
        if target is DonationStatus.COMPLETE and category_id:
            if self.categories.category_exists(category_id):
                credit_category = category_id
            else:
                logger.warning(
                    "Giving category %s not found, %s completes without a credit",
                    category_id,
                    reference,
                )

        if credit_category:
            updated = self.ledger.complete_with_credit(
                reference, updates, credit_category, notification.amount_gross
            )
        else:
            updated = self.ledger.update_if_pending(reference, updates)
        if updated is None:
            # Another delivery moved the record out of pending first.
            current = self.ledger.get(reference)
            return self._duplicate(notification, current.status if current else None)

        if updated.status is DonationStatus.COMPLETE:
            self._on_complete(updated, notification, credit_category)

        log_webhook_event(
            logger,
            notification.payment_status,
            reference,
            gateway_payment_id=notification.pf_payment_id,
            result=WebhookOutcome.ACCEPTED.value,
            status=updated.status.value,
        )
        return WebhookResult(
            outcome=WebhookOutcome.ACCEPTED,
            payment_reference=reference,
            status=updated.status,
        )

    def _duplicate(
        self, notification: WebhookNotification, status: DonationStatus | None
    ) -> WebhookResult:
        log_webhook_event(
            logger,
            notification.payment_status,
            notification.m_payment_id,
            gateway_payment_id=notification.pf_payment_id,
            result=WebhookOutcome.DUPLICATE.value,
        )
        return WebhookResult(
            outcome=WebhookOutcome.DUPLICATE,
            payment_reference=notification.m_payment_id,
            status=status,
        )

    def _backfill(self, notification: WebhookNotification) -> DonationRecord:
        """Create a pending record for an ITN that arrived before any row."""
        now = dt.datetime.now(dt.UTC)
        frequency = None
        if notification.custom_str3 in {f.value for f in DonationFrequency}:
            frequency = DonationFrequency(notification.custom_str3)

        record = DonationRecord(
            payment_reference=notification.m_payment_id,
            user_id=notification.user_id,
            category_id=notification.category_id,
            amount=notification.amount_gross,
            is_recurring=frequency is DonationFrequency.MONTHLY,
            frequency=frequency,
            status=DonationStatus.PENDING,
            gateway_payment_id=notification.pf_payment_id,
            donor_name=notification.donor_name,
            donor_email=notification.email_address,
            item_name=notification.item_name,
            item_description=notification.item_description,
            created_at=now,
            updated_at=now,
        )
        if self.ledger.create(record):
            log_donation_operation(
                logger,
                "backfill_donation",
                payment_reference=record.payment_reference,
                category_id=record.category_id,
                amount=record.amount,
                status=record.status.value,
            )
            return record

        # A concurrent delivery created it first.
        existing = self.ledger.get(notification.m_payment_id)
        if existing is None:
            raise LedgerUnavailableError(
                details={"payment_reference": notification.m_payment_id}
            )
        return existing

    def _on_complete(
        self,
        record: DonationRecord,
        notification: WebhookNotification,
        credited_category: str | None,
    ) -> None:
        """Log the credit and thank the donor, once per donation."""
        amount = notification.amount_gross
        if credited_category:
            log_donation_operation(
                logger,
                "increment_category",
                payment_reference=record.payment_reference,
                category_id=credited_category,
                amount=amount,
            )

        user_id = record.user_id or notification.user_id
        if not user_id:
            logger.info(
                "No donor user for %s, thank-you not sent", record.payment_reference
            )
            return
        try:
            self.notifier.dispatch(build_thank_you(amount, user_id))
        except Exception:
            logger.exception(
                "Thank-you notification not dispatched for %s", record.payment_reference
            )
