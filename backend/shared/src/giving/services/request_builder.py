"""Builds signed redirects to the PayFast hosted payment page.

Card details never pass through this service: the donor is sent to
PayFast's page with a self-contained, signed query string and PayFast
reports the outcome to the notify_url.
"""

import datetime as dt
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from giving.models.donation import DonationRecord
from giving.models.enums import DonationStatus
from giving.models.errors import ConfigurationError, ReferenceCollisionError
from giving.models.payment import DonationIntent, PaymentRedirect, PaymentRequest
from giving.utils.logging import get_logger, log_donation_operation

from .encoder import SIGNATURE_FIELD, payment_canonical_string
from .signature import generate_signature

if TYPE_CHECKING:
    from giving.config import GatewayConfig

    from .ledger import DonationLedger

logger = get_logger(__name__)


class PaymentRequestBuilder:
    """Turns a donation intent into a signed PayFast redirect URL.

    The gateway environment, credentials and host all come from the
    GatewayConfig given at construction.
    """

    MAX_REFERENCE_ATTEMPTS = 5

    def __init__(
        self,
        config: "GatewayConfig",
        ledger: "DonationLedger | None" = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the builder.

        Args:
            config: Gateway credentials, URLs and environment
            ledger: Donation ledger; when given, references are checked for
                uniqueness and a pending record is stored per redirect
            clock: Epoch-seconds clock used for payment references
        """
        self.config = config
        self.ledger = ledger
        self._clock = clock

    def generate_payment_reference(self, user_id: str, attempt: int = 0) -> str:
        """Synthesize ``donation_<epoch-ms>_<user_id>``, suffixed on retries."""
        reference = f"donation_{int(self._clock() * 1000)}_{user_id}"
        if attempt:
            reference = f"{reference}_{attempt}"
        return reference

    def build_payment_request(
        self, intent: DonationIntent, payment_reference: str
    ) -> PaymentRequest:
        """Assemble the PaymentRequest for a donation intent."""
        return PaymentRequest(
            merchant_id=self.config.merchant_id,
            merchant_key=self.config.merchant_key,
            return_url=self.config.return_url,
            cancel_url=self.config.cancel_url,
            notify_url=self.config.notify_url,
            name_first=intent.first_name,
            name_last=intent.last_name,
            email_address=str(intent.email),
            m_payment_id=payment_reference,
            amount=str(intent.amount),
            item_name=f"Donation to {intent.category_title}",
            item_description=intent.category_description,
            custom_str1=intent.category_id,
            custom_str2=intent.user_id,
            custom_str3=intent.frequency.value,
        )

    def sign_request(self, request: PaymentRequest) -> tuple[str, str]:
        """Encode and sign a request.

        Returns:
            (canonical string, signature)

        Raises:
            ConfigurationError: If a required field is missing.
        """
        canonical = payment_canonical_string(request.to_fields())
        return canonical, generate_signature(canonical, self.config.passphrase)

    def build_redirect_url(self, request: PaymentRequest) -> tuple[str, str]:
        """Build ``<host>?<canonical>&signature=<md5>`` for a request.

        Returns:
            (redirect URL, signature)
        """
        canonical, signature = self.sign_request(request)
        return f"{self.config.host}?{canonical}&{SIGNATURE_FIELD}={signature}", signature

    def _reserve_reference(self, user_id: str, attempt: int) -> str:
        reference = self.generate_payment_reference(user_id, attempt)
        if self.ledger is not None and self.ledger.get(reference) is not None:
            return ""
        return reference

    def _pending_record(
        self, intent: DonationIntent, request: PaymentRequest
    ) -> DonationRecord:
        now = dt.datetime.now(dt.UTC)
        return DonationRecord(
            payment_reference=request.m_payment_id,
            user_id=intent.user_id,
            category_id=intent.category_id,
            amount=intent.amount,
            is_recurring=intent.is_recurring,
            frequency=intent.frequency,
            status=DonationStatus.PENDING,
            donor_name=f"{intent.first_name} {intent.last_name}",
            donor_email=str(intent.email),
            item_name=request.item_name,
            item_description=request.item_description,
            created_at=now,
            updated_at=now,
        )

    def build_payment_redirect(self, intent: DonationIntent) -> PaymentRedirect:
        """Build a signed redirect and record the pending donation.

        Args:
            intent: Donation amount, donor and category

        Returns:
            PaymentRedirect with the URL and its payment reference

        Raises:
            ConfigurationError: If credentials or required fields are missing.
            ReferenceCollisionError: If no unique reference could be reserved.
            LedgerUnavailableError: If the pending record cannot be stored.
        """
        if not self.config.merchant_id or not self.config.merchant_key:
            raise ConfigurationError(details={"environment": self.config.environment.value})

        for attempt in range(self.MAX_REFERENCE_ATTEMPTS):
            reference = self._reserve_reference(intent.user_id, attempt)
            if not reference:
                continue

            request = self.build_payment_request(intent, reference)
            url, signature = self.build_redirect_url(request)

            if self.ledger is not None and not self.ledger.create(
                self._pending_record(intent, request)
            ):
                logger.warning("Payment reference %s taken concurrently, retrying", reference)
                continue

            log_donation_operation(
                logger,
                "build_redirect",
                payment_reference=reference,
                category_id=intent.category_id,
                amount=intent.amount,
                status=DonationStatus.PENDING.value,
                environment=self.config.environment.value,
            )
            return PaymentRedirect(
                url=url,
                payment_reference=reference,
                signature=signature,
                environment=self.config.environment,
            )

        raise ReferenceCollisionError(details={"user_id": intent.user_id})
