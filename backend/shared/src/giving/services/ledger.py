"""Donation ledger and the collaborator interfaces the gateway consumes.

The webhook reconciler only needs three things from the outside world: a
ledger keyed by payment reference with a conditional "only if pending"
update (optionally committed together with a category-total credit), a
category lookup, and a fire-and-forget notification dispatcher. They are
declared here as protocols; the DynamoDB ledger below is the production
implementation.
"""

import datetime as dt
import logging
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from giving.models.donation import DonationRecord, ThankYouNotification
from giving.models.enums import DonationStatus
from giving.models.errors import LedgerUnavailableError

from .dynamodb import CATEGORIES_TABLE, DONATIONS_TABLE, DynamoDBService

logger = logging.getLogger(__name__)


class DonationLedger(Protocol):
    """Storage for DonationRecords keyed by payment reference."""

    def get(self, payment_reference: str) -> DonationRecord | None: ...

    def create(self, record: DonationRecord) -> bool:
        """Insert a record; False if the reference already exists."""
        ...

    def update_if_pending(
        self,
        payment_reference: str,
        updates: Mapping[str, Any],
    ) -> DonationRecord | None:
        """Apply updates only while the record is pending.

        Returns the updated record, or None if it was not pending.
        """
        ...

    def complete_with_credit(
        self,
        payment_reference: str,
        updates: Mapping[str, Any],
        category_id: str,
        amount: Decimal,
    ) -> DonationRecord | None:
        """Apply updates and add amount to the category's raised total.

        Both writes commit or neither does. Returns the updated record, or
        None if it was not pending.
        """
        ...


class CategoryTotals(Protocol):
    """Raised totals per giving category."""

    def category_exists(self, category_id: str) -> bool: ...


class NotificationDispatcher(Protocol):
    """Best-effort delivery of donor notifications."""

    def dispatch(self, notification: ThankYouNotification) -> None: ...


def _to_attribute(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def record_to_item(record: DonationRecord) -> dict[str, Any]:
    """Convert a DonationRecord to a DynamoDB item (None values dropped)."""
    return {
        name: _to_attribute(value)
        for name, value in record.model_dump().items()
        if value is not None
    }


def item_to_record(item: Mapping[str, Any]) -> DonationRecord:
    """Convert a DynamoDB item to a DonationRecord."""
    return DonationRecord.model_validate(dict(item))


class DynamoDBDonationLedger:
    """DonationLedger backed by the ``donations`` DynamoDB table."""

    DONATIONS_TABLE = DONATIONS_TABLE

    def __init__(self, db: DynamoDBService) -> None:
        """Initialize the ledger.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def get(self, payment_reference: str) -> DonationRecord | None:
        """Get a donation by payment reference (strongly consistent).

        Raises:
            LedgerUnavailableError: If DynamoDB cannot be read.
        """
        try:
            item = self.db.get_item(
                self.DONATIONS_TABLE,
                {"payment_reference": payment_reference},
                consistent_read=True,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to read donation %s: %s", payment_reference, e)
            raise LedgerUnavailableError(
                details={"payment_reference": payment_reference}
            ) from e
        return item_to_record(item) if item else None

    def create(self, record: DonationRecord) -> bool:
        """Insert a new donation unless the reference is already taken.

        Raises:
            LedgerUnavailableError: If DynamoDB rejects the write.
        """
        try:
            return self.db.put_item(
                self.DONATIONS_TABLE,
                record_to_item(record),
                condition_expression="attribute_not_exists(payment_reference)",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to create donation %s: %s", record.payment_reference, e
            )
            raise LedgerUnavailableError(
                details={"payment_reference": record.payment_reference}
            ) from e

    def update_if_pending(
        self,
        payment_reference: str,
        updates: Mapping[str, Any],
    ) -> DonationRecord | None:
        """Conditionally update a pending donation.

        The status check and the write are one DynamoDB request, so two
        concurrent deliveries cannot both move the same record out of
        pending.

        Args:
            payment_reference: Donation key
            updates: Attribute name to new value (status included)

        Returns:
            Updated record, or None if the record is missing or not pending

        Raises:
            LedgerUnavailableError: If DynamoDB rejects the write.
        """
        expression, values, names = _pending_update(updates)
        try:
            attrs = self.db.update_item(
                self.DONATIONS_TABLE,
                {"payment_reference": payment_reference},
                expression,
                values,
                names,
                condition_expression="#status = :pending",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to update donation %s: %s", payment_reference, e)
            raise LedgerUnavailableError(
                details={"payment_reference": payment_reference}
            ) from e

        return item_to_record(attrs) if attrs else None

    def complete_with_credit(
        self,
        payment_reference: str,
        updates: Mapping[str, Any],
        category_id: str,
        amount: Decimal,
    ) -> DonationRecord | None:
        """Update a pending donation and credit its category in one transaction.

        The donation update keeps the ``#status = :pending`` condition and
        the category update requires the category to exist. A cancelled
        transaction is told apart by re-reading the donation: if it has
        already left pending this delivery lost the race, otherwise nothing
        was written and the caller should fail so PayFast redelivers.

        Returns:
            Updated record, or None if the record is missing or not pending

        Raises:
            LedgerUnavailableError: If the transaction fails while the
                donation is still pending, or DynamoDB is unreachable.
        """
        expression, values, names = _pending_update(updates)
        try:
            committed = self.db.transact_update(
                [
                    {
                        "table": self.DONATIONS_TABLE,
                        "key": {"payment_reference": payment_reference},
                        "update_expression": expression,
                        "values": values,
                        "names": names,
                        "condition": "#status = :pending",
                    },
                    {
                        "table": CATEGORIES_TABLE,
                        "key": {"category_id": category_id},
                        "update_expression": "ADD raised :amount SET updated_at = :now",
                        "values": {":amount": Decimal(amount), ":now": values[":updated_at"]},
                        "condition": "attribute_exists(category_id)",
                    },
                ]
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to complete donation %s with credit to %s: %s",
                payment_reference,
                category_id,
                e,
            )
            raise LedgerUnavailableError(
                details={"payment_reference": payment_reference, "category_id": category_id}
            ) from e

        current = self.get(payment_reference)
        if committed:
            return current
        if current is not None and current.status is DonationStatus.PENDING:
            logger.error(
                "Donation %s not completed: credit to %s was cancelled",
                payment_reference,
                category_id,
            )
            raise LedgerUnavailableError(
                details={"payment_reference": payment_reference, "category_id": category_id}
            )
        return None


def _pending_update(
    updates: Mapping[str, Any],
) -> tuple[str, dict[str, Any], dict[str, str]]:
    """Build the SET expression, values and names for a pending-only update."""
    values: dict[str, Any] = {
        ":pending": DonationStatus.PENDING.value,
        ":updated_at": dt.datetime.now(dt.UTC).isoformat(),
    }
    names: dict[str, str] = {"#status": "status"}
    assignments = ["updated_at = :updated_at"]

    for index, (name, value) in enumerate(updates.items()):
        if value is None or name == "updated_at":
            continue
        placeholder = f"#f{index}"
        names[placeholder] = name
        values[f":v{index}"] = _to_attribute(value)
        assignments.append(f"{placeholder} = :v{index}")

    return "SET " + ", ".join(assignments), values, names
