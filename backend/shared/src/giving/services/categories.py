"""Giving category totals stored in DynamoDB."""

from decimal import Decimal

from botocore.exceptions import BotoCoreError, ClientError

from giving.models.donation import GivingCategory
from giving.models.errors import LedgerUnavailableError

from .dynamodb import CATEGORIES_TABLE, DynamoDBService


class DynamoDBCategoryTotals:
    """Categories and raised totals kept on the ``giving-categories`` table.

    Totals are credited by DynamoDBDonationLedger.complete_with_credit in
    the same transaction that completes the donation.
    """

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def get_category(self, category_id: str) -> GivingCategory | None:
        """Get a giving category by ID."""
        try:
            item = self.db.get_item(CATEGORIES_TABLE, {"category_id": category_id})
        except (ClientError, BotoCoreError) as e:
            raise LedgerUnavailableError(details={"category_id": category_id}) from e
        if not item:
            return None
        return GivingCategory(
            category_id=item["category_id"],
            title=item.get("title", ""),
            description=item.get("description", ""),
            goal=Decimal(item.get("goal", 0)),
            raised=Decimal(item.get("raised", 0)),
            is_active=bool(item.get("is_active", True)),
        )

    def category_exists(self, category_id: str) -> bool:
        """True if the category is on the table.

        Unknown categories are never created by a donation.
        """
        return self.get_category(category_id) is not None
