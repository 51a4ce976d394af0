"""DynamoDB access for the donation ledger tables.

Table names are prefixed per deployment (``giving-<ENVIRONMENT>-donations``)
unless DYNAMODB_TABLE_PREFIX overrides the prefix. Conditional writes report
a failed condition as a return value (False / None) rather than an
exception; every other botocore error propagates to the caller.
"""

import os
from typing import Any

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.config import Config
from botocore.exceptions import ClientError

DONATIONS_TABLE = "donations"
CATEGORIES_TABLE = "giving-categories"

# Webhook handling waits on these calls; fail fast and let PayFast retry.
_BOTO_CONFIG = Config(
    connect_timeout=3,
    read_timeout=5,
    retries={"max_attempts": 3, "mode": "standard"},
)

_serializer = TypeSerializer()

# Module-level singleton for connection reuse across requests
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Args:
        environment: Environment name. Only used on first call.
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Drop the singleton so the next call builds a fresh client (for testing only)."""
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def is_conditional_check_failure(error: ClientError) -> bool:
    """True if a ClientError is a failed ConditionExpression."""
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


def _serialize(attrs: dict[str, Any]) -> dict[str, Any]:
    return {name: _serializer.serialize(value) for name, value in attrs.items()}


class DynamoDBService:
    """Prefixed-table operations used by the ledger and category totals."""

    def __init__(self, environment: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Deployment name (dev/prod). Defaults to ENVIRONMENT.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"giving-{self.environment}"
        )
        self._dynamodb = boto3.resource("dynamodb", config=_BOTO_CONFIG)

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Read one item by primary key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Read after the latest committed write

        Returns:
            The item, or None if absent
        """
        response = self._table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item, optionally only if a condition holds.

        Returns:
            False if the condition failed, True otherwise
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression and return the item as written.

        Returns:
            All attributes after the update, or None if the condition failed
        """
        kwargs: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression

        try:
            response = self._table(table).update_item(**kwargs)
        except ClientError as e:
            if is_conditional_check_failure(e):
                return None
            raise
        attrs: dict[str, Any] | None = response.get("Attributes")
        return attrs

    def transact_update(self, updates: list[dict[str, Any]]) -> bool:
        """Apply several conditional updates as one all-or-nothing write.

        Each entry has ``table``, ``key``, ``update_expression`` and
        ``values``, plus optional ``names`` and ``condition``. If any
        condition fails, or the transaction conflicts with another write,
        none of the updates is applied.

        Returns:
            False if the transaction was cancelled, True once committed
        """
        transact_items = []
        for update in updates:
            item: dict[str, Any] = {
                "TableName": self.table_name(update["table"]),
                "Key": _serialize(update["key"]),
                "UpdateExpression": update["update_expression"],
                "ExpressionAttributeValues": _serialize(update["values"]),
            }
            if update.get("names"):
                item["ExpressionAttributeNames"] = update["names"]
            if update.get("condition"):
                item["ConditionExpression"] = update["condition"]
            transact_items.append({"Update": item})

        try:
            self._dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "TransactionCanceledException":
                return False
            raise
        return True
