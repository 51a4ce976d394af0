"""Pytest configuration and fixtures for the giving gateway backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (donations and giving-categories tables)
- PayFast gateway configuration for the sandbox merchant
- Signed ITN payload factories
- A recording notification dispatcher
"""

import datetime as dt
import os
from collections.abc import Callable
from decimal import Decimal
from typing import Any, Generator
from urllib.parse import urlencode

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-giving")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from giving.config import GatewayConfig  # noqa: E402
from giving.models.donation import DonationRecord, ThankYouNotification  # noqa: E402
from giving.models.enums import (  # noqa: E402
    DonationFrequency,
    DonationStatus,
    GatewayEnvironment,
)
from giving.services.categories import DynamoDBCategoryTotals  # noqa: E402
from giving.services.dynamodb import DynamoDBService  # noqa: E402
from giving.services.ledger import DynamoDBDonationLedger  # noqa: E402
from giving.services.signature import sign_notification_fields  # noqa: E402


# === Test Configuration ===

TEST_MERCHANT_ID = "10000100"
TEST_MERCHANT_KEY = "46f0cd694581a"
TEST_PASSPHRASE = "jt7NOE43FZPn"
TEST_RETURN_URL = "https://example.org/donation-success"
TEST_CANCEL_URL = "https://example.org/donation-cancelled"
TEST_NOTIFY_URL = "https://api.example.org/api/webhooks/payfast"

TEST_USER_ID = "user-42"
TEST_CATEGORY_ID = "cat-general"
TEST_PAYMENT_REFERENCE = "donation_1700000000000_user-42"
TEST_PF_PAYMENT_ID = "1089250"

PAYFAST_ENV_VARS = (
    "PAYFAST_ENVIRONMENT",
    "PAYFAST_MERCHANT_ID",
    "PAYFAST_MERCHANT_KEY",
    "PAYFAST_PASSPHRASE",
    "PAYFAST_RETURN_URL",
    "PAYFAST_CANCEL_URL",
    "PAYFAST_NOTIFY_URL",
    "PAYFAST_PROCESS_URL",
    "PAYFAST_SECRETS_FROM_SSM",
    "GIVING_NOTIFICATION_URL",
    "GIVING_NOTIFICATION_TOKEN",
    "GIVING_NOTIFICATION_WAIT_SECONDS",
    "AWS_LAMBDA_FUNCTION_NAME",
)


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    This ensures tests using mock_aws get fresh DynamoDB/SSM clients
    inside the mock context rather than reusing a singleton from a
    previous test or non-mocked context.
    """
    from giving_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


@pytest.fixture
def clean_payfast_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every PAYFAST_* / notification variable from the environment."""
    for name in PAYFAST_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def payfast_env(clean_payfast_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Sandbox gateway configuration with a passphrase, via env vars."""
    clean_payfast_env.setenv("PAYFAST_ENVIRONMENT", "sandbox")
    clean_payfast_env.setenv("PAYFAST_MERCHANT_ID", TEST_MERCHANT_ID)
    clean_payfast_env.setenv("PAYFAST_MERCHANT_KEY", TEST_MERCHANT_KEY)
    clean_payfast_env.setenv("PAYFAST_PASSPHRASE", TEST_PASSPHRASE)
    clean_payfast_env.setenv("PAYFAST_RETURN_URL", TEST_RETURN_URL)
    clean_payfast_env.setenv("PAYFAST_CANCEL_URL", TEST_CANCEL_URL)
    clean_payfast_env.setenv("PAYFAST_NOTIFY_URL", TEST_NOTIFY_URL)
    return clean_payfast_env


# === Gateway Fixtures ===


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Sandbox gateway configuration signed with TEST_PASSPHRASE."""
    return GatewayConfig(
        environment=GatewayEnvironment.SANDBOX,
        merchant_id=TEST_MERCHANT_ID,
        merchant_key=TEST_MERCHANT_KEY,
        passphrase=TEST_PASSPHRASE,
        return_url=TEST_RETURN_URL,
        cancel_url=TEST_CANCEL_URL,
        notify_url=TEST_NOTIFY_URL,
    )


@pytest.fixture
def itn_fields() -> dict[str, str]:
    """Unsigned COMPLETE ITN fields, in the order PayFast posts them."""
    return {
        "m_payment_id": TEST_PAYMENT_REFERENCE,
        "pf_payment_id": TEST_PF_PAYMENT_ID,
        "payment_status": "COMPLETE",
        "item_name": "Donation to General Fund",
        "item_description": "",
        "amount_gross": "100.00",
        "amount_fee": "-2.30",
        "amount_net": "97.70",
        "custom_str1": TEST_CATEGORY_ID,
        "custom_str2": TEST_USER_ID,
        "custom_str3": "once-off",
        "custom_str4": "",
        "custom_str5": "",
        "custom_int1": "",
        "name_first": "Jane",
        "name_last": "Doe",
        "email_address": "jane@example.com",
        "merchant_id": TEST_MERCHANT_ID,
    }


@pytest.fixture
def signed_itn(itn_fields: dict[str, str]) -> Callable[..., dict[str, str]]:
    """Factory for signed ITN field maps.

    Usage:
        fields = signed_itn(payment_status="FAILED")
        fields = signed_itn(passphrase="")  # sign without passphrase
    """

    def _signed(passphrase: str = TEST_PASSPHRASE, **overrides: str) -> dict[str, str]:
        fields = {**itn_fields, **overrides}
        fields["signature"] = sign_notification_fields(fields, passphrase)
        return fields

    return _signed


@pytest.fixture
def itn_body(signed_itn: Callable[..., dict[str, str]]) -> Callable[..., str]:
    """Factory for signed, form-encoded ITN bodies."""

    def _body(**kwargs: str) -> str:
        return urlencode(signed_itn(**kwargs))

    return _body


class RecordingNotifier:
    """NotificationDispatcher that records instead of sending."""

    def __init__(self) -> None:
        self.sent: list[ThankYouNotification] = []

    def dispatch(self, notification: ThankYouNotification) -> None:
        self.sent.append(notification)


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Recording notification dispatcher."""
    return RecordingNotifier()


def make_pending_record(
    payment_reference: str = TEST_PAYMENT_REFERENCE,
    amount: Decimal = Decimal("100.00"),
    category_id: str | None = TEST_CATEGORY_ID,
    user_id: str | None = TEST_USER_ID,
) -> DonationRecord:
    """Build a pending DonationRecord as the request builder stores it."""
    now = dt.datetime.now(dt.UTC)
    return DonationRecord(
        payment_reference=payment_reference,
        user_id=user_id,
        category_id=category_id,
        amount=amount,
        is_recurring=False,
        frequency=DonationFrequency.ONCE_OFF,
        status=DonationStatus.PENDING,
        donor_name="Jane Doe",
        donor_email="jane@example.com",
        item_name="Donation to General Fund",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def pending_record() -> DonationRecord:
    """A pending donation for TEST_PAYMENT_REFERENCE."""
    return make_pending_record()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create the donations and giving-categories tables and seed a category."""
    tables = [
        ("test-giving-donations", "payment_reference"),
        ("test-giving-giving-categories", "category_id"),
    ]
    for table_name, hash_key in tables:
        dynamodb_client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": hash_key, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": hash_key, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )

    dynamodb_client.put_item(
        TableName="test-giving-giving-categories",
        Item={
            "category_id": {"S": TEST_CATEGORY_ID},
            "title": {"S": "General Fund"},
            "description": {"S": "Day-to-day ministry"},
            "goal": {"N": "10000"},
            "raised": {"N": "0"},
            "is_active": {"BOOL": True},
        },
    )


@pytest.fixture
def dynamodb_service(create_tables: None) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService(environment="test")


@pytest.fixture
def ledger(dynamodb_service: DynamoDBService) -> DynamoDBDonationLedger:
    """Donation ledger on the mocked donations table."""
    return DynamoDBDonationLedger(dynamodb_service)


@pytest.fixture
def categories(dynamodb_service: DynamoDBService) -> DynamoDBCategoryTotals:
    """Category totals on the mocked giving-categories table."""
    return DynamoDBCategoryTotals(dynamodb_service)
