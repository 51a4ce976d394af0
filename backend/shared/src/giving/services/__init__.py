"""Backend services for the PayFast giving gateway."""

from .categories import DynamoDBCategoryTotals
from .dynamodb import DynamoDBService, get_dynamodb_service
from .ledger import (
    CategoryTotals,
    DonationLedger,
    DynamoDBDonationLedger,
    NotificationDispatcher,
)
from .notification_service import NotificationService, build_thank_you
from .request_builder import PaymentRequestBuilder
from .signature import generate_signature, verify_notification_signature, verify_signature
from .ssm_service import (
    SSMService,
    SSMServiceError,
    get_ssm_service,
    payfast_parameter_path,
    reset_ssm_service,
)
from .webhook_handler import WebhookHandler, parse_form_body

__all__ = [
    "CategoryTotals",
    "DonationLedger",
    "DynamoDBCategoryTotals",
    "DynamoDBDonationLedger",
    "DynamoDBService",
    "get_dynamodb_service",
    "NotificationDispatcher",
    "NotificationService",
    "build_thank_you",
    "PaymentRequestBuilder",
    "generate_signature",
    "verify_notification_signature",
    "verify_signature",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "payfast_parameter_path",
    "reset_ssm_service",
    "WebhookHandler",
    "parse_form_body",
]
