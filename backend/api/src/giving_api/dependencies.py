"""FastAPI dependency injection providers for giving services.

Factory functions use @lru_cache so each service is built once per process
and shared across requests. Services are lazily instantiated, so a missing
PayFast configuration surfaces as ERR_CONFIG on the first request rather
than at import time.

Usage in routes:
    from giving_api.dependencies import get_webhook_handler

    @router.post("/webhooks/payfast")
    async def payfast_webhook(
        handler: WebhookHandler = Depends(get_webhook_handler),
    ):
        ...

Service Dependency Graph:
    GatewayConfig (get_gateway_config, SSM-backed when enabled)
    DynamoDBService (singleton via get_dynamodb_service)
        ├── DynamoDBDonationLedger
        └── DynamoDBCategoryTotals
    NotificationService

    PaymentRequestBuilder <- GatewayConfig, DynamoDBDonationLedger
    WebhookHandler <- GatewayConfig, ledger, category totals, notifications

Testing:
    Use reset_services() to clear cached instances between tests.
"""

import os
from functools import lru_cache

from giving.config import GatewayConfig, load_gateway_config
from giving.services.categories import DynamoDBCategoryTotals
from giving.services.dynamodb import get_dynamodb_service
from giving.services.ledger import DynamoDBDonationLedger
from giving.services.notification_service import NotificationService
from giving.services.request_builder import PaymentRequestBuilder
from giving.services.ssm_service import get_ssm_service
from giving.services.webhook_handler import WebhookHandler


@lru_cache
def get_gateway_config() -> GatewayConfig:
    """Get cached PayFast gateway configuration.

    Reads secrets from SSM when PAYFAST_SECRETS_FROM_SSM is "true".

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    use_ssm = os.environ.get("PAYFAST_SECRETS_FROM_SSM", "").lower() == "true"
    return load_gateway_config(ssm=get_ssm_service() if use_ssm else None)


@lru_cache
def get_donation_ledger() -> DynamoDBDonationLedger:
    """Get cached donation ledger backed by the DynamoDB singleton."""
    return DynamoDBDonationLedger(db=get_dynamodb_service())


@lru_cache
def get_category_totals() -> DynamoDBCategoryTotals:
    """Get cached category totals backed by the DynamoDB singleton."""
    return DynamoDBCategoryTotals(db=get_dynamodb_service())


@lru_cache
def get_notification_service() -> NotificationService:
    """Get cached fire-and-forget notification dispatcher."""
    return NotificationService()


@lru_cache
def get_request_builder() -> PaymentRequestBuilder:
    """Get cached PaymentRequestBuilder.

    Returns:
        PaymentRequestBuilder configured with the gateway config and ledger.
    """
    return PaymentRequestBuilder(
        config=get_gateway_config(),
        ledger=get_donation_ledger(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler.

    Returns:
        WebhookHandler configured with all required dependencies.
    """
    return WebhookHandler(
        config=get_gateway_config(),
        ledger=get_donation_ledger(),
        categories=get_category_totals(),
        notifier=get_notification_service(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB and SSM singletons.
    """
    from giving.services.dynamodb import reset_dynamodb_service
    from giving.services.ssm_service import reset_ssm_service

    if get_notification_service.cache_info().currsize:
        get_notification_service().shutdown(wait=False)

    get_gateway_config.cache_clear()
    get_donation_ledger.cache_clear()
    get_category_totals.cache_clear()
    get_notification_service.cache_clear()
    get_request_builder.cache_clear()
    get_webhook_handler.cache_clear()

    reset_ssm_service()
    reset_dynamodb_service()
