"""PayFast gateway configuration.

The gateway environment is an explicit value chosen when the configuration
is loaded and handed to the request builder and webhook handler; nothing
downstream reads the sandbox flag from the process environment.

Environment variables:
    PAYFAST_ENVIRONMENT: "sandbox" (default) or "live"
    PAYFAST_MERCHANT_ID / PAYFAST_MERCHANT_KEY: merchant credentials
        (sandbox falls back to PayFast's public test merchant)
    PAYFAST_PASSPHRASE: signing passphrase (optional)
    PAYFAST_RETURN_URL / PAYFAST_CANCEL_URL / PAYFAST_NOTIFY_URL
    PAYFAST_SECRETS_FROM_SSM: "true" to read the merchant key and passphrase
        from /giving/<ENVIRONMENT>/payfast/<gateway env>/<name>
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

from giving.models.enums import GatewayEnvironment
from giving.models.errors import ConfigurationError
from giving.services.ssm_service import SSMService, SSMServiceError, payfast_parameter_path

logger = logging.getLogger(__name__)

PROCESS_URLS: dict[GatewayEnvironment, str] = {
    GatewayEnvironment.SANDBOX: "https://sandbox.payfast.co.za/eng/process",
    GatewayEnvironment.LIVE: "https://www.payfast.co.za/eng/process",
}

# PayFast's published sandbox merchant; live credentials are never defaulted.
SANDBOX_MERCHANT_ID = "10000100"
SANDBOX_MERCHANT_KEY = "46f0cd694581a"


class GatewayConfig(BaseModel):
    """Resolved credentials and URLs for one PayFast environment."""

    model_config = ConfigDict(frozen=True)

    environment: GatewayEnvironment = GatewayEnvironment.SANDBOX
    merchant_id: str = Field(..., min_length=1)
    merchant_key: str = Field(..., min_length=1, repr=False)
    passphrase: str = Field(default="", repr=False)
    return_url: str = Field(..., min_length=1)
    cancel_url: str = Field(..., min_length=1)
    notify_url: str = Field(..., min_length=1)
    process_url: str | None = Field(
        default=None,
        description="Override for the hosted payment page URL",
    )

    @property
    def host(self) -> str:
        """Hosted payment page URL for this environment."""
        return self.process_url or PROCESS_URLS[self.environment]

    @property
    def expected_merchant_id(self) -> str:
        """merchant_id an authentic ITN for this account must carry."""
        return self.merchant_id


def _parse_environment(value: str | None) -> GatewayEnvironment:
    raw = (value or GatewayEnvironment.SANDBOX.value).strip().lower()
    try:
        return GatewayEnvironment(raw)
    except ValueError as e:
        raise ConfigurationError(details={"PAYFAST_ENVIRONMENT": raw}) from e


def _secret(
    name: str,
    env_var: str,
    environment: GatewayEnvironment,
    ssm: SSMService | None,
) -> str:
    value = os.environ.get(env_var, "")
    if value or ssm is None:
        return value
    path = payfast_parameter_path(name, environment)
    try:
        return ssm.get_parameter(path)
    except SSMServiceError as e:
        logger.error("Failed to load PayFast %s from SSM: %s", name, e)
        raise ConfigurationError(details={"parameter": path}) from e


def load_gateway_config(
    environment: GatewayEnvironment | str | None = None,
    ssm: SSMService | None = None,
) -> GatewayConfig:
    """Build a GatewayConfig from environment variables (and SSM).

    Args:
        environment: Gateway environment; defaults to PAYFAST_ENVIRONMENT.
        ssm: SSM service used for secrets missing from the environment.

    Returns:
        Frozen GatewayConfig.

    Raises:
        ConfigurationError: If live credentials or redirect URLs are missing.
    """
    if isinstance(environment, GatewayEnvironment):
        env = environment
    else:
        env = _parse_environment(environment or os.environ.get("PAYFAST_ENVIRONMENT"))

    merchant_id = os.environ.get("PAYFAST_MERCHANT_ID", "")
    merchant_key = _secret("merchant_key", "PAYFAST_MERCHANT_KEY", env, ssm)
    passphrase = os.environ.get("PAYFAST_PASSPHRASE", "")
    if not passphrase and ssm is not None:
        try:
            passphrase = ssm.get_parameter(payfast_parameter_path("passphrase", env))
        except SSMServiceError as e:
            # A passphrase is optional on PayFast accounts.
            if not e.not_found:
                logger.error("Failed to load PayFast passphrase from SSM: %s", e)
                raise ConfigurationError(details={"parameter": e.parameter}) from e

    if env is GatewayEnvironment.SANDBOX:
        merchant_id = merchant_id or SANDBOX_MERCHANT_ID
        merchant_key = merchant_key or SANDBOX_MERCHANT_KEY

    urls = {
        "return_url": os.environ.get("PAYFAST_RETURN_URL", ""),
        "cancel_url": os.environ.get("PAYFAST_CANCEL_URL", ""),
        "notify_url": os.environ.get("PAYFAST_NOTIFY_URL", ""),
    }
    missing = [
        name
        for name, value in {
            "PAYFAST_MERCHANT_ID": merchant_id,
            "PAYFAST_MERCHANT_KEY": merchant_key,
            **{f"PAYFAST_{k.upper()}": v for k, v in urls.items()},
        }.items()
        if not value
    ]
    if missing:
        logger.error("PayFast configuration missing for %s: %s", env.value, missing)
        raise ConfigurationError(details={"missing": ",".join(missing)})

    logger.info("PayFast configured for %s (merchant %s)", env.value, merchant_id)
    return GatewayConfig(
        environment=env,
        merchant_id=merchant_id,
        merchant_key=merchant_key,
        passphrase=passphrase,
        process_url=os.environ.get("PAYFAST_PROCESS_URL") or None,
        **urls,
    )
