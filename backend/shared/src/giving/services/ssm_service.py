"""SSM Parameter Store access for PayFast secrets.

The merchant key and signing passphrase for each gateway environment live
under one path per deployment:

    /giving/<ENVIRONMENT>/payfast/<sandbox|live>/<merchant_key|passphrase>

Values are decrypted SecureStrings and cached in-process for ``cache_ttl``
seconds so a rotated passphrase is picked up without a redeploy.
"""

import logging
import os
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from giving.models.enums import GatewayEnvironment

logger = logging.getLogger(__name__)

PARAMETER_ROOT = "/giving"

# Module-level singleton for client reuse across requests
_ssm_service_instance: "SSMService | None" = None


class SSMServiceError(Exception):
    """Raised when an SSM parameter cannot be read."""

    def __init__(self, parameter: str, reason: str, *, not_found: bool = False) -> None:
        self.parameter = parameter
        self.not_found = not_found
        super().__init__(f"{reason}: {parameter}")


def payfast_parameter_path(
    name: str,
    environment: GatewayEnvironment,
    deployment: str | None = None,
) -> str:
    """Full SSM path of a PayFast secret.

    Args:
        name: Secret name, "merchant_key" or "passphrase"
        environment: Gateway environment the secret belongs to
        deployment: Deployment name; defaults to ENVIRONMENT (or "dev")
    """
    deployment = deployment or os.environ.get("ENVIRONMENT", "dev")
    return f"{PARAMETER_ROOT}/{deployment}/payfast/{environment.value}/{name}"


class SSMService:
    """Cached reader for SecureString parameters.

    Usage:
        ssm = get_ssm_service()
        key = ssm.get_parameter(payfast_parameter_path("merchant_key", GatewayEnvironment.LIVE))
    """

    def __init__(self, cache_ttl: float = 300.0) -> None:
        self._client = boto3.client("ssm")
        self._cache_ttl = cache_ttl
        self._cache: dict[str, tuple[float, str]] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve and decrypt a parameter.

        Raises:
            SSMServiceError: If the parameter is missing, access is denied or
                the call fails.
        """
        if use_cache and name in self._cache:
            fetched_at, value = self._cache[name]
            if time.monotonic() - fetched_at < self._cache_ttl:
                return value

        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code == "ParameterNotFound":
                raise SSMServiceError(name, "SSM parameter not found", not_found=True) from e
            if code == "AccessDeniedException":
                raise SSMServiceError(
                    name, "Access denied (check ssm:GetParameter and kms:Decrypt)"
                ) from e
            raise SSMServiceError(name, f"SSM request failed ({code})") from e
        except BotoCoreError as e:
            raise SSMServiceError(name, f"SSM unreachable ({e})") from e

        value = response["Parameter"]["Value"]
        self._cache[name] = (time.monotonic(), value)
        logger.info("Loaded SSM parameter %s", name)
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


def get_ssm_service() -> SSMService:
    """Get or create the shared SSMService instance."""
    global _ssm_service_instance
    if _ssm_service_instance is None:
        _ssm_service_instance = SSMService()
    return _ssm_service_instance


def reset_ssm_service() -> None:
    """Drop the shared instance and its cache (for testing only)."""
    global _ssm_service_instance
    _ssm_service_instance = None
