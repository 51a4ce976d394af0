"""Unit tests for PayFast gateway configuration loading."""

from unittest.mock import MagicMock

import pytest

from giving.config import (
    PROCESS_URLS,
    SANDBOX_MERCHANT_ID,
    SANDBOX_MERCHANT_KEY,
    GatewayConfig,
    load_gateway_config,
)
from giving.models.enums import GatewayEnvironment
from giving.models.errors import ConfigurationError
from giving.services.ssm_service import SSMServiceError


# === Test Fixtures ===


@pytest.fixture
def redirect_urls(clean_payfast_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Only the redirect URLs are configured."""
    clean_payfast_env.setenv("PAYFAST_RETURN_URL", "https://example.org/ok")
    clean_payfast_env.setenv("PAYFAST_CANCEL_URL", "https://example.org/cancel")
    clean_payfast_env.setenv("PAYFAST_NOTIFY_URL", "https://api.example.org/notify")
    return clean_payfast_env


def _ssm(values: dict[str, str]) -> MagicMock:
    ssm = MagicMock()

    def get_parameter(name: str) -> str:
        if name not in values:
            raise SSMServiceError(name, "SSM parameter not found", not_found=True)
        return values[name]

    ssm.get_parameter.side_effect = get_parameter
    return ssm


class TestLoadGatewayConfig:
    """Tests for load_gateway_config."""

    def test_sandbox_defaults(self, redirect_urls):
        """Sandbox falls back to PayFast's public test merchant."""
        config = load_gateway_config()

        assert config.environment == GatewayEnvironment.SANDBOX
        assert config.merchant_id == SANDBOX_MERCHANT_ID
        assert config.merchant_key == SANDBOX_MERCHANT_KEY
        assert config.passphrase == ""
        assert config.host == PROCESS_URLS[GatewayEnvironment.SANDBOX]

    def test_full_environment(self, payfast_env):
        """All values come from PAYFAST_* variables."""
        config = load_gateway_config()

        assert config.merchant_id == "10000100"
        assert config.passphrase == "jt7NOE43FZPn"
        assert config.notify_url == "https://api.example.org/api/webhooks/payfast"

    def test_live_requires_credentials(self, redirect_urls):
        """Live credentials are never defaulted."""
        redirect_urls.setenv("PAYFAST_ENVIRONMENT", "live")

        with pytest.raises(ConfigurationError) as exc_info:
            load_gateway_config()

        assert exc_info.value.details == {"missing": "PAYFAST_MERCHANT_ID,PAYFAST_MERCHANT_KEY"}

    def test_live_with_credentials(self, redirect_urls):
        """Live config targets the live host."""
        redirect_urls.setenv("PAYFAST_MERCHANT_ID", "12345678")
        redirect_urls.setenv("PAYFAST_MERCHANT_KEY", "livekey")

        config = load_gateway_config(GatewayEnvironment.LIVE)

        assert config.environment == GatewayEnvironment.LIVE
        assert config.host == "https://www.payfast.co.za/eng/process"

    def test_explicit_environment_overrides_variable(self, redirect_urls):
        """The environment argument wins over PAYFAST_ENVIRONMENT."""
        redirect_urls.setenv("PAYFAST_ENVIRONMENT", "live")

        config = load_gateway_config("sandbox")

        assert config.environment == GatewayEnvironment.SANDBOX

    def test_unknown_environment(self, redirect_urls):
        """Only sandbox and live are accepted."""
        redirect_urls.setenv("PAYFAST_ENVIRONMENT", "staging")

        with pytest.raises(ConfigurationError):
            load_gateway_config()

    def test_missing_urls(self, clean_payfast_env):
        """Redirect URLs are required."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_gateway_config()

        assert exc_info.value.details == {
            "missing": "PAYFAST_RETURN_URL,PAYFAST_CANCEL_URL,PAYFAST_NOTIFY_URL"
        }

    def test_process_url_override(self, redirect_urls):
        """PAYFAST_PROCESS_URL replaces the hosted page URL."""
        redirect_urls.setenv("PAYFAST_PROCESS_URL", "http://localhost:9000/eng/process")

        assert load_gateway_config().host == "http://localhost:9000/eng/process"

    def test_merchant_key_not_in_repr(self, gateway_config: GatewayConfig):
        """Secrets are hidden from repr."""
        assert "46f0cd694581a" not in repr(gateway_config)
        assert "jt7NOE43FZPn" not in repr(gateway_config)


class TestSecretsFromSSM:
    """Tests for SSM-backed secrets."""

    def test_secrets_read_from_ssm(self, redirect_urls):
        """Merchant key and passphrase come from the environment's SSM path."""
        redirect_urls.setenv("ENVIRONMENT", "prod")
        redirect_urls.setenv("PAYFAST_MERCHANT_ID", "12345678")
        ssm = _ssm(
            {
                "/giving/prod/payfast/live/merchant_key": "ssm-key",
                "/giving/prod/payfast/live/passphrase": "ssm-passphrase",
            }
        )

        config = load_gateway_config("live", ssm=ssm)

        assert config.merchant_key == "ssm-key"
        assert config.passphrase == "ssm-passphrase"

    def test_environment_variable_wins(self, redirect_urls):
        """SSM is only consulted for values missing from the environment."""
        redirect_urls.setenv("PAYFAST_MERCHANT_KEY", "env-key")
        ssm = _ssm({})

        config = load_gateway_config(ssm=ssm)

        assert config.merchant_key == "env-key"
        called = [c.args[0] for c in ssm.get_parameter.call_args_list]
        assert all(not name.endswith("merchant_key") for name in called)

    def test_missing_passphrase_is_optional(self, redirect_urls):
        """An absent passphrase parameter means no passphrase."""
        redirect_urls.setenv("ENVIRONMENT", "dev")
        ssm = _ssm({"/giving/dev/payfast/sandbox/merchant_key": "ssm-key"})

        config = load_gateway_config(ssm=ssm)

        assert config.passphrase == ""

    def test_missing_merchant_key_parameter(self, redirect_urls):
        """An unreadable merchant key is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_gateway_config("live", ssm=_ssm({}))

        assert "merchant_key" in exc_info.value.details["parameter"]

    def test_unreadable_passphrase_is_an_error(self, redirect_urls):
        """Only a missing passphrase is optional; access errors are not."""
        redirect_urls.setenv("PAYFAST_MERCHANT_KEY", "env-key")
        ssm = MagicMock()
        ssm.get_parameter.side_effect = SSMServiceError("/giving/dev/payfast/sandbox/passphrase", "Access denied")

        with pytest.raises(ConfigurationError) as exc_info:
            load_gateway_config(ssm=ssm)

        assert exc_info.value.details == {"parameter": "/giving/dev/payfast/sandbox/passphrase"}
