"""Unit tests for SSMService using moto."""

from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

from giving.models.enums import GatewayEnvironment
from giving.services.ssm_service import (
    SSMService,
    SSMServiceError,
    get_ssm_service,
    payfast_parameter_path,
)

PASSPHRASE_PATH = "/giving/test/payfast/live/passphrase"


@pytest.fixture
def ssm_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Mocked SSM client with a live passphrase stored."""
    with mock_aws():
        client = boto3.client("ssm", region_name="eu-west-1")
        client.put_parameter(Name=PASSPHRASE_PATH, Value="jt7NOE43FZPn", Type="SecureString")
        yield client


class TestParameterPath:
    def test_path_layout(self):
        path = payfast_parameter_path("passphrase", GatewayEnvironment.LIVE, deployment="test")

        assert path == PASSPHRASE_PATH

    def test_deployment_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")

        path = payfast_parameter_path("merchant_key", GatewayEnvironment.SANDBOX)

        assert path == "/giving/staging/payfast/sandbox/merchant_key"


class TestSSMService:
    def test_reads_secure_string(self, ssm_client):
        assert SSMService().get_parameter(PASSPHRASE_PATH) == "jt7NOE43FZPn"

    def test_cached_until_ttl(self, ssm_client):
        """A cached value is served until it expires."""
        service = SSMService(cache_ttl=300)
        service.get_parameter(PASSPHRASE_PATH)
        ssm_client.put_parameter(
            Name=PASSPHRASE_PATH, Value="rotated", Type="SecureString", Overwrite=True
        )

        assert service.get_parameter(PASSPHRASE_PATH) == "jt7NOE43FZPn"
        assert service.get_parameter(PASSPHRASE_PATH, use_cache=False) == "rotated"

    def test_zero_ttl_always_refetches(self, ssm_client):
        service = SSMService(cache_ttl=0)
        service.get_parameter(PASSPHRASE_PATH)
        ssm_client.put_parameter(
            Name=PASSPHRASE_PATH, Value="rotated", Type="SecureString", Overwrite=True
        )

        assert service.get_parameter(PASSPHRASE_PATH) == "rotated"

    def test_missing_parameter(self, ssm_client):
        with pytest.raises(SSMServiceError) as exc_info:
            SSMService().get_parameter("/giving/test/payfast/live/merchant_key")

        assert exc_info.value.not_found
        assert exc_info.value.parameter == "/giving/test/payfast/live/merchant_key"

    def test_shared_instance(self, ssm_client):
        assert get_ssm_service() is get_ssm_service()
