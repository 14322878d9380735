"""
Tests for the payment provider client and webhook signature check.

HTTP calls are mocked at payments.provider.requests.get.
"""

import hashlib
import hmac

import pytest
import requests

from payments.exceptions import (
    ExternalProviderError,
    ProviderPaymentNotFoundError,
    WebhookSignatureError,
)
from payments.provider import PaymentProviderClient, ProviderPayment, verify_webhook_signature

PAYMENT_ID = "3c5e8f2a-6d1b-4a57-9a33-0f1f3c2d4e5b"


@pytest.fixture
def mock_get(mocker):
    return mocker.patch("payments.provider.requests.get")


def provider_response(mocker, status_code=200, body=None):
    response = mocker.Mock(status_code=status_code)
    response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def client():
    return PaymentProviderClient(
        base_url="https://provider.example.com/",
        access_token="token-1",
        timeout=5,
    )


class TestProviderPayment:
    def test_payment_id_from_reference(self):
        payment = ProviderPayment("mp-1", "approved", PAYMENT_ID)

        assert str(payment.payment_id) == PAYMENT_ID

    @pytest.mark.parametrize("reference", ["", "order-17"])
    def test_foreign_reference_has_no_payment_id(self, reference):
        assert ProviderPayment("mp-1", "approved", reference).payment_id is None


class TestFetchPayment:
    def test_returns_provider_reported_payment(self, client, mock_get, mocker):
        mock_get.return_value = provider_response(
            mocker,
            body={"id": 987654, "status": "APPROVED", "external_reference": PAYMENT_ID},
        )

        payment = client.fetch_payment("987654")

        assert payment == ProviderPayment("987654", "approved", PAYMENT_ID)
        mock_get.assert_called_once_with(
            "https://provider.example.com/v1/payments/987654",
            headers={"Authorization": "Bearer token-1", "Accept": "application/json"},
            timeout=5,
        )

    def test_id_is_escaped_in_path(self, client, mock_get, mocker):
        mock_get.return_value = provider_response(mocker, body={"id": "x", "status": "approved"})

        client.fetch_payment("../admin")

        assert mock_get.call_args[0][0] == "https://provider.example.com/v1/payments/..%2Fadmin"

    def test_missing_fields_default_to_empty(self, client, mock_get, mocker):
        mock_get.return_value = provider_response(mocker, body={"id": "mp-1"})

        payment = client.fetch_payment("mp-1")

        assert payment.status == ""
        assert payment.payment_id is None

    def test_unknown_payment(self, client, mock_get, mocker):
        mock_get.return_value = provider_response(mocker, status_code=404)

        with pytest.raises(ProviderPaymentNotFoundError):
            client.fetch_payment("forged-1")

    @pytest.mark.parametrize("status_code", [401, 500, 503])
    def test_error_status(self, client, mock_get, mocker, status_code):
        mock_get.return_value = provider_response(mocker, status_code=status_code)

        with pytest.raises(ExternalProviderError) as exc_info:
            client.fetch_payment("mp-1")

        assert not isinstance(exc_info.value, ProviderPaymentNotFoundError)
        assert exc_info.value.details["status_code"] == status_code

    def test_network_failure(self, client, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(ExternalProviderError, match="unreachable"):
            client.fetch_payment("mp-1")

    def test_invalid_json(self, client, mock_get, mocker):
        response = provider_response(mocker)
        response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = response

        with pytest.raises(ExternalProviderError, match="invalid JSON"):
            client.fetch_payment("mp-1")

    @pytest.mark.parametrize("body", [[], {"status": "approved"}])
    def test_body_without_payment_id(self, client, mock_get, mocker, body):
        response = provider_response(mocker)
        response.json.return_value = body
        mock_get.return_value = response

        with pytest.raises(ExternalProviderError):
            client.fetch_payment("mp-1")

    def test_defaults_from_settings(self, settings):
        settings.PAYMENT_PROVIDER_API_URL = "https://api.provider.test"
        settings.PAYMENT_PROVIDER_ACCESS_TOKEN = "settings-token"
        settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS = 3

        client = PaymentProviderClient()

        assert client.base_url == "https://api.provider.test"
        assert client.access_token == "settings-token"
        assert client.timeout == 3


def signature(data_id, request_id, ts, secret):
    manifest = f"id:{data_id};request-id:{request_id};ts:{ts};"
    return hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()


class TestVerifyWebhookSignature:
    def test_valid_signature(self):
        digest = signature("mp-1", "req-1", "1700000000", "secret")

        verify_webhook_signature("mp-1", f"ts=1700000000,v1={digest}", "req-1", secret="secret")

    def test_id_is_lower_cased_in_manifest(self):
        digest = signature("abc123", "req-1", "1700000000", "secret")

        verify_webhook_signature("ABC123", f"ts=1700000000,v1={digest}", "req-1", secret="secret")

    def test_no_secret_configured_skips_check(self, settings):
        settings.PAYMENT_PROVIDER_WEBHOOK_SECRET = ""

        verify_webhook_signature("mp-1", "", "")

    @pytest.mark.parametrize("header", ["", "ts=1700000000", "v1=abc", "garbage"])
    def test_missing_parts(self, header):
        with pytest.raises(WebhookSignatureError, match="missing"):
            verify_webhook_signature("mp-1", header, "req-1", secret="secret")

    def test_tampered_request_id(self):
        digest = signature("mp-1", "req-1", "1700000000", "secret")

        with pytest.raises(WebhookSignatureError, match="does not match"):
            verify_webhook_signature(
                "mp-1", f"ts=1700000000,v1={digest}", "req-2", secret="secret"
            )

    def test_secret_read_from_settings(self, settings):
        settings.PAYMENT_PROVIDER_WEBHOOK_SECRET = "from-settings"
        digest = signature("mp-1", "req-1", "1700000000", "other")

        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature("mp-1", f"ts=1700000000,v1={digest}", "req-1")
