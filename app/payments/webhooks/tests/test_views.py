"""
Tests for the payment provider webhook endpoint.
"""

import hashlib
import hmac
import json

import pytest
from django.test import RequestFactory
from django.urls import reverse

from payments.exceptions import ExternalProviderError, ProviderPaymentNotFoundError
from payments.models import Payment
from payments.provider import PaymentProviderClient, ProviderPayment
from payments.state_machines import PaymentState
from payments.tests.factories import PaymentFactory
from payments.webhooks.views import provider_webhook

WEBHOOK_SECRET = "whsec-test"


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


@pytest.fixture
def provider(mocker):
    """Patch the provider lookup; set return_value or side_effect per test."""
    return mocker.patch.object(PaymentProviderClient, "fetch_payment")


def post_notification(rf, body, **headers):
    data = body if isinstance(body, (bytes, str)) else json.dumps(body)
    request = rf.post(
        "/api/v1/payments/webhook/",
        data=data,
        content_type="application/json",
        headers=headers,
    )
    return provider_webhook(request)


def forged_approval(payment, provider_id="mp-55"):
    """Body that claims approval; only type and data.id may be trusted."""
    return {
        "type": "payment",
        "data": {
            "id": provider_id,
            "status": "approved",
            "external_reference": str(payment.id),
        },
    }


def sign(data_id, request_id="req-1", ts="1742505638683", secret=WEBHOOK_SECRET):
    manifest = f"id:{data_id};request-id:{request_id};ts:{ts};"
    digest = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return {"x-signature": f"ts={ts},v1={digest}", "x-request-id": request_id}


@pytest.mark.django_db
class TestProviderWebhook:
    def test_approval_processed(self, rf, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "approved", str(pending_payment.id))

        response = post_notification(rf, {"type": "payment", "data": {"id": "mp-55"}})

        assert response.status_code == 200
        assert response.content == b"Processed"
        provider.assert_called_once_with("mp-55")
        payment = Payment.objects.get(id=pending_payment.id)
        assert payment.state == PaymentState.APPROVED
        assert payment.provider_payment_id == "mp-55"

    def test_redelivery_is_acknowledged(self, rf, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "approved", str(pending_payment.id))
        body = {"type": "payment", "data": {"id": "mp-55"}}
        post_notification(rf, body)

        response = post_notification(rf, body)

        assert response.status_code == 200
        assert response.content == b"Processed"

    def test_forged_body_with_unknown_provider_id_cannot_approve(
        self, rf, pending_payment, provider
    ):
        provider.side_effect = ProviderPaymentNotFoundError("unknown payment")

        response = post_notification(rf, forged_approval(pending_payment, "forged-1"))

        assert response.status_code == 400
        assert response.content == b"Unknown provider payment"
        payment = Payment.objects.get(id=pending_payment.id)
        assert payment.state == PaymentState.PENDING
        assert payment.provider_payment_id is None

    def test_forged_status_ignored_when_provider_disagrees(self, rf, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "in_process", str(pending_payment.id))

        response = post_notification(rf, forged_approval(pending_payment))

        assert response.status_code == 200
        assert response.content == b"Ignored"
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_forged_reference_does_not_redirect_approval(self, rf, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "approved", "order-17")

        response = post_notification(rf, forged_approval(pending_payment))

        assert response.content == b"Ignored"
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_provider_id_already_recorded_is_not_applied(self, rf, pending_payment, provider):
        PaymentFactory(approved=True, provider_payment_id="mp-taken")
        provider.return_value = ProviderPayment("mp-taken", "approved", str(pending_payment.id))

        response = post_notification(rf, {"type": "payment", "data": {"id": "mp-taken"}})

        assert response.status_code == 200
        assert response.content == b"Not applied"
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_business_rejection_still_acknowledged(self, rf, released_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "rejected", str(released_payment.id))

        response = post_notification(rf, {"type": "payment", "data": {"id": "mp-55"}})

        assert response.status_code == 200
        assert response.content == b"Not applied"

    def test_provider_unavailable(self, rf, pending_payment, provider):
        provider.side_effect = ExternalProviderError("Payment provider is unreachable")

        response = post_notification(rf, {"type": "payment", "data": {"id": "mp-55"}})

        assert response.status_code == 502
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_ignored_type(self, rf, provider):
        response = post_notification(rf, {"type": "merchant_order", "data": {"id": "1"}})

        assert response.status_code == 200
        assert response.content == b"Ignored"
        provider.assert_not_called()

    def test_invalid_json(self, rf):
        response = post_notification(rf, b"{not json")

        assert response.status_code == 400

    def test_missing_data_id(self, rf):
        response = post_notification(rf, {"type": "payment", "data": {}})

        assert response.status_code == 400

    def test_get_not_allowed(self, rf):
        response = provider_webhook(rf.get("/api/v1/payments/webhook/"))

        assert response.status_code == 405

    def test_routed_without_authentication(self, client, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-9", "rejected", str(pending_payment.id))

        response = client.post(
            reverse("payments:webhook"),
            data=json.dumps({"type": "payment", "data": {"id": "mp-9"}}),
            content_type="application/json",
        )

        assert response.status_code == 200
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.FAILED


@pytest.mark.django_db
class TestProviderWebhookSignature:
    @pytest.fixture(autouse=True)
    def webhook_secret(self, settings):
        settings.PAYMENT_PROVIDER_WEBHOOK_SECRET = WEBHOOK_SECRET

    def test_signed_notification_processed(self, rf, pending_payment, provider):
        provider.return_value = ProviderPayment("mp-55", "approved", str(pending_payment.id))

        response = post_notification(
            rf, {"type": "payment", "data": {"id": "mp-55"}}, **sign("mp-55")
        )

        assert response.status_code == 200
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.APPROVED

    def test_unsigned_notification_rejected(self, rf, pending_payment, provider):
        response = post_notification(rf, forged_approval(pending_payment))

        assert response.status_code == 400
        assert response.content == b"Invalid signature"
        provider.assert_not_called()

    def test_signature_for_other_id_rejected(self, rf, pending_payment, provider):
        response = post_notification(rf, forged_approval(pending_payment), **sign("mp-other"))

        assert response.status_code == 400
        provider.assert_not_called()
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_signature_with_wrong_secret_rejected(self, rf, pending_payment, provider):
        response = post_notification(
            rf, forged_approval(pending_payment), **sign("mp-55", secret="guessed")
        )

        assert response.status_code == 400
        provider.assert_not_called()
