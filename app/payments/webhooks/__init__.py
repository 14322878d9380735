"""
Webhook handling for payment provider notifications.

The provider posts status changes for charges created from a checkout
preference. A notification only names the provider payment; its status is
fetched from the provider (payments.provider) and applied to the payment
ledger synchronously. The ledger's transitions are idempotent, so
redelivery is harmless.

Usage:
    # In urls.py
    from payments.webhooks.views import provider_webhook

    path("webhook/", provider_webhook, name="webhook")
"""
