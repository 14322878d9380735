"""
URL configuration for the payments app.

Routes:
    - POST create-preference/ - Create a pending payment
    - POST release-funds/ - Client-confirmed release
    - GET status/<uuid>/ - Payment status
    - POST webhook/ - Payment provider notifications (unauthenticated)
    - GET disputes/ - Caller's disputes
    - GET funds/available/ - Professional balance
    - GET|POST withdrawals/ - List or request withdrawals
    - GET admin/disputes/ - All disputes (admins)
    - POST <uuid>/dispute/ - Open a dispute
    - POST <uuid>/refund/ - Process a refund
    - GET <uuid>/events/ - Audit trail
    - POST <uuid>/receipt/ - Generate receipt link

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views
from payments.webhooks.views import provider_webhook

app_name = "payments"

urlpatterns = [
    path("create-preference/", views.CreatePaymentView.as_view(), name="create-preference"),
    path("release-funds/", views.ReleaseFundsView.as_view(), name="release-funds"),
    path("status/<uuid:payment_id>/", views.PaymentStatusView.as_view(), name="status"),
    path("webhook/", provider_webhook, name="webhook"),
    path("disputes/", views.DisputeListView.as_view(), name="disputes"),
    path("funds/available/", views.AvailableFundsView.as_view(), name="available-funds"),
    path("withdrawals/", views.WithdrawalsView.as_view(), name="withdrawals"),
    path("admin/disputes/", views.AdminDisputeListView.as_view(), name="admin-disputes"),
    path("<uuid:payment_id>/dispute/", views.PaymentDisputeView.as_view(), name="dispute"),
    path("<uuid:payment_id>/refund/", views.PaymentRefundView.as_view(), name="refund"),
    path("<uuid:payment_id>/events/", views.PaymentEventsView.as_view(), name="events"),
    path("<uuid:payment_id>/receipt/", views.PaymentReceiptView.as_view(), name="receipt"),
]
