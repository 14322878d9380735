"""
URL configuration for the recurring app.

All routes are prefixed with /api/v1/recurring-services/ when included in
the main URLconf.
"""

from django.urls import path

from recurring import views

app_name = "recurring"

urlpatterns = [
    path("", views.RecurrenceScheduleListView.as_view(), name="list"),
    path("generate-services/", views.GenerateServicesView.as_view(), name="generate-services"),
    path("<uuid:schedule_id>/", views.RecurrenceScheduleDetailView.as_view(), name="detail"),
]
