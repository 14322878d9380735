"""
DRF views for recurring services.

Endpoints:
    GET /api/v1/recurring-services/ - Caller's schedules
    POST /api/v1/recurring-services/ - Create a schedule (clients)
    GET /api/v1/recurring-services/{id}/ - Schedule with upcoming bookings
    PUT /api/v1/recurring-services/{id}/ - Partial update
    DELETE /api/v1/recurring-services/{id}/ - Cancel schedule and future bookings
    POST /api/v1/recurring-services/generate-services/ - Manual generator run (admins)

Security:
    - All endpoints require authentication (JWT)
    - Party checks are enforced by RecurrenceService
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsPlatformAdmin
from core.views import service_failure_response
from recurring.generator import RecurringServiceGenerator
from recurring.serializers import (
    CancellationResultSerializer,
    CreateRecurrenceScheduleSerializer,
    GenerationSummarySerializer,
    RecurrenceScheduleSerializer,
    ScheduleDetailSerializer,
    UpdateRecurrenceScheduleSerializer,
)
from recurring.services import RecurrenceService

FAILURE_RESPONSES = {
    400: OpenApiResponse(description="Invalid request"),
    403: OpenApiResponse(description="Caller is not allowed"),
    404: OpenApiResponse(description="Recurring service not found"),
}


class RecurrenceScheduleListView(APIView):
    """
    List the caller's schedules or create a new one.

    GET /api/v1/recurring-services/
    POST /api/v1/recurring-services/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_recurring_services",
        summary="List my recurring services",
        responses={200: RecurrenceScheduleSerializer(many=True)},
        tags=["Recurring Services"],
    )
    def get(self, request):
        result = RecurrenceService.list_user_schedules(request.user)
        return Response(
            {
                "success": True,
                "data": RecurrenceScheduleSerializer(result.data, many=True).data,
            }
        )

    @extend_schema(
        operation_id="create_recurring_service",
        summary="Create recurring service",
        description=(
            "Create a standing arrangement with a professional. Bookings for "
            "the coming weeks are generated immediately."
        ),
        request=CreateRecurrenceScheduleSerializer,
        responses={201: RecurrenceScheduleSerializer, **FAILURE_RESPONSES},
        tags=["Recurring Services"],
    )
    def post(self, request):
        serializer = CreateRecurrenceScheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RecurrenceService.create_schedule(
            client=request.user,
            **serializer.validated_data,
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": RecurrenceScheduleSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )


class RecurrenceScheduleDetailView(APIView):
    """
    Read, update or cancel one schedule.

    GET /api/v1/recurring-services/{id}/
    PUT /api/v1/recurring-services/{id}/
    DELETE /api/v1/recurring-services/{id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_recurring_service",
        summary="Get recurring service",
        responses={200: ScheduleDetailSerializer, **FAILURE_RESPONSES},
        tags=["Recurring Services"],
    )
    def get(self, request, schedule_id):
        result = RecurrenceService.get_schedule(schedule_id, request.user)
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": ScheduleDetailSerializer(result.data).data})

    @extend_schema(
        operation_id="update_recurring_service",
        summary="Update recurring service",
        description="Only the fields present in the body are changed.",
        request=UpdateRecurrenceScheduleSerializer,
        responses={
            200: RecurrenceScheduleSerializer,
            409: OpenApiResponse(description="Recurring service was cancelled"),
            **FAILURE_RESPONSES,
        },
        tags=["Recurring Services"],
    )
    def put(self, request, schedule_id):
        serializer = UpdateRecurrenceScheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RecurrenceService.update_schedule(
            schedule_id,
            request.user,
            dict(serializer.validated_data),
        )
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": RecurrenceScheduleSerializer(result.data).data})

    @extend_schema(
        operation_id="cancel_recurring_service",
        summary="Cancel recurring service",
        description="Deactivates the schedule and cancels its future pending bookings.",
        responses={200: CancellationResultSerializer, **FAILURE_RESPONSES},
        tags=["Recurring Services"],
    )
    def delete(self, request, schedule_id):
        result = RecurrenceService.cancel_recurring_service(schedule_id, request.user)
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": CancellationResultSerializer(result.data).data}
        )


class GenerateServicesView(APIView):
    """
    Run the generator now instead of waiting for the nightly task.

    POST /api/v1/recurring-services/generate-services/
    """

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="generate_recurring_services",
        summary="Generate recurring services",
        request=None,
        responses={200: GenerationSummarySerializer, 403: FAILURE_RESPONSES[403]},
        tags=["Recurring Services"],
    )
    def post(self, request):
        summary = RecurringServiceGenerator.generate_recurring_services()
        return Response({"success": True, "data": GenerationSummarySerializer(summary).data})
