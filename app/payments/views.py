"""
DRF views for payments app.

This module provides API views for:
- Payment creation and client-confirmed release
- Payment status and audit trail
- Disputes and refunds
- Payment receipts
- Professional available funds and withdrawals
- Platform-wide dispute listing for administrators

Related files:
    - services/: PaymentLedgerService, DisputeService, RefundService, FundsService,
      WithdrawalService
    - serializers.py: Request/response serializers
    - webhooks/views.py: Provider webhook endpoint
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/create-preference/ - Create a pending payment
    POST /api/v1/payments/release-funds/ - Client confirms, funds released
    GET /api/v1/payments/status/{id}/ - Payment status
    POST /api/v1/payments/{id}/dispute/ - Open a dispute
    POST /api/v1/payments/{id}/refund/ - Process a refund
    GET /api/v1/payments/{id}/events/ - Audit trail
    POST /api/v1/payments/{id}/receipt/ - Generate receipt link
    GET /api/v1/payments/disputes/ - Caller's disputes
    GET /api/v1/payments/funds/available/ - Professional balance
    GET|POST /api/v1/payments/withdrawals/ - List or request withdrawals
    GET /api/v1/payments/admin/disputes/ - All disputes (admins)

Security:
    - All endpoints require authentication (JWT)
    - Party checks are enforced by the services
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsPlatformAdmin
from core.services import ErrorCode, ServiceResult
from core.views import service_failure_response
from payments.serializers import (
    AdminDisputeFilterSerializer,
    AvailableFundsSerializer,
    CreateDisputeSerializer,
    CreatePaymentSerializer,
    DisputeFilterSerializer,
    DisputeSerializer,
    PaymentEventSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
    ReceiptSerializer,
    RefundResultSerializer,
    RefundSerializer,
    ReleaseFundsSerializer,
    ReleaseResultSerializer,
    WithdrawalSerializer,
    WithdrawFundsSerializer,
)
from payments.services import (
    DisputeService,
    FundsService,
    PaymentLedgerService,
    RefundService,
    WithdrawalService,
)

FAILURE_RESPONSES = {
    400: OpenApiResponse(description="Invalid request or amount"),
    403: OpenApiResponse(description="Caller is not allowed"),
    404: OpenApiResponse(description="Not found"),
    409: OpenApiResponse(description="Operation not allowed in current state"),
}


class CreatePaymentView(APIView):
    """
    Create a pending payment for a booking.

    POST /api/v1/payments/create-preference/

    Request body:
        {
            "service_id": "<booking uuid>",
            "amount": "1000.00",
            "professional_email": "pro@example.com",  # optional
            "specialty": "plumbing"  # optional
        }
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_payment",
        summary="Create payment",
        description=(
            "Create a pending payment for one of the caller's bookings. "
            "Commission and professional net are computed at creation."
        ),
        request=CreatePaymentSerializer,
        responses={201: PaymentSerializer, **FAILURE_RESPONSES},
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CreatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        metadata = {
            key: data[key]
            for key in ("professional_email", "specialty")
            if data.get(key)
        }
        result = PaymentLedgerService.create_payment(
            booking_id=data["service_id"],
            amount=data["amount"],
            client=request.user,
            metadata=metadata,
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": PaymentSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )


class ReleaseFundsView(APIView):
    """
    Client confirms the service was completed and releases custody.

    POST /api/v1/payments/release-funds/

    Request body:
        {"payment_id": "<uuid>", "service_id": "<booking uuid>"}

    Releasing an already released payment succeeds with
    already_released=true.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="release_payment_funds",
        summary="Release funds",
        request=ReleaseFundsSerializer,
        responses={200: ReleaseResultSerializer, **FAILURE_RESPONSES},
        tags=["Payments"],
    )
    def post(self, request):
        serializer = ReleaseFundsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentLedgerService.release_for_client(
            serializer.validated_data["payment_id"],
            user=request.user,
            booking_id=serializer.validated_data.get("service_id"),
        )
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": ReleaseResultSerializer(result.data).data})


class PaymentStatusView(APIView):
    """
    Read a payment's state, amounts and timestamps.

    GET /api/v1/payments/status/{payment_id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_payment_status",
        summary="Get payment status",
        responses={200: PaymentStatusSerializer, **FAILURE_RESPONSES},
        tags=["Payments"],
    )
    def get(self, request, payment_id):
        result = PaymentLedgerService.get_status(payment_id, user=request.user)
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": PaymentStatusSerializer(result.data).data})


class PaymentDisputeView(APIView):
    """
    Open a dispute on a payment.

    POST /api/v1/payments/{payment_id}/dispute/

    Request body:
        {"reason": "quality_issue", "description": "..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_payment_dispute",
        summary="Open dispute",
        description="Either party may dispute an approved or released payment.",
        request=CreateDisputeSerializer,
        responses={201: DisputeSerializer, **FAILURE_RESPONSES},
        tags=["Payments - Disputes"],
    )
    def post(self, request, payment_id):
        serializer = CreateDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = DisputeService.create_dispute(
            payment_id,
            user=request.user,
            reason=serializer.validated_data["reason"],
            description=serializer.validated_data["description"],
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": DisputeSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )


class PaymentRefundView(APIView):
    """
    Refund part or all of a payment.

    POST /api/v1/payments/{payment_id}/refund/

    Request body:
        {"amount": "500.00", "reason": "..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="refund_payment",
        summary="Process refund",
        description=(
            "Refund up to the remaining refundable balance. Only the client "
            "may request a refund. Refunding a disputed payment resolves "
            "its open dispute."
        ),
        request=RefundSerializer,
        responses={200: RefundResultSerializer, **FAILURE_RESPONSES},
        tags=["Payments - Refunds"],
    )
    def post(self, request, payment_id):
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundService.process_refund(
            payment_id,
            amount=serializer.validated_data["amount"],
            reason=serializer.validated_data["reason"],
            requester=request.user,
        )
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": RefundResultSerializer(result.data).data})


class PaymentEventsView(APIView):
    """
    Audit trail of a payment, newest first.

    GET /api/v1/payments/{payment_id}/events/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_payment_events",
        summary="List payment events",
        responses={200: PaymentEventSerializer(many=True), **FAILURE_RESPONSES},
        tags=["Payments"],
    )
    def get(self, request, payment_id):
        result = PaymentLedgerService.list_events(payment_id, user=request.user)
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": PaymentEventSerializer(result.data, many=True).data}
        )


class DisputeListView(APIView):
    """
    Disputes opened by the caller.

    GET /api/v1/payments/disputes/?status=open
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_user_disputes",
        summary="List my disputes",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by dispute state (open, under_review, resolved)",
                required=False,
            ),
        ],
        responses={200: DisputeSerializer(many=True), 400: FAILURE_RESPONSES[400]},
        tags=["Payments - Disputes"],
    )
    def get(self, request):
        filters = DisputeFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        result = DisputeService.list_user_disputes(
            request.user,
            state=filters.validated_data.get("status"),
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": DisputeSerializer(result.data, many=True).data}
        )


class AvailableFundsView(APIView):
    """
    Balance of released funds for the calling professional.

    GET /api/v1/payments/funds/available/

    available_funds counts every released payment; withdrawable_funds
    subtracts withdrawals that have not failed.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_available_funds",
        summary="Get available funds",
        responses={200: AvailableFundsSerializer, 403: FAILURE_RESPONSES[403]},
        tags=["Payments - Funds"],
    )
    def get(self, request):
        if not request.user.is_professional:
            return service_failure_response(
                ServiceResult.failure(
                    "Only professionals have an available balance",
                    ErrorCode.FORBIDDEN,
                )
            )

        available = FundsService.calculate_available_funds(request.user.pk)
        withdrawn = FundsService.calculate_withdrawn_funds(request.user.pk)
        serializer = AvailableFundsSerializer(
            {
                "professional_id": request.user.pk,
                "available_funds": available,
                "withdrawn_funds": withdrawn,
                "withdrawable_funds": available - withdrawn,
            }
        )
        return Response({"success": True, "data": serializer.data})


class PaymentReceiptView(APIView):
    """
    Generate the receipt link of a payment.

    POST /api/v1/payments/{payment_id}/receipt/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="generate_payment_receipt",
        summary="Generate payment receipt",
        description=(
            "Assign the payment its receipt link on the frontend. Available "
            "to both parties and administrators once the payment is approved."
        ),
        request=None,
        responses={200: ReceiptSerializer, **FAILURE_RESPONSES},
        tags=["Payments"],
    )
    def post(self, request, payment_id):
        result = PaymentLedgerService.generate_payment_receipt(payment_id, user=request.user)
        if not result.success:
            return service_failure_response(result)

        return Response({"success": True, "data": ReceiptSerializer(result.data).data})


class WithdrawalsView(APIView):
    """
    Withdrawals of the calling professional.

    GET /api/v1/payments/withdrawals/
    POST /api/v1/payments/withdrawals/

    Request body (POST):
        {"amount": "1500.00", "cvu": "<22 digits>", "alias": "mi.alias.mp"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_withdrawals",
        summary="List my withdrawals",
        responses={200: WithdrawalSerializer(many=True), 403: FAILURE_RESPONSES[403]},
        tags=["Payments - Funds"],
    )
    def get(self, request):
        result = WithdrawalService.list_withdrawals(request.user)
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": WithdrawalSerializer(result.data, many=True).data}
        )

    @extend_schema(
        operation_id="withdraw_funds",
        summary="Withdraw funds",
        description=(
            "Withdraw released funds to a bank account. The amount must be "
            "within the configured limits and the withdrawable balance."
        ),
        request=WithdrawFundsSerializer,
        responses={201: WithdrawalSerializer, **FAILURE_RESPONSES},
        tags=["Payments - Funds"],
    )
    def post(self, request):
        serializer = WithdrawFundsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WithdrawalService.withdraw_funds(
            professional=request.user,
            amount=serializer.validated_data["amount"],
            cvu=serializer.validated_data["cvu"],
            alias=serializer.validated_data["alias"],
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": WithdrawalSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )


class AdminDisputeListView(APIView):
    """
    Every dispute on the platform, newest first, capped at 50.

    GET /api/v1/payments/admin/disputes/?status=open&date_from=2026-01-01&date_to=2026-01-31
    """

    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    @extend_schema(
        operation_id="list_all_disputes",
        summary="List all disputes",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by dispute state (open, under_review, resolved)",
                required=False,
            ),
            OpenApiParameter(
                name="date_from",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Opened on or after this date (YYYY-MM-DD)",
                required=False,
            ),
            OpenApiParameter(
                name="date_to",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Opened on or before this date (YYYY-MM-DD)",
                required=False,
            ),
        ],
        responses={
            200: DisputeSerializer(many=True),
            400: FAILURE_RESPONSES[400],
            403: FAILURE_RESPONSES[403],
        },
        tags=["Payments - Disputes"],
    )
    def get(self, request):
        filters = AdminDisputeFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        result = DisputeService.list_all_disputes(
            state=filters.validated_data.get("status"),
            opened_from=filters.validated_data.get("date_from"),
            opened_to=filters.validated_data.get("date_to"),
        )
        if not result.success:
            return service_failure_response(result)

        return Response(
            {"success": True, "data": DisputeSerializer(result.data, many=True).data}
        )
