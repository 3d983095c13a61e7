from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, generics
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q
from core.constants import PAYMENT_STATUS_CHOICES
from core.utils import expected_version
from apps.management.permissions import IsAdminUser, IsSuperuser
from apps.disputes.resolution import resolve_dispute
from . import ledger
from .models import Payment
from .serializers import (
    PaymentSerializer, MarkPaidSerializer, DisputeActionSerializer, BreakdownSerializer,
    PaymentProofSerializer, PaymentCancelSerializer, PaymentFailSerializer, AdjustmentSerializer
)

import logging

User = get_user_model()
logger = logging.getLogger(__name__)

PAYMENT_NOT_FOUND = {"error": "Payment not found"}


class PaymentPagination(PageNumberPagination):
    page_size = settings.PAYMENTS_PAGE_SIZE
    page_size_query_param = 'limit'
    max_page_size = 100


class PaymentAdminListView(generics.ListAPIView):
    """Payments console: every payment, optionally filtered by status."""
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated, IsAdminUser]
    pagination_class = PaymentPagination

    def get_queryset(self):
        queryset = Payment.objects.select_related('payer', 'recipient', 'job')
        status_filter = self.request.query_params.get('status')
        payment_type = self.request.query_params.get('type')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if payment_type:
            queryset = queryset.filter(payment_type=payment_type)
        return queryset

    @swagger_auto_schema(
        operation_description="List payments (admin only). Paginated; filter by status.",
        manual_parameters=[
            openapi.Parameter(
                'status', openapi.IN_QUERY, type=openapi.TYPE_STRING,
                enum=[choice for choice, _ in PAYMENT_STATUS_CHOICES]
            ),
            openapi.Parameter('type', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=['job_payment', 'adjustment']),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class MyPaymentsView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Payments the authenticated user made or received.",
        responses={200: PaymentSerializer(many=True)}
    )
    def get(self, request):
        payments = Payment.objects.filter(Q(payer=request.user) | Q(recipient=request.user))
        serializer = PaymentSerializer(payments, many=True)
        return Response(serializer.data)


class PaymentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Payment detail for its payer, its recipient or an admin.",
        responses={200: PaymentSerializer, 404: 'Not Found'}
    )
    def get(self, request, payment_id):
        try:
            payment = Payment.objects.get(pk=payment_id)
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        user = request.user
        if not (user.is_staff or user.is_superuser) and user not in (payment.payer, payment.recipient):
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentMarkPaidView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Confirm a manual check. Completes the payment and its job.",
        request_body=MarkPaidSerializer,
        responses={
            200: PaymentSerializer,
            400: 'Invalid payment state',
            404: 'Not Found',
            409: 'Concurrent modification'
        }
    )
    def post(self, request, payment_id):
        serializer = MarkPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payment = ledger.mark_paid(
                payment_id, request.user, expected_version=expected_version(request, serializer.validated_data)
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentDisputeView(APIView):
    permission_classes = [IsAuthenticated, IsSuperuser]

    @swagger_auto_schema(
        operation_description="Resolve a payment dispute: refund, release or partial refund (super admin only).",
        request_body=DisputeActionSerializer,
        responses={
            200: PaymentSerializer,
            400: 'Validation error, already resolved, invalid payment state or invalid partial amount',
            404: 'Not Found',
            409: 'Concurrent modification'
        }
    )
    def post(self, request, payment_id):
        serializer = DisputeActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = resolve_dispute(
                payment_id,
                action=data['action'],
                note=data['note'],
                actor=request.user,
                amount=data.get('amount'),
                expected_version=expected_version(request, data),
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentBreakdownView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Record the fee breakdown. net must equal gross minus fees and tax.",
        request_body=BreakdownSerializer,
        responses={200: PaymentSerializer, 400: 'Breakdown mismatch', 404: 'Not Found'}
    )
    def put(self, request, payment_id):
        serializer = BreakdownSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = ledger.record_breakdown(
                payment_id,
                request.user,
                gross_amount=data['gross_amount'],
                platform_fee=data['platform_fee'],
                processing_fee=data['processing_fee'],
                tax=data['tax'],
                net_amount=data['net_amount'],
                expected_version=expected_version(request, data),
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentProofView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @swagger_auto_schema(
        operation_description="Payer uploads the check image. Moves the payment to processing.",
        request_body=PaymentProofSerializer,
        consumes=['multipart/form-data'],
        responses={200: PaymentSerializer, 400: 'Invalid payment state', 404: 'Not Found'}
    )
    def post(self, request, payment_id):
        serializer = PaymentProofSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = ledger.submit_proof(
                payment_id,
                request.user,
                data['proof'],
                note=data.get('note'),
                expected_version=expected_version(request, data),
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentCancelView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Cancel a pending payment.",
        request_body=PaymentCancelSerializer,
        responses={200: PaymentSerializer, 400: 'Invalid payment state', 404: 'Not Found'}
    )
    def post(self, request, payment_id):
        serializer = PaymentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = ledger.cancel_payment(
                payment_id, request.user, data.get('reason', ''), expected_version=expected_version(request, data)
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class PaymentFailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Mark a processing payment as failed with an error code and message.",
        request_body=PaymentFailSerializer,
        responses={200: PaymentSerializer, 400: 'Invalid payment state', 404: 'Not Found'}
    )
    def post(self, request, payment_id):
        serializer = PaymentFailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = ledger.fail_payment(
                payment_id,
                request.user,
                data['error_code'],
                data['error_message'],
                expected_version=expected_version(request, data),
            )
        except Payment.DoesNotExist:
            return Response(PAYMENT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


class AdjustmentCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Create an admin adjustment payment (not tied to a job).",
        request_body=AdjustmentSerializer,
        responses={201: PaymentSerializer, 400: 'Bad Request', 404: 'Recipient not found'}
    )
    def post(self, request):
        serializer = AdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            recipient = User.objects.get(pk=data['recipient_id'])
        except User.DoesNotExist:
            return Response({"error": "Recipient not found"}, status=status.HTTP_404_NOT_FOUND)
        payment = ledger.create_adjustment(recipient, data['amount'], request.user, data['description'])
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
