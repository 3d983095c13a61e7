from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction
from django.db.models import Q
from apps.jobs.models import Job
from apps.management.permissions import IsAdminUser
from apps.notifications.service import NotificationService
from apps.payments.models import Payment
from .models import Dispute, ACTIVE_DISPUTE_STATUSES
from .serializers import DisputeSerializer, DisputeCreateSerializer

import logging

logger = logging.getLogger(__name__)


def _other_party(job, user):
    """The counterpart of ``user`` on the job, or None when the user is not a party."""
    worker_user = job.assigned_worker.user if job.assigned_worker else None
    if user == job.client:
        return worker_user
    if worker_user is not None and user == worker_user:
        return job.client
    return None


class DisputeListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List disputes the authenticated user raised or is named in.",
        responses={200: DisputeSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        disputes = Dispute.objects.filter(Q(raised_by=request.user) | Q(against=request.user))
        serializer = DisputeSerializer(disputes, many=True)
        return Response(serializer.data)

    @swagger_auto_schema(
        operation_description="Raise a dispute on a job you are a party to. One active dispute per job.",
        request_body=DisputeCreateSerializer,
        responses={
            201: DisputeSerializer,
            400: 'Bad Request',
            401: 'Unauthorized',
            404: 'Not Found'
        }
    )
    def post(self, request):
        serializer = DisputeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            try:
                job = Job.objects.select_for_update().get(pk=data['job_id'])
            except Job.DoesNotExist:
                return Response({"error": "Job not found"}, status=status.HTTP_404_NOT_FOUND)

            against = _other_party(job, request.user)
            if against is None:
                return Response({"error": "Job not found"}, status=status.HTTP_404_NOT_FOUND)

            payment = None
            if data.get('payment_id'):
                try:
                    payment = Payment.objects.get(pk=data['payment_id'], job=job)
                except Payment.DoesNotExist:
                    return Response({"error": "Payment not found for this job"}, status=status.HTTP_404_NOT_FOUND)

            if job.disputes.filter(status__in=ACTIVE_DISPUTE_STATUSES).exists():
                return Response(
                    {"error": "This job already has an active dispute"},
                    status=status.HTTP_400_BAD_REQUEST
                )

            dispute = Dispute.objects.create(
                job=job,
                payment=payment,
                raised_by=request.user,
                against=against,
                dispute_type=data['dispute_type'],
                title=data['title'],
                description=data['description'],
                priority=data['priority'],
            )
            NotificationService.dispute_raised(dispute)

        logger.info(f"Dispute {dispute.id} raised on job {job.id} by user {request.user.id}")
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)


class DisputeDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Get details of a specific dispute",
        responses={
            200: DisputeSerializer,
            401: 'Unauthorized',
            404: 'Not Found'
        }
    )
    def get(self, request, dispute_id):
        try:
            dispute = Dispute.objects.get(id=dispute_id)
        except Dispute.DoesNotExist:
            return Response({"error": "Dispute not found"}, status=status.HTTP_404_NOT_FOUND)
        user = request.user
        if not (user.is_staff or user.is_superuser) and user not in (dispute.raised_by, dispute.against):
            return Response({"error": "Dispute not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(DisputeSerializer(dispute).data)


class AdminDisputeListView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="List all disputes (admin only)",
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('type', openapi.IN_QUERY, type=openapi.TYPE_STRING),
        ],
        responses={
            200: DisputeSerializer(many=True),
            401: 'Unauthorized',
            403: 'Forbidden'
        }
    )
    def get(self, request):
        disputes = Dispute.objects.all()
        status_filter = request.query_params.get('status')
        dispute_type = request.query_params.get('type')
        if status_filter:
            disputes = disputes.filter(status=status_filter)
        if dispute_type:
            disputes = disputes.filter(dispute_type=dispute_type)
        serializer = DisputeSerializer(disputes, many=True)
        return Response(serializer.data)


class AdminDisputeInvestigateView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @swagger_auto_schema(
        operation_description="Move an open dispute to investigating (admin only)",
        responses={
            200: DisputeSerializer,
            400: 'Bad Request',
            404: 'Not Found'
        }
    )
    def post(self, request, dispute_id):
        try:
            dispute = Dispute.objects.get(id=dispute_id)
        except Dispute.DoesNotExist:
            return Response({"error": "Dispute not found"}, status=status.HTTP_404_NOT_FOUND)
        if not dispute.mark_as_investigating():
            return Response(
                {"error": f"Only open disputes can be investigated (current: {dispute.status})"},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response(DisputeSerializer(dispute).data)
