from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db.models import Q
from core.utils import IsClient, IsWorker, IsClientOrAdmin, expected_version
from . import lifecycle
from .models import Job, JobApplication
from .serializers import (
    JobSerializer, JobDetailSerializer, JobApplicationSerializer, ApplySerializer,
    ApplicationDecisionSerializer, RejectApplicationSerializer, WorkerActionSerializer,
    ProgressSerializer, SubmitWorkSerializer, RevisionSerializer, CompleteWithRatingSerializer,
    CancelJobSerializer
)

import logging

logger = logging.getLogger(__name__)

JOB_NOT_FOUND = {"error": "Job not found"}


def _job_response(job, code=status.HTTP_200_OK):
    job.refresh_from_db()
    return Response(JobDetailSerializer(job).data, status=code)


class JobListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description=(
            "Clients see their own jobs, workers see jobs assigned to them. "
            "Pass open=true to browse posted jobs."
        ),
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('open', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN),
        ],
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        user = request.user
        if request.query_params.get('open') in ('true', '1'):
            jobs = Job.objects.filter(status='posted')
        elif user.is_staff or user.is_superuser:
            jobs = Job.objects.all()
        elif user.is_worker:
            jobs = Job.objects.filter(assigned_worker=user.worker)
        else:
            jobs = Job.objects.filter(client=user)

        status_filter = request.query_params.get('status')
        if status_filter:
            jobs = jobs.filter(status=status_filter)
        serializer = JobSerializer(jobs.select_related('client', 'category'), many=True)
        return Response(serializer.data)

    @swagger_auto_schema(
        operation_description="Create a job. It is posted right away unless save_as_draft is true.",
        request_body=JobSerializer,
        responses={201: JobSerializer, 400: 'Bad Request', 403: 'Forbidden'}
    )
    def post(self, request):
        if not IsClient().has_permission(request, self):
            return Response({"error": "Only clients can post jobs"}, status=status.HTTP_403_FORBIDDEN)
        serializer = JobSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            job = serializer.save(client=request.user)
            logger.info(f"Job {job.id} created by user {request.user.id} ({job.status})")
            return Response(JobSerializer(job).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class JobDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Job detail with progress updates, revisions and feedback.",
        responses={200: JobDetailSerializer, 404: 'Not Found'}
    )
    def get(self, request, job_id):
        user = request.user
        visible = Q(status='posted') | Q(client=user)
        if user.is_worker:
            visible |= Q(assigned_worker=user.worker)
        jobs = Job.objects.all() if (user.is_staff or user.is_superuser) else Job.objects.filter(visible)
        try:
            job = jobs.get(pk=job_id)
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(JobDetailSerializer(job).data)


class JobPublishView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="Publish a draft job.",
        request_body=ApplicationDecisionSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = ApplicationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            job = lifecycle.publish_job(
                job_id, request.user, expected_version=expected_version(request, serializer.validated_data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)


class JobApplyView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Apply to a posted job.",
        request_body=ApplySerializer,
        responses={201: JobApplicationSerializer, 400: 'Bad Request', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = ApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            application = lifecycle.apply_to_job(
                job_id, request.user.worker, proposal=data['proposal'], proposed_budget=data.get('proposed_budget')
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(JobApplicationSerializer(application).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        operation_description="Withdraw a pending application.",
        responses={200: JobApplicationSerializer, 400: 'Bad Request', 404: 'Not Found'}
    )
    def delete(self, request, job_id):
        try:
            application = lifecycle.withdraw_application(job_id, request.user.worker)
        except JobApplication.DoesNotExist:
            return Response({"error": "Application not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(JobApplicationSerializer(application).data)


class JobApplicationsListView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="List applications for one of your jobs.",
        responses={200: JobApplicationSerializer(many=True), 404: 'Not Found'}
    )
    def get(self, request, job_id):
        user = request.user
        jobs = Job.objects.all() if (user.is_staff or user.is_superuser) else Job.objects.filter(client=user)
        try:
            job = jobs.get(pk=job_id)
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        applications = job.applications.select_related('worker__user')
        serializer = JobApplicationSerializer(applications, many=True)
        return Response(serializer.data)


class ApplicationAcceptView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="Accept an application. The job must be posted; other pending applications are rejected.",
        request_body=ApplicationDecisionSerializer,
        responses={
            200: JobApplicationSerializer,
            400: 'Invalid state transition',
            404: 'Not Found',
            409: 'Concurrent modification'
        }
    )
    def post(self, request, job_id, application_id):
        serializer = ApplicationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            application = lifecycle.accept_application(
                job_id, application_id, request.user,
                expected_version=expected_version(request, serializer.validated_data)
            )
        except (Job.DoesNotExist, JobApplication.DoesNotExist):
            return Response({"error": "Job or application not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(JobApplicationSerializer(application).data)


class ApplicationRejectView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="Reject an application with an optional reason. The job must be posted.",
        request_body=RejectApplicationSerializer,
        responses={200: JobApplicationSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id, application_id):
        serializer = RejectApplicationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            application = lifecycle.reject_application(
                job_id, application_id, request.user, reason=data.get('reason'),
                expected_version=expected_version(request, data)
            )
        except (Job.DoesNotExist, JobApplication.DoesNotExist):
            return Response({"error": "Job or application not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(JobApplicationSerializer(application).data)


class JobStartView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Accept an assignment or resume after a revision request.",
        request_body=WorkerActionSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = WorkerActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            job = lifecycle.start_work(
                job_id, request.user.worker, expected_version=expected_version(request, serializer.validated_data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)


class JobDeclineView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Decline an assignment. The job is posted again.",
        request_body=WorkerActionSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = WorkerActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        worker = request.user.worker
        try:
            lifecycle.decline_assignment(
                job_id, worker, expected_version=expected_version(request, serializer.validated_data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response({"message": "Assignment declined"}, status=status.HTTP_200_OK)


class JobProgressView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Report progress. Percentage never decreases; 100 moves the job to awaiting_completion.",
        request_body=ProgressSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid progress or state', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = ProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            job = lifecycle.update_progress(
                job_id, request.user.worker, data['percentage'], message=data['message'],
                expected_version=expected_version(request, data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)


class JobSubmitView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Deliver the work for client review.",
        request_body=SubmitWorkSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = SubmitWorkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            job = lifecycle.submit_work(
                job_id, request.user.worker, message=data['message'], expected_version=expected_version(request, data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)


class JobRevisionView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="Send a delivered job back to the worker.",
        request_body=RevisionSerializer,
        responses={
            200: JobDetailSerializer,
            400: 'Invalid state transition',
            404: 'Not Found',
            409: 'Concurrent modification'
        }
    )
    def post(self, request, job_id):
        serializer = RevisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            job = lifecycle.request_revision(
                job_id, request.user, data['reason'], expected_version=expected_version(request, data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)


class JobCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description=(
            "Rate the worker and create a pending manual check payment. "
            "The job completes when an admin marks the payment paid."
        ),
        request_body=CompleteWithRatingSerializer,
        responses={
            200: openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'paymentId': openapi.Schema(type=openapi.TYPE_INTEGER),
                    'transactionId': openapi.Schema(type=openapi.TYPE_STRING),
                }
            ),
            400: 'Invalid state transition',
            404: 'Not Found',
            409: 'Concurrent modification'
        }
    )
    def post(self, request, job_id):
        serializer = CompleteWithRatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = lifecycle.complete_with_rating(
                job_id, request.user, data['rating'], review=data['review'],
                expected_version=expected_version(request, data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(
            {"paymentId": payment.id, "transactionId": payment.transaction_id},
            status=status.HTTP_200_OK
        )


class JobCancelView(APIView):
    permission_classes = [IsAuthenticated, IsClientOrAdmin]

    @swagger_auto_schema(
        operation_description="Cancel a job before completion.",
        request_body=CancelJobSerializer,
        responses={200: JobDetailSerializer, 400: 'Invalid state transition', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = CancelJobSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            job = lifecycle.cancel_job(
                job_id, request.user, reason=data['reason'], expected_version=expected_version(request, data)
            )
        except Job.DoesNotExist:
            return Response(JOB_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return _job_response(job)
