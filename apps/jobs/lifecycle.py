"""Job lifecycle controller.

Every operation locks the job row, checks the current status against the
transition table in ``core.constants`` and writes with an optimistic version
check. ``Job.DoesNotExist`` is raised when the actor may not see the job.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.concurrency import check_version, versioned_update
from core.constants import JOB_DELIVERED_STATUSES, PAYMENT_ACTIVE_STATUSES
from core.exceptions import InvalidStateTransition, InvalidProgress
from apps.notifications.service import NotificationService
from apps.users.models import Worker
from .models import Job, JobApplication, ProgressUpdate, RevisionRequest, Feedback

logger = logging.getLogger(__name__)

OPEN_PAYMENT_STATUSES = ('pending', 'processing')


def _is_admin(user):
    return user.is_staff or user.is_superuser


def _client_job(job_id, actor):
    queryset = Job.objects.select_for_update()
    if _is_admin(actor):
        return queryset.get(pk=job_id)
    return queryset.get(pk=job_id, client=actor)


def _worker_job(job_id, worker):
    return Job.objects.select_for_update().get(pk=job_id, assigned_worker=worker)


def _ensure_transition(job, new_status):
    if not job.can_transition_to(new_status):
        raise InvalidStateTransition(job.status, new_status)


def _has_payment(job, statuses):
    return job.payments.filter(status__in=statuses).exists()


def publish_job(job_id, actor, expected_version=None):
    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        _ensure_transition(job, 'posted')
        versioned_update(job, status='posted')
    logger.info(f"Job {job.id} published by user {actor.id}")
    return job


def apply_to_job(job_id, worker, proposal='', proposed_budget=None):
    with transaction.atomic():
        job = Job.objects.select_for_update().get(pk=job_id)
        if job.status != 'posted':
            raise InvalidStateTransition(job.status, 'apply', message="This job is not open for applications.")

        application = JobApplication.objects.filter(job=job, worker=worker).first()
        if application and application.status != 'withdrawn':
            raise ValidationError({"error": "You have already applied to this job."})
        if application:
            application.status = 'pending'
            application.proposal = proposal
            application.proposed_budget = proposed_budget
            application.reviewed_at = None
            application.review_notes = None
            application.save()
        else:
            application = JobApplication.objects.create(
                job=job, worker=worker, proposal=proposal, proposed_budget=proposed_budget
            )
        NotificationService.application_received(application)
    logger.info(f"Worker {worker.id} applied to job {job.id}")
    return application


def withdraw_application(job_id, worker):
    with transaction.atomic():
        application = JobApplication.objects.select_for_update().get(job_id=job_id, worker=worker)
        if application.status != 'pending':
            raise ValidationError({"error": "Only pending applications can be withdrawn."})
        application.status = 'withdrawn'
        application.save(update_fields=['status'])
    logger.info(f"Worker {worker.id} withdrew application {application.id}")
    return application


def accept_application(job_id, application_id, actor, expected_version=None):
    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        _ensure_transition(job, 'assigned')

        application = job.applications.select_for_update().get(pk=application_id)
        if application.status != 'pending':
            raise ValidationError({"error": "Application has already been processed."})

        now = timezone.now()
        application.status = 'accepted'
        application.reviewed_at = now
        application.save(update_fields=['status', 'reviewed_at'])

        job.applications.filter(status='pending').exclude(pk=application.pk).update(
            status='rejected', reviewed_at=now, review_notes='Another application was accepted.'
        )
        versioned_update(job, status='assigned', assigned_worker=application.worker)
        NotificationService.job_assigned(job, application)
    logger.info(f"Job {job.id} assigned to worker {application.worker_id} (application {application.id})")
    return application


def reject_application(job_id, application_id, actor, reason=None, expected_version=None):
    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        if job.status != 'posted':
            raise InvalidStateTransition(
                job.status, 'reject_application',
                message="Applications can only be reviewed while the job is posted."
            )

        application = job.applications.select_for_update().get(pk=application_id)
        if application.status != 'pending':
            raise ValidationError({"error": "Application has already been processed."})

        application.status = 'rejected'
        application.reviewed_at = timezone.now()
        application.review_notes = reason or None
        application.save(update_fields=['status', 'reviewed_at', 'review_notes'])
        NotificationService.application_rejected(application)
    logger.info(f"Application {application.id} on job {job.id} rejected")
    return application


def start_work(job_id, worker, expected_version=None):
    """Worker accepts the assignment, or resumes after a revision request."""
    with transaction.atomic():
        job = _worker_job(job_id, worker)
        check_version(job, expected_version)
        _ensure_transition(job, 'in_progress')
        if job.status == 'revision_requested':
            job.revisions.filter(resolved_at__isnull=True).update(resolved_at=timezone.now())
        versioned_update(job, status='in_progress')
    logger.info(f"Worker {worker.id} started job {job.id}")
    return job


def decline_assignment(job_id, worker, expected_version=None):
    with transaction.atomic():
        job = _worker_job(job_id, worker)
        check_version(job, expected_version)
        if job.status != 'assigned':
            raise InvalidStateTransition(job.status, 'posted')
        job.applications.filter(worker=worker, status='accepted').update(
            status='withdrawn', reviewed_at=timezone.now()
        )
        versioned_update(job, status='posted', assigned_worker=None)
        NotificationService.assignment_declined(job, worker)
    logger.info(f"Worker {worker.id} declined job {job.id}")
    return job


def update_progress(job_id, worker, percentage, message='', expected_version=None):
    with transaction.atomic():
        job = _worker_job(job_id, worker)
        check_version(job, expected_version)
        if job.status != 'in_progress':
            raise InvalidStateTransition(
                job.status, 'update_progress', message="Progress can only be reported while the job is in progress."
            )
        if percentage < job.progress_percentage or percentage > 100:
            raise InvalidProgress(current=job.progress_percentage, requested=percentage)

        ProgressUpdate.objects.create(job=job, author=worker.user, message=message, percentage=percentage)
        new_status = 'awaiting_completion' if percentage == 100 else job.status
        versioned_update(job, progress_percentage=percentage, status=new_status)
        if new_status == 'awaiting_completion':
            NotificationService.work_submitted(job)
    logger.info(f"Job {job.id} progress {percentage}% ({job.status})")
    return job


def submit_work(job_id, worker, message='', expected_version=None):
    with transaction.atomic():
        job = _worker_job(job_id, worker)
        check_version(job, expected_version)
        _ensure_transition(job, 'submitted')
        if message:
            ProgressUpdate.objects.create(
                job=job, author=worker.user, message=message, percentage=job.progress_percentage
            )
        versioned_update(job, status='submitted')
        NotificationService.work_submitted(job)
    logger.info(f"Worker {worker.id} submitted job {job.id}")
    return job


def request_revision(job_id, actor, reason, expected_version=None):
    reason = (reason or '').strip()
    if not reason:
        raise ValidationError({"reason": ["A reason is required."]})

    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        if job.status not in JOB_DELIVERED_STATUSES:
            raise InvalidStateTransition(job.status, 'revision_requested')
        if _has_payment(job, PAYMENT_ACTIVE_STATUSES):
            raise InvalidStateTransition(
                job.status, 'revision_requested', message="This job already has a payment in progress."
            )

        revision = RevisionRequest.objects.create(job=job, requested_by=actor, reason=reason)
        versioned_update(job, status='revision_requested')
        NotificationService.revision_requested(job, revision)
    logger.info(f"Revision {revision.id} requested on job {job.id}")
    return job


def complete_with_rating(job_id, actor, rating, review='', expected_version=None):
    """Record the client's rating and open a pending manual-check payment.

    The job keeps its delivered status; it becomes completed when the
    payment is confirmed or a dispute releases it.
    """
    from apps.payments import ledger

    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError({"rating": ["Rating must be an integer between 1 and 5."]})

    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        if job.status not in JOB_DELIVERED_STATUSES:
            raise InvalidStateTransition(job.status, 'completed')
        if _has_payment(job, PAYMENT_ACTIVE_STATUSES):
            raise InvalidStateTransition(
                job.status, 'completed', message="This job already has an active payment."
            )

        worker = job.assigned_worker
        if worker is None:
            raise InvalidStateTransition(
                job.status, 'completed', message="This job no longer has an assigned worker."
            )
        Feedback.objects.update_or_create(
            job=job,
            defaults={'worker': worker, 'client': job.client, 'rating': rating, 'review': review or None},
        )
        worker.refresh_rating()

        payment = ledger.create_job_payment(job, payer=job.client, amount=job.agreed_amount())
        versioned_update(job)
    logger.info(f"Job {job.id} rated {rating} by user {actor.id}; payment {payment.transaction_id} pending")
    return payment


def cancel_job(job_id, actor, reason='', expected_version=None):
    with transaction.atomic():
        job = _client_job(job_id, actor)
        check_version(job, expected_version)
        _ensure_transition(job, 'cancelled')
        if _has_payment(job, OPEN_PAYMENT_STATUSES):
            raise InvalidStateTransition(
                job.status, 'cancelled', message="Resolve the open payment before cancelling this job."
            )

        now = timezone.now()
        job.applications.filter(status='pending').update(status='rejected', reviewed_at=now)
        versioned_update(job, status='cancelled', cancelled_at=now, cancellation_reason=reason or None)
        NotificationService.job_cancelled(job, actor)
    logger.info(f"Job {job.id} cancelled by user {actor.id}")
    return job


def mark_job_completed(job_id):
    """Move a job to completed once its payment is final.

    Runs inside the caller's transaction (mark paid or dispute release).
    """
    job = Job.objects.select_for_update().get(pk=job_id)
    if job.status == 'completed':
        return job
    _ensure_transition(job, 'completed')
    versioned_update(job, status='completed', completed_at=timezone.now())
    if job.assigned_worker_id:
        Worker.objects.filter(pk=job.assigned_worker_id).update(completed_jobs=F('completed_jobs') + 1)
    logger.info(f"Job {job.id} completed")
    return job
