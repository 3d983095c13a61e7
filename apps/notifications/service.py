"""In-app notifications plus email/SMS delivery for lifecycle and payment events.

Every helper is fire-and-forget: it is scheduled with ``transaction.on_commit``
so nothing is sent for a rolled-back transition, and a delivery failure is
logged without reaching the caller.
"""
import logging

from django.db import transaction

from .models import Notification
from .utils import send_notification

logger = logging.getLogger(__name__)


def _display_name(user):
    return user.first_name or user.username


class NotificationService:

    @staticmethod
    def notify(recipient, title, message, notification_type='general', sender=None,
               job=None, payment=None, sms_message=None):
        try:
            notification = Notification.objects.create(
                recipient=recipient,
                sender=sender,
                title=title,
                message=message,
                notification_type=notification_type,
                related_job=job,
                related_payment=payment,
            )
            email_message = (
                f"Dear {_display_name(recipient)},\n\n"
                f"{message}\n\n"
                f"Best regards,\nBelimuno Team"
            )
            send_notification(recipient, title, email_message, sms_message or message)
            return notification
        except Exception as e:
            logger.error(f"Failed to notify user {recipient.pk} ({notification_type}): {str(e)}")
            return None

    @classmethod
    def notify_on_commit(cls, **kwargs):
        transaction.on_commit(lambda: cls.notify(**kwargs))

    # Job lifecycle

    @classmethod
    def application_received(cls, application):
        job = application.job
        cls.notify_on_commit(
            recipient=job.client,
            sender=application.worker.user,
            title=f"New application for {job.title}",
            message=f"{_display_name(application.worker.user)} applied to your job '{job.title}'.",
            notification_type='job_application',
            job=job,
        )

    @classmethod
    def job_assigned(cls, job, application):
        worker_user = application.worker.user
        cls.notify_on_commit(
            recipient=worker_user,
            sender=job.client,
            title=f"Application Accepted for {job.title}",
            message=(
                f"Your application for job '{job.title}' has been accepted.\n"
                f"Contact the client at:\n"
                f"- Email: {job.client.email or 'Not provided'}\n"
                f"- Phone: {job.client.phone_number or 'Not provided'}"
            ),
            notification_type='job_assigned',
            job=job,
            sms_message=f"Your application for '{job.title}' was accepted.",
        )

    @classmethod
    def application_rejected(cls, application):
        job = application.job
        reason = f"\nReason: {application.review_notes}" if application.review_notes else ''
        cls.notify_on_commit(
            recipient=application.worker.user,
            sender=job.client,
            title=f"Application Rejected for {job.title}",
            message=f"Your application for job '{job.title}' has been rejected by the client.{reason}",
            notification_type='general',
            job=job,
        )

    @classmethod
    def assignment_declined(cls, job, worker):
        cls.notify_on_commit(
            recipient=job.client,
            sender=worker.user,
            title=f"Assignment Declined for {job.title}",
            message=f"{_display_name(worker.user)} declined '{job.title}'. The job is open for applications again.",
            notification_type='general',
            job=job,
        )

    @classmethod
    def work_submitted(cls, job):
        cls.notify_on_commit(
            recipient=job.client,
            sender=job.assigned_worker.user if job.assigned_worker else None,
            title=f"Work Delivered for {job.title}",
            message=f"The worker has delivered '{job.title}'. Review it, then request a revision or pay and rate.",
            notification_type='general',
            job=job,
        )

    @classmethod
    def revision_requested(cls, job, revision):
        cls.notify_on_commit(
            recipient=job.assigned_worker.user,
            sender=revision.requested_by,
            title=f"Revision Requested for {job.title}",
            message=f"The client requested a revision on '{job.title}'.\nReason: {revision.reason}",
            notification_type='revision_requested',
            job=job,
        )

    @classmethod
    def job_cancelled(cls, job, actor):
        recipients = [job.client]
        if job.assigned_worker:
            recipients.append(job.assigned_worker.user)
        for recipient in recipients:
            if recipient == actor:
                continue
            cls.notify_on_commit(
                recipient=recipient,
                sender=actor,
                title=f"Job Cancelled: {job.title}",
                message=f"'{job.title}' was cancelled. Reason: {job.cancellation_reason or 'Not provided'}",
                notification_type='job_cancelled',
                job=job,
            )

    # Payments

    @classmethod
    def payment_created(cls, payment):
        cls.notify_on_commit(
            recipient=payment.recipient,
            sender=payment.payer,
            title=f"Job Completed: {payment.job.title}",
            message=(
                f"The client marked '{payment.job.title}' as complete. "
                f"A manual check payment of {payment.currency} {payment.amount} is pending admin approval."
            ),
            notification_type='job_completed',
            job=payment.job,
            payment=payment,
        )

    @classmethod
    def payment_completed(cls, payment):
        cls.notify_on_commit(
            recipient=payment.recipient,
            title="Payment Approved",
            message=f"A manual check payment of {payment.currency} {payment.amount} has been approved.",
            notification_type='payment_received',
            job=payment.job,
            payment=payment,
        )

    @classmethod
    def payment_status_changed(cls, payment):
        cls.notify_on_commit(
            recipient=payment.payer,
            title=f"Payment {payment.transaction_id} is {payment.get_status_display()}",
            message=(
                f"Payment {payment.transaction_id} of {payment.currency} {payment.amount} "
                f"is now {payment.get_status_display().lower()}."
            ),
            notification_type='payment_processed',
            job=payment.job,
            payment=payment,
        )

    # Disputes

    @classmethod
    def dispute_raised(cls, dispute):
        cls.notify_on_commit(
            recipient=dispute.against,
            sender=dispute.raised_by,
            title=f"Dispute Raised: {dispute.title}",
            message=f"A {dispute.get_dispute_type_display().lower()} dispute was raised on '{dispute.job.title}'.",
            notification_type='dispute_raised',
            job=dispute.job,
            payment=dispute.payment,
        )

    @classmethod
    def dispute_resolved(cls, payment):
        message = (
            f"The dispute on payment {payment.transaction_id} was resolved: "
            f"{payment.get_resolution_action_display().lower()}.\n"
            f"Note: {payment.resolution_note}"
        )
        for recipient in (payment.payer, payment.recipient):
            cls.notify_on_commit(
                recipient=recipient,
                sender=payment.resolved_by,
                title="Dispute Resolved",
                message=message,
                notification_type='dispute_resolved',
                job=payment.job,
                payment=payment,
            )
