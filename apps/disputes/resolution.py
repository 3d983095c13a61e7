"""Admin override of the payment graph.

``refund`` -> refunded, ``release`` -> completed, ``partial`` -> partially_refunded.
The note is stored verbatim on the payment as its admin resolution.
"""
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.concurrency import check_version, versioned_update
from core.constants import DISPUTE_ACTION_STATUS
from core.exceptions import AlreadyResolved, InvalidPaymentState, InvalidPartialAmount
from core.money import quantize, to_minor
from apps.jobs import lifecycle
from apps.jobs.models import Job
from apps.management.models import ManagementLog
from apps.notifications.service import NotificationService
from apps.payments.models import Payment
from .models import Dispute, ACTIVE_DISPUTE_STATUSES

logger = logging.getLogger(__name__)


def resolve_dispute(payment_id, action, note, actor, amount=None, expected_version=None):
    if action not in DISPUTE_ACTION_STATUS:
        raise ValidationError({"action": [f"Unknown action '{action}'."]})
    if not note or not note.strip():
        raise ValidationError({"note": ["A resolution note is required."]})

    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment_id)
        check_version(payment, expected_version)

        target = DISPUTE_ACTION_STATUS[action]
        if payment.status == target:
            raise AlreadyResolved(f"Payment is already {target}.", current=payment.status)
        if payment.is_terminal:
            raise InvalidPaymentState(
                f"A {payment.status} payment cannot be changed.", current=payment.status, attempted=target
            )

        now = timezone.now()
        changes = {
            'status': target,
            'resolution_action': action,
            'resolution_note': note,
            'resolved_by': actor,
            'resolved_at': now,
        }
        if action == 'refund':
            changes['refunded_amount'] = payment.gross
        elif action == 'release':
            changes['processed_at'] = payment.processed_at or now
            changes['completed_at'] = now
        else:
            changes['refunded_amount'] = _partial_amount(amount, payment.gross)
        versioned_update(payment, **changes)

        if payment.job_id:
            _settle_job(payment, action, note, actor)

        disputes = Dispute.objects.filter(status__in=ACTIVE_DISPUTE_STATUSES).filter(
            Q(payment=payment) | Q(job_id=payment.job_id, payment__isnull=True, dispute_type='payment')
        )
        for dispute in disputes:
            dispute.mark_as_resolved(actor, note)

        ManagementLog.objects.create(
            admin=actor,
            action=f"dispute_{action}",
            details=f"Resolved dispute on {payment.transaction_id} with {action}: {note}",
            payment=payment,
        )
        NotificationService.dispute_resolved(payment)
    logger.info(f"Dispute on payment {payment.transaction_id} resolved with {action} by user {actor.id}")
    return payment


def _partial_amount(amount, gross):
    if amount in (None, ''):
        raise InvalidPartialAmount("A partial resolution needs an amount.", gross=str(gross))
    amount = quantize(amount)
    if not 0 < to_minor(amount) < to_minor(gross):
        raise InvalidPartialAmount(amount=str(amount), gross=str(gross))
    return amount


def _settle_job(payment, action, note, actor):
    job_status = Job.objects.filter(pk=payment.job_id).values_list('status', flat=True).get()
    if action == 'refund':
        if job_status not in ('completed', 'cancelled'):
            lifecycle.cancel_job(payment.job_id, actor, reason=f"Payment refunded: {note}")
    else:
        # release and partial both pay the worker
        lifecycle.mark_job_completed(payment.job_id)
