"""Payment ledger.

Normal flow::

    pending    -> processing | completed | cancelled
    processing -> completed | failed

Completed payments only move again through a dispute resolution
(``apps.disputes.resolution``). A payment reaching completed completes its
job in the same transaction.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.concurrency import check_version, versioned_update
from core.exceptions import InvalidPaymentState, BreakdownMismatch
from core.money import quantize, net_of, breakdown_matches, percent_of, to_minor
from apps.jobs.lifecycle import mark_job_completed
from apps.management.models import ManagementLog
from apps.notifications.service import NotificationService
from .models import Payment, generate_transaction_id

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def _locked_payment(payment_id):
    return Payment.objects.select_for_update().get(pk=payment_id)


def _ensure_transition(payment, new_status):
    if not payment.can_transition_to(new_status):
        raise InvalidPaymentState(
            f"Cannot move payment from '{payment.status}' to '{new_status}'.",
            current=payment.status,
            attempted=new_status,
        )


def default_breakdown(gross):
    gross = quantize(gross)
    platform_fee = percent_of(gross, settings.PLATFORM_FEE_PERCENT)
    return {
        'gross_amount': gross,
        'platform_fee': platform_fee,
        'processing_fee': ZERO,
        'tax': ZERO,
        'net_amount': net_of(gross, platform_fee, ZERO, ZERO),
    }


def create_job_payment(job, payer, amount):
    """Pending manual check for a completed-with-rating job. Caller holds the job lock."""
    payment = Payment.objects.create(
        transaction_id=generate_transaction_id('MAN'),
        job=job,
        payer=payer,
        recipient=job.assigned_worker.user,
        amount=quantize(amount),
        currency=job.currency,
        payment_method='manual_check',
        payment_type='job_payment',
        status='pending',
        description="Manual check to worker after job completion",
        **default_breakdown(amount),
    )
    NotificationService.payment_created(payment)
    logger.info(f"Payment {payment.transaction_id} created for job {job.id}: {payment.currency} {payment.amount}")
    return payment


def create_adjustment(recipient, amount, actor, description=''):
    amount = quantize(amount)
    if to_minor(amount) <= 0:
        raise ValidationError({"amount": ["Adjustment amount must be positive."]})
    with transaction.atomic():
        payment = Payment.objects.create(
            transaction_id=generate_transaction_id('ADJ'),
            payer=actor,
            recipient=recipient,
            amount=amount,
            currency=settings.DEFAULT_CURRENCY,
            payment_method='admin_adjustment',
            payment_type='adjustment',
            status='pending',
            description=description,
        )
        ManagementLog.objects.create(
            admin=actor,
            action='create_adjustment',
            details=f"Created adjustment {payment.transaction_id} of {payment.currency} {amount} for user {recipient.username}",
            payment=payment,
        )
    logger.info(f"Adjustment {payment.transaction_id} created by user {actor.id}")
    return payment


def mark_paid(payment_id, actor, expected_version=None):
    with transaction.atomic():
        payment = _locked_payment(payment_id)
        check_version(payment, expected_version)
        if payment.payment_method != 'manual_check':
            raise InvalidPaymentState(
                "Only manual check payments can be marked as paid.",
                payment_method=payment.payment_method,
            )
        _ensure_transition(payment, 'completed')

        now = timezone.now()
        versioned_update(
            payment,
            status='completed',
            processed_at=payment.processed_at or now,
            completed_at=now,
        )
        if payment.job_id:
            mark_job_completed(payment.job_id)

        ManagementLog.objects.create(
            admin=actor,
            action='mark_paid',
            details=f"Marked {payment.transaction_id} paid ({payment.currency} {payment.amount})",
            payment=payment,
        )
        NotificationService.payment_completed(payment)
    logger.info(f"Payment {payment.transaction_id} marked paid by user {actor.id}")
    return payment


def submit_proof(payment_id, payer, proof_file, note=None, expected_version=None):
    """Payer uploads the check image; the payment moves to processing."""
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment_id, payer=payer)
        check_version(payment, expected_version)
        _ensure_transition(payment, 'processing')

        now = timezone.now()
        payment.proof.save(proof_file.name, proof_file, save=False)
        versioned_update(
            payment,
            status='processing',
            proof=payment.proof.name,
            proof_note=note or None,
            proof_uploaded_at=now,
            processed_at=now,
        )
        NotificationService.payment_status_changed(payment)
    logger.info(f"Proof uploaded for payment {payment.transaction_id}")
    return payment


def cancel_payment(payment_id, actor, reason, expected_version=None):
    with transaction.atomic():
        payment = _locked_payment(payment_id)
        check_version(payment, expected_version)
        _ensure_transition(payment, 'cancelled')

        notes = f"{payment.notes}\n{reason}".strip() if reason else payment.notes
        versioned_update(payment, status='cancelled', notes=notes)
        ManagementLog.objects.create(
            admin=actor,
            action='cancel_payment',
            details=f"Cancelled {payment.transaction_id}: {reason or 'no reason given'}",
            payment=payment,
        )
        NotificationService.payment_status_changed(payment)
    logger.info(f"Payment {payment.transaction_id} cancelled by user {actor.id}")
    return payment


def fail_payment(payment_id, actor, error_code, error_message, expected_version=None):
    with transaction.atomic():
        payment = _locked_payment(payment_id)
        check_version(payment, expected_version)
        _ensure_transition(payment, 'failed')

        versioned_update(payment, status='failed', error_code=error_code, error_message=error_message)
        ManagementLog.objects.create(
            admin=actor,
            action='fail_payment',
            details=f"Marked {payment.transaction_id} failed [{error_code}]: {error_message}",
            payment=payment,
        )
        NotificationService.payment_status_changed(payment)
    logger.warning(f"Payment {payment.transaction_id} failed: {error_code}")
    return payment


def record_breakdown(payment_id, actor, gross_amount, platform_fee, processing_fee, tax, net_amount,
                     expected_version=None):
    values = {
        'gross_amount': quantize(gross_amount),
        'platform_fee': quantize(platform_fee),
        'processing_fee': quantize(processing_fee),
        'tax': quantize(tax),
        'net_amount': quantize(net_amount),
    }
    if to_minor(values['gross_amount']) <= 0:
        raise BreakdownMismatch("Gross amount must be positive.", **_as_strings(values))
    for field in ('platform_fee', 'processing_fee', 'tax'):
        if values[field] < 0:
            raise BreakdownMismatch(f"{field.replace('_', ' ').capitalize()} cannot be negative.", **_as_strings(values))
    if not breakdown_matches(
        values['gross_amount'], values['platform_fee'], values['processing_fee'], values['tax'], values['net_amount']
    ):
        expected = net_of(values['gross_amount'], values['platform_fee'], values['processing_fee'], values['tax'])
        raise BreakdownMismatch(expected_net=str(expected), **_as_strings(values))

    with transaction.atomic():
        payment = _locked_payment(payment_id)
        check_version(payment, expected_version)
        if payment.is_terminal or payment.status == 'completed':
            raise InvalidPaymentState(
                f"Cannot change the breakdown of a {payment.status} payment.", current=payment.status
            )
        if to_minor(values['gross_amount']) != to_minor(payment.amount):
            raise BreakdownMismatch(
                f"Gross amount must equal the payment amount {payment.amount}.",
                amount=str(payment.amount), **_as_strings(values)
            )
        versioned_update(payment, **values)
        ManagementLog.objects.create(
            admin=actor,
            action='record_breakdown',
            details=(
                f"Breakdown for {payment.transaction_id}: gross {values['gross_amount']}, "
                f"platform fee {values['platform_fee']}, processing fee {values['processing_fee']}, "
                f"tax {values['tax']}, net {values['net_amount']}"
            ),
            payment=payment,
        )
    logger.info(f"Breakdown recorded for payment {payment.transaction_id}")
    return payment


def _as_strings(values):
    return {key: str(value) for key, value in values.items()}
