import random
import time

from django.db import models
from django.conf import settings
from core.constants import (
    PAYMENT_METHOD_CHOICES, PAYMENT_TYPE_CHOICES, PAYMENT_STATUS_CHOICES, PAYMENT_TRANSITIONS,
    PAYMENT_TERMINAL_STATUSES, DISPUTE_ACTION_CHOICES,
)
from apps.jobs.models import Job


def generate_transaction_id(prefix='MAN'):
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


class Payment(models.Model):
    transaction_id = models.CharField(max_length=64, unique=True)
    job = models.ForeignKey(Job, on_delete=models.PROTECT, null=True, blank=True, related_name='payments')
    payer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='payments_made')
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='payments_received')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='ETB')
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='manual_check')
    payment_type = models.CharField(max_length=30, choices=PAYMENT_TYPE_CHOICES, default='job_payment')
    status = models.CharField(max_length=30, choices=PAYMENT_STATUS_CHOICES, default='pending')

    # Breakdown: net = gross - platform_fee - processing_fee - tax
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    processing_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    net_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    description = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')
    error_code = models.CharField(max_length=50, blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)

    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    resolution_action = models.CharField(max_length=10, choices=DISPUTE_ACTION_CHOICES, null=True, blank=True)
    resolution_note = models.TextField(blank=True, null=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='resolved_payments'
    )
    resolved_at = models.DateTimeField(null=True, blank=True)

    proof = models.FileField(upload_to='payment_proofs/%Y/%m/', null=True, blank=True)
    proof_note = models.TextField(blank=True, null=True)
    proof_uploaded_at = models.DateTimeField(null=True, blank=True)

    initiated_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-initiated_at', '-id']

    def __str__(self):
        return f"Payment {self.transaction_id} ({self.status})"

    @property
    def has_breakdown(self):
        return self.gross_amount is not None and self.net_amount is not None

    @property
    def gross(self):
        """Amount a refund or partial resolution is measured against."""
        return self.gross_amount if self.gross_amount is not None else self.amount

    @property
    def is_terminal(self):
        return self.status in PAYMENT_TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        return new_status in PAYMENT_TRANSITIONS.get(self.status, ())
