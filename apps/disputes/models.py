from django.db import models
from django.conf import settings
from django.utils import timezone
from core.constants import DISPUTE_STATUS_CHOICES, DISPUTE_TYPE_CHOICES, DISPUTE_PRIORITY_CHOICES
from apps.jobs.models import Job
from apps.payments.models import Payment

ACTIVE_DISPUTE_STATUSES = ('open', 'investigating')


class Dispute(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='disputes')
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='disputes')
    raised_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='raised_disputes')
    against = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='disputes_against')
    dispute_type = models.CharField(max_length=20, choices=DISPUTE_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    description = models.TextField()
    priority = models.CharField(max_length=10, choices=DISPUTE_PRIORITY_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=DISPUTE_STATUS_CHOICES, default='open')
    resolution = models.TextField(blank=True, null=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_disputes'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Dispute #{self.id} - {self.job.title}"

    @property
    def is_active(self):
        return self.status in ACTIVE_DISPUTE_STATUSES

    def mark_as_investigating(self):
        """Mark dispute as under investigation."""
        if self.status == 'open':
            self.status = 'investigating'
            self.save(update_fields=['status', 'updated_at'])
            return True
        return False

    def mark_as_resolved(self, admin_user, resolution):
        """Mark dispute as resolved with resolution message."""
        if self.is_active:
            self.status = 'resolved'
            self.resolution = resolution
            self.resolved_by = admin_user
            self.resolved_at = timezone.now()
            self.save(update_fields=['status', 'resolution', 'resolved_by', 'resolved_at', 'updated_at'])
            return True
        return False
