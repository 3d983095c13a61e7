from decimal import Decimal

from django.db import models
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from core.constants import JOB_STATUS_CHOICES, JOB_APPLICATION_STATUS_CHOICES, JOB_TRANSITIONS
from apps.users.models import Worker


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Job(models.Model):
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='jobs')
    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True)
    budget = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    currency = models.CharField(max_length=3, default='ETB')
    deadline = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, default='posted')
    progress_percentage = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    assigned_worker = models.ForeignKey(
        Worker, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_jobs'
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, null=True)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.client.username}"

    def can_transition_to(self, new_status):
        return new_status in JOB_TRANSITIONS.get(self.status, ())

    @property
    def accepted_application(self):
        return self.applications.filter(status='accepted').first()

    def agreed_amount(self):
        """Accepted proposal when the worker bid one, otherwise the posted budget."""
        application = self.accepted_application
        if application and application.proposed_budget:
            return application.proposed_budget
        return self.budget


class JobApplication(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='applications')
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name='applications')
    proposal = models.TextField(blank=True, default='')
    proposed_budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=JOB_APPLICATION_STATUS_CHOICES, default='pending')
    applied_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True, null=True)

    class Meta:
        unique_together = ('job', 'worker')
        ordering = ['applied_at']

    def __str__(self):
        return f"{self.worker.user.username} applied to {self.job.title}"


class ProgressUpdate(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='progress_updates')
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    message = models.TextField(blank=True, default='')
    percentage = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(100)])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.job.title}: {self.percentage}%"


class RevisionRequest(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='revisions')
    requested_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='requested_revisions')
    reason = models.TextField()
    requested_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['requested_at', 'id']

    def __str__(self):
        return f"Revision for {self.job.title} requested by {self.requested_by.username}"


class Feedback(models.Model):
    job = models.OneToOneField(Job, on_delete=models.CASCADE, related_name='feedback')
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name='feedback')
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='feedback')
    rating = models.IntegerField(choices=[(i, i) for i in range(1, 6)])  # 1 to 5 stars
    review = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Feedback for {self.worker.user.username} on {self.job.title} ({self.rating}/5)"
