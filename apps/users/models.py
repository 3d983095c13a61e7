from decimal import Decimal

from django.db import models
from django.contrib.auth.models import AbstractUser
from django.db.models import Avg, Count


class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)
    is_verified = models.BooleanField(default=False)

    @property
    def is_client(self):
        return hasattr(self, 'client')

    @property
    def is_worker(self):
        return hasattr(self, 'worker')

    @property
    def role(self):
        if self.is_superuser:
            return 'super_admin'
        if self.is_staff:
            return 'admin'
        if self.is_client:
            return 'client'
        if self.is_worker:
            return 'worker'
        return None

    @staticmethod
    def get_by_identifier(identifier):
        return User.objects.filter(
            models.Q(email__iexact=identifier) | models.Q(phone_number=identifier) | models.Q(username__iexact=identifier)
        ).first()

    def get_rating_stats(self):
        """Get rating statistics from client feedback on the worker's jobs."""
        stats = {
            'average_rating': 0.0,
            'total_ratings': 0,
            'rating_breakdown': {
                '5_star': 0,
                '4_star': 0,
                '3_star': 0,
                '2_star': 0,
                '1_star': 0
            }
        }
        if not self.is_worker:
            return stats

        all_ratings = list(self.worker.feedback.values_list('rating', flat=True))
        if all_ratings:
            stats['total_ratings'] = len(all_ratings)
            stats['average_rating'] = round(sum(all_ratings) / len(all_ratings), 1)
            for rating in all_ratings:
                stats['rating_breakdown'][f'{rating}_star'] += 1
            for key in stats['rating_breakdown']:
                stats['rating_breakdown'][key] = round(
                    (stats['rating_breakdown'][key] / stats['total_ratings']) * 100, 1
                )
        return stats


class Client(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='client')
    company_name = models.CharField(max_length=200, blank=True, null=True)
    location = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Client: {self.user.username}"


class Worker(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='worker')
    location = models.CharField(max_length=100, blank=True, null=True)
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_reviews = models.PositiveIntegerField(default=0)
    completed_jobs = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"Worker: {self.user.username}"

    def refresh_rating(self):
        """Recompute the running average from every feedback the worker received."""
        aggregate = self.feedback.aggregate(average=Avg('rating'), total=Count('id'))
        self.rating = Decimal(str(round(aggregate['average'] or 0, 2)))
        self.total_reviews = aggregate['total']
        self.save(update_fields=['rating', 'total_reviews'])
