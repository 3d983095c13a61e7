"""Shared builders for the test suites of every app."""
import itertools
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.jobs.models import Job, JobApplication
from apps.payments.models import Payment
from apps.users.models import Client, Worker

User = get_user_model()

PASSWORD = 'Testpass123!'

_sequence = itertools.count(1)


def make_client(username='client', **extra):
    user = User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password=PASSWORD,
        first_name=extra.pop('first_name', username.capitalize()),
        **extra
    )
    Client.objects.create(user=user, company_name=f'{username} ltd')
    return user


def make_worker(username='worker', **extra):
    user = User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password=PASSWORD,
        **extra
    )
    Worker.objects.create(user=user, location='Addis Ababa')
    return user


def make_admin(username='admin', superuser=False):
    if superuser:
        return User.objects.create_superuser(username=username, email=f'{username}@example.com', password=PASSWORD)
    return User.objects.create_user(username=username, email=f'{username}@example.com', password=PASSWORD, is_staff=True)


def make_job(client_user, status='posted', budget='1000.00', **fields):
    return Job.objects.create(
        client=client_user,
        title=fields.pop('title', 'Build a landing page'),
        description=fields.pop('description', 'Single page with a contact form'),
        budget=Decimal(budget),
        status=status,
        **fields
    )


def make_assigned_job(client_user, worker_user, status='in_progress', budget='1000.00', proposed_budget=None, **fields):
    """Job with an accepted application from ``worker_user``, placed directly in ``status``."""
    job = make_job(client_user, status=status, budget=budget, assigned_worker=worker_user.worker, **fields)
    JobApplication.objects.create(
        job=job,
        worker=worker_user.worker,
        proposal='I can do this',
        proposed_budget=Decimal(proposed_budget) if proposed_budget else None,
        status='accepted',
        reviewed_at=timezone.now(),
    )
    return job


def make_payment(job, status='pending', amount=None, **fields):
    amount = Decimal(amount) if amount else job.budget
    return Payment.objects.create(
        transaction_id=f"{fields.pop('prefix', 'MAN')}-TEST-{next(_sequence):04d}",
        job=job,
        payer=job.client,
        recipient=job.assigned_worker.user,
        amount=amount,
        currency=job.currency,
        status=status,
        **fields
    )
