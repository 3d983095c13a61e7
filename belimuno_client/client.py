import logging
import os

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .cache import EntityCache
from .exceptions import TransportError, error_from_response

logger = logging.getLogger(__name__)

RETRY_STATUSES = (502, 503, 504)


def build_retry(total=3, backoff_factor=0.5):
    """Exponential backoff on connection errors and gateway failures.

    Status retries only apply to idempotent methods; 4xx responses are
    returned as-is so domain errors reach the caller on the first attempt.
    """
    return Retry(
        total=total,
        connect=total,
        read=total,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=Retry.DEFAULT_ALLOWED_METHODS,
        raise_on_status=False,
        respect_retry_after_header=True,
    )


class BelimunoClient:
    """Thin client for the Belimuno API used by dashboards and scripts."""

    def __init__(self, base_url=None, token=None, timeout=10.0, retries=3, backoff_factor=0.5,
                 cache_ttl=30.0, session=None):
        self.base_url = (base_url or os.getenv('BELIMUNO_API_URL') or 'http://localhost:8000').rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        adapter = HTTPAdapter(max_retries=build_retry(retries, backoff_factor))
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)
        if token:
            self.set_token(token)
        self.cache = EntityCache(ttl=cache_ttl)

    def set_token(self, token):
        self.session.headers['Authorization'] = f'Token {token}'

    def _request(self, method, path, version=None, **kwargs):
        url = f"{self.base_url}{path}"
        if version is not None:
            headers = dict(kwargs.pop('headers', None) or {})
            headers['If-Match'] = str(version)
            kwargs['headers'] = headers
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {str(e)}")
            raise TransportError(str(e)) from e

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.warning(f"{method} {url} -> {response.status_code} {error.code}: {error.message}")
            raise error
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _invalidate_payment(self, payment):
        self.cache.invalidate('payment', payment.get('id'))
        self.cache.invalidate('job', payment.get('job'))

    # Auth

    def login(self, identifier, password):
        data = self._request('POST', '/users/auth/login/', json={'identifier': identifier, 'password': password})
        self.set_token(data['token'])
        self.cache.clear()
        return data['user']

    # Jobs

    def get_job(self, job_id, refresh=False):
        if refresh:
            self.cache.invalidate('job', job_id)
        return self.cache.get_or_fetch('job', job_id, lambda: self._request('GET', f'/jobs/{job_id}/'))

    def list_jobs(self, status=None, open_only=False):
        params = {}
        if status:
            params['status'] = status
        if open_only:
            params['open'] = 'true'
        return self._request('GET', '/jobs/', params=params)

    def _job_action(self, job_id, action, payload=None, version=None):
        try:
            return self._request('POST', f'/jobs/{job_id}/{action}/', json=payload or {}, version=version)
        finally:
            self.cache.invalidate('job', job_id)

    def apply(self, job_id, proposal='', proposed_budget=None):
        payload = {'proposal': proposal}
        if proposed_budget is not None:
            payload['proposed_budget'] = str(proposed_budget)
        return self._job_action(job_id, 'apply', payload)

    def accept_application(self, job_id, application_id, version=None):
        return self._job_action(job_id, f'applications/{application_id}/accept', version=version)

    def start_work(self, job_id, version=None):
        return self._job_action(job_id, 'start', version=version)

    def update_progress(self, job_id, percentage, message='', version=None):
        return self._job_action(job_id, 'progress', {'percentage': percentage, 'message': message}, version=version)

    def submit_work(self, job_id, message='', version=None):
        return self._job_action(job_id, 'submit', {'message': message}, version=version)

    def request_revision(self, job_id, reason, version=None):
        return self._job_action(job_id, 'revision', {'reason': reason}, version=version)

    def complete_with_rating(self, job_id, rating, review='', version=None):
        """Returns ``{"paymentId", "transactionId"}`` of the pending payment."""
        return self._job_action(job_id, 'complete', {'rating': rating, 'review': review}, version=version)

    def cancel_job(self, job_id, reason='', version=None):
        return self._job_action(job_id, 'cancel', {'reason': reason}, version=version)

    # Payments

    def get_payment(self, payment_id, refresh=False):
        if refresh:
            self.cache.invalidate('payment', payment_id)
        return self.cache.get_or_fetch(
            'payment', payment_id, lambda: self._request('GET', f'/payments/{payment_id}/')
        )

    def list_payments(self, status=None, payment_type=None, page=1, limit=None):
        params = {'page': page}
        if status:
            params['status'] = status
        if payment_type:
            params['type'] = payment_type
        if limit:
            params['limit'] = limit
        return self._request('GET', '/payments/', params=params)

    def my_payments(self):
        return self._request('GET', '/payments/mine/')

    def _payment_action(self, method, payment_id, path, payload=None, version=None):
        try:
            payment = self._request(method, f'/payments/{payment_id}/{path}', json=payload or {}, version=version)
        except Exception:
            cached = self.cache.get('payment', payment_id)
            self.cache.invalidate('payment', payment_id)
            if cached:
                self.cache.invalidate('job', cached.get('job'))
            raise
        self._invalidate_payment(payment)
        return payment

    def mark_paid(self, payment_id, version=None):
        return self._payment_action('POST', payment_id, 'mark-paid', version=version)

    def resolve_dispute(self, payment_id, action, note, amount=None, version=None):
        payload = {'action': action, 'note': note}
        if amount is not None:
            payload['amount'] = str(amount)
        return self._payment_action('POST', payment_id, 'dispute', payload, version=version)

    def record_breakdown(self, payment_id, gross_amount, platform_fee, processing_fee, tax, net_amount, version=None):
        payload = {
            'gross_amount': str(gross_amount),
            'platform_fee': str(platform_fee),
            'processing_fee': str(processing_fee),
            'tax': str(tax),
            'net_amount': str(net_amount),
        }
        return self._payment_action('PUT', payment_id, 'breakdown/', payload, version=version)

    def cancel_payment(self, payment_id, reason='', version=None):
        return self._payment_action('POST', payment_id, 'cancel/', {'reason': reason}, version=version)
