import json
from unittest import TestCase
from unittest.mock import MagicMock

import requests

from belimuno_client import (
    BelimunoClient, EntityCache, InvalidStateTransition, ConcurrentModification, InvalidPartialAmount,
    ValidationFailed, NotFound, ServerError, TransportError,
)


def fake_response(status_code=200, body=None, reason='OK'):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.content = json.dumps(body).encode() if body is not None else b''
    response.json.return_value = body
    return response


def fake_session(*responses):
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return session


class EntityCacheTests(TestCase):

    def setUp(self):
        self.now = 100.0
        self.cache = EntityCache(ttl=10, clock=lambda: self.now)

    def test_entries_expire(self):
        self.cache.set('job', 1, {'id': 1})
        self.assertEqual(self.cache.get('job', '1'), {'id': 1})
        self.now += 10
        self.assertIsNone(self.cache.get('job', 1))

    def test_kinds_are_separate(self):
        self.cache.set('job', 1, {'kind': 'job'})
        self.cache.set('payment', 1, {'kind': 'payment'})
        self.cache.invalidate('job', 1)
        self.assertIsNone(self.cache.get('job', 1))
        self.assertEqual(self.cache.get('payment', 1), {'kind': 'payment'})

    def test_get_or_fetch_reads_through_once(self):
        fetch = MagicMock(return_value={'id': 3})
        self.cache.get_or_fetch('payment', 3, fetch)
        self.cache.get_or_fetch('payment', 3, fetch)
        fetch.assert_called_once()

    def test_len_counts_entries(self):
        self.cache.set('job', 1, {})
        self.cache.set('payment', 1, {})
        self.assertEqual(len(self.cache), 2)
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)


class BelimunoClientTests(TestCase):

    def test_retry_adapter_is_mounted(self):
        client = BelimunoClient(base_url='http://api.test/', token='abc')
        retry = client.session.get_adapter('http://api.test/jobs/').max_retries

        self.assertEqual(retry.total, 3)
        self.assertEqual(set(retry.status_forcelist), {502, 503, 504})
        self.assertNotIn('POST', retry.allowed_methods)
        self.assertEqual(client.session.headers['Authorization'], 'Token abc')
        self.assertEqual(client.base_url, 'http://api.test')

    def test_get_job_is_cached(self):
        session = fake_session(fake_response(body={'id': 7, 'status': 'submitted', 'version': 2}))
        client = BelimunoClient(base_url='http://api.test', session=session)

        first = client.get_job(7)
        second = client.get_job(7)

        self.assertEqual(first, second)
        session.request.assert_called_once_with('GET', 'http://api.test/jobs/7/', timeout=10.0)

    def test_mutation_invalidates_job(self):
        session = fake_session(
            fake_response(body={'id': 7, 'status': 'submitted', 'version': 2}),
            fake_response(200, {'paymentId': 11, 'transactionId': 'MAN-1-001'}),
            fake_response(body={'id': 7, 'status': 'submitted', 'version': 3}),
        )
        client = BelimunoClient(base_url='http://api.test', session=session)

        client.get_job(7)
        result = client.complete_with_rating(7, 5, review='Great work', version=2)
        job = client.get_job(7)

        self.assertEqual(result['paymentId'], 11)
        self.assertEqual(job['version'], 3)
        method, url = session.request.call_args_list[1][0]
        kwargs = session.request.call_args_list[1][1]
        self.assertEqual((method, url), ('POST', 'http://api.test/jobs/7/complete/'))
        self.assertEqual(kwargs['json'], {'rating': 5, 'review': 'Great work'})
        self.assertEqual(kwargs['headers'], {'If-Match': '2'})

    def test_mark_paid_invalidates_payment_and_job(self):
        session = fake_session(
            fake_response(body={'id': 4, 'job': 9}),
            fake_response(body={'id': 9, 'status': 'submitted'}),
            fake_response(body={'id': 4, 'job': 9, 'status': 'completed'}),
        )
        client = BelimunoClient(base_url='http://api.test', session=session)
        client.get_payment(4)
        client.get_job(9)

        client.mark_paid(4)

        self.assertIsNone(client.cache.get('payment', 4))
        self.assertIsNone(client.cache.get('job', 9))
        self.assertEqual(session.request.call_args_list[2][0][1], 'http://api.test/payments/4/mark-paid')

    def test_domain_errors_map_to_classes(self):
        session = fake_session(fake_response(400, {
            'error': "Cannot move job from 'in_progress' to 'completed'.",
            'code': 'invalid_state_transition',
            'current': 'in_progress',
            'attempted': 'completed',
        }, reason='Bad Request'))
        client = BelimunoClient(base_url='http://api.test', session=session)

        with self.assertRaises(InvalidStateTransition) as context:
            client.complete_with_rating(7, 5)

        error = context.exception
        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.details['current'], 'in_progress')
        self.assertFalse(error.retryable)

    def test_partial_amount_error(self):
        session = fake_session(fake_response(400, {'error': 'Out of range', 'code': 'invalid_partial_amount'}))
        client = BelimunoClient(base_url='http://api.test', session=session)

        with self.assertRaises(InvalidPartialAmount):
            client.resolve_dispute(4, 'partial', 'Split', amount='1000.00')
        self.assertEqual(session.request.call_args[1]['json'], {'action': 'partial', 'note': 'Split', 'amount': '1000.00'})

    def test_conflict_and_plain_status_errors(self):
        session = fake_session(
            fake_response(409, {'error': 'Stale', 'code': 'concurrent_modification'}),
            fake_response(400, {'rating': ['Ensure this value is less than or equal to 5.']}, reason='Bad Request'),
            fake_response(404, {'error': 'Payment not found'}, reason='Not Found'),
            fake_response(503, None, reason='Service Unavailable'),
        )
        client = BelimunoClient(base_url='http://api.test', session=session)

        with self.assertRaises(ConcurrentModification):
            client.mark_paid(4, version=1)
        with self.assertRaises(ValidationFailed) as context:
            client.complete_with_rating(7, 9)
        self.assertIn('rating', context.exception.details)
        with self.assertRaises(NotFound):
            client.get_payment(4)
        with self.assertRaises(ServerError) as context:
            client.list_payments(status='pending')
        self.assertTrue(context.exception.retryable)

    def test_connection_failure_becomes_transport_error(self):
        session = fake_session(requests.exceptions.ConnectionError('refused'))
        client = BelimunoClient(base_url='http://api.test', session=session)

        with self.assertRaises(TransportError) as context:
            client.get_job(1)
        self.assertTrue(context.exception.retryable)
        self.assertIsNone(client.cache.get('job', 1))
