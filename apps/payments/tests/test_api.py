from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.factories import make_client, make_worker, make_admin, make_assigned_job, make_payment
from apps.payments import ledger
from apps.payments.models import Payment


class PaymentsConsoleTests(APITestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job)

    def test_mark_paid_without_trailing_slash(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/payments/{self.payment.id}/mark-paid', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['version'], 1)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, 'completed')

    def test_mark_paid_with_stale_version_conflicts(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/payments/{self.payment.id}/mark-paid/', {'version': 5}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'concurrent_modification')
        self.assertEqual(response.data['current_version'], 0)

    def test_mark_paid_adjustment_is_invalid_payment_state(self):
        adjustment = ledger.create_adjustment(self.worker_user, '40.00', self.admin)
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/payments/{adjustment.id}/mark-paid', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_payment_state')

    def test_client_cannot_mark_paid(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post(f'/payments/{self.payment.id}/mark-paid', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_payment_is_not_found(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/payments/99999/mark-paid', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Payment not found"})

    def test_list_is_paginated_and_filtered(self):
        completed = make_payment(self.job, status='completed')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get('/payments/', {'status': 'completed'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], completed.id)

        response = self.client.get('/payments/', {'limit': 1})
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(len(response.data['results']), 1)
        self.assertIsNotNone(response.data['next'])

    def test_non_admin_cannot_list_payments(self):
        self.client.force_authenticate(user=self.worker_user)
        response = self.client.get('/payments/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_breakdown_mismatch_reports_expected_net(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.put(f'/payments/{self.payment.id}/breakdown/', {
            'gross_amount': '1000.00',
            'platform_fee': '100.00',
            'processing_fee': '0.00',
            'tax': '0.00',
            'net_amount': '1000.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'breakdown_mismatch')
        self.assertEqual(response.data['expected_net'], '900.00')

    def test_breakdown_is_returned_on_the_payment(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.put(f'/payments/{self.payment.id}/breakdown/', {
            'gross_amount': '1000.00',
            'platform_fee': '100.00',
            'processing_fee': '0.00',
            'tax': '0.00',
            'net_amount': '900.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['breakdown']['net_amount'], '900.00')

    def test_adjustment_create(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/payments/adjustments/', {
            'recipient_id': self.worker_user.id, 'amount': '75.50', 'description': 'Travel refund'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['transaction_id'].startswith('ADJ-'))
        self.assertEqual(Payment.objects.get(pk=response.data['id']).amount, Decimal('75.50'))

    def test_fail_requires_processing(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(f'/payments/{self.payment.id}/fail/', {
            'error_code': 'BOUNCED', 'error_message': 'Returned by bank'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_payment_state')

    def test_cancel_pending_payment(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(f'/payments/{self.payment.id}/cancel/', {'reason': 'Duplicate'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')


class MyPaymentsTests(APITestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job)

    def test_parties_see_their_payments(self):
        for user in (self.client_user, self.worker_user):
            self.client.force_authenticate(user=user)
            response = self.client.get('/payments/mine/')
            self.assertEqual([payment['id'] for payment in response.data], [self.payment.id])

    def test_detail_hidden_from_strangers(self):
        stranger = make_client('stranger')
        self.client.force_authenticate(user=stranger)
        response = self.client.get(f'/payments/{self.payment.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_for_recipient(self):
        self.client.force_authenticate(user=self.worker_user)
        response = self.client.get(f'/payments/{self.payment.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job_title'], self.job.title)
        self.assertIsNone(response.data['admin_resolution'])
