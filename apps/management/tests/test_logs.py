from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.factories import make_client, make_worker, make_admin, make_assigned_job, make_payment
from apps.disputes.resolution import resolve_dispute
from apps.payments import ledger


class ManagementLogApiTests(APITestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.staff = make_admin('staff')
        self.super_admin = make_admin('root', superuser=True)
        job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.paid = make_payment(job)
        ledger.mark_paid(self.paid.id, self.staff)
        other_job = make_assigned_job(self.client_user, self.worker_user, status='submitted', title='Disputed')
        self.disputed = make_payment(other_job)
        resolve_dispute(self.disputed.id, 'refund', 'Never delivered', self.super_admin)

    def test_superuser_reads_audit_trail(self):
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.get('/management/logs/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        actions = {entry['action'] for entry in response.data}
        self.assertEqual(actions, {'mark_paid', 'dispute_refund'})

    def test_filter_by_action_and_payment(self):
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.get('/management/logs/', {'action': 'dispute_refund'})
        self.assertEqual(len(response.data), 1)
        self.assertIn('Never delivered', response.data[0]['details'])

        response = self.client.get('/management/logs/', {'payment': self.paid.id})
        self.assertEqual([entry['action'] for entry in response.data], ['mark_paid'])

    def test_staff_cannot_read_audit_trail(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.get('/management/logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
