from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.factories import make_client, make_worker, make_job, make_assigned_job
from apps.jobs.models import Job, JobApplication
from apps.payments.models import Payment


class JobCreateTests(APITestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()

    def test_client_posts_job(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post('/jobs/', {
            'title': 'Translate a brochure',
            'description': 'Amharic to English, 4 pages',
            'budget': '1500.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'posted')
        self.assertEqual(response.data['version'], 0)
        self.assertEqual(response.data['client']['id'], self.client_user.id)

    def test_draft_then_publish(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post('/jobs/', {
            'title': 'Draft job',
            'description': 'Not ready yet',
            'budget': '200.00',
            'save_as_draft': True,
        }, format='json')
        self.assertEqual(response.data['status'], 'draft')

        job_id = response.data['id']
        response = self.client.post(f'/jobs/{job_id}/publish/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'posted')
        self.assertEqual(response.data['version'], 1)

    def test_worker_cannot_post_job(self):
        self.client.force_authenticate(user=self.worker_user)
        response = self.client.post('/jobs/', {
            'title': 'Nope', 'description': 'Nope', 'budget': '10.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthenticated_request_is_rejected(self):
        response = self.client.get('/jobs/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class JobLifecycleApiTests(APITestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.job = make_job(self.client_user, budget='1000.00')

    def test_happy_path_to_pending_payment(self):
        self.client.force_authenticate(user=self.worker_user)
        response = self.client.post(f'/jobs/{self.job.id}/apply/', {
            'proposal': 'Two days', 'proposed_budget': '950.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        application_id = response.data['id']

        self.client.force_authenticate(user=self.client_user)
        response = self.client.post(
            f'/jobs/{self.job.id}/applications/{application_id}/accept/', {'version': 0}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'accepted')

        self.client.force_authenticate(user=self.worker_user)
        response = self.client.post(f'/jobs/{self.job.id}/start/', {}, format='json')
        self.assertEqual(response.data['status'], 'in_progress')
        response = self.client.post(f'/jobs/{self.job.id}/progress/', {'percentage': 60}, format='json')
        self.assertEqual(response.data['progress_percentage'], 60)
        response = self.client.post(f'/jobs/{self.job.id}/progress/', {'percentage': 100}, format='json')
        self.assertEqual(response.data['status'], 'awaiting_completion')
        self.assertEqual(len(response.data['progress_updates']), 2)

        self.client.force_authenticate(user=self.client_user)
        response = self.client.post(
            f'/jobs/{self.job.id}/complete/', {'rating': 5, 'review': 'Fast and clean'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payment = Payment.objects.get(pk=response.data['paymentId'])
        self.assertEqual(response.data['transactionId'], payment.transaction_id)
        self.assertEqual(payment.amount, Decimal('950.00'))
        self.assertEqual(payment.status, 'pending')

        response = self.client.get(f'/jobs/{self.job.id}/')
        self.assertEqual(response.data['status'], 'awaiting_completion')
        self.assertEqual(response.data['feedback']['rating'], 5)

    def test_complete_from_in_progress_is_an_invalid_transition(self):
        job = make_assigned_job(self.client_user, self.worker_user, title='Still working')
        self.client.force_authenticate(user=self.client_user)

        response = self.client.post(f'/jobs/{job.id}/complete/', {'rating': 5}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_state_transition')
        self.assertEqual(response.data['current'], 'in_progress')
        self.assertFalse(Payment.objects.exists())

    def test_unknown_fields_are_rejected(self):
        job = make_assigned_job(self.client_user, self.worker_user, status='submitted', title='Delivered')
        self.client.force_authenticate(user=self.client_user)

        response = self.client.post(f'/jobs/{job.id}/complete/', {'rating': 5, 'tip': '100'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tip', response.data)

    def test_stale_if_match_returns_conflict(self):
        job = make_assigned_job(self.client_user, self.worker_user, status='submitted', title='Delivered')
        self.client.force_authenticate(user=self.client_user)

        response = self.client.post(
            f'/jobs/{job.id}/revision/', {'reason': 'Colors are off'}, format='json', HTTP_IF_MATCH='7'
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'concurrent_modification')
        job.refresh_from_db()
        self.assertEqual(job.status, 'submitted')

    def test_matching_version_is_accepted(self):
        job = make_assigned_job(self.client_user, self.worker_user, status='submitted', title='Delivered')
        self.client.force_authenticate(user=self.client_user)

        response = self.client.post(
            f'/jobs/{job.id}/revision/', {'reason': 'Colors are off', 'version': job.version}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'revision_requested')
        self.assertEqual(response.data['version'], job.version + 1)

    def test_progress_cannot_go_backwards(self):
        job = make_assigned_job(self.client_user, self.worker_user, title='Half way', progress_percentage=50)
        self.client.force_authenticate(user=self.worker_user)

        response = self.client.post(f'/jobs/{job.id}/progress/', {'percentage': 20}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_progress')

    def test_other_client_gets_not_found(self):
        stranger = make_client('stranger')
        job = make_assigned_job(self.client_user, self.worker_user, status='submitted', title='Private')
        self.client.force_authenticate(user=stranger)

        response = self.client.post(f'/jobs/{job.id}/complete/', {'rating': 5}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Job not found"})

    def test_cancel_job(self):
        self.client.force_authenticate(user=self.client_user)
        response = self.client.post(f'/jobs/{self.job.id}/cancel/', {'reason': 'Hired in house'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')

    def test_open_jobs_listing(self):
        make_job(self.client_user, status='draft', title='Hidden draft')
        self.client.force_authenticate(user=self.worker_user)

        response = self.client.get('/jobs/', {'open': 'true'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([job['id'] for job in response.data], [self.job.id])

    def test_withdraw_application(self):
        self.client.force_authenticate(user=self.worker_user)
        self.client.post(f'/jobs/{self.job.id}/apply/', {}, format='json')

        response = self.client.delete(f'/jobs/{self.job.id}/apply/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(JobApplication.objects.get(job=self.job).status, 'withdrawn')
        self.assertEqual(Job.objects.get(pk=self.job.pk).status, 'posted')
