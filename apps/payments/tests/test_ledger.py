import shutil
import tempfile
from decimal import Decimal
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.exceptions import ValidationError

from core.exceptions import InvalidPaymentState, BreakdownMismatch, ConcurrentModification, InvalidStateTransition
from core.concurrency import versioned_update
from core.tests.factories import make_client, make_worker, make_admin, make_assigned_job, make_payment
from apps.disputes.resolution import resolve_dispute
from apps.jobs import lifecycle
from apps.management.models import ManagementLog
from apps.notifications.models import Notification
from apps.payments import ledger
from apps.payments.models import Payment


class MarkPaidTests(TestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = lifecycle.complete_with_rating(self.job.id, self.client_user, 5)

    def test_mark_paid_completes_payment_and_job(self):
        ledger.mark_paid(self.payment.id, self.admin)

        self.payment.refresh_from_db()
        self.job.refresh_from_db()
        self.worker_user.worker.refresh_from_db()
        self.assertEqual(self.payment.status, 'completed')
        self.assertIsNotNone(self.payment.completed_at)
        self.assertEqual(self.job.status, 'completed')
        self.assertIsNotNone(self.job.completed_at)
        self.assertEqual(self.worker_user.worker.completed_jobs, 1)

        log = ManagementLog.objects.get(payment=self.payment)
        self.assertEqual(log.action, 'mark_paid')
        self.assertEqual(log.admin, self.admin)

    def test_recipient_is_notified_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            ledger.mark_paid(self.payment.id, self.admin)

        notification = Notification.objects.get(recipient=self.worker_user, notification_type='payment_received')
        self.assertEqual(
            notification.message, "A manual check payment of ETB 1000.00 has been approved."
        )
        self.assertEqual(notification.related_payment, self.payment)

    def test_mark_paid_twice_is_rejected(self):
        ledger.mark_paid(self.payment.id, self.admin)
        with self.assertRaises(InvalidPaymentState):
            ledger.mark_paid(self.payment.id, self.admin)
        self.assertEqual(ManagementLog.objects.filter(action='mark_paid').count(), 1)

    def test_mark_paid_rejects_stale_version(self):
        with self.assertRaises(ConcurrentModification):
            ledger.mark_paid(self.payment.id, self.admin, expected_version=self.payment.version + 1)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'pending')

    def test_cancelled_payment_cannot_be_marked_paid(self):
        ledger.cancel_payment(self.payment.id, self.admin, 'Client paid in cash')
        with self.assertRaises(InvalidPaymentState):
            ledger.mark_paid(self.payment.id, self.admin)

    def test_completed_job_cannot_request_revision(self):
        ledger.mark_paid(self.payment.id, self.admin)
        with self.assertRaises(InvalidStateTransition):
            lifecycle.request_revision(self.job.id, self.client_user, 'Too late')


class AdjustmentTests(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.worker_user = make_worker()

    def test_adjustment_is_pending_and_logged(self):
        payment = ledger.create_adjustment(self.worker_user, '150.00', self.admin, description='Bonus')

        self.assertTrue(payment.transaction_id.startswith('ADJ-'))
        self.assertEqual(payment.payment_method, 'admin_adjustment')
        self.assertEqual(payment.payment_type, 'adjustment')
        self.assertEqual(payment.status, 'pending')
        self.assertIsNone(payment.job)
        self.assertTrue(ManagementLog.objects.filter(payment=payment, action='create_adjustment').exists())

    def test_adjustment_cannot_be_marked_paid(self):
        payment = ledger.create_adjustment(self.worker_user, '150.00', self.admin)
        with self.assertRaises(InvalidPaymentState) as context:
            ledger.mark_paid(payment.id, self.admin)
        self.assertEqual(context.exception.details['payment_method'], 'admin_adjustment')
        payment.refresh_from_db()
        self.assertEqual(payment.status, 'pending')

    def test_adjustment_amount_must_be_positive(self):
        with self.assertRaises(ValidationError):
            ledger.create_adjustment(self.worker_user, '0', self.admin)


class PaymentStatusTests(TestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job)
        self.media_root = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _upload_proof(self):
        proof = SimpleUploadedFile('check.jpg', b'fake-image-bytes', content_type='image/jpeg')
        with override_settings(MEDIA_ROOT=self.media_root):
            return ledger.submit_proof(self.payment.id, self.client_user, proof, note='Check #1042')

    def test_proof_moves_payment_to_processing(self):
        payment = self._upload_proof()
        payment.refresh_from_db()
        self.assertEqual(payment.status, 'processing')
        self.assertEqual(payment.proof_note, 'Check #1042')
        self.assertTrue(payment.proof.name.startswith('payment_proofs/'))
        self.assertIsNotNone(payment.processed_at)

    def test_only_payer_uploads_proof(self):
        proof = SimpleUploadedFile('check.jpg', b'fake', content_type='image/jpeg')
        with self.assertRaises(Payment.DoesNotExist):
            ledger.submit_proof(self.payment.id, self.worker_user, proof)

    def test_processing_payment_can_fail(self):
        self._upload_proof()
        ledger.fail_payment(self.payment.id, self.admin, 'CHECK_BOUNCED', 'Insufficient funds')

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'failed')
        self.assertEqual(self.payment.error_code, 'CHECK_BOUNCED')
        self.assertTrue(self.payment.is_terminal)

    def test_pending_payment_cannot_fail(self):
        with self.assertRaises(InvalidPaymentState):
            ledger.fail_payment(self.payment.id, self.admin, 'X', 'Nope')

    def test_processing_payment_can_be_marked_paid(self):
        self._upload_proof()
        ledger.mark_paid(self.payment.id, self.admin)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'completed')

    def test_processing_payment_cannot_be_cancelled(self):
        self._upload_proof()
        with self.assertRaises(InvalidPaymentState):
            ledger.cancel_payment(self.payment.id, self.admin, 'Too late')

    def test_cancelled_payment_frees_the_job(self):
        ledger.cancel_payment(self.payment.id, self.admin, 'Wrong amount')

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'cancelled')
        self.assertIn('Wrong amount', self.payment.notes)

        # a new completion may be recorded once the old payment is cancelled
        payment = lifecycle.complete_with_rating(self.job.id, self.client_user, 4)
        self.assertEqual(payment.status, 'pending')
        self.assertEqual(Payment.objects.filter(job=self.job).count(), 2)


class BreakdownTests(TestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job)

    def _record(self, **overrides):
        values = {
            'gross_amount': '1000.00',
            'platform_fee': '50.00',
            'processing_fee': '12.50',
            'tax': '15.00',
            'net_amount': '922.50',
        }
        values.update(overrides)
        return ledger.record_breakdown(self.payment.id, self.admin, **values)

    def test_matching_breakdown_is_stored(self):
        self._record()
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.net_amount, Decimal('922.50'))
        self.assertEqual(self.payment.platform_fee, Decimal('50.00'))
        self.assertEqual(self.payment.version, 1)
        self.assertTrue(ManagementLog.objects.filter(action='record_breakdown').exists())

    def test_one_cent_rounding_is_tolerated(self):
        self._record(net_amount='922.49')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.net_amount, Decimal('922.49'))

    def test_mismatch_is_rejected(self):
        with self.assertRaises(BreakdownMismatch) as context:
            self._record(net_amount='950.00')
        self.assertEqual(context.exception.details['expected_net'], '922.50')
        self.payment.refresh_from_db()
        self.assertIsNone(self.payment.net_amount)

    def test_negative_fee_is_rejected(self):
        with self.assertRaises(BreakdownMismatch):
            self._record(tax='-15.00', net_amount='952.50')

    def test_zero_gross_is_rejected(self):
        with self.assertRaises(BreakdownMismatch):
            self._record(gross_amount='0', platform_fee='0', processing_fee='0', tax='0', net_amount='0')

    def test_terminal_payment_breakdown_is_frozen(self):
        ledger.cancel_payment(self.payment.id, self.admin, 'Void')
        with self.assertRaises(InvalidPaymentState):
            self._record()

    def test_gross_must_equal_payment_amount(self):
        with self.assertRaises(BreakdownMismatch) as context:
            self._record(gross_amount='5000.00', platform_fee='0', processing_fee='0', tax='0', net_amount='5000.00')
        self.assertEqual(context.exception.details['amount'], '1000.00')
        self.payment.refresh_from_db()
        self.assertIsNone(self.payment.gross_amount)
        self.assertEqual(self.payment.version, 0)

    def test_completed_payment_breakdown_is_frozen(self):
        ledger.mark_paid(self.payment.id, self.admin)
        with self.assertRaises(InvalidPaymentState):
            self._record()
        self.payment.refresh_from_db()
        self.assertIsNone(self.payment.gross_amount)


class LostUpdateTests(TestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job)

    def test_stale_instance_loses_the_race(self):
        stale = Payment.objects.get(pk=self.payment.id)
        Payment.objects.filter(pk=self.payment.id).update(version=stale.version + 1)

        with self.assertRaises(ConcurrentModification):
            versioned_update(stale, status='completed')

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'pending')
        self.assertEqual(self.payment.version, 1)
        self.assertEqual(stale.status, 'pending')

    def test_mark_paid_loses_to_a_concurrent_writer(self):
        stale = Payment.objects.get(pk=self.payment.id)
        Payment.objects.filter(pk=self.payment.id).update(version=stale.version + 1)

        with mock.patch.object(ledger, '_locked_payment', return_value=stale):
            with self.assertRaises(ConcurrentModification):
                ledger.mark_paid(self.payment.id, self.admin)

        self.payment.refresh_from_db()
        self.job.refresh_from_db()
        self.assertEqual(self.payment.status, 'pending')
        self.assertEqual(self.job.status, 'submitted')
        self.assertFalse(ManagementLog.objects.filter(action='mark_paid').exists())


class FailedPaymentTests(TestCase):

    def setUp(self):
        self.client_user = make_client()
        self.worker_user = make_worker()
        self.admin = make_admin()
        self.super_admin = make_admin('root', superuser=True)
        self.job = make_assigned_job(self.client_user, self.worker_user, status='submitted')
        self.payment = make_payment(self.job, status='failed', error_code='CHECK_BOUNCED')

    def test_failed_payment_cannot_be_marked_paid(self):
        with self.assertRaises(InvalidPaymentState):
            ledger.mark_paid(self.payment.id, self.admin)

    def test_failed_payment_cannot_be_cancelled(self):
        with self.assertRaises(InvalidPaymentState):
            ledger.cancel_payment(self.payment.id, self.admin, 'Void')

    def test_failed_payment_cannot_be_resolved(self):
        for action, amount in (('refund', None), ('release', None), ('partial', '100.00')):
            with self.assertRaises(InvalidPaymentState):
                resolve_dispute(self.payment.id, action, 'Bounced check', self.super_admin, amount=amount)

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'failed')
        self.assertEqual(self.payment.version, 0)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, 'submitted')
