from decimal import Decimal
from io import StringIO
from unittest import mock

import stripe
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse

from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.test import APIClient

from bookings.services import toggle_booking
from classes.models import Class
from payments.charges import calculate_charge
from payments.exceptions import GatewayUnavailable, IdempotencyConflict, InvalidAmount, LedgerWriteFailed
from payments.models import CapacityIncrement, Payment
from payments.settlement import (
    apply_capacity,
    apply_membership,
    resume_settlement,
    settle_payment,
)
from payments.stripe_service import StripeService, quote_charge

User = get_user_model()


def make_class(name, price='10.00'):
    return Class.objects.create(
        name=name,
        instructor_email='coach@example.com',
        instructor_name='Coach',
        price=Decimal(price),
        status=Class.STATUS_APPROVED,
    )


def fake_intent():
    return mock.Mock(id='pi_123', client_secret='pi_123_secret_abc')


class ChargeCalculatorTest(TestCase):
    def test_empty_cart_is_rejected(self):
        with self.assertRaises(InvalidAmount):
            calculate_charge([])

    def test_sums_prices_in_cents(self):
        self.assertEqual(calculate_charge([{'price': 19.99}, {'price': 5.00}]), 2499)

    def test_float_sums_do_not_drift(self):
        self.assertEqual(calculate_charge([{'price': 0.1}, {'price': 0.2}]), 30)

    def test_rounds_half_up_to_the_cent(self):
        self.assertEqual(calculate_charge([{'price': '0.005'}]), 1)
        self.assertEqual(calculate_charge([{'price': '10.004'}]), 1000)

    def test_accepts_decimal_and_string_prices(self):
        self.assertEqual(calculate_charge([{'price': Decimal('12.50')}, {'price': '7.5'}]), 2000)

    def test_non_positive_totals_are_rejected(self):
        with self.assertRaises(InvalidAmount):
            calculate_charge([{'price': 0}])
        with self.assertRaises(InvalidAmount):
            calculate_charge([{'price': 10}, {'price': -15}])
        with self.assertRaises(InvalidAmount):
            calculate_charge([{'price': '0.004'}])

    def test_invalid_prices_are_rejected(self):
        for items in ([{'name': 'Yoga'}], [{'price': 'abc'}], [{'price': None}], [{'price': True}], ['19.99']):
            with self.assertRaises(InvalidAmount):
                calculate_charge(items)

    def test_totals_beyond_decimal_precision_are_rejected(self):
        with self.assertRaises(InvalidAmount):
            calculate_charge([{'price': 1e30}])


@override_settings(STRIPE_SECRET_KEY='sk_test_123', STRIPE_CURRENCY='usd')
class StripeServiceTest(TestCase):
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create', return_value=fake_intent())
    def test_creates_card_payment_intent(self, create):
        result = StripeService().create_payment_intent(2499)

        create.assert_called_once_with(
            amount=2499,
            currency='usd',
            payment_method_types=['card'],
            api_key='sk_test_123',
        )
        self.assertEqual(result['client_secret'], 'pi_123_secret_abc')
        self.assertEqual(result['total_price'], Decimal('24.99'))

    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_gateway_errors_surface_as_unavailable(self, create):
        create.side_effect = stripe.APIConnectionError('Request timed out')
        with self.assertRaises(GatewayUnavailable):
            StripeService().create_payment_intent(1000)
        self.assertEqual(create.call_count, 1)

    @override_settings(STRIPE_SECRET_KEY='')
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_missing_key(self, create):
        with self.assertRaises(GatewayUnavailable):
            StripeService().create_payment_intent(1000)
        create.assert_not_called()

    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create', return_value=fake_intent())
    def test_quote_charge(self, create):
        quote = quote_charge([{'price': 19.99}, {'price': 5.00}])
        self.assertEqual(quote['amount'], 2499)
        self.assertEqual(quote['client_secret'], 'pi_123_secret_abc')
        self.assertEqual(quote['total_price'], Decimal('24.99'))

    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_invalid_cart_never_reaches_gateway(self, create):
        with self.assertRaises(InvalidAmount):
            quote_charge([])
        create.assert_not_called()

    def test_client_is_configured_once_at_startup(self):
        client = stripe.default_http_client
        self.assertIsInstance(client, stripe.RequestsClient)
        self.assertEqual(stripe.max_network_retries, 0)

        StripeService()

        self.assertIs(stripe.default_http_client, client)


class SettlementTest(TestCase):
    def setUp(self):
        self.member = User.objects.create_user(email='a@x.com', name='Member A')
        self.c1 = make_class('Yoga')
        self.c2 = make_class('Spin')
        self.c3 = make_class('Pilates')

    def assertEnrolledCount(self, klass, expected):
        klass.refresh_from_db()
        self.assertEqual(klass.enrolled_count, expected)

    def test_scenario_single_booked_class(self):
        self.member.booked_classes.add(self.c1)

        outcome = settle_payment('a@x.com', 1000, [self.c1.pk])

        payment = Payment.objects.get(pk=outcome.payment_id)
        self.assertEqual(payment.email, 'a@x.com')
        self.assertEqual(payment.amount, 1000)
        self.assertEqual(payment.class_ids, [self.c1.pk])
        self.assertTrue(outcome.settled)
        self.assertFalse(outcome.replayed)
        self.assertEqual(self.member.booked_class_ids(), set())
        self.assertTrue({self.c1.pk} <= self.member.enrolled_class_ids())
        self.assertEnrolledCount(self.c1, 1)

    def test_full_settlement_moves_classes_and_keeps_existing_enrollments(self):
        self.member.booked_classes.add(self.c1, self.c2)
        self.member.enrolled_classes.add(self.c3)

        outcome = settle_payment('a@x.com', 2000, [self.c1.pk, self.c2.pk])

        self.assertTrue(outcome.membership.succeeded)
        self.assertTrue(outcome.capacity.succeeded)
        self.assertEqual(self.member.booked_class_ids(), set())
        self.assertEqual(self.member.enrolled_class_ids(), {self.c1.pk, self.c2.pk, self.c3.pk})
        self.assertEnrolledCount(self.c1, 1)
        self.assertEnrolledCount(self.c2, 1)
        self.assertEnrolledCount(self.c3, 0)

    def test_duplicate_ids_are_counted_once(self):
        outcome = settle_payment('a@x.com', 1000, [self.c1.pk, self.c1.pk, str(self.c1.pk)])

        self.assertEqual(Payment.objects.get(pk=outcome.payment_id).class_ids, [self.c1.pk])
        self.assertEqual(outcome.class_ids, (self.c1.pk,))
        self.assertEnrolledCount(self.c1, 1)
        self.assertEqual(CapacityIncrement.objects.count(), 1)

    def test_enrolling_again_adds_no_duplicate(self):
        self.member.enrolled_classes.add(self.c1)
        settle_payment('a@x.com', 1000, [self.c1.pk])
        self.assertEqual(self.member.enrolled_classes.filter(pk=self.c1.pk).count(), 1)

    def test_preconditions_write_nothing(self):
        with self.assertRaises(NotFound):
            settle_payment('ghost@x.com', 1000, [self.c1.pk])
        with self.assertRaises(NotFound):
            settle_payment('a@x.com', 1000, [self.c1.pk, 999999])
        with self.assertRaises(InvalidAmount):
            settle_payment('a@x.com', 0, [self.c1.pk])
        with self.assertRaises(ValueError):
            settle_payment('a@x.com', 1000, [])
        self.assertFalse(Payment.objects.exists())
        self.assertEnrolledCount(self.c1, 0)

    def test_ledger_failure_touches_nothing_else(self):
        self.member.booked_classes.add(self.c1)

        with mock.patch.object(Payment.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(LedgerWriteFailed):
                settle_payment('a@x.com', 1000, [self.c1.pk])

        self.assertEqual(self.member.booked_class_ids(), {self.c1.pk})
        self.assertEqual(self.member.enrolled_class_ids(), set())
        self.assertEnrolledCount(self.c1, 0)
        self.assertFalse(CapacityIncrement.objects.exists())

    def test_membership_failure_is_reported_and_retry_converges(self):
        self.member.booked_classes.add(self.c1, self.c2)
        ids = [self.c1.pk, self.c2.pk]

        with mock.patch('user.models.User.set_booked_and_enrolled', side_effect=DatabaseError('locked')):
            outcome = settle_payment('a@x.com', 2000, ids)

        self.assertIsNotNone(outcome.payment_id)
        self.assertTrue(Payment.objects.filter(pk=outcome.payment_id).exists())
        self.assertEqual(outcome.membership.status, 'failed')
        self.assertEqual(outcome.membership.code, 'membership_update_failed')
        self.assertTrue(outcome.capacity.succeeded)
        self.assertFalse(outcome.settled)
        self.assertEqual(self.member.booked_class_ids(), {self.c1.pk, self.c2.pk})

        retry = apply_membership('a@x.com', ids)

        self.assertTrue(retry.succeeded)
        self.assertEqual(self.member.booked_class_ids(), set())
        self.assertEqual(self.member.enrolled_class_ids(), {self.c1.pk, self.c2.pk})
        self.assertEnrolledCount(self.c1, 1)
        self.assertEnrolledCount(self.c2, 1)

    def test_membership_retry_is_idempotent(self):
        settle_payment('a@x.com', 1000, [self.c1.pk])
        first = (self.member.booked_class_ids(), self.member.enrolled_class_ids())
        apply_membership('a@x.com', [self.c1.pk])
        self.assertEqual((self.member.booked_class_ids(), self.member.enrolled_class_ids()), first)

    def test_capacity_failure_reports_residual_classes(self):
        real_filter = Class.objects.filter

        def flaky_filter(*args, **kwargs):
            if kwargs.get('pk') == self.c2.pk:
                raise DatabaseError('timeout')
            return real_filter(*args, **kwargs)

        with mock.patch.object(Class.objects, 'filter', side_effect=flaky_filter):
            outcome = settle_payment('a@x.com', 3000, [self.c1.pk, self.c2.pk, self.c3.pk])

        self.assertTrue(outcome.membership.succeeded)
        self.assertEqual(outcome.capacity.status, 'failed')
        self.assertEqual(outcome.capacity.failed_ids, frozenset({self.c2.pk}))
        self.assertEqual(outcome.as_dict()['capacity']['failed_class_ids'], [self.c2.pk])
        self.assertEnrolledCount(self.c1, 1)
        self.assertEnrolledCount(self.c2, 0)
        self.assertEnrolledCount(self.c3, 1)

        payment = Payment.objects.get(pk=outcome.payment_id)
        retry = apply_capacity(payment, [self.c1.pk, self.c2.pk, self.c3.pk])

        self.assertTrue(retry.succeeded)
        self.assertEnrolledCount(self.c1, 1)
        self.assertEnrolledCount(self.c2, 1)
        self.assertEnrolledCount(self.c3, 1)

    def test_capacity_for_missing_class_fails_for_that_class_only(self):
        outcome = settle_payment('a@x.com', 1000, [self.c1.pk])
        payment = Payment.objects.get(pk=outcome.payment_id)

        result = apply_capacity(payment, [self.c1.pk, 987654])

        self.assertEqual(result.failed_ids, frozenset({987654}))
        self.assertEnrolledCount(self.c1, 1)

    def test_resume_does_not_double_count(self):
        outcome = settle_payment('a@x.com', 1000, [self.c1.pk, self.c2.pk])
        payment = Payment.objects.get(pk=outcome.payment_id)

        resumed = resume_settlement(payment)

        self.assertTrue(resumed.settled)
        self.assertTrue(resumed.replayed)
        self.assertEnrolledCount(self.c1, 1)
        self.assertEnrolledCount(self.c2, 1)

    def test_idempotency_key_replay_records_one_payment(self):
        first = settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='checkout-1')
        second = settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='checkout-1')

        self.assertEqual(first.payment_id, second.payment_id)
        self.assertFalse(first.replayed)
        self.assertTrue(second.replayed)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertEnrolledCount(self.c1, 1)

    def test_replay_keeps_bookings_made_after_settlement(self):
        settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='k1')
        toggle_booking('a@x.com', self.c2.pk)

        replay = settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='k1')

        self.assertTrue(replay.replayed)
        self.assertTrue(replay.settled)
        self.assertEqual(self.member.booked_class_ids(), {self.c2.pk})
        self.assertEqual(self.member.enrolled_class_ids(), {self.c1.pk})
        self.assertEnrolledCount(self.c1, 1)

    def test_replay_finishes_failed_membership_step(self):
        self.member.booked_classes.add(self.c1)
        with mock.patch('user.models.User.set_booked_and_enrolled', side_effect=DatabaseError('locked')):
            first = settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='k1')
        self.assertFalse(first.settled)

        replay = settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='k1')

        self.assertTrue(replay.settled)
        self.assertEqual(self.member.booked_class_ids(), set())
        self.assertEqual(self.member.enrolled_class_ids(), {self.c1.pk})
        self.assertEnrolledCount(self.c1, 1)

    def test_idempotency_key_with_different_content_conflicts(self):
        settle_payment('a@x.com', 1000, [self.c1.pk], idempotency_key='checkout-1')
        with self.assertRaises(IdempotencyConflict):
            settle_payment('a@x.com', 2000, [self.c1.pk, self.c2.pk], idempotency_key='checkout-1')
        self.assertEqual(Payment.objects.count(), 1)

    def test_without_key_each_call_appends(self):
        settle_payment('a@x.com', 1000, [self.c1.pk])
        settle_payment('a@x.com', 1000, [self.c1.pk])
        self.assertEqual(Payment.objects.count(), 2)
        # A second payment is a second purchase.
        self.assertEnrolledCount(self.c1, 2)

    def test_payments_are_append_only(self):
        outcome = settle_payment('a@x.com', 1000, [self.c1.pk])
        payment = Payment.objects.get(pk=outcome.payment_id)
        payment.amount = 1
        with self.assertRaises(ValueError):
            payment.save()
        with self.assertRaises(ValueError):
            payment.delete()


class PaymentAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.member = User.objects.create_user(email='a@x.com', name='Member A')
        self.other = User.objects.create_user(email='b@x.com', name='Member B')
        self.admin = User.objects.create_superuser(email='admin@x.com', password='adminpass')
        self.c1 = make_class('Yoga', price='19.99')
        self.c2 = make_class('Spin', price='5.00')
        self.url = reverse('payment-list')
        self.quote_url = reverse('payment-create-payment-intent')

    def test_settle_requires_authentication(self):
        resp = self.client.post(self.url, {'amount': 1000, 'class_ids': [self.c1.pk]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(Payment.objects.exists())

    def test_settle_full_success(self):
        self.member.booked_classes.add(self.c1)
        self.client.force_authenticate(self.member)

        resp = self.client.post(self.url, {
            'amount': 1999,
            'class_ids': [self.c1.pk],
            'transaction_id': 'pi_123',
        }, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data['settled'])
        self.assertEqual(resp.data['membership'], {'status': 'succeeded'})
        self.assertEqual(resp.data['capacity'], {'status': 'succeeded'})
        payment = Payment.objects.get(pk=resp.data['payment_id'])
        self.assertEqual(payment.email, 'a@x.com')
        self.assertEqual(payment.transaction_id, 'pi_123')
        self.assertEqual(self.member.booked_class_ids(), set())

    def test_settle_partial_success_is_multi_status(self):
        self.client.force_authenticate(self.member)
        with mock.patch('user.models.User.set_booked_and_enrolled', side_effect=DatabaseError('locked')):
            resp = self.client.post(self.url, {'amount': 1999, 'class_ids': [self.c1.pk]}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_207_MULTI_STATUS)
        self.assertFalse(resp.data['settled'])
        self.assertEqual(resp.data['membership']['status'], 'failed')
        self.assertEqual(resp.data['capacity']['status'], 'succeeded')
        self.assertTrue(Payment.objects.filter(pk=resp.data['payment_id']).exists())

    def test_settle_replay_with_header(self):
        self.client.force_authenticate(self.member)
        body = {'amount': 1999, 'class_ids': [self.c1.pk]}

        first = self.client.post(self.url, body, format='json', HTTP_IDEMPOTENCY_KEY='order-42')
        second = self.client.post(self.url, body, format='json', HTTP_IDEMPOTENCY_KEY='order-42')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertTrue(second.data['replayed'])
        self.assertEqual(first.data['payment_id'], second.data['payment_id'])
        self.c1.refresh_from_db()
        self.assertEqual(self.c1.enrolled_count, 1)

    def test_settle_conflicting_replay(self):
        self.client.force_authenticate(self.member)
        self.client.post(self.url, {'amount': 1999, 'class_ids': [self.c1.pk], 'idempotency_key': 'k'}, format='json')
        resp = self.client.post(self.url, {'amount': 500, 'class_ids': [self.c2.pk], 'idempotency_key': 'k'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_settle_validation(self):
        self.client.force_authenticate(self.member)
        for body in ({'amount': 1000, 'class_ids': []}, {'amount': 0, 'class_ids': [self.c1.pk]}, {'class_ids': [self.c1.pk]}):
            resp = self.client.post(self.url, body, format='json')
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Payment.objects.exists())

    def test_settle_unknown_class(self):
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.url, {'amount': 1000, 'class_ids': [555555]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Payment.objects.exists())

    def test_settle_ledger_failure(self):
        self.client.force_authenticate(self.member)
        with mock.patch.object(Payment.objects, 'create', side_effect=DatabaseError('disk full')):
            resp = self.client.post(self.url, {'amount': 1000, 'class_ids': [self.c1.pk]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.c1.refresh_from_db()
        self.assertEqual(self.c1.enrolled_count, 0)

    def test_banned_member_cannot_settle(self):
        self.member.is_banned = True
        self.member.save()
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.url, {'amount': 1000, 'class_ids': [self.c1.pk]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_history_is_scoped_to_caller(self):
        settle_payment('a@x.com', 1000, [self.c1.pk])
        settle_payment('b@x.com', 500, [self.c2.pk])

        self.client.force_authenticate(self.member)
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([p['email'] for p in resp.data], ['a@x.com'])
        self.assertEqual(resp.data[0]['total_price'], '10.00')

        resp = self.client.get(self.url, {'email': 'b@x.com'})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        resp = self.client.get(self.url, {'email': 'b@x.com'})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([p['email'] for p in resp.data], ['b@x.com'])

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create', return_value=fake_intent())
    def test_quote(self, create):
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.quote_url, {'items': [{'price': 19.99}, {'price': 5.00}]}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['clientSecret'], 'pi_123_secret_abc')
        self.assertEqual(resp.data['amount'], 2499)
        self.assertEqual(resp.data['totalPrice'], Decimal('24.99'))
        self.assertFalse(Payment.objects.exists())

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_quote_rejects_empty_cart(self, create):
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.quote_url, {'items': []}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['detail'].code, 'invalid_amount')
        create.assert_not_called()

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_quote_rejects_oversized_total(self, create):
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.quote_url, {'items': [{'price': 1e30}]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['detail'].code, 'invalid_amount')
        create.assert_not_called()

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @mock.patch('payments.stripe_service.stripe.PaymentIntent.create')
    def test_quote_gateway_down(self, create):
        create.side_effect = stripe.APIConnectionError('Request timed out')
        self.client.force_authenticate(self.member)
        resp = self.client.post(self.quote_url, {'items': [{'price': 10}]}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(Payment.objects.exists())


class ReconcilePaymentsCommandTest(TestCase):
    def setUp(self):
        self.member = User.objects.create_user(email='a@x.com', name='Member A')
        self.c1 = make_class('Yoga')
        self.c2 = make_class('Spin')

    def run_command(self, *args):
        out, err = StringIO(), StringIO()
        call_command('reconcile_payments', *args, stdout=out, stderr=err)
        return out.getvalue()

    def test_nothing_to_do(self):
        settle_payment('a@x.com', 1000, [self.c1.pk])
        self.assertIn('All payments are fully settled', self.run_command())

    def test_completes_partial_settlement(self):
        self.member.booked_classes.add(self.c1)
        with mock.patch('user.models.User.set_booked_and_enrolled', side_effect=DatabaseError('locked')), \
                mock.patch.object(Class.objects, 'filter', side_effect=DatabaseError('timeout')):
            outcome = settle_payment('a@x.com', 2000, [self.c1.pk, self.c2.pk])
        self.assertFalse(outcome.membership.succeeded)
        self.assertFalse(outcome.capacity.succeeded)

        dry = self.run_command('--dry-run')
        self.assertIn(f"Payment {outcome.payment_id}", dry)
        self.assertEqual(self.member.enrolled_class_ids(), set())

        self.assertIn('Reconciled 1 payment(s)', self.run_command())
        self.assertEqual(self.member.booked_class_ids(), set())
        self.assertEqual(self.member.enrolled_class_ids(), {self.c1.pk, self.c2.pk})
        self.c1.refresh_from_db()
        self.c2.refresh_from_db()
        self.assertEqual((self.c1.enrolled_count, self.c2.enrolled_count), (1, 1))

        # Second pass finds nothing left.
        self.assertIn('All payments are fully settled', self.run_command())
        self.c1.refresh_from_db()
        self.assertEqual(self.c1.enrolled_count, 1)
