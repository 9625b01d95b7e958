from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.contrib.auth import get_user_model

from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APIClient
from rest_framework import status

from classes.models import Class
from bookings.services import AlreadyEnrolled, toggle_booking


def make_class(name, price='10.00', status=Class.STATUS_APPROVED):
    return Class.objects.create(
        name=name,
        instructor_email='coach@example.com',
        instructor_name='Coach',
        price=Decimal(price),
        status=status,
    )


class ToggleBookingTest(TestCase):
    def setUp(self):
        User = get_user_model()
        self.member = User.objects.create_user(email='a@x.com', name='Member A')
        self.yoga = make_class('Yoga')
        self.spin = make_class('Spin')

    def test_toggle_adds_missing_class(self):
        self.assertTrue(toggle_booking('a@x.com', self.yoga.pk))
        self.assertEqual(self.member.booked_class_ids(), {self.yoga.pk})

    def test_toggle_removes_booked_class(self):
        self.member.booked_classes.add(self.yoga, self.spin)
        self.assertFalse(toggle_booking('a@x.com', self.yoga.pk))
        self.assertEqual(self.member.booked_class_ids(), {self.spin.pk})

    def test_toggling_twice_restores_previous_state(self):
        self.member.booked_classes.add(self.spin)
        before = self.member.booked_class_ids()
        toggle_booking('a@x.com', self.yoga.pk)
        toggle_booking('a@x.com', self.yoga.pk)
        self.assertEqual(self.member.booked_class_ids(), before)

        toggle_booking('a@x.com', self.spin.pk)
        toggle_booking('a@x.com', self.spin.pk)
        self.assertEqual(self.member.booked_class_ids(), before)

    def test_toggle_accepts_string_class_id(self):
        self.assertTrue(toggle_booking('a@x.com', str(self.yoga.pk)))
        self.assertIn(self.yoga.pk, self.member.booked_class_ids())

    def test_missing_parameters_are_rejected(self):
        with self.assertRaises(ValidationError):
            toggle_booking('', self.yoga.pk)
        with self.assertRaises(ValidationError):
            toggle_booking('a@x.com', None)

    def test_unknown_member(self):
        with self.assertRaises(NotFound):
            toggle_booking('ghost@x.com', self.yoga.pk)

    def test_unknown_class(self):
        with self.assertRaises(NotFound):
            toggle_booking('a@x.com', 999999)
        with self.assertRaises(NotFound):
            toggle_booking('a@x.com', 'not-a-number')

    def test_enrolled_class_cannot_be_booked_again(self):
        self.member.enrolled_classes.add(self.yoga)
        with self.assertRaises(AlreadyEnrolled):
            toggle_booking('a@x.com', self.yoga.pk)
        self.assertEqual(self.member.booked_class_ids(), set())


class BookingToggleAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.member = User.objects.create_user(email='a@x.com', name='Member A')
        self.yoga = make_class('Yoga')
        self.url = reverse('booking-toggle')

    def test_requires_authentication(self):
        resp = self.client.patch(f"{self.url}?class_id={self.yoga.pk}")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_toggle_with_query_parameter(self):
        self.client.force_authenticate(self.member)
        resp = self.client.patch(f"{self.url}?class_id={self.yoga.pk}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['booked'])
        self.assertEqual(resp.data['booked_classes'], [self.yoga.pk])

        resp = self.client.patch(self.url, {'class_id': self.yoga.pk}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data['booked'])
        self.assertEqual(resp.data['booked_classes'], [])

    def test_missing_class_id(self):
        self.client.force_authenticate(self.member)
        resp = self.client.patch(self.url)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_class_is_404(self):
        self.client.force_authenticate(self.member)
        resp = self.client.patch(f"{self.url}?class_id=424242")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_banned_member_cannot_book(self):
        self.member.is_banned = True
        self.member.save()
        self.client.force_authenticate(self.member)
        resp = self.client.patch(f"{self.url}?class_id={self.yoga.pk}")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.member.booked_class_ids(), set())

    def test_enrolled_class_conflict(self):
        self.member.enrolled_classes.add(self.yoga)
        self.client.force_authenticate(self.member)
        resp = self.client.patch(f"{self.url}?class_id={self.yoga.pk}")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
