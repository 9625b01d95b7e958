from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.contrib.auth import get_user_model

from rest_framework.test import APIClient
from rest_framework import status

from classes.models import Class


class ClassesAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.student = User.objects.create_user(email='student@example.com', name='Student')
        self.instructor = User.objects.create_user(email='coach@example.com', name='Coach', role='instructor')
        self.admin = User.objects.create_user(email='admin@example.com', name='Admin', role='admin')

        self.yoga = Class.objects.create(
            name='Yoga', instructor_email='coach@example.com', instructor_name='Coach',
            price=Decimal('19.99'), status=Class.STATUS_APPROVED, enrolled_count=3,
        )
        self.spin = Class.objects.create(
            name='Spin', instructor_email='coach@example.com', instructor_name='Coach',
            price=Decimal('5.00'), status=Class.STATUS_APPROVED, enrolled_count=7,
        )
        self.boxing = Class.objects.create(
            name='Boxing', instructor_email='other@example.com', price=Decimal('12.00'),
        )

    def test_list_is_public_and_sorted_by_enrollment(self):
        resp = self.client.get(reverse('class-list'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([item['name'] for item in resp.data], ['Spin', 'Yoga', 'Boxing'])
        for key in ('id', 'name', 'price', 'status', 'enrolled_count', 'instructor_email'):
            self.assertIn(key, resp.data[0])

    def test_filter_by_status_and_instructor(self):
        resp = self.client.get(reverse('class-list'), {'status': 'approved'})
        self.assertEqual({item['name'] for item in resp.data}, {'Spin', 'Yoga'})

        resp = self.client.get(reverse('class-list'), {'instructor_email': 'other@example.com'})
        self.assertEqual([item['name'] for item in resp.data], ['Boxing'])

    def test_instructor_submits_pending_class(self):
        self.client.force_authenticate(self.instructor)
        payload = {'name': 'HIIT', 'price': '15.50', 'capacity': 20, 'status': 'approved', 'enrolled_count': 99}
        resp = self.client.post(reverse('class-list'), payload, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        created = Class.objects.get(name='HIIT')
        self.assertEqual(created.status, Class.STATUS_PENDING)
        self.assertEqual(created.enrolled_count, 0)
        self.assertEqual(created.instructor_email, 'coach@example.com')
        self.assertEqual(created.instructor_name, 'Coach')

    def test_students_cannot_submit_classes(self):
        self.client.force_authenticate(self.student)
        resp = self.client.post(reverse('class-list'), {'name': 'HIIT', 'price': '15.50'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_negative_price_is_rejected(self):
        self.client.force_authenticate(self.instructor)
        resp = self.client.post(reverse('class-list'), {'name': 'HIIT', 'price': '-1.00'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_moderates_status_and_feedback(self):
        self.client.force_authenticate(self.admin)
        url = reverse('class-detail', args=[self.boxing.pk])
        resp = self.client.patch(url, {'status': 'denied', 'feedback': 'Add a description', 'enrolled_count': 50}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.boxing.refresh_from_db()
        self.assertEqual(self.boxing.status, Class.STATUS_DENIED)
        self.assertEqual(self.boxing.feedback, 'Add a description')
        self.assertEqual(self.boxing.enrolled_count, 0)

    def test_instructor_cannot_moderate(self):
        self.client.force_authenticate(self.instructor)
        url = reverse('class-detail', args=[self.boxing.pk])
        resp = self.client.patch(url, {'status': 'approved'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_booked_and_enrolled_lists(self):
        self.student.booked_classes.add(self.yoga)
        self.student.enrolled_classes.add(self.spin)
        self.client.force_authenticate(self.student)

        resp = self.client.get(reverse('class-booked'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([item['id'] for item in resp.data], [self.yoga.pk])

        resp = self.client.get(reverse('class-enrolled'))
        self.assertEqual([item['id'] for item in resp.data], [self.spin.pk])

    def test_booked_list_requires_authentication(self):
        resp = self.client.get(reverse('class-booked'))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
