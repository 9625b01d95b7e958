from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.contrib.auth import get_user_model

from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from classes.models import Class
from user.permissions import has_role, identity_claim

User = get_user_model()


class RoleCheckTest(TestCase):
    def test_has_role(self):
        claim = {'email': 'a@x.com', 'role': 'instructor'}
        self.assertTrue(has_role(claim, 'instructor'))
        self.assertTrue(has_role(claim, 'admin', 'instructor'))
        self.assertFalse(has_role(claim, 'admin'))
        self.assertFalse(has_role(None, 'admin'))
        self.assertFalse(has_role({}, 'student'))

    def test_identity_claim(self):
        user = User.objects.create_user(email='a@x.com')
        self.assertEqual(identity_claim(user), {'email': 'a@x.com', 'role': 'student', 'is_banned': False})


class UsersAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.student = User.objects.create_user(email='student@example.com', name='Student')
        self.admin = User.objects.create_user(email='admin@example.com', name='Admin', role='admin')

    def test_first_sign_in_creates_student(self):
        url = reverse('user:users-list')
        resp = self.client.post(url, {'email': 'new@example.com', 'name': 'New', 'role': 'admin'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        created = User.objects.get(email='new@example.com')
        self.assertEqual(created.role, User.ROLE_STUDENT)
        self.assertFalse(created.is_banned)
        self.assertEqual(resp.data['booked_classes'], [])
        self.assertEqual(resp.data['enrolled_classes'], [])

    def test_existing_user_is_not_duplicated(self):
        url = reverse('user:users-list')
        resp = self.client.post(url, {'email': 'student@example.com'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['message'], 'User Exists In Database!')
        self.assertEqual(User.objects.filter(email='student@example.com').count(), 1)

    def test_list_is_admin_only(self):
        url = reverse('user:users-list')
        self.client.force_authenticate(self.student)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([u['email'] for u in resp.data], ['admin@example.com', 'student@example.com'])

    def test_user_can_only_read_own_record(self):
        self.client.force_authenticate(self.student)
        own = self.client.get(reverse('user:users-detail', args=['student@example.com']))
        self.assertEqual(own.status_code, status.HTTP_200_OK)
        self.assertEqual(own.data['role'], 'student')

        other = self.client.get(reverse('user:users-detail', args=['admin@example.com']))
        self.assertEqual(other.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_changes_role_and_ban(self):
        self.client.force_authenticate(self.admin)
        url = reverse('user:users-detail', args=['student@example.com'])
        resp = self.client.patch(url, {'role': 'instructor', 'is_banned': True, 'email': 'x@x.com'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertEqual(self.student.role, User.ROLE_INSTRUCTOR)
        self.assertTrue(self.student.is_banned)
        self.assertEqual(self.student.email, 'student@example.com')

    def test_non_admin_cannot_change_roles(self):
        self.client.force_authenticate(self.student)
        url = reverse('user:users-detail', args=['student@example.com'])
        resp = self.client.patch(url, {'role': 'admin'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)


class LoginTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email='coach@example.com', password='secret123', name='Coach', role='instructor')

    def test_login_returns_token_with_role_claims(self):
        resp = self.client.post(reverse('user:token_obtain'), {'email': 'coach@example.com', 'password': 'secret123'}, format='json')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['role'], 'instructor')
        token = AccessToken(resp.data['access'])
        self.assertEqual(token['email'], 'coach@example.com')
        self.assertEqual(token['role'], 'instructor')
        self.assertFalse(token['is_banned'])

    def test_bearer_token_authenticates_requests(self):
        resp = self.client.post(reverse('user:token_obtain'), {'email': 'coach@example.com', 'password': 'secret123'}, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")
        resp = self.client.get(reverse('user:users-detail', args=['coach@example.com']))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_wrong_password(self):
        resp = self.client.post(reverse('user:token_obtain'), {'email': 'coach@example.com', 'password': 'nope'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class InstructorsAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        for index in range(8):
            email = f"coach{index}@example.com"
            User.objects.create_user(email=email, name=f"Coach {index}", role='instructor')
            Class.objects.create(name=f"Class {index}", instructor_email=email, price=Decimal('10.00'), enrolled_count=index)
        # Two classes for coach0 outrank coach7's single class.
        Class.objects.create(name='Extra', instructor_email='coach0@example.com', price=Decimal('10.00'), enrolled_count=20)
        User.objects.create_user(email='student@example.com')

    def test_instructor_list(self):
        resp = self.client.get(reverse('user:instructors'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data), 8)

    def test_popular_instructors(self):
        resp = self.client.get(reverse('user:popular-instructors'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [u['email'] for u in resp.data],
            ['coach0@example.com', 'coach7@example.com', 'coach6@example.com',
             'coach5@example.com', 'coach4@example.com', 'coach3@example.com'],
        )
