"""
Tests for login, lockout, password rules and user administration.
"""

from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from authentication.login_protection import check_login_rate_limit, reset_login_attempts
from authentication.models import User
from authentication.password_validation import check_password_strength

STRONG_PASSWORD = 'Vx9#mKq2!zLp'


class PasswordStrengthTests(TestCase):

    def test_strong_password_is_valid(self):
        result = check_password_strength(STRONG_PASSWORD)
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])
        self.assertIn(result.strength, ('strong', 'very-strong'))

    def test_short_password_reports_length(self):
        result = check_password_strength('Ab1!')
        self.assertFalse(result.valid)
        self.assertIn('Password must have at least 8 characters', result.errors)

    def test_missing_character_classes(self):
        result = check_password_strength('lowercaseonly')
        self.assertFalse(result.valid)
        self.assertIn('Password must contain at least one uppercase letter', result.errors)
        self.assertIn('Password must contain at least one number', result.errors)

    def test_common_prefix_rejected(self):
        result = check_password_strength('Password1!x')
        self.assertFalse(result.valid)
        self.assertIn('Password is too common (password)', result.errors)

    def test_too_long(self):
        result = check_password_strength('Aa1!' * 40)
        self.assertFalse(result.valid)
        self.assertEqual(result.score, 0)


@override_settings(LOGIN_MAX_ATTEMPTS=5, LOGIN_ATTEMPT_WINDOW=300, LOGIN_LOCK_DURATION=900)
class LoginProtectionTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_locks_after_max_attempts(self):
        for expected_remaining in (4, 3, 2, 1):
            result = check_login_rate_limit('a@b.com', now=1000)
            self.assertTrue(result.allowed)
            self.assertEqual(result.remaining_attempts, expected_remaining)

        result = check_login_rate_limit('a@b.com', now=1000)
        self.assertFalse(result.allowed)
        self.assertEqual(result.locked_until, 1000 + 900)

    def test_lock_expires(self):
        for _ in range(5):
            check_login_rate_limit('a@b.com', now=1000)
        self.assertFalse(check_login_rate_limit('a@b.com', now=1500).allowed)
        self.assertTrue(check_login_rate_limit('a@b.com', now=2000).allowed)

    def test_window_expiry_resets_count(self):
        for _ in range(3):
            check_login_rate_limit('a@b.com', now=1000)
        result = check_login_rate_limit('a@b.com', now=1400)
        self.assertTrue(result.allowed)
        self.assertEqual(result.remaining_attempts, 4)

    def test_email_is_normalized_and_reset(self):
        check_login_rate_limit('A@B.com ', now=1000)
        result = check_login_rate_limit('a@b.com', now=1000)
        self.assertEqual(result.remaining_attempts, 3)

        reset_login_attempts('a@b.com')
        self.assertEqual(check_login_rate_limit('a@b.com', now=1000).remaining_attempts, 4)


class LoginApiTests(APITestCase):

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user('admin@example.com', STRONG_PASSWORD, name='Admin')

    def test_login_success(self):
        response = self.client.post('/api/auth/login/', {
            'email': 'Admin@Example.com', 'password': STRONG_PASSWORD
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'success')
        self.assertEqual(response.data['data']['email'], 'admin@example.com')

        me = self.client.get('/api/auth/me/')
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data['data']['role'], User.ROLE_ADMIN)

    def test_login_failure_reports_remaining_attempts(self):
        response = self.client.post('/api/auth/login/', {
            'email': 'admin@example.com', 'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('4 attempts remaining', response.data['message'])

    def test_login_locked_after_repeated_failures(self):
        for _ in range(4):
            self.client.post('/api/auth/login/', {
                'email': 'admin@example.com', 'password': 'wrong'
            }, format='json')

        response = self.client.post('/api/auth/login/', {
            'email': 'admin@example.com', 'password': STRONG_PASSWORD
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('locked_until', response.data['data'])

    def test_me_requires_session(self):
        response = self.client.get('/api/auth/me/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_change_password(self):
        self.client.force_authenticate(self.user)
        response = self.client.post('/api/auth/change-password/', {
            'current_password': STRONG_PASSWORD,
            'new_password': 'Nw7$kTr4@yQm',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Nw7$kTr4@yQm'))

    def test_change_password_rejects_wrong_current(self):
        self.client.force_authenticate(self.user)
        response = self.client.post('/api/auth/change-password/', {
            'current_password': 'nope',
            'new_password': 'Nw7$kTr4@yQm',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_password', response.data['data'])


class UserAdministrationTests(APITestCase):

    def setUp(self):
        cache.clear()
        self.super_admin = User.objects.create_superuser('root@example.com', STRONG_PASSWORD, name='Root')
        self.admin = User.objects.create_user('admin@example.com', STRONG_PASSWORD, role=User.ROLE_ADMIN)
        self.viewer = User.objects.create_user('viewer@example.com', STRONG_PASSWORD, role=User.ROLE_VIEWER)

    def test_only_super_admin_lists_users(self):
        for user in (self.admin, self.viewer):
            self.client.force_authenticate(user)
            response = self.client.get('/api/auth/users/')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.super_admin)
        response = self.client.get('/api/auth/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 3)

    def test_create_user_and_duplicate(self):
        self.client.force_authenticate(self.super_admin)
        payload = {
            'name': 'New Person',
            'email': 'new@example.com',
            'password': STRONG_PASSWORD,
            'role': User.ROLE_VIEWER,
        }
        response = self.client.post('/api/auth/users/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['role'], User.ROLE_VIEWER)

        payload['email'] = 'NEW@example.com'
        response = self.client.post('/api/auth/users/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_user_rejects_weak_password(self):
        self.client.force_authenticate(self.super_admin)
        response = self.client.post('/api/auth/users/', {
            'name': 'Weak Person',
            'email': 'weak@example.com',
            'password': 'password123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['data'])

    def test_cannot_delete_self(self):
        self.client.force_authenticate(self.super_admin)
        response = self.client.delete(f'/api/auth/users/{self.super_admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.super_admin.pk).exists())

    def test_reset_password_flags_change(self):
        self.client.force_authenticate(self.super_admin)
        response = self.client.post(
            f'/api/auth/users/{self.viewer.id}/reset-password/',
            {'new_password': 'Nw7$kTr4@yQm'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.viewer.refresh_from_db()
        self.assertTrue(self.viewer.require_password_change)
        self.assertTrue(self.viewer.check_password('Nw7$kTr4@yQm'))


class CreateSuperAdminCommandTests(TestCase):

    def test_creates_super_admin(self):
        out = StringIO()
        call_command('create_super_admin', email='Boss@Example.com', password=STRONG_PASSWORD, stdout=out)
        user = User.objects.get(email='boss@example.com')
        self.assertEqual(user.role, User.ROLE_SUPER_ADMIN)
        self.assertTrue(user.is_superuser)
        self.assertIn('created', out.getvalue())

    def test_promotes_existing_user(self):
        User.objects.create_user('viewer@example.com', STRONG_PASSWORD, role=User.ROLE_VIEWER)
        call_command('create_super_admin', email='viewer@example.com', password=STRONG_PASSWORD, stdout=StringIO())
        self.assertTrue(User.objects.get(email='viewer@example.com').is_super_admin)

    def test_rejects_weak_password(self):
        with self.assertRaises(CommandError):
            call_command('create_super_admin', email='x@example.com', password='weak', stdout=StringIO())
