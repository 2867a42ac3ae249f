"""
Test suite for the Core module
Tests: error envelope, exception handler, auth endpoints, audit logging and operator commands
"""
from io import StringIO
from django.core.management import call_command
from django.db import DatabaseError
from django.http import Http404
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from shipdeck.core.exceptions import InternalError, envelope_exception_handler, get_error_code
from shipdeck.core.models import AuditLog
from shipdeck.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from shipdeck.core.utils import create_audit_log
from shipdeck.hotfixes.models import Hotfix
from shipdeck.releases.services import ReleaseNotApproved


class ExceptionHandlerTests(TestCase):
    """Test that every failure is rendered as the error envelope"""

    def test_validation_error_with_field_details(self):
        response = envelope_exception_handler(ValidationError({'name': ['This field is required.']}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['success'], False)
        self.assertIsNone(response.data['data'])
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertEqual(response.data['error']['message'], 'Invalid input.')
        self.assertIn('name', response.data['error']['details'])

    def test_single_message_validation_error(self):
        response = envelope_exception_handler(ValidationError('Bad value'), {})
        self.assertEqual(response.data['error']['message'], 'Bad value')
        self.assertIsNone(response.data['error']['details'])

    def test_not_found(self):
        response = envelope_exception_handler(NotFound('Release 5 not found'), {})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')
        self.assertEqual(response.data['error']['message'], 'Release 5 not found')

    def test_django_http404_maps_to_not_found(self):
        response = envelope_exception_handler(Http404(), {})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_forbidden(self):
        response = envelope_exception_handler(PermissionDenied(), {})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'FORBIDDEN')

    def test_explicit_error_code_wins(self):
        self.assertEqual(get_error_code(ReleaseNotApproved()), 'RELEASE_NOT_APPROVED')
        self.assertEqual(get_error_code(InternalError()), 'INTERNAL_ERROR')

    def test_database_error_is_internal_error(self):
        with self.assertLogs('shipdeck.core', level='ERROR'):
            response = envelope_exception_handler(DatabaseError('connection lost'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'INTERNAL_ERROR')
        self.assertNotIn('connection lost', response.data['error']['message'])

    def test_unexpected_error_is_internal_error(self):
        with self.assertLogs('shipdeck.core', level='ERROR'):
            response = envelope_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'INTERNAL_ERROR')


class AuthAPITests(TestCase):
    """Test auth endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'release_manager',
            'email': 'rm@example.com',
            'password': 'Shipping-Season-42',
            'password_confirm': 'Shipping-Season-42',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['user']['username'], 'release_manager')
        self.assertIn('access', response.data['data'])

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'release_manager',
            'password': 'Shipping-Season-42',
            'password_confirm': 'Shipping-Season-43',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_login_returns_tokens_in_envelope(self):
        TestDataFactory.create_user(username='qa_lead', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'qa_lead', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertIn('access', response.data['data'])
        self.assertIn('refresh', response.data['data'])

    def test_login_wrong_password(self):
        TestDataFactory.create_user(username='qa_lead', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'qa_lead', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_refresh(self):
        TestDataFactory.create_user(username='qa_lead', password='testpass123')
        login = self.client.post('/api/v1/auth/login/', {'username': 'qa_lead', 'password': 'testpass123'}, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['data']['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['data'])

    def test_me(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['username'], user.username)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuditLogTests(TestCase):
    """Test audit logging helpers and endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log(self):
        log = create_audit_log(user=self.user, action='create', model_name='Release', object_id=7,
                               object_name='v1.0', changes={'name': 'v1.0'})
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes, {'name': 'v1.0'})

    def test_create_audit_log_skips_missing_fields(self):
        with self.assertLogs('shipdeck.core', level='WARNING'):
            self.assertIsNone(create_audit_log(user=self.user, action='create'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_list_requires_admin(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'FORBIDDEN')

    def test_audit_log_list_filters(self):
        create_audit_log(user=self.user, action='deploy', model_name='Release', object_id=1)
        create_audit_log(user=self.user, action='create', model_name='Hotfix', object_id=2)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?model_name=Release')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['data'][0]['action'], 'deploy')
        self.assertEqual(response.data['data'][0]['username'], self.user.username)


class CheckOrphanHotfixesCommandTests(TestCase):
    """Test the check_orphan_hotfixes management command"""

    def setUp(self):
        self.release = TestDataFactory.create_release()
        self.kept = TestDataFactory.create_hotfix(self.release, title='Still attached')
        doomed = TestDataFactory.create_release()
        self.orphan = TestDataFactory.create_hotfix(doomed, title='Left behind')
        doomed.delete()

    def test_lists_orphans(self):
        out = StringIO()
        call_command('check_orphan_hotfixes', stdout=out)
        output = out.getvalue()
        self.assertIn('Found 1 orphaned hotfix(es)', output)
        self.assertIn('Left behind', output)
        self.assertNotIn('Still attached', output)
        self.assertEqual(Hotfix.objects.count(), 2)

    def test_delete_orphans(self):
        out = StringIO()
        call_command('check_orphan_hotfixes', '--delete', stdout=out)
        self.assertIn('Deleted 1 orphaned hotfix(es)', out.getvalue())
        self.assertEqual(list(Hotfix.objects.values_list('id', flat=True)), [self.kept.id])

    def test_no_orphans(self):
        Hotfix.objects.filter(id=self.orphan.id).delete()
        out = StringIO()
        call_command('check_orphan_hotfixes', stdout=out)
        self.assertIn('No orphaned hotfixes found', out.getvalue())
