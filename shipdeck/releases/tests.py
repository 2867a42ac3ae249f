"""
Test suite for the Releases module
Tests: creation, workspace listing, updates, QA status, deploy, deletion and the API envelope
"""
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from shipdeck.core.models import AuditLog
from shipdeck.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from shipdeck.releases import services
from shipdeck.releases.models import Release
from shipdeck.releases.services import ReleaseNotApproved


class ReleaseServiceTests(TestCase):
    """Test release lifecycle operations directly"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_create_release_defaults(self):
        """A new release starts pending and not deployed"""
        release = services.create_release({'workspace_id': 'w1', 'name': 'v1.0'}, self.user)
        self.assertEqual(release.qa_status, Release.QA_PENDING)
        self.assertFalse(release.deployed)
        self.assertIsNone(release.deployed_at)
        self.assertEqual(release.created_by, self.user)
        self.assertEqual(release.workspace_id, 'w1')

    def test_create_release_without_name_persists_nothing(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_release({'workspace_id': 'w1'}, self.user)
        self.assertIn('name', ctx.exception.detail)
        self.assertEqual(Release.objects.count(), 0)

    def test_create_release_without_workspace_fails(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_release({'name': 'v1.0'}, self.user)
        self.assertIn('workspace_id', ctx.exception.detail)
        self.assertEqual(Release.objects.count(), 0)

    def test_create_release_blank_name_fails(self):
        with self.assertRaises(ValidationError):
            services.create_release({'workspace_id': 'w1', 'name': '   '}, self.user)
        self.assertEqual(Release.objects.count(), 0)

    def test_find_by_workspace_returns_only_workspace_in_creation_order(self):
        first = TestDataFactory.create_release(workspace_id='w1', name='first')
        TestDataFactory.create_release(workspace_id='w2', name='other')
        second = TestDataFactory.create_release(workspace_id='w1', name='second')

        releases = list(services.find_releases_by_workspace('w1'))
        self.assertEqual([r.id for r in releases], [first.id, second.id])

    def test_find_by_workspace_empty(self):
        self.assertEqual(list(services.find_releases_by_workspace('nobody')), [])

    def test_find_by_workspace_filters_by_qa_status(self):
        TestDataFactory.create_release(workspace_id='w1', name='pending one')
        approved = TestDataFactory.create_release(workspace_id='w1', name='approved one', qa_status=Release.QA_APPROVED)

        releases = list(services.find_releases_by_workspace('w1', {'qa_status': 'approved'}))
        self.assertEqual([r.id for r in releases], [approved.id])

    def test_find_by_workspace_rejects_unknown_qa_filter(self):
        with self.assertRaises(ValidationError):
            list(services.find_releases_by_workspace('w1', {'qa_status': 'shipped'}))

    def test_find_by_id_missing(self):
        with self.assertRaises(NotFound):
            services.find_release_by_id(999999)

    def test_update_release_fields(self):
        release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')
        updated = services.update_release(release.id, {'name': 'v1.1', 'description': 'Bug bash'}, self.user)
        self.assertEqual(updated.name, 'v1.1')
        self.assertEqual(updated.description, 'Bug bash')
        self.assertEqual(updated.updated_by, self.user)

    def test_update_ignores_workspace_and_lifecycle_fields(self):
        release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')
        services.update_release(release.id, {'workspace_id': 'w2', 'qa_status': 'approved', 'deployed': True}, self.user)
        release.refresh_from_db()
        self.assertEqual(release.workspace_id, 'w1')
        self.assertEqual(release.qa_status, Release.QA_PENDING)
        self.assertFalse(release.deployed)

    def test_update_missing_release_has_no_side_effect(self):
        TestDataFactory.create_release(workspace_id='w1', name='v1.0')
        audit_count = AuditLog.objects.count()
        with self.assertRaises(NotFound):
            services.update_release(999999, {'name': 'ghost'}, self.user)
        self.assertFalse(Release.objects.filter(name='ghost').exists())
        self.assertEqual(AuditLog.objects.count(), audit_count)

    def test_update_blank_name_rejected(self):
        release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')
        with self.assertRaises(ValidationError):
            services.update_release(release.id, {'name': ''}, self.user)
        release.refresh_from_db()
        self.assertEqual(release.name, 'v1.0')

    def test_qa_status_last_write_wins(self):
        """approved -> pending is allowed; QA status is not an ordered state machine"""
        release = TestDataFactory.create_release()
        services.update_release_qa_status(release.id, 'approved', self.user)
        services.update_release_qa_status(release.id, 'pending', self.user)
        self.assertEqual(services.find_release_by_id(release.id).qa_status, Release.QA_PENDING)

    def test_qa_status_accepts_every_choice(self):
        release = TestDataFactory.create_release()
        for value, _label in Release.QA_STATUS_CHOICES:
            self.assertEqual(services.update_release_qa_status(release.id, value, self.user).qa_status, value)

    def test_qa_status_rejects_unknown_value(self):
        release = TestDataFactory.create_release()
        with self.assertRaises(ValidationError):
            services.update_release_qa_status(release.id, 'shipped', self.user)
        release.refresh_from_db()
        self.assertEqual(release.qa_status, Release.QA_PENDING)

    def test_qa_status_missing_release(self):
        with self.assertRaises(NotFound):
            services.update_release_qa_status(999999, 'approved', self.user)

    def test_qa_status_missing_value_is_required(self):
        release = TestDataFactory.create_release()
        with self.assertRaises(ValidationError) as ctx:
            services.update_release_qa_status(release.id, None, self.user)
        self.assertEqual(ctx.exception.detail['qa_status'][0].code, 'required')

    def test_deploy_sets_flag_timestamp_and_deployer(self):
        release = TestDataFactory.create_release()
        services.deploy_release(release.id, self.user)
        fetched = services.find_release_by_id(release.id)
        self.assertTrue(fetched.deployed)
        self.assertIsNotNone(fetched.deployed_at)
        self.assertEqual(fetched.deployed_by, self.user)
        self.assertTrue(AuditLog.objects.filter(action='deploy', object_id=str(release.id)).exists())

    def test_deploy_twice_is_idempotent(self):
        release = TestDataFactory.create_release()
        first = services.deploy_release(release.id, self.user)
        other_user = TestDataFactory.create_user()
        second = services.deploy_release(release.id, other_user)
        self.assertTrue(second.deployed)
        self.assertEqual(second.deployed_at, first.deployed_at)
        self.assertEqual(second.deployed_by, self.user)
        self.assertEqual(AuditLog.objects.filter(action='deploy', object_id=str(release.id)).count(), 1)

    @override_settings(REQUIRE_QA_APPROVAL_FOR_DEPLOY=False)
    def test_deploy_allowed_without_approval_by_default(self):
        release = TestDataFactory.create_release()
        self.assertTrue(services.deploy_release(release.id, self.user).deployed)

    @override_settings(REQUIRE_QA_APPROVAL_FOR_DEPLOY=True)
    def test_deploy_requires_approval_when_enabled(self):
        release = TestDataFactory.create_release()
        with self.assertRaises(ReleaseNotApproved):
            services.deploy_release(release.id, self.user)
        release.refresh_from_db()
        self.assertFalse(release.deployed)

        services.update_release_qa_status(release.id, 'approved', self.user)
        self.assertTrue(services.deploy_release(release.id, self.user).deployed)

    def test_deploy_missing_release(self):
        with self.assertRaises(NotFound):
            services.deploy_release(999999, self.user)

    def test_delete_release(self):
        release = TestDataFactory.create_release()
        self.assertIsNone(services.delete_release(release.id, self.user))
        with self.assertRaises(NotFound):
            services.find_release_by_id(release.id)
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='Release', object_id=str(release.id)).exists())

    def test_delete_missing_release(self):
        with self.assertRaises(NotFound):
            services.delete_release(999999, self.user)

    def test_release_lifecycle_end_to_end(self):
        release = services.create_release({'workspace_id': 'w1', 'name': 'v1.0'}, self.user)
        services.update_release_qa_status(release.id, 'approved', self.user)
        services.deploy_release(release.id, self.user)
        fetched = services.find_release_by_id(release.id)
        self.assertEqual(fetched.qa_status, 'approved')
        self.assertTrue(fetched.deployed)


class ReleaseAPITests(TestCase):
    """Test Release API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/releases/workspace/w1/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_rejects_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/v1/releases/workspace/w1/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_create_release(self):
        response = self.client.post('/api/v1/releases/', {'workspace_id': 'w1', 'name': 'v1.0', 'version': '1.0.0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertIsNone(response.data['error'])
        data = response.data['data']
        self.assertEqual(data['qa_status'], 'pending')
        self.assertFalse(data['deployed'])
        self.assertEqual(data['created_by'], self.user.id)
        self.assertEqual(data['created_by_username'], self.user.username)

    def test_create_release_without_name(self):
        response = self.client.post('/api/v1/releases/', {'workspace_id': 'w1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIsNone(response.data['data'])
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('name', response.data['error']['details'])
        self.assertEqual(Release.objects.count(), 0)

    def test_list_by_workspace(self):
        first = TestDataFactory.create_release(workspace_id='w1')
        TestDataFactory.create_release(workspace_id='w2')
        second = TestDataFactory.create_release(workspace_id='w1')

        response = self.client.get('/api/v1/releases/workspace/w1/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['id'] for r in response.data['data']], [first.id, second.id])

    def test_list_by_workspace_filters_deployed(self):
        TestDataFactory.create_release(workspace_id='w1')
        deployed = TestDataFactory.create_release(workspace_id='w1', deployed=True)

        response = self.client.get('/api/v1/releases/workspace/w1/?deployed=true')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['id'] for r in response.data['data']], [deployed.id])

    def test_list_by_unknown_workspace_is_empty(self):
        response = self.client.get('/api/v1/releases/workspace/nowhere/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])

    def test_get_release(self):
        release = TestDataFactory.create_release(name='v2.0')
        response = self.client.get(f'/api/v1/releases/{release.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['name'], 'v2.0')

    def test_get_missing_release(self):
        response = self.client.get('/api/v1/releases/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')
        self.assertIn('999999', response.data['error']['message'])

    def test_update_release(self):
        release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')
        response = self.client.put(f'/api/v1/releases/{release.id}/', {'description': 'Notes', 'workspace_id': 'w9'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['description'], 'Notes')
        self.assertEqual(response.data['data']['workspace_id'], 'w1')
        self.assertEqual(response.data['data']['name'], 'v1.0')

    def test_patch_release(self):
        release = TestDataFactory.create_release(name='v1.0')
        response = self.client.patch(f'/api/v1/releases/{release.id}/', {'version': '1.0.1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['version'], '1.0.1')

    def test_update_missing_release(self):
        response = self.client.put('/api/v1/releases/999999/', {'name': 'ghost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_qa_status_endpoint(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/qa/', {'qa_status': 'in-review'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['qa_status'], 'in-review')

    def test_qa_status_endpoint_invalid_value(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/qa/', {'qa_status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('qa_status', response.data['error']['details'])

    def test_qa_status_endpoint_accepts_camel_case_key(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/qa/', {'qaStatus': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['qa_status'], 'approved')
        release.refresh_from_db()
        self.assertTrue(release.is_approved)

    def test_qa_status_endpoint_missing_value(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/qa/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['details']['qa_status'], ['This field is required.'])

    def test_get_release_with_out_of_range_id(self):
        response = self.client.get(f'/api/v1/releases/{2 ** 70}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_deploy_endpoint(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/deploy/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['deployed'])
        self.assertIsNotNone(response.data['data']['deployed_at'])
        self.assertEqual(response.data['data']['deployed_by'], self.user.id)

    @override_settings(REQUIRE_QA_APPROVAL_FOR_DEPLOY=True)
    def test_deploy_endpoint_rejects_unapproved_when_enabled(self):
        release = TestDataFactory.create_release()
        response = self.client.put(f'/api/v1/releases/{release.id}/deploy/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'RELEASE_NOT_APPROVED')
        self.assertEqual(response.data['error']['message'], 'Release must be QA approved before it can be deployed.')

    def test_delete_release(self):
        release = TestDataFactory.create_release()
        response = self.client.delete(f'/api/v1/releases/{release.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Release.objects.filter(id=release.id).exists())

        response = self.client.get(f'/api/v1/releases/{release.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_missing_release(self):
        response = self.client.delete('/api/v1/releases/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_method_not_allowed_uses_envelope(self):
        release = TestDataFactory.create_release()
        response = self.client.post(f'/api/v1/releases/{release.id}/deploy/')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.data['error']['code'], 'METHOD_NOT_ALLOWED')

    def test_end_to_end_release_flow(self):
        response = self.client.post('/api/v1/releases/', {'workspace_id': 'w1', 'name': 'v1.0'}, format='json')
        release_id = response.data['data']['id']
        self.client.put(f'/api/v1/releases/{release_id}/qa/', {'qa_status': 'approved'}, format='json')
        self.client.put(f'/api/v1/releases/{release_id}/deploy/')

        response = self.client.get(f'/api/v1/releases/{release_id}/')
        self.assertEqual(response.data['data']['qa_status'], 'approved')
        self.assertTrue(response.data['data']['deployed'])
