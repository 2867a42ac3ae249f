"""
Test suite for the Hotfixes module
Tests: creation under a release, listing, updates, deletion and the no-cascade behaviour
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from shipdeck.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from shipdeck.hotfixes import services
from shipdeck.hotfixes.models import Hotfix
from shipdeck.releases import services as release_services


class HotfixServiceTests(TestCase):
    """Test hotfix operations directly"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')

    def test_create_hotfix(self):
        hotfix = services.create_hotfix(
            {'title': 'Fix login', 'payload': {'commit': 'abc123', 'files': ['auth.py']}},
            self.user, self.release.id
        )
        self.assertEqual(hotfix.release_id, self.release.id)
        self.assertEqual(hotfix.created_by, self.user)
        self.assertEqual(hotfix.payload['commit'], 'abc123')

    def test_create_hotfix_for_missing_release_creates_nothing(self):
        with self.assertRaises(NotFound):
            services.create_hotfix({'title': 'Orphan'}, self.user, 999999)
        self.assertEqual(Hotfix.objects.count(), 0)

    def test_create_hotfix_requires_title(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_hotfix({'description': 'no title'}, self.user, self.release.id)
        self.assertIn('title', ctx.exception.detail)
        self.assertEqual(Hotfix.objects.count(), 0)

    def test_create_hotfix_rejects_non_object_payload(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_hotfix({'title': 'Fix', 'payload': ['a', 'b']}, self.user, self.release.id)
        self.assertIn('payload', ctx.exception.detail)

    def test_find_all_spans_releases(self):
        other = TestDataFactory.create_release(workspace_id='w2')
        first = TestDataFactory.create_hotfix(self.release)
        second = TestDataFactory.create_hotfix(other)
        self.assertEqual([h.id for h in services.find_all_hotfixes()], [first.id, second.id])

    def test_find_by_release(self):
        other = TestDataFactory.create_release()
        first = TestDataFactory.create_hotfix(self.release)
        TestDataFactory.create_hotfix(other)
        second = TestDataFactory.create_hotfix(self.release)
        self.assertEqual([h.id for h in services.find_hotfixes_by_release(self.release.id)], [first.id, second.id])

    def test_find_by_unknown_release_is_empty(self):
        self.assertEqual(list(services.find_hotfixes_by_release(999999)), [])

    def test_find_by_id_missing(self):
        with self.assertRaises(NotFound):
            services.find_hotfix_by_id(999999)

    def test_find_by_id_out_of_range(self):
        with self.assertRaises(NotFound):
            services.find_hotfix_by_id(2 ** 70)

    def test_update_hotfix(self):
        hotfix = TestDataFactory.create_hotfix(self.release, title='Old')
        updated = services.update_hotfix(hotfix.id, {'title': 'New', 'payload': {'ticket': 'OPS-1'}}, self.user)
        self.assertEqual(updated.title, 'New')
        self.assertEqual(updated.payload, {'ticket': 'OPS-1'})
        self.assertEqual(updated.updated_by, self.user)

    def test_update_keeps_release_reference(self):
        other = TestDataFactory.create_release()
        hotfix = TestDataFactory.create_hotfix(self.release)
        services.update_hotfix(hotfix.id, {'release': other.id, 'release_id': other.id}, self.user)
        hotfix.refresh_from_db()
        self.assertEqual(hotfix.release_id, self.release.id)

    def test_update_missing_hotfix(self):
        with self.assertRaises(NotFound):
            services.update_hotfix(999999, {'title': 'ghost'}, self.user)

    def test_delete_hotfix(self):
        hotfix = TestDataFactory.create_hotfix(self.release)
        services.delete_hotfix(hotfix.id, self.user)
        self.assertFalse(Hotfix.objects.filter(id=hotfix.id).exists())

    def test_delete_missing_hotfix(self):
        with self.assertRaises(NotFound):
            services.delete_hotfix(999999, self.user)

    def test_deleting_release_keeps_hotfixes(self):
        """Release deletion does not cascade to its hotfixes"""
        hotfix = TestDataFactory.create_hotfix(self.release)
        release_id = self.release.id
        release_services.delete_release(release_id, self.user)

        remaining = list(services.find_hotfixes_by_release(release_id))
        self.assertEqual([h.id for h in remaining], [hotfix.id])
        self.assertEqual(services.find_hotfix_by_id(hotfix.id).release_id, release_id)


class HotfixAPITests(TestCase):
    """Test Hotfix API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.release = TestDataFactory.create_release(workspace_id='w1', name='v1.0')

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/hotfixes/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_create_hotfix(self):
        response = self.client.post(
            f'/api/v1/hotfixes/release/{self.release.id}/',
            {'title': 'Patch crash', 'description': 'Null check', 'payload': {'commit': 'deadbeef'}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        data = response.data['data']
        self.assertEqual(data['release_id'], self.release.id)
        self.assertEqual(data['payload'], {'commit': 'deadbeef'})
        self.assertEqual(data['created_by_username'], self.user.username)

    def test_create_hotfix_for_missing_release(self):
        response = self.client.post('/api/v1/hotfixes/release/999999/', {'title': 'Orphan'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')
        self.assertEqual(Hotfix.objects.count(), 0)

    def test_create_hotfix_without_title(self):
        response = self.client.post(f'/api/v1/hotfixes/release/{self.release.id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('title', response.data['error']['details'])

    def test_list_all_hotfixes(self):
        TestDataFactory.create_hotfix(self.release)
        TestDataFactory.create_hotfix(TestDataFactory.create_release(workspace_id='w2'))
        response = self.client.get('/api/v1/hotfixes/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)

    def test_list_hotfixes_by_release(self):
        hotfix = TestDataFactory.create_hotfix(self.release)
        TestDataFactory.create_hotfix(TestDataFactory.create_release())
        response = self.client.get(f'/api/v1/hotfixes/release/{self.release.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([h['id'] for h in response.data['data']], [hotfix.id])

    def test_list_hotfixes_for_unknown_release(self):
        response = self.client.get('/api/v1/hotfixes/release/999999/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])

    def test_get_hotfix(self):
        hotfix = TestDataFactory.create_hotfix(self.release, title='Cache fix')
        response = self.client.get(f'/api/v1/hotfixes/{hotfix.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['title'], 'Cache fix')

    def test_get_missing_hotfix(self):
        response = self.client.get('/api/v1/hotfixes/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_patch_hotfix(self):
        hotfix = TestDataFactory.create_hotfix(self.release, title='Old')
        response = self.client.patch(f'/api/v1/hotfixes/{hotfix.id}/', {'title': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['title'], 'New')

    def test_delete_hotfix_returns_null_payload(self):
        hotfix = TestDataFactory.create_hotfix(self.release)
        response = self.client.delete(f'/api/v1/hotfixes/{hotfix.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertIsNone(response.data['data'])
        self.assertFalse(Hotfix.objects.filter(id=hotfix.id).exists())

    def test_hotfixes_survive_release_deletion(self):
        hotfix = TestDataFactory.create_hotfix(self.release)
        response = self.client.delete(f'/api/v1/releases/{self.release.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.get(f'/api/v1/hotfixes/release/{self.release.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([h['id'] for h in response.data['data']], [hotfix.id])
