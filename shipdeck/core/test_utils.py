"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from shipdeck.releases.models import Release
from shipdeck.hotfixes.models import Hotfix
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_release(workspace_id='w1', name=None, version='', user=None, **extra):
        """Create a test release directly in the database"""
        if not name:
            name = f'Release_{TestDataFactory.random_string(6)}'
        return Release.objects.create(
            workspace_id=workspace_id,
            name=name,
            version=version,
            created_by=user,
            updated_by=user,
            **extra
        )

    @staticmethod
    def create_hotfix(release, title=None, description='', payload=None, user=None):
        """Create a test hotfix attached to a release"""
        if not title:
            title = f'Hotfix_{TestDataFactory.random_string(6)}'
        return Hotfix.objects.create(
            release=release,
            title=title,
            description=description,
            payload=payload or {},
            created_by=user,
            updated_by=user
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
