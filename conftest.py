import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a regular (non-approver) user."""
    return User.objects.create_user(
        email='requester@example.com',
        password='TestPass123!',
        display_name='Site Engineer',
    )


@pytest.fixture
def admin_user(db):
    """Create and return an approver."""
    return User.objects.create_user(
        email='approver@example.com',
        password='TestPass123!',
        display_name='Finance Manager',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def second_admin(db):
    """Create and return a second approver (for self-approval checks)."""
    return User.objects.create_user(
        email='controller@example.com',
        password='TestPass123!',
        display_name='Financial Controller',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def user_client(user):
    """Return API client authenticated as a regular user."""
    return _client_for(user)


@pytest.fixture
def admin_client(admin_user):
    """Return API client authenticated as an approver."""
    return _client_for(admin_user)


@pytest.fixture
def second_admin_client(second_admin):
    """Return API client authenticated as the second approver."""
    return _client_for(second_admin)
