import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User, UserRole


@pytest.mark.django_db
class TestUserModel:

    def test_create_user_defaults_to_user_role(self):
        user = User.objects.create_user(email='Site@Example.COM', password='TestPass123!')

        assert user.email == 'Site@example.com'
        assert user.role == UserRole.USER
        assert not user.is_admin
        assert user.get_display_name() == 'Site'

    def test_superuser_is_admin(self):
        user = User.objects.create_superuser(email='root@example.com', password='TestPass123!')

        assert user.is_staff
        assert user.is_admin

    def test_email_required(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='TestPass123!')


@pytest.mark.django_db
class TestTokenObtain:
    """Tests for POST /api/auth/token/"""

    def test_obtain_token_pair(self, api_client, user):
        url = reverse('accounts:token-obtain')
        response = api_client.post(url, {
            'email': 'requester@example.com',
            'password': 'TestPass123!',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert 'access' in body['data']
        assert 'refresh' in body['data']

    def test_wrong_password(self, api_client, user):
        url = reverse('accounts:token-obtain')
        response = api_client.post(url, {
            'email': 'requester@example.com',
            'password': 'wrong',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['success'] is False

    def test_refresh(self, api_client, user):
        tokens = api_client.post(reverse('accounts:token-obtain'), {
            'email': 'requester@example.com',
            'password': 'TestPass123!',
        }, format='json').json()['data']

        response = api_client.post(
            reverse('accounts:token-refresh'), {'refresh': tokens['refresh']}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.json()['data']

    def test_access_token_authenticates(self, user_client):
        response = user_client.get(reverse('budget:budget-categories'))

        assert response.status_code == status.HTTP_200_OK


@pytest.mark.django_db
def test_health_check_is_public(api_client):
    response = api_client.get(reverse('health-check'))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {'success': True, 'data': {'status': 'ok'}}
