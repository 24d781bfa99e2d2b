import pytest
from django.urls import reverse
from rest_framework import status
from apps.sequences.services import NumberSequenceService


@pytest.mark.django_db
class TestSequenceApi:
    """Tests for /api/sequences/"""

    def test_next_then_peek(self, user_client):
        """POST next consumes, GET previews."""
        url = reverse('sequences:sequence-next', kwargs={'entity': 'purchaseOrder'})
        first = user_client.post(url)
        second = user_client.post(url)

        assert first.status_code == status.HTTP_200_OK
        assert first.json() == {
            'success': True,
            'data': {
                'entity': 'purchaseOrder',
                'value': 1,
                'number': first.json()['data']['number'],
            },
        }
        assert first.json()['data']['number'].startswith('PO-')
        assert second.json()['data']['value'] == 2

        response = user_client.get(
            reverse('sequences:sequence-detail', kwargs={'entity': 'purchaseOrder'})
        )
        assert response.json()['data']['current'] == 3

    def test_peek_unknown_entity(self, user_client):
        """An unseen counter previews 1."""
        url = reverse('sequences:sequence-detail', kwargs={'entity': 'claim'})
        response = user_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data'] == {'entity': 'claim', 'current': 1}

    def test_list(self, user_client):
        """All counters are listed."""
        NumberSequenceService.next_value('invoice')
        response = user_client.get(reverse('sequences:sequence-list'))

        assert response.status_code == status.HTTP_200_OK
        assert [s['entity'] for s in response.json()['data']] == ['invoice']

    def test_admin_can_override(self, admin_client):
        """Admins set the next value."""
        url = reverse('sequences:sequence-detail', kwargs={'entity': 'payment'})
        response = admin_client.put(url, {'current': 50}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['current'] == 50
        assert NumberSequenceService.next_value('payment') == 50

    def test_user_cannot_override(self, user_client):
        """Regular users cannot change counters."""
        url = reverse('sequences:sequence-detail', kwargs={'entity': 'payment'})
        response = user_client.put(url, {'current': 50}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['success'] is False

    def test_override_rejects_zero(self, admin_client):
        """Counters start at 1."""
        url = reverse('sequences:sequence-detail', kwargs={'entity': 'payment'})
        response = admin_client.put(url, {'current': 0}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body['success'] is False
        assert body['code'] == 'invalid'
        assert 'current' in body['details']

    def test_invalid_key(self, user_client):
        """Keys with unsupported characters are rejected."""
        url = reverse('sequences:sequence-next', kwargs={'entity': 'bad.key'})
        response = user_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'invalid_sequence_key'

    def test_requires_authentication(self, api_client):
        """Anonymous callers are refused."""
        response = api_client.post(
            reverse('sequences:sequence-next', kwargs={'entity': 'invoice'})
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
