import pytest
from django.urls import reverse
from rest_framework import status
from apps.budget.models import BudgetCategory
from apps.budget.services import (
    CategoryInUseError,
    InvalidCategoryListError,
    UnknownCategoryError,
    is_known_category,
    list_categories,
    require_known_category,
    save_categories,
)


# =============================================================================
# Category Service Tests
# =============================================================================

@pytest.mark.django_db
class TestListCategories:

    def test_defaults_served_until_saved(self, settings):
        """Without a stored list the configured defaults are returned."""
        assert list_categories() == settings.DEFAULT_BUDGET_CATEGORIES
        assert not BudgetCategory.objects.exists()

    def test_saved_list_replaces_defaults(self):
        save_categories(names=['Fitout', 'Security'])

        assert list_categories() == ['Fitout', 'Security']
        assert is_known_category('Security')
        assert not is_known_category('HVAC')

    def test_require_known_category_rejects_unknown(self):
        with pytest.raises(UnknownCategoryError):
            require_known_category('Catering')

        assert require_known_category('HVAC') == 'HVAC'


@pytest.mark.django_db
class TestSaveCategories:

    def test_names_are_stripped_and_deduplicated_in_order(self):
        saved = save_categories(names=[' HVAC ', 'Fitout', 'HVAC', 'Other'])

        assert saved == ['HVAC', 'Fitout', 'Other']
        assert list(
            BudgetCategory.objects.values_list('name', 'position')
        ) == [('HVAC', 0), ('Fitout', 1), ('Other', 2)]

    @pytest.mark.parametrize('names', [[], ['  '], 'HVAC', [None]])
    def test_invalid_lists_rejected(self, names):
        with pytest.raises(InvalidCategoryListError):
            save_categories(names=names)

    def test_removing_used_category_rejected(self, electrical_item):
        with pytest.raises(CategoryInUseError) as exc_info:
            save_categories(names=['Fitout', 'HVAC'])

        assert 'Electrical' in str(exc_info.value.detail)
        assert not BudgetCategory.objects.exists()

    def test_keeping_used_category_allowed(self, electrical_item):
        assert save_categories(names=['Electrical']) == ['Electrical']


# =============================================================================
# Category API Tests
# =============================================================================

@pytest.mark.django_db
class TestCategoryAPI:
    """Tests for GET/PUT /api/budgetCategories/"""

    def test_get_categories(self, user_client, settings):
        url = reverse('budget:budget-categories')
        response = user_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['data']['categories'] == settings.DEFAULT_BUDGET_CATEGORIES

    def test_admin_replaces_categories(self, admin_client):
        url = reverse('budget:budget-categories')
        response = admin_client.put(url, {'categories': ['Fitout', 'MEP']}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['categories'] == ['Fitout', 'MEP']
        assert list_categories() == ['Fitout', 'MEP']

    def test_regular_user_cannot_replace_categories(self, user_client):
        url = reverse('budget:budget-categories')
        response = user_client.put(url, {'categories': ['Fitout']}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['code'] == 'permission_denied'

    def test_removing_used_category_is_conflict(self, admin_client, electrical_item):
        url = reverse('budget:budget-categories')
        response = admin_client.put(url, {'categories': ['Fitout']}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body['success'] is False
        assert body['code'] == 'category_in_use'

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('budget:budget-categories'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['success'] is False
