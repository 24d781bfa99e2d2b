"""
Budget category management service.

The category table is replaced as a whole by administrators. Until a list
has been saved, ``settings.DEFAULT_BUDGET_CATEGORIES`` is served.
"""

import logging
from typing import Iterable, List

from django.conf import settings
from django.db import transaction

from apps.budget.models import BudgetCategory, BudgetItem

from .exceptions import (
    CategoryInUseError,
    InvalidCategoryListError,
    UnknownCategoryError,
)

logger = logging.getLogger(__name__)


def list_categories() -> List[str]:
    """Return category names in display order."""
    names = list(BudgetCategory.objects.values_list('name', flat=True))
    return names or list(settings.DEFAULT_BUDGET_CATEGORIES)


def is_known_category(name: str) -> bool:
    return name in list_categories()


def require_known_category(name: str) -> str:
    """
    Return ``name`` if it is in the category table.

    Raises:
        UnknownCategoryError: If the category is not known
    """
    if not is_known_category(name):
        raise UnknownCategoryError(f'Unknown budget category "{name}".')
    return name


def _normalise(names: Iterable) -> List[str]:
    if isinstance(names, str) or not isinstance(names, (list, tuple)):
        raise InvalidCategoryListError()

    cleaned = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise InvalidCategoryListError()
        name = name.strip()
        if len(name) > 100:
            raise InvalidCategoryListError('Category names are limited to 100 characters.')
        if name not in cleaned:
            cleaned.append(name)

    if not cleaned:
        raise InvalidCategoryListError('At least one category is required.')
    return cleaned


@transaction.atomic
def save_categories(*, names: Iterable) -> List[str]:
    """
    Replace the category table.

    Names are stripped and de-duplicated, keeping the submitted order.

    Args:
        names: New list of category names

    Returns:
        The stored list

    Raises:
        InvalidCategoryListError: If the list is empty or has blank names
        CategoryInUseError: If a removed category is used by a budget item
    """
    cleaned = _normalise(names)

    used = set(
        BudgetItem.objects
        .exclude(category__in=cleaned)
        .values_list('category', flat=True)
    )
    if used:
        raise CategoryInUseError(
            'Cannot remove budget categories still used by budget items: '
            + ', '.join(sorted(used))
        )

    BudgetCategory.objects.all().delete()
    BudgetCategory.objects.bulk_create([
        BudgetCategory(name=name, position=index)
        for index, name in enumerate(cleaned)
    ])

    logger.info("Budget categories replaced (%s categories)", len(cleaned))
    return cleaned
