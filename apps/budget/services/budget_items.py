"""
Budget item management service.

Handles creation, editing and guarded deletion of per-project budget lines.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.budget.models import BudgetItem

from .categories import require_known_category
from .exceptions import (
    BudgetItemInUseError,
    BudgetItemNotFoundError,
    DuplicateBudgetItemError,
)

logger = logging.getLogger(__name__)


def get_budget_item(item_id: UUID, *, for_update: bool = False) -> BudgetItem:
    queryset = BudgetItem.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=item_id)
    except BudgetItem.DoesNotExist:
        raise BudgetItemNotFoundError()


def list_budget_items(project_id: Optional[str] = None) -> QuerySet:
    queryset = BudgetItem.objects.all()
    if project_id:
        queryset = queryset.filter(project_id=project_id)
    return queryset.order_by('project_id', 'category')


def _describe_references(references: dict) -> str:
    labels = {
        'purchase_orders': 'purchase order(s)',
        'vendor_invoices': 'vendor invoice(s)',
        'payments': 'payment(s)',
    }
    return ', '.join(
        f"{count} {labels[key]}" for key, count in references.items() if count
    )


def _check_not_referenced(item: BudgetItem) -> None:
    from apps.procurement.services.budget_impact import category_references

    references = category_references(item.project_id, item.category)
    if any(references.values()):
        raise BudgetItemInUseError(
            f'Cannot delete budget item "{item.name or item.category}" because it is '
            f'referenced by {_describe_references(references)}.'
        )


@transaction.atomic
def create_budget_item(
    *,
    project_id: str,
    category: str,
    budgeted: Decimal,
    name: str = ''
) -> BudgetItem:
    """
    Create the budget line of a project for one category.

    Raises:
        UnknownCategoryError: If the category is not in the category table
        DuplicateBudgetItemError: If the project already budgets this category
    """
    require_known_category(category)

    try:
        with transaction.atomic():
            item = BudgetItem.objects.create(
                project_id=project_id,
                category=category,
                name=name or category,
                budgeted=budgeted,
            )
    except IntegrityError:
        raise DuplicateBudgetItemError(
            f'Project {project_id} already has a budget item for "{category}".'
        )

    logger.info("Budget item created for %s/%s (%s)", project_id, category, budgeted)
    return item


@transaction.atomic
def update_budget_item(
    *,
    item_id: UUID,
    name: Optional[str] = None,
    budgeted: Optional[Decimal] = None,
    category: Optional[str] = None
) -> BudgetItem:
    """
    Update a budget item.

    Re-categorising is only possible while no document of the project
    references the old category, since reserved/actual belong to it.

    Raises:
        BudgetItemNotFoundError: If the item doesn't exist
        UnknownCategoryError: If the new category is not known
        BudgetItemInUseError: If the old category is still referenced
        DuplicateBudgetItemError: If the new category is already budgeted
    """
    item = get_budget_item(item_id, for_update=True)

    if name is not None:
        item.name = name
    if budgeted is not None:
        item.budgeted = budgeted

    if category is not None and category != item.category:
        require_known_category(category)
        _check_not_referenced(item)
        if item.reserved or item.actual:
            raise BudgetItemInUseError(
                'Cannot change the category of a budget item with reserved or actual amounts.'
            )
        item.category = category

    try:
        with transaction.atomic():
            item.save()
    except IntegrityError:
        raise DuplicateBudgetItemError(
            f'Project {item.project_id} already has a budget item for "{item.category}".'
        )
    return item


@transaction.atomic
def delete_budget_item(*, item_id: UUID) -> None:
    """
    Delete a budget item.

    Raises:
        BudgetItemNotFoundError: If the item doesn't exist
        BudgetItemInUseError: If a purchase order, vendor invoice or payment
            of the same project references the item's category
    """
    item = get_budget_item(item_id, for_update=True)
    _check_not_referenced(item)
    item.delete()
    logger.info("Budget item %s/%s deleted", item.project_id, item.category)
