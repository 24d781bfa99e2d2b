"""
Budget ledger service.

Maintains the ``reserved`` and ``actual`` running totals on BudgetItem rows.
Every mutation locks the affected rows with ``select_for_update()`` inside the
caller's transaction, so concurrent workflow transitions cannot lose updates.

Only workflow transition handlers call into this module.
"""

import enum
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from apps.budget.models import BudgetItem

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


class ReserveDirection(enum.Enum):
    RESERVE = 'reserve'
    RELEASE = 'release'


def _lock_item(project_id: str, category: str) -> Optional[BudgetItem]:
    item = (
        BudgetItem.objects
        .select_for_update()
        .filter(project_id=project_id, category=category)
        .first()
    )
    if item is None:
        logger.warning(
            "Project %s has no budget item for category %r; ledger update skipped",
            project_id, category,
        )
    return item


def _positive(amount) -> Optional[Decimal]:
    amount = Decimal(amount)
    if amount < ZERO:
        logger.warning("Negative ledger amount %s ignored", amount)
        return None
    if amount == ZERO:
        return None
    return amount


@transaction.atomic
def reserve(
    *,
    project_id: str,
    category: str,
    amount: Decimal,
    direction: ReserveDirection = ReserveDirection.RESERVE
) -> Optional[BudgetItem]:
    """
    Add to (or release from) the reserved total of a budget item.

    Releasing never takes ``reserved`` below zero.

    Args:
        project_id: Project the budget item belongs to
        category: Budget category
        amount: Net-of-VAT amount
        direction: RESERVE adds, RELEASE subtracts

    Returns:
        The updated BudgetItem, or None when the project has no item for
        the category (or the amount is zero)
    """
    amount = _positive(amount)
    if amount is None:
        return None

    item = _lock_item(project_id, category)
    if item is None:
        return None

    before = item.reserved
    if direction == ReserveDirection.RESERVE:
        item.reserved = before + amount
    else:
        item.reserved = max(ZERO, before - amount)
    item.save(update_fields=['reserved', 'updated_at'])

    logger.info(
        "Ledger %s %s on %s/%s: reserved %s -> %s",
        direction.value, amount, project_id, category, before, item.reserved,
    )
    return item


@transaction.atomic
def record_actual(
    *,
    project_id: str,
    category: str,
    amount: Decimal
) -> Optional[BudgetItem]:
    """
    Add a paid amount to the actual total of a budget item.

    Returns:
        The updated BudgetItem, or None when skipped
    """
    amount = _positive(amount)
    if amount is None:
        return None

    item = _lock_item(project_id, category)
    if item is None:
        return None

    before = item.actual
    item.actual = before + amount
    item.save(update_fields=['actual', 'updated_at'])

    logger.info(
        "Ledger actual %s on %s/%s: actual %s -> %s",
        amount, project_id, category, before, item.actual,
    )
    return item


def reserve_amounts(
    *,
    project_id: str,
    amounts: Dict[str, Decimal],
    direction: ReserveDirection = ReserveDirection.RESERVE
) -> List[BudgetItem]:
    """Apply ``reserve`` for every category of a per-category amount map."""
    updated = []
    # Sorted so concurrent transactions lock rows in the same order
    for category in sorted(amounts):
        item = reserve(
            project_id=project_id,
            category=category,
            amount=amounts[category],
            direction=direction,
        )
        if item is not None:
            updated.append(item)
    return updated


def record_actual_amounts(
    *,
    project_id: str,
    amounts: Dict[str, Decimal]
) -> List[BudgetItem]:
    """Apply ``record_actual`` for every category of a per-category amount map."""
    updated = []
    for category in sorted(amounts):
        item = record_actual(
            project_id=project_id,
            category=category,
            amount=amounts[category],
        )
        if item is not None:
            updated.append(item)
    return updated


@transaction.atomic
def rebuild_project_ledger(project_id: str) -> List[BudgetItem]:
    """
    Recompute reserved and actual totals of a project from its documents.

    Repairs drift in the cached totals, e.g. after manual database edits.

    Returns:
        The project's budget items with rebuilt totals
    """
    from apps.procurement.services.budget_impact import (
        committed_actuals,
        committed_reservations,
    )

    reserved = committed_reservations(project_id)
    actual = committed_actuals(project_id)

    items = list(
        BudgetItem.objects
        .select_for_update()
        .filter(project_id=project_id)
        .order_by('category')
    )
    now = timezone.now()
    for item in items:
        item.updated_at = now
        item.reserved = max(ZERO, reserved.pop(item.category, ZERO))
        item.actual = max(ZERO, actual.pop(item.category, ZERO))
    BudgetItem.objects.bulk_update(items, ['reserved', 'actual', 'updated_at'])

    for category in sorted(set(reserved) | set(actual)):
        logger.warning(
            "Project %s has committed amounts for category %r but no budget item",
            project_id, category,
        )

    logger.info("Ledger rebuilt for project %s (%s budget items)", project_id, len(items))
    return items
