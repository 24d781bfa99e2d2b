"""
Line item normalisation and document totals.
"""

from decimal import Decimal
from typing import Iterable, List

from apps.budget.services import require_known_category
from apps.procurement.lines import LineItem

from .exceptions import InvalidLineItemsError
from .vat import compute_vat

ZERO = Decimal('0')


def normalise_items(raw_items: Iterable[dict]) -> List[LineItem]:
    """
    Parse and validate submitted line items.

    Raises:
        InvalidLineItemsError: If a line is malformed or negative
        UnknownCategoryError: If a line overrides the category with an unknown one
    """
    if raw_items is None:
        return []
    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise InvalidLineItemsError(f'Line {index} must be an object.')
        try:
            item = LineItem.from_dict(raw)
        except ValueError as e:
            raise InvalidLineItemsError(f'Line {index}: {e}')
        if item.quantity < ZERO or item.unit_price < ZERO:
            raise InvalidLineItemsError(f'Line {index}: quantity and unit price must not be negative.')
        if item.budget_category:
            require_known_category(item.budget_category)
        items.append(item)
    return items


def apply_pricing(document, items: List[LineItem], vat_treatment: str) -> None:
    """Store ``items`` on the document and recompute subtotal, VAT and total."""
    raw_total = sum((item.total for item in items), ZERO)
    breakdown = compute_vat(raw_total, vat_treatment)

    document.items = [item.to_dict() for item in items]
    document.vat_treatment = vat_treatment
    document.subtotal = breakdown.subtotal
    document.vat = breakdown.vat
    document.total = breakdown.total
