"""
Line-item value types stored in the JSON columns of procurement documents.

Numbers are kept as ``Decimal`` in memory and as decimal strings in JSON so
no value ever passes through a binary float.
"""

from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from typing import Optional


def parse_decimal(value, default=Decimal('0')) -> Decimal:
    """
    Convert a JSON number or numeric string to ``Decimal``.

    Floats are converted through ``str`` to keep their shortest repr
    (``0.1`` becomes ``Decimal('0.1')``).

    Raises:
        ValueError: If the value is not a finite number
    """
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValueError(f'Not a number: {value!r}')
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f'Not a number: {value!r}')
    else:
        raise ValueError(f'Not a number: {value!r}')

    if not result.is_finite():
        raise ValueError(f'Not a finite number: {value!r}')
    return result


def _dump(values: dict) -> dict:
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in values.items()
    }


@dataclass
class LineItem:
    """One priced line of a purchase order or vendor invoice."""

    description: str = ''
    quantity: Decimal = Decimal('0')
    unit_price: Decimal = Decimal('0')
    budget_category: Optional[str] = None
    unit: str = ''

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        return cls(
            description=data.get('description') or '',
            quantity=parse_decimal(data.get('quantity')),
            unit_price=parse_decimal(data.get('unit_price')),
            budget_category=data.get('budget_category') or None,
            unit=data.get('unit') or '',
        )

    def to_dict(self) -> dict:
        values = asdict(self)
        values['total'] = self.total
        return _dump(values)


@dataclass
class LineItemPayment:
    """Amount paid against one line of the source document."""

    line_index: int
    description: str = ''
    quantity: Decimal = Decimal('0')
    unit_price: Decimal = Decimal('0')
    line_total: Decimal = Decimal('0')
    payment_type: str = 'full'
    payment_value: Decimal = Decimal('0')
    previously_paid: Decimal = Decimal('0')
    remaining: Decimal = Decimal('0')
    payment_amount: Decimal = Decimal('0')
    budget_category: Optional[str] = None
    remaining_percentage: Decimal = field(default=Decimal('0'))

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItemPayment':
        return cls(
            line_index=int(data['line_index']),
            description=data.get('description') or '',
            quantity=parse_decimal(data.get('quantity')),
            unit_price=parse_decimal(data.get('unit_price')),
            line_total=parse_decimal(data.get('line_total')),
            payment_type=data.get('payment_type') or 'full',
            payment_value=parse_decimal(data.get('payment_value')),
            previously_paid=parse_decimal(data.get('previously_paid')),
            remaining=parse_decimal(data.get('remaining')),
            payment_amount=parse_decimal(data.get('payment_amount')),
            budget_category=data.get('budget_category') or None,
            remaining_percentage=parse_decimal(data.get('remaining_percentage')),
        )

    def to_dict(self) -> dict:
        return _dump(asdict(self))
