"""
Serializer fields shared by the budget and procurement APIs.
"""
from decimal import ROUND_HALF_UP

from rest_framework import serializers


class MoneyField(serializers.DecimalField):
    """
    Read-only money output, rounded half-up to 2 decimal places.

    Stored values keep 6 decimal places; rounding happens only here.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 20)
        kwargs.setdefault('decimal_places', 2)
        kwargs.setdefault('rounding', ROUND_HALF_UP)
        kwargs.setdefault('read_only', True)
        super().__init__(**kwargs)


class AmountField(serializers.DecimalField):
    """Monetary or quantity input, accepted with up to 6 decimal places."""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 20)
        kwargs.setdefault('decimal_places', 6)
        super().__init__(**kwargs)
