"""
VAT calculation.

Pure functions over ``Decimal``; no database access. Rounding to 2 places
happens only through ``quantize_money`` / ``VatBreakdown.rounded``.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from apps.procurement.lines import parse_decimal
from apps.procurement.models import VatTreatment

from .exceptions import InvalidAmountError, InvalidVatTreatmentError

CENT = Decimal('0.01')
ZERO = Decimal('0')


def vat_rate() -> Decimal:
    return Decimal(str(settings.VAT_RATE))


def to_decimal(value) -> Decimal:
    """
    Convert a wire number to ``Decimal``.

    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    try:
        return parse_decimal(value)
    except ValueError as e:
        raise InvalidAmountError(str(e))


def quantize_money(value) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class VatBreakdown:
    subtotal: Decimal
    vat: Decimal
    total: Decimal

    def rounded(self) -> 'VatBreakdown':
        return VatBreakdown(
            subtotal=quantize_money(self.subtotal),
            vat=quantize_money(self.vat),
            total=quantize_money(self.total),
        )


def compute_vat(raw_total, treatment, rate=None) -> VatBreakdown:
    """
    Split a pre-VAT line-item sum into subtotal, VAT and total.

    - not_applicable: no VAT, total equals the raw sum
    - exclusive: VAT is added on top of the raw sum
    - inclusive: the raw sum already contains VAT, which is extracted

    Args:
        raw_total: Sum of line totals (quantity x unit price)
        treatment: One of VatTreatment
        rate: VAT rate, defaults to ``settings.VAT_RATE`` (0.15)

    Returns:
        VatBreakdown at full precision

    Raises:
        InvalidVatTreatmentError: If the treatment is unknown
        InvalidAmountError: If raw_total is not a number

    Example:
        >>> compute_vat(Decimal('1000'), 'exclusive')
        VatBreakdown(subtotal=Decimal('1000'), vat=Decimal('150.00'), total=Decimal('1150.00'))
    """
    raw = to_decimal(raw_total)
    rate = vat_rate() if rate is None else to_decimal(rate)

    if treatment == VatTreatment.EXCLUSIVE:
        vat = raw * rate
        return VatBreakdown(subtotal=raw, vat=vat, total=raw + vat)

    if treatment == VatTreatment.INCLUSIVE:
        subtotal = raw / (1 + rate)
        return VatBreakdown(subtotal=subtotal, vat=raw - subtotal, total=raw)

    if treatment == VatTreatment.NOT_APPLICABLE:
        return VatBreakdown(subtotal=raw, vat=ZERO, total=raw)

    raise InvalidVatTreatmentError(f'Unknown VAT treatment "{treatment}".')
