import pytest
from decimal import Decimal
from apps.procurement.services import (
    InvalidAmountError,
    InvalidVatTreatmentError,
    compute_vat,
    quantize_money,
)


class TestComputeVat:

    def test_exclusive_adds_vat(self):
        result = compute_vat(Decimal('1000'), 'exclusive')

        assert result.subtotal == Decimal('1000')
        assert result.vat == Decimal('150')
        assert result.total == Decimal('1150')

    def test_inclusive_extracts_vat(self):
        result = compute_vat(Decimal('1150'), 'inclusive')

        assert result.subtotal == Decimal('1000')
        assert result.vat == Decimal('150')
        assert result.total == Decimal('1150')

    def test_not_applicable(self):
        result = compute_vat(Decimal('999.99'), 'not_applicable')

        assert result.subtotal == result.total == Decimal('999.99')
        assert result.vat == Decimal('0')

    @pytest.mark.parametrize('total', ['100', '0.01', '12345.67', '1'])
    def test_inclusive_subtotal_reproduces_total(self, total):
        """Exclusive VAT on an extracted subtotal gives the original total back."""
        subtotal = compute_vat(Decimal(total), 'inclusive').subtotal

        assert compute_vat(subtotal, 'exclusive').rounded().total == Decimal(total).quantize(Decimal('0.01'))

    def test_rounding_only_on_request(self):
        result = compute_vat(Decimal('0.10'), 'exclusive')

        assert result.vat == Decimal('0.015')
        assert result.rounded().vat == Decimal('0.02')

    def test_wire_numbers_accepted(self):
        assert compute_vat(0.1, 'exclusive').subtotal == Decimal('0.1')
        assert compute_vat('200', 'exclusive').total == Decimal('230')

    def test_custom_rate(self):
        assert compute_vat(Decimal('100'), 'exclusive', rate=Decimal('0.05')).total == Decimal('105')

    def test_rate_from_settings(self, settings):
        settings.VAT_RATE = Decimal('0.20')

        assert compute_vat(Decimal('100'), 'exclusive').vat == Decimal('20')

    def test_unknown_treatment(self):
        with pytest.raises(InvalidVatTreatmentError):
            compute_vat(Decimal('1'), 'zero_rated')

    @pytest.mark.parametrize('value', ['abc', 'NaN', True, [1]])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(InvalidAmountError):
            compute_vat(value, 'exclusive')


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal('2.675')) == Decimal('2.68')
    assert quantize_money(Decimal('-2.675')) == Decimal('-2.68')
