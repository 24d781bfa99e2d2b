import pytest
from datetime import date
from apps.sequences.exceptions import InvalidSequenceKeyError, InvalidSequenceValueError
from apps.sequences.models import NumberSequence
from apps.sequences.services import NumberSequenceService


@pytest.mark.django_db
class TestNextValue:
    """Tests for NumberSequenceService.next_value"""

    def test_first_value_is_one(self):
        """An unseen entity starts counting at 1."""
        assert NumberSequenceService.next_value('purchaseOrder') == 1
        assert NumberSequence.objects.get(entity='purchaseOrder').current == 2

    def test_next_next_peek(self):
        """Two consumptions followed by a preview give 1, 2 and 3."""
        assert NumberSequenceService.next_value('purchaseOrder') == 1
        assert NumberSequenceService.next_value('purchaseOrder') == 2
        assert NumberSequenceService.peek('purchaseOrder') == 3

    def test_values_strictly_increase(self):
        """Repeated consumption never repeats a value."""
        values = [NumberSequenceService.next_value('invoice') for _ in range(25)]

        assert values == list(range(1, 26))

    def test_entities_are_independent(self):
        """Each entity has its own counter."""
        NumberSequenceService.next_value('invoice')
        NumberSequenceService.next_value('invoice')

        assert NumberSequenceService.next_value('payment') == 1

    @pytest.mark.parametrize('key', ['', 'bad key', 'x' * 65, 'po/1', None])
    def test_invalid_key_rejected(self, key):
        """Malformed keys are refused before touching the database."""
        with pytest.raises(InvalidSequenceKeyError):
            NumberSequenceService.next_value(key)

        assert NumberSequence.objects.count() == 0


@pytest.mark.django_db
class TestPeekAndOverride:
    """Tests for peek, set_current and list_sequences"""

    def test_peek_unseen_entity_does_not_create_row(self):
        """Previewing an unknown counter shows 1 and stores nothing."""
        assert NumberSequenceService.peek('claim') == 1
        assert not NumberSequence.objects.filter(entity='claim').exists()

    def test_peek_does_not_consume(self):
        """Peeking twice returns the same value."""
        NumberSequenceService.next_value('payment')

        assert NumberSequenceService.peek('payment') == 2
        assert NumberSequenceService.peek('payment') == 2

    def test_set_current_overrides(self):
        """An override changes the next issued value."""
        NumberSequenceService.next_value('payment')
        NumberSequenceService.set_current('payment', 100)

        assert NumberSequenceService.next_value('payment') == 100
        assert NumberSequenceService.peek('payment') == 101

    def test_set_current_creates_missing(self):
        """An override of an unseen entity creates it."""
        NumberSequenceService.set_current('variationOrder', 7)

        assert NumberSequenceService.next_value('variationOrder') == 7

    @pytest.mark.parametrize('value', [0, -3, 'ten', True, 1.5])
    def test_set_current_rejects_invalid_values(self, value):
        """Counters must stay positive integers."""
        with pytest.raises(InvalidSequenceValueError):
            NumberSequenceService.set_current('payment', value)

    def test_list_sequences_ordered(self):
        """Counters are listed alphabetically."""
        NumberSequenceService.next_value('purchaseOrder')
        NumberSequenceService.next_value('invoice')

        entities = [s.entity for s in NumberSequenceService.list_sequences()]
        assert entities == ['invoice', 'purchaseOrder']


class TestFormatNumber:
    """Tests for document number rendering"""

    def test_purchase_order_format(self):
        """Purchase orders carry the year."""
        assert NumberSequenceService.format_number(
            'purchaseOrder', 1, when=date(2026, 3, 1)
        ) == 'PO-2026-0001'

    def test_invoice_format_includes_month(self):
        """Invoices carry year and month."""
        assert NumberSequenceService.format_number(
            'invoice', 42, when=date(2026, 3, 1)
        ) == 'INV-2026-03-0042'

    def test_unknown_entity_uses_generic_prefix(self):
        """Entities without a configured format fall back to DOC."""
        assert NumberSequenceService.format_number('widget', 5) == 'DOC-0005'

    def test_padding_does_not_truncate(self):
        """Values wider than the padding are kept whole."""
        assert NumberSequenceService.format_number('vendor', 123456) == 'VND-123456'
