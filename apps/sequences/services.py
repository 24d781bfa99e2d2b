"""
Sequence Services Module
========================

Monotonic per-entity document counters and document number formatting.

Classes:
    NumberSequenceService: Consume, preview and override counters.

Example:
    Consuming the next purchase order number::

        from apps.sequences.services import NumberSequenceService

        NumberSequenceService.next_value('purchaseOrder')   # 1
        NumberSequenceService.next_value('purchaseOrder')   # 2
        NumberSequenceService.peek('purchaseOrder')         # 3

        NumberSequenceService.next_document_number('purchaseOrder')
        # 'PO-2026-0003'
"""

import logging
import re
from collections import namedtuple

from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidSequenceKeyError, InvalidSequenceValueError
from .models import NumberSequence

logger = logging.getLogger(__name__)

ENTITY_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')

NumberFormat = namedtuple(
    'NumberFormat',
    ['prefix', 'include_year', 'include_month', 'padding', 'separator'],
)

NUMBER_FORMATS = {
    'project': NumberFormat('PRJ', True, False, 4, '-'),
    'purchaseOrder': NumberFormat('PO', True, False, 4, '-'),
    'vendor': NumberFormat('VND', False, False, 4, '-'),
    'customer': NumberFormat('CUST', False, False, 4, '-'),
    'invoice': NumberFormat('INV', True, True, 4, '-'),
    'payment': NumberFormat('PAY', True, False, 4, '-'),
    'variationOrder': NumberFormat('VO', True, False, 4, '-'),
    'claim': NumberFormat('CLM', True, False, 4, '-'),
    'employee': NumberFormat('EMP', False, False, 4, '-'),
}

DEFAULT_FORMAT = NumberFormat('DOC', False, False, 4, '-')


class NumberSequenceService:
    """
    Service for issuing gap-free, strictly increasing document counters.

    The stored ``current`` value is the next number to hand out. Consuming a
    number reads and increments the row inside one transaction while holding
    a row lock, so two concurrent callers can never receive the same value.

    Methods:
        next_value: Consume the next counter value.
        peek: Preview the next counter value without consuming it.
        set_current: Administrative override of a counter.
        list_sequences: All known counters.
        format_number: Render a counter as a document number.
        next_document_number: Consume and render in one step.
    """

    @staticmethod
    def validate_key(entity):
        """
        Validate an entity key.

        Raises:
            InvalidSequenceKeyError: If the key is empty, too long or has
                characters outside ``[A-Za-z0-9_-]``.
        """
        if not isinstance(entity, str) or not ENTITY_KEY_PATTERN.match(entity):
            raise InvalidSequenceKeyError()
        return entity

    @staticmethod
    def next_value(entity):
        """
        Consume and return the next counter value for ``entity``.

        An unseen entity starts at 1: the row is inserted with ``current=2``
        and 1 is returned.

        Args:
            entity (str): Sequence key, e.g. ``'purchaseOrder'``.

        Returns:
            int: The consumed (pre-increment) value.

        Raises:
            InvalidSequenceKeyError: If the key is malformed.

        Note:
            ``select_for_update().get_or_create`` locks an existing row, and
            a concurrent insert of the same key is resolved by the primary key
            constraint (get_or_create retries the lookup under the lock).
        """
        NumberSequenceService.validate_key(entity)

        with transaction.atomic():
            sequence, created = (
                NumberSequence.objects
                .select_for_update()
                .get_or_create(entity=entity, defaults={'current': 2})
            )

            if created:
                value = 1
            else:
                value = sequence.current
                sequence.current = value + 1
                sequence.save(update_fields=['current', 'updated_at'])

        logger.info("Sequence %s consumed value %s", entity, value)
        return value

    @staticmethod
    def peek(entity):
        """
        Return the value the next ``next_value`` call would hand out.

        Read-only: no row is created for an unseen entity (which previews 1).
        """
        NumberSequenceService.validate_key(entity)
        current = (
            NumberSequence.objects
            .filter(entity=entity)
            .values_list('current', flat=True)
            .first()
        )
        return current if current is not None else 1

    @staticmethod
    @transaction.atomic
    def set_current(entity, current):
        """
        Override the counter of ``entity`` (creating it if needed).

        Raises:
            InvalidSequenceKeyError: If the key is malformed.
            InvalidSequenceValueError: If ``current`` is not an int >= 1.
        """
        NumberSequenceService.validate_key(entity)
        if isinstance(current, bool) or not isinstance(current, int) or current < 1:
            raise InvalidSequenceValueError()

        sequence, _ = NumberSequence.objects.select_for_update().get_or_create(
            entity=entity, defaults={'current': current}
        )
        if sequence.current != current:
            logger.warning(
                "Sequence %s overridden from %s to %s", entity, sequence.current, current
            )
            sequence.current = current
            sequence.save(update_fields=['current', 'updated_at'])
        return sequence

    @staticmethod
    def list_sequences():
        """Return all counters ordered by entity key."""
        return NumberSequence.objects.order_by('entity')

    @staticmethod
    def format_number(entity, value, when=None):
        """
        Render a counter value as a document number.

        Example::

            >>> NumberSequenceService.format_number('payment', 7, when=date(2026, 3, 1))
            'PAY-2026-0007'
        """
        fmt = NUMBER_FORMATS.get(entity, DEFAULT_FORMAT)
        when = when or timezone.localdate()

        parts = [fmt.prefix]
        if fmt.include_year:
            parts.append(f"{when.year}")
        if fmt.include_month:
            parts.append(f"{when.month:02d}")
        parts.append(str(value).zfill(fmt.padding))
        return fmt.separator.join(parts)

    @staticmethod
    def next_document_number(entity):
        """Consume the next counter value and return it formatted."""
        value = NumberSequenceService.next_value(entity)
        return NumberSequenceService.format_number(entity, value)
