"""
Line-item payment allocation.

Turns a payable purchase order or vendor invoice into a payment, line by
line. Each line can be paid in full, by a fixed amount or by a percentage of
its total; every request is clamped to the line's remaining balance.

Example:
    Paying half of line 0 and the rest of line 1::

        from apps.procurement.services import allocate

        allocation = allocate(po, [
            {'line_index': 0, 'payment_type': 'percentage', 'payment_value': 50},
            {'line_index': 1, 'payment_type': 'full'},
        ])
        allocation.breakdown.total
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.procurement.lines import LineItemPayment
from apps.procurement.models import (
    InvoiceStatus,
    LinePaymentType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    PurchaseOrder,
    PurchaseOrderStatus,
    VendorInvoice,
)
from apps.sequences.services import NumberSequenceService

from .audit import ActionResult, record_action
from .exceptions import (
    DocumentNotFoundError,
    InvalidAllocationError,
    NotPayableError,
    NothingToPayError,
)
from .vat import VatBreakdown, compute_vat, quantize_money, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
HUNDRED = Decimal('100')

PAYABLE_PO_STATUSES = (
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.ISSUED,
    PurchaseOrderStatus.RECEIVED,
    PurchaseOrderStatus.PARTIALLY_PAID,
)
PAYABLE_INVOICE_STATUSES = (
    InvoiceStatus.APPROVED,
)


@dataclass
class Allocation:
    source: object
    lines: List[LineItemPayment]
    breakdown: VatBreakdown

    @property
    def is_empty(self) -> bool:
        return quantize_money(self.breakdown.total) == ZERO


def is_payable(source) -> bool:
    if isinstance(source, PurchaseOrder):
        return source.status in PAYABLE_PO_STATUSES
    return source.status in PAYABLE_INVOICE_STATUSES


def payments_against(source) -> QuerySet:
    """
    Non-rejected payments that count towards a document's paid lines.

    Payments raised from an invoice also link the invoice's purchase order,
    but their line indexes refer to the invoice, so a purchase order only
    replays payments raised directly against it.
    """
    queryset = Payment.objects.filter(type=PaymentType.PAYMENT).exclude(
        status=PaymentStatus.REJECTED
    )
    if isinstance(source, PurchaseOrder):
        return queryset.filter(purchase_order=source, invoice__isnull=True)
    return queryset.filter(invoice=source)


def previously_paid_by_line(source) -> Dict[int, Decimal]:
    """Sum of payment amounts per line index over earlier payments."""
    paid = {}
    for payment in payments_against(source):
        for line in payment.line_payments:
            paid[line.line_index] = paid.get(line.line_index, ZERO) + line.payment_amount
    return paid


def allocate_line(
    *,
    line_total: Decimal,
    previously_paid: Decimal,
    payment_type: str,
    payment_value=None
) -> LineItemPayment:
    """
    Compute the payment of a single line.

    Returns a LineItemPayment with only the numeric fields filled in.
    0 <= payment_amount <= remaining always holds.

    Raises:
        InvalidAllocationError: If the payment type is unknown
    """
    line_total = to_decimal(line_total)
    previously_paid = to_decimal(previously_paid)
    remaining = max(ZERO, line_total - previously_paid)
    remaining_percentage = remaining / line_total * HUNDRED if line_total > ZERO else ZERO

    if payment_type == LinePaymentType.FULL:
        value = HUNDRED
        amount = remaining
    elif payment_type == LinePaymentType.FIXED:
        value = min(max(to_decimal(payment_value), ZERO), remaining)
        amount = value
    elif payment_type == LinePaymentType.PERCENTAGE:
        value = min(max(to_decimal(payment_value), ZERO), min(HUNDRED, remaining_percentage))
        amount = min(line_total * value / HUNDRED, remaining)
    else:
        raise InvalidAllocationError(f'Unknown payment type "{payment_type}".')

    return LineItemPayment(
        line_index=0,
        line_total=line_total,
        payment_type=str(payment_type),
        payment_value=value,
        previously_paid=previously_paid,
        remaining=remaining,
        payment_amount=max(ZERO, amount),
        remaining_percentage=remaining_percentage,
    )


def _requests_by_line(requests: Optional[Iterable[dict]], line_count: int) -> Dict[int, dict]:
    by_line = {}
    for request in requests or []:
        index = request.get('line_index')
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < line_count:
            raise InvalidAllocationError(f'Line index {index!r} does not exist.')
        if index in by_line:
            raise InvalidAllocationError(f'Line index {index} is allocated twice.')
        by_line[index] = request
    return by_line


def allocate(source, requests: Optional[Iterable[dict]] = None) -> Allocation:
    """
    Build the allocation of a payment against ``source``.

    Args:
        source: PurchaseOrder or VendorInvoice
        requests: Optional list of ``{'line_index', 'payment_type',
            'payment_value'}``; lines without a request are paid in full

    Returns:
        Allocation with one LineItemPayment per source line and the VAT
        breakdown of the payment under the source's VAT treatment
    """
    items = source.line_items
    by_line = _requests_by_line(requests, len(items))
    paid = previously_paid_by_line(source)

    lines = []
    for index, item in enumerate(items):
        request = by_line.get(index, {})
        line = allocate_line(
            line_total=item.total,
            previously_paid=paid.get(index, ZERO),
            payment_type=request.get('payment_type') or LinePaymentType.FULL,
            payment_value=request.get('payment_value'),
        )
        line.line_index = index
        line.description = item.description
        line.quantity = item.quantity
        line.unit_price = item.unit_price
        line.budget_category = item.budget_category or source.budget_category or None
        lines.append(line)

    raw_total = sum((line.payment_amount for line in lines), ZERO)
    return Allocation(
        source=source,
        lines=lines,
        breakdown=compute_vat(raw_total, source.vat_treatment),
    )


def build_allocation(source) -> Allocation:
    """Default allocation: every line paid in full."""
    return allocate(source)


def _locked_source(*, purchase_order_id: Optional[UUID], invoice_id: Optional[UUID]):
    model, pk = (VendorInvoice, invoice_id) if invoice_id else (PurchaseOrder, purchase_order_id)
    try:
        return model.objects.select_for_update().get(pk=pk)
    except model.DoesNotExist:
        raise DocumentNotFoundError(f'{model._meta.verbose_name.capitalize()} not found.')


@transaction.atomic
def create_payment_from_allocation(
    *,
    user,
    purchase_order_id: Optional[UUID] = None,
    invoice_id: Optional[UUID] = None,
    requests: Optional[Iterable[dict]] = None,
    payment_method: str = PaymentMethod.BANK_TRANSFER,
    payment_date=None,
    reference_number: str = '',
    notes: str = '',
    payment_number: str = ''
) -> ActionResult:
    """
    Create a payment request (pending approval) from a line allocation.

    The source document row stays locked until the payment is stored, so
    two concurrent requests cannot both pay the same remaining balance.

    Raises:
        DocumentNotFoundError: If the source document doesn't exist
        NotPayableError: If the source is not approved (or later)
        InvalidAllocationError: If a request names an unknown line
        NothingToPayError: If the payment total rounds to zero
    """
    source = _locked_source(purchase_order_id=purchase_order_id, invoice_id=invoice_id)
    if not is_payable(source):
        raise NotPayableError(
            f'Cannot pay a document with status "{source.get_status_display()}".'
        )

    allocation = allocate(source, requests)
    if allocation.is_empty:
        raise NothingToPayError()

    is_invoice = isinstance(source, VendorInvoice)
    payment = Payment.objects.create(
        payment_number=payment_number or NumberSequenceService.next_document_number('payment'),
        project_id=source.project_id,
        vendor_id=source.vendor_id,
        type=PaymentType.PAYMENT,
        status=PaymentStatus.PENDING_APPROVAL,
        amount=allocation.breakdown.total,
        subtotal=allocation.breakdown.subtotal,
        vat=allocation.breakdown.vat,
        vat_treatment=source.vat_treatment,
        purchase_order=source.po if is_invoice else source,
        invoice=source if is_invoice else None,
        line_item_payments=[line.to_dict() for line in allocation.lines],
        budget_category=source.budget_category,
        payment_method=payment_method,
        payment_date=payment_date,
        reference_number=reference_number,
        notes=notes,
        created_by=user,
    )

    logger.info(
        "Payment %s of %s allocated against %s",
        payment.payment_number, quantize_money(payment.amount), source,
    )
    warning = record_action(
        payment,
        action='allocated',
        actor=user,
        to_status=PaymentStatus.PENDING_APPROVAL,
        note=f'Allocated against {source}',
    )
    return ActionResult(payment, [warning] if warning else [])
