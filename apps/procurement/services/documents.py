"""
Purchase order, vendor invoice and payment management.

Creation numbers documents from the sequence generator and computes VAT
totals from the line items. Updates honour the freeze rules: monetary
fields change only while a document is draft / pending / pending approval,
or through an open modification request on an approved document.
"""

import logging
from typing import List, Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.budget.services import require_known_category
from apps.procurement.models import (
    InvoiceStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    PurchaseOrder,
    PurchaseOrderStatus,
    VatTreatment,
    VendorInvoice,
)
from apps.sequences.services import NumberSequenceService

from . import workflow
from .audit import ActionResult, record_action
from .exceptions import (
    DocumentLockedError,
    DocumentNotFoundError,
    DuplicateDocumentNumberError,
    InvalidDocumentLinkError,
    InvalidStateTransitionError,
)
from .pricing import apply_pricing, normalise_items
from .vat import compute_vat, to_decimal

logger = logging.getLogger(__name__)

DELETABLE_STATUSES = {'draft', 'pending', 'pending_approval', 'rejected'}

PRICED_MONETARY_FIELDS = ('items', 'vat_treatment', 'budget_category')
PAYMENT_MONETARY_FIELDS = (
    'amount', 'vat_treatment', 'budget_category', 'type', 'purchase_order', 'invoice',
)


def get_document(model, document_id: UUID, *, for_update: bool = False):
    """
    Fetch a purchase order, invoice or payment by id.

    Raises:
        DocumentNotFoundError: If it doesn't exist
    """
    queryset = model.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=document_id)
    except model.DoesNotExist:
        raise DocumentNotFoundError(f'{model._meta.verbose_name.capitalize()} not found.')


def list_documents(model, *, project_id: Optional[str] = None, status: Optional[str] = None) -> QuerySet:
    queryset = model.objects.select_related('created_by', 'approved_by', 'rejected_by')
    if project_id:
        queryset = queryset.filter(project_id=project_id)
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def _check_category(category: str) -> str:
    if category:
        require_known_category(category)
    return category or ''


def _save_new(document, number_field: str):
    try:
        with transaction.atomic():
            document.save(force_insert=True)
    except IntegrityError:
        raise DuplicateDocumentNumberError(
            f'Document number "{getattr(document, number_field)}" is already in use.'
        )
    return document


def _linked_purchase_order(po_id: Optional[UUID], project_id: str) -> Optional[PurchaseOrder]:
    if not po_id:
        return None
    try:
        po = PurchaseOrder.objects.get(pk=po_id)
    except PurchaseOrder.DoesNotExist:
        raise InvalidDocumentLinkError('Linked purchase order does not exist.')
    if po.project_id != project_id:
        raise InvalidDocumentLinkError('Linked purchase order belongs to another project.')
    return po


def _linked_invoice(invoice_id: Optional[UUID], project_id: str) -> Optional[VendorInvoice]:
    if not invoice_id:
        return None
    try:
        invoice = VendorInvoice.objects.get(pk=invoice_id)
    except VendorInvoice.DoesNotExist:
        raise InvalidDocumentLinkError('Linked invoice does not exist.')
    if invoice.project_id != project_id:
        raise InvalidDocumentLinkError('Linked invoice belongs to another project.')
    return invoice


def _check_manual_links(payment: Payment) -> None:
    """Outgoing payments link a purchase order or invoice only through allocation."""
    if payment.type == PaymentType.PAYMENT and (payment.purchase_order_id or payment.invoice_id):
        raise InvalidDocumentLinkError(
            'Payments against a purchase order or invoice must be allocated from its line items.'
        )


# =============================================================================
# Purchase orders and vendor invoices
# =============================================================================

@transaction.atomic
def create_purchase_order(
    *,
    user,
    project_id: str,
    items: List[dict],
    vat_treatment: str = VatTreatment.NOT_APPLICABLE,
    budget_category: str = '',
    vendor_id: str = '',
    po_number: str = '',
    issue_date=None,
    delivery_date=None,
    notes: str = ''
) -> PurchaseOrder:
    """
    Create a draft purchase order.

    Totals are computed from ``items`` under ``vat_treatment``. Without an
    explicit ``po_number`` the next ``purchaseOrder`` sequence number is used.

    Raises:
        InvalidLineItemsError: If items are malformed
        UnknownCategoryError: If a category is not in the category table
        InvalidVatTreatmentError: If the VAT treatment is unknown
        DuplicateDocumentNumberError: If ``po_number`` is taken
    """
    po = PurchaseOrder(
        project_id=project_id,
        vendor_id=vendor_id,
        budget_category=_check_category(budget_category),
        status=PurchaseOrderStatus.DRAFT,
        issue_date=issue_date,
        delivery_date=delivery_date,
        notes=notes,
        created_by=user,
    )
    apply_pricing(po, normalise_items(items), vat_treatment)
    po.po_number = po_number or NumberSequenceService.next_document_number('purchaseOrder')
    _save_new(po, 'po_number')

    logger.info("Purchase order %s created for project %s", po.po_number, project_id)
    record_action(po, action='created', actor=user, to_status=po.status)
    return po


@transaction.atomic
def create_vendor_invoice(
    *,
    user,
    project_id: str,
    items: List[dict],
    vat_treatment: str = VatTreatment.NOT_APPLICABLE,
    budget_category: str = '',
    vendor_id: str = '',
    invoice_number: str = '',
    po: Optional[UUID] = None,
    status: str = InvoiceStatus.DRAFT,
    invoice_date=None,
    due_date=None,
    notes: str = ''
) -> VendorInvoice:
    """
    Create a vendor invoice in ``draft`` or ``pending``.

    Raises:
        InvalidStateTransitionError: If ``status`` is not draft / pending
        InvalidDocumentLinkError: If the purchase order is missing or belongs
            to another project
    """
    if status not in (InvoiceStatus.DRAFT, InvoiceStatus.PENDING):
        raise InvalidStateTransitionError(
            'Invoices are created as "draft" or "pending".'
        )

    invoice = VendorInvoice(
        project_id=project_id,
        vendor_id=vendor_id,
        po=_linked_purchase_order(po, project_id),
        budget_category=_check_category(budget_category),
        status=status,
        invoice_date=invoice_date,
        due_date=due_date,
        notes=notes,
        created_by=user,
    )
    if invoice.po and not invoice.budget_category:
        invoice.budget_category = invoice.po.budget_category
    apply_pricing(invoice, normalise_items(items), vat_treatment)
    invoice.invoice_number = invoice_number or NumberSequenceService.next_document_number('invoice')
    _save_new(invoice, 'invoice_number')

    logger.info("Vendor invoice %s created for project %s", invoice.invoice_number, project_id)
    record_action(invoice, action='created', actor=user, to_status=invoice.status)
    return invoice


def _monetary_changes(document, data: dict) -> dict:
    """Subset of ``data`` that actually changes a monetary field."""
    changes = {}
    if 'items' in data:
        items = normalise_items(data['items'])
        if items != document.line_items:
            changes['items'] = items
    if 'vat_treatment' in data and data['vat_treatment'] != document.vat_treatment:
        changes['vat_treatment'] = data['vat_treatment']
    if 'budget_category' in data and (data['budget_category'] or '') != document.budget_category:
        changes['budget_category'] = _check_category(data['budget_category'])
    if isinstance(document, VendorInvoice) and 'po' in data:
        po_id = data['po']
        if (po_id or None) != document.po_id:
            changes['po'] = _linked_purchase_order(po_id, document.project_id)
    return changes


@transaction.atomic
def update_priced_document(document, *, user, data: dict) -> ActionResult:
    """
    Update a purchase order or vendor invoice.

    Non-monetary fields (dates, notes, vendor, number) are always editable.
    Monetary fields (items, VAT treatment, budget category, linked purchase
    order) follow the freeze rules.

    Raises:
        DocumentLockedError: If a monetary field changes on a frozen document
    """
    document = type(document).objects.select_for_update().get(pk=document.pk)
    warnings = []

    changes = _monetary_changes(document, data)
    if changes:
        if workflow.is_monetarily_editable(document):
            if 'budget_category' in changes:
                document.budget_category = changes['budget_category']
            if 'po' in changes:
                document.po = changes['po']
            apply_pricing(
                document,
                changes.get('items', document.line_items),
                changes.get('vat_treatment', document.vat_treatment),
            )
        elif 'po' not in changes and document.has_open_modification_request:
            result = workflow.apply_modification(
                document,
                user=user,
                items=changes.get('items', document.line_items),
                vat_treatment=changes.get('vat_treatment', document.vat_treatment),
                budget_category=changes.get('budget_category', document.budget_category),
            )
            document, warnings = result.document, list(result.warnings)
        else:
            raise DocumentLockedError(
                f'Amounts of a document with status "{document.get_status_display()}" '
                'cannot be changed. Request a modification first.'
            )

    editable = {
        PurchaseOrder: ('vendor_id', 'po_number', 'issue_date', 'delivery_date', 'notes'),
        VendorInvoice: ('vendor_id', 'invoice_number', 'invoice_date', 'due_date', 'notes'),
    }[type(document)]
    for field in editable:
        if field in data:
            setattr(document, field, data[field])

    try:
        with transaction.atomic():
            document.save()
    except IntegrityError:
        raise DuplicateDocumentNumberError()
    return ActionResult(document, warnings)


@transaction.atomic
def delete_priced_document(document) -> None:
    """
    Delete a purchase order or invoice that never reached approval.

    Raises:
        DocumentLockedError: If the document is approved or later
        ProtectedError: If payments or invoices still link to it
    """
    document = type(document).objects.select_for_update().get(pk=document.pk)
    if document.status not in DELETABLE_STATUSES:
        raise DocumentLockedError(
            f'A document with status "{document.get_status_display()}" cannot be deleted.'
        )
    logger.info("%s %s deleted", type(document).__name__, document.pk)
    document.delete()


# =============================================================================
# Payments
# =============================================================================

def _price_payment(payment: Payment, amount, vat_treatment: str) -> None:
    breakdown = compute_vat(to_decimal(amount), vat_treatment)
    payment.vat_treatment = vat_treatment
    payment.subtotal = breakdown.subtotal
    payment.vat = breakdown.vat
    payment.amount = breakdown.total


def _raw_amount(payment: Payment):
    """Raw amount a payment was priced from (inverse of ``_price_payment``)."""
    if payment.vat_treatment == VatTreatment.INCLUSIVE:
        return payment.amount
    return payment.subtotal


@transaction.atomic
def create_payment(
    *,
    user,
    project_id: str,
    amount,
    type: str = PaymentType.PAYMENT,
    vat_treatment: str = VatTreatment.NOT_APPLICABLE,
    budget_category: str = '',
    vendor_id: str = '',
    purchase_order: Optional[UUID] = None,
    invoice: Optional[UUID] = None,
    payment_method: str = PaymentMethod.BANK_TRANSFER,
    payment_date=None,
    reference_number: str = '',
    notes: str = '',
    payment_number: str = ''
) -> Payment:
    """
    Record a manual (non-allocated) payment or receipt as a draft.

    ``amount`` is the raw amount the VAT treatment applies to. A receipt
    linked to an invoice also links the invoice's purchase order.

    Raises:
        InvalidDocumentLinkError: If a ``type=payment`` links a purchase
            order or invoice; those go through allocation
    """
    linked_invoice = _linked_invoice(invoice, project_id)
    linked_po = _linked_purchase_order(purchase_order, project_id)
    if linked_invoice and linked_invoice.po_id:
        if linked_po and linked_po.pk != linked_invoice.po_id:
            raise InvalidDocumentLinkError('Invoice belongs to a different purchase order.')
        linked_po = linked_invoice.po

    payment = Payment(
        project_id=project_id,
        vendor_id=vendor_id,
        type=type,
        status=PaymentStatus.DRAFT,
        budget_category=_check_category(budget_category),
        purchase_order=linked_po,
        invoice=linked_invoice,
        payment_method=payment_method,
        payment_date=payment_date,
        reference_number=reference_number,
        notes=notes,
        created_by=user,
    )
    _check_manual_links(payment)
    _price_payment(payment, amount, vat_treatment)
    payment.payment_number = payment_number or NumberSequenceService.next_document_number('payment')
    _save_new(payment, 'payment_number')

    logger.info("Payment %s created for project %s", payment.payment_number, project_id)
    record_action(payment, action='created', actor=user, to_status=payment.status)
    return payment


@transaction.atomic
def update_payment(payment: Payment, *, user, data: dict) -> ActionResult:
    """
    Update a payment.

    Monetary fields change only while the payment is draft or pending
    approval, and never on a payment allocated from line items.

    Raises:
        DocumentLockedError: If a monetary field changes on a frozen payment
    """
    payment = Payment.objects.select_for_update().get(pk=payment.pk)

    monetary = {field: data[field] for field in PAYMENT_MONETARY_FIELDS if field in data}
    if monetary:
        if not workflow.is_monetarily_editable(payment):
            raise DocumentLockedError(
                f'Amounts of a payment with status "{payment.get_status_display()}" cannot be changed.'
            )
        if payment.line_item_payments:
            raise DocumentLockedError(
                'Allocated payments cannot be re-priced. Reject it and allocate again.'
            )
        if 'budget_category' in monetary:
            payment.budget_category = _check_category(monetary['budget_category'])
        if 'type' in monetary:
            payment.type = monetary['type']
        if 'invoice' in monetary:
            payment.invoice = _linked_invoice(monetary['invoice'], payment.project_id)
            if payment.invoice and payment.invoice.po_id:
                payment.purchase_order = payment.invoice.po
        if 'purchase_order' in monetary and not (payment.invoice and payment.invoice.po_id):
            payment.purchase_order = _linked_purchase_order(
                monetary['purchase_order'], payment.project_id
            )
        _check_manual_links(payment)
        _price_payment(
            payment,
            monetary.get('amount', _raw_amount(payment)),
            monetary.get('vat_treatment', payment.vat_treatment),
        )

    for field in ('vendor_id', 'payment_number', 'payment_method', 'payment_date',
                  'reference_number', 'notes'):
        if field in data:
            setattr(payment, field, data[field])

    try:
        with transaction.atomic():
            payment.save()
    except IntegrityError:
        raise DuplicateDocumentNumberError()
    return ActionResult(payment, [])


@transaction.atomic
def delete_payment(payment: Payment) -> None:
    """
    Delete a payment that has not been paid.

    Raises:
        DocumentLockedError: If the payment is paid
    """
    payment = Payment.objects.select_for_update().get(pk=payment.pk)
    if payment.status == PaymentStatus.PAID:
        raise DocumentLockedError('A paid payment cannot be deleted.')
    payment.delete()
    logger.info("Payment %s deleted", payment.payment_number)
