"""
Status workflow engine.

Enforces the legal status transitions of purchase orders, vendor invoices
and payments, and drives the budget ledger from transition handlers:

- approving a purchase order (or an invoice without a purchase order)
  reserves budget
- marking a payment paid records actuals and advances the linked purchase
  order / invoice to ``partially_paid`` / ``paid``

Every action runs in one transaction with the document row locked.
"""

import logging
from decimal import Decimal
from typing import List

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.budget.services import ledger
from apps.procurement.models import (
    InvoiceStatus,
    Payment,
    PaymentStatus,
    PaymentType,
    PurchaseOrder,
    PurchaseOrderStatus,
    VendorInvoice,
)

from .allocation import PAYABLE_PO_STATUSES
from .audit import ActionResult, record_action
from .budget_impact import actuals_by_category, reservation_by_category
from .exceptions import (
    ApproverRequiredError,
    DocumentLockedError,
    InvalidStateTransitionError,
    ModificationReasonRequiredError,
    NoModificationRequestError,
    RejectionReasonRequiredError,
    SelfApprovalError,
)
from .pricing import apply_pricing
from .vat import quantize_money

logger = logging.getLogger(__name__)


PURCHASE_ORDER_TRANSITIONS = {
    PurchaseOrderStatus.DRAFT: {PurchaseOrderStatus.PENDING_APPROVAL},
    PurchaseOrderStatus.PENDING_APPROVAL: {
        PurchaseOrderStatus.APPROVED,
        PurchaseOrderStatus.REJECTED,
    },
    PurchaseOrderStatus.APPROVED: {
        PurchaseOrderStatus.ISSUED,
        PurchaseOrderStatus.RECEIVED,
        PurchaseOrderStatus.PARTIALLY_PAID,
        PurchaseOrderStatus.PAID,
    },
    PurchaseOrderStatus.ISSUED: {
        PurchaseOrderStatus.RECEIVED,
        PurchaseOrderStatus.PARTIALLY_PAID,
        PurchaseOrderStatus.PAID,
    },
    PurchaseOrderStatus.RECEIVED: {
        PurchaseOrderStatus.PARTIALLY_PAID,
        PurchaseOrderStatus.PAID,
    },
    PurchaseOrderStatus.PARTIALLY_PAID: {PurchaseOrderStatus.PAID},
    PurchaseOrderStatus.REJECTED: set(),
    PurchaseOrderStatus.PAID: set(),
}

INVOICE_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.PENDING_APPROVAL},
    InvoiceStatus.PENDING: {InvoiceStatus.PENDING_APPROVAL},
    InvoiceStatus.PENDING_APPROVAL: {InvoiceStatus.APPROVED, InvoiceStatus.REJECTED},
    InvoiceStatus.APPROVED: {InvoiceStatus.PAID},
    InvoiceStatus.REJECTED: set(),
    InvoiceStatus.PAID: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.DRAFT: {PaymentStatus.PENDING_APPROVAL},
    PaymentStatus.PENDING_APPROVAL: {PaymentStatus.APPROVED, PaymentStatus.REJECTED},
    PaymentStatus.APPROVED: {PaymentStatus.PAID},
    PaymentStatus.REJECTED: set(),
    PaymentStatus.PAID: set(),
}

TRANSITIONS = {
    PurchaseOrder: PURCHASE_ORDER_TRANSITIONS,
    VendorInvoice: INVOICE_TRANSITIONS,
    Payment: PAYMENT_TRANSITIONS,
}

# Statuses reached only through payment completion
PAYMENT_DRIVEN_STATUSES = {
    PurchaseOrder: {PurchaseOrderStatus.PARTIALLY_PAID, PurchaseOrderStatus.PAID},
    VendorInvoice: {InvoiceStatus.PAID},
    Payment: set(),
}

# Statuses in which monetary fields may still change
EDITABLE_STATUSES = {'draft', 'pending', 'pending_approval'}


def allowed_transitions(document) -> set:
    return set(TRANSITIONS[type(document)].get(document.status, set()))


def can_transition(document, to_status: str) -> bool:
    return to_status in allowed_transitions(document)


def is_monetarily_editable(document) -> bool:
    return document.status in EDITABLE_STATUSES


def _lock(document):
    return type(document).objects.select_for_update().get(pk=document.pk)


def _require_approver(user) -> None:
    if not getattr(user, 'is_admin', False):
        raise ApproverRequiredError()


def _require_not_creator(document, user) -> None:
    if document.created_by_id is not None and document.created_by_id == user.pk:
        raise SelfApprovalError()


def _change_status(
    document,
    to_status: str,
    *,
    actor,
    action: str,
    note: str = '',
    update_fields: tuple = (),
    payment_driven: bool = False
) -> List[str]:
    """
    Move ``document`` to ``to_status`` and write the audit entry.

    Returns:
        Warnings from the audit write (empty on success)

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    from_status = document.status
    if not can_transition(document, to_status):
        raise InvalidStateTransitionError(
            f'Cannot change status from "{from_status}" to "{to_status}".'
        )
    if to_status in PAYMENT_DRIVEN_STATUSES[type(document)] and not payment_driven:
        raise InvalidStateTransitionError(
            f'Status "{to_status}" is set by payment completion only.'
        )

    document.status = to_status
    document.save(update_fields=['status', 'updated_at', *update_fields])

    logger.info(
        "%s %s: %s -> %s (%s by %s)",
        type(document).__name__, document.pk, from_status, to_status, action, actor,
    )
    warning = record_action(
        document,
        action=action,
        actor=actor,
        from_status=from_status,
        to_status=to_status,
        note=note,
    )
    return [warning] if warning else []


# =============================================================================
# Approval
# =============================================================================

@transaction.atomic
def submit(document, *, user) -> ActionResult:
    """
    Send a draft (or pending) document for approval.

    Raises:
        InvalidStateTransitionError: If the document is not draft / pending
    """
    document = _lock(document)
    update_fields = ()
    if isinstance(document, VendorInvoice):
        document.sent_for_approval_by = user
        document.sent_for_approval_at = timezone.now()
        update_fields = ('sent_for_approval_by', 'sent_for_approval_at')

    warnings = _change_status(
        document,
        'pending_approval',
        actor=user,
        action='submitted',
        update_fields=update_fields,
    )
    return ActionResult(document, warnings)


@transaction.atomic
def approve(document, *, user) -> ActionResult:
    """
    Approve a document pending approval.

    Approving a purchase order, or a vendor invoice that is not linked to a
    purchase order, reserves its net amounts in the budget ledger.

    Raises:
        ApproverRequiredError: If the user is not an admin
        SelfApprovalError: If the user created the document
        InvalidStateTransitionError: If the document is not pending approval
    """
    _require_approver(user)
    document = _lock(document)
    _require_not_creator(document, user)

    document.approved_by = user
    document.approved_at = timezone.now()
    warnings = _change_status(
        document,
        'approved',
        actor=user,
        action='approved',
        update_fields=('approved_by', 'approved_at'),
    )

    if isinstance(document, PurchaseOrder) or (
        isinstance(document, VendorInvoice) and document.po_id is None
    ):
        ledger.reserve_amounts(
            project_id=document.project_id,
            amounts=reservation_by_category(document),
        )
    return ActionResult(document, warnings)


@transaction.atomic
def reject(document, *, user, reason: str) -> ActionResult:
    """
    Reject a document pending approval.

    Nothing is reserved before approval, so rejection leaves the ledger alone.

    Raises:
        RejectionReasonRequiredError: If no reason is given
        ApproverRequiredError: If the user is not an admin
        SelfApprovalError: If the user created the document
        InvalidStateTransitionError: If the document is not pending approval
    """
    reason = (reason or '').strip()
    if not reason:
        raise RejectionReasonRequiredError()
    _require_approver(user)
    document = _lock(document)
    _require_not_creator(document, user)

    document.rejected_by = user
    document.rejected_at = timezone.now()
    document.rejection_reason = reason
    warnings = _change_status(
        document,
        'rejected',
        actor=user,
        action='rejected',
        note=reason,
        update_fields=('rejected_by', 'rejected_at', 'rejection_reason'),
    )
    return ActionResult(document, warnings)


@transaction.atomic
def issue(purchase_order: PurchaseOrder, *, user) -> ActionResult:
    """Mark an approved purchase order as issued to the vendor."""
    purchase_order = _lock(purchase_order)
    warnings = _change_status(
        purchase_order, PurchaseOrderStatus.ISSUED, actor=user, action='issued'
    )
    return ActionResult(purchase_order, warnings)


@transaction.atomic
def receive(purchase_order: PurchaseOrder, *, user) -> ActionResult:
    """Mark the goods or services of a purchase order as received."""
    purchase_order = _lock(purchase_order)
    warnings = _change_status(
        purchase_order, PurchaseOrderStatus.RECEIVED, actor=user, action='received'
    )
    return ActionResult(purchase_order, warnings)


# =============================================================================
# Modification requests
# =============================================================================

@transaction.atomic
def request_modification(document, *, user, reason: str) -> ActionResult:
    """
    Flag an approved purchase order or invoice for re-pricing.

    The status stays ``approved``; an admin resolves the request.

    Raises:
        ModificationReasonRequiredError: If no reason is given
        InvalidStateTransitionError: If the document is not approved
    """
    reason = (reason or '').strip()
    if not reason:
        raise ModificationReasonRequiredError()
    document = _lock(document)
    if document.status != 'approved':
        raise InvalidStateTransitionError(
            'Modifications can only be requested for approved documents.'
        )

    document.modification_requested_by = user
    document.modification_requested_at = timezone.now()
    document.modification_request_reason = reason
    document.save(update_fields=[
        'modification_requested_by',
        'modification_requested_at',
        'modification_request_reason',
        'updated_at',
    ])

    logger.info("%s %s: modification requested by %s", type(document).__name__, document.pk, user)
    warning = record_action(document, action='modification_requested', actor=user, note=reason)
    return ActionResult(document, [warning] if warning else [])


def _clear_modification(document) -> None:
    document.modification_requested_by = None
    document.modification_requested_at = None
    document.modification_request_reason = ''


@transaction.atomic
def resolve_modification(document, *, user, note: str = '') -> ActionResult:
    """
    Close an open modification request without re-pricing.

    Raises:
        ApproverRequiredError: If the user is not an admin
        NoModificationRequestError: If no request is open
    """
    _require_approver(user)
    document = _lock(document)
    if not document.has_open_modification_request:
        raise NoModificationRequestError()

    _clear_modification(document)
    document.save(update_fields=[
        'modification_requested_by',
        'modification_requested_at',
        'modification_request_reason',
        'updated_at',
    ])

    logger.info("%s %s: modification resolved by %s", type(document).__name__, document.pk, user)
    warning = record_action(document, action='modification_resolved', actor=user, note=note)
    return ActionResult(document, [warning] if warning else [])


@transaction.atomic
def apply_modification(document, *, user, items, vat_treatment: str, budget_category: str) -> ActionResult:
    """
    Re-price an approved document through its open modification request.

    Releases the old reservation, stores the new line items and totals,
    reserves the new amounts and closes the request, all in one transaction.

    Args:
        document: Approved PurchaseOrder or VendorInvoice
        user: Admin applying the change
        items: Normalised LineItem list
        vat_treatment: New VAT treatment
        budget_category: New document-level category

    Raises:
        ApproverRequiredError: If the user is not an admin
        DocumentLockedError: If the document is not approved or has no open
            modification request
    """
    _require_approver(user)
    document = _lock(document)
    if document.status != 'approved' or not document.has_open_modification_request:
        raise DocumentLockedError(
            'Approved documents can only be re-priced through an open modification request.'
        )

    holds_reservation = isinstance(document, PurchaseOrder) or document.po_id is None
    old_amounts = reservation_by_category(document) if holds_reservation else {}
    old_total = document.total

    document.budget_category = budget_category
    apply_pricing(document, items, vat_treatment)
    _clear_modification(document)
    document.save()

    if holds_reservation:
        ledger.reserve_amounts(
            project_id=document.project_id,
            amounts=old_amounts,
            direction=ledger.ReserveDirection.RELEASE,
        )
        ledger.reserve_amounts(
            project_id=document.project_id,
            amounts=reservation_by_category(document),
        )

    note = f'Total {quantize_money(old_total)} -> {quantize_money(document.total)}'
    logger.info("%s %s re-priced by %s: %s", type(document).__name__, document.pk, user, note)
    warning = record_action(document, action='modification_applied', actor=user, note=note)
    return ActionResult(document, [warning] if warning else [])


# =============================================================================
# Payment completion
# =============================================================================

def _paid_total(**filters) -> Decimal:
    total = Payment.objects.filter(
        status=PaymentStatus.PAID, type=PaymentType.PAYMENT, **filters
    ).aggregate(total=Sum('amount'))['total']
    return total or Decimal('0')


def _apply_to_purchase_order(purchase_order: PurchaseOrder, *, user, payment) -> List[str]:
    if purchase_order.status not in PAYABLE_PO_STATUSES:
        return []

    paid = quantize_money(_paid_total(purchase_order=purchase_order))
    if paid >= quantize_money(purchase_order.total):
        to_status = PurchaseOrderStatus.PAID
    elif paid > 0:
        to_status = PurchaseOrderStatus.PARTIALLY_PAID
    else:
        return []
    if to_status == purchase_order.status:
        return []

    return _change_status(
        purchase_order,
        to_status,
        actor=user,
        action='payment_applied',
        note=f'{payment.payment_number}: paid {paid} of {quantize_money(purchase_order.total)}',
        payment_driven=True,
    )


def _apply_to_invoice(invoice: VendorInvoice, *, user, payment) -> List[str]:
    if invoice.status != InvoiceStatus.APPROVED:
        return []

    paid = quantize_money(_paid_total(invoice=invoice))
    if paid < quantize_money(invoice.total):
        return []

    return _change_status(
        invoice,
        InvoiceStatus.PAID,
        actor=user,
        action='payment_applied',
        note=f'{payment.payment_number}: paid {paid} of {quantize_money(invoice.total)}',
        payment_driven=True,
    )


@transaction.atomic
def mark_paid(payment: Payment, *, user) -> ActionResult:
    """
    Mark an approved payment as paid.

    For ``type=payment`` this records actuals in the budget ledger and
    re-evaluates the paid status of the linked purchase order and invoice.

    Raises:
        ApproverRequiredError: If the user is not an admin
        InvalidStateTransitionError: If the payment is not approved
    """
    _require_approver(user)
    payment = _lock(payment)
    # Document rows before budget rows
    purchase_order = _lock(payment.purchase_order) if payment.purchase_order_id else None
    invoice = _lock(payment.invoice) if payment.invoice_id else None

    payment.paid_by = user
    payment.paid_at = timezone.now()
    warnings = _change_status(
        payment,
        PaymentStatus.PAID,
        actor=user,
        action='paid',
        update_fields=('paid_by', 'paid_at'),
    )

    if payment.type == PaymentType.PAYMENT:
        ledger.record_actual_amounts(
            project_id=payment.project_id,
            amounts=actuals_by_category(payment),
        )
        if purchase_order is not None:
            warnings += _apply_to_purchase_order(purchase_order, user=user, payment=payment)
        if invoice is not None:
            warnings += _apply_to_invoice(invoice, user=user, payment=payment)

    return ActionResult(payment, warnings)
