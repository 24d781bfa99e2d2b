"""
Budget impact of procurement documents.

Translates purchase orders, vendor invoices and payments into per-category,
net-of-VAT amounts for the budget ledger.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict

from apps.procurement.models import (
    InvoiceStatus,
    Payment,
    PaymentStatus,
    PaymentType,
    PurchaseOrder,
    PurchaseOrderStatus,
    VendorInvoice,
)

from .vat import compute_vat

logger = logging.getLogger(__name__)

# Statuses in which a document holds a budget reservation
RESERVING_PO_STATUSES = (
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.ISSUED,
    PurchaseOrderStatus.RECEIVED,
    PurchaseOrderStatus.PARTIALLY_PAID,
    PurchaseOrderStatus.PAID,
)
RESERVING_INVOICE_STATUSES = (
    InvoiceStatus.APPROVED,
    InvoiceStatus.PAID,
)


def reservation_by_category(document) -> Dict[str, Decimal]:
    """
    Net-of-VAT amounts a purchase order or invoice reserves, per category.

    When any line carries its own category, every line contributes its net
    amount to its own category (or the document category when it has none).
    Otherwise the whole document subtotal goes to the document category.
    """
    lines = document.line_items
    amounts = defaultdict(Decimal)

    if any(line.budget_category for line in lines):
        for line in lines:
            category = line.budget_category or document.budget_category
            if not category:
                logger.warning(
                    "Line %r of %s has no budget category; not reserved",
                    line.description, document.pk,
                )
                continue
            amounts[category] += compute_vat(line.total, document.vat_treatment).subtotal
    elif document.budget_category:
        amounts[document.budget_category] += document.subtotal

    return dict(amounts)


def actuals_by_category(payment: Payment) -> Dict[str, Decimal]:
    """
    Net-of-VAT amounts a paid payment adds to actuals, per category.

    Line-item payments contribute to their own category. Without line
    categories the payment subtotal goes to the source document's category,
    or to the payment's own category.
    """
    if payment.type != PaymentType.PAYMENT:
        return {}

    source = payment.source_document
    fallback = (source.budget_category if source else '') or payment.budget_category
    lines = [line for line in payment.line_payments if line.payment_amount > 0]
    amounts = defaultdict(Decimal)

    if any(line.budget_category for line in lines):
        for line in lines:
            category = line.budget_category or fallback
            if not category:
                continue
            amounts[category] += compute_vat(line.payment_amount, payment.vat_treatment).subtotal
    elif fallback:
        amounts[fallback] += payment.subtotal

    return dict(amounts)


def _merge(target: Dict[str, Decimal], amounts: Dict[str, Decimal]) -> None:
    for category, amount in amounts.items():
        target[category] = target.get(category, Decimal('0')) + amount


def committed_reservations(project_id: str) -> Dict[str, Decimal]:
    """Sum of reservations held by the project's approved documents."""
    totals = {}
    for po in PurchaseOrder.objects.filter(
        project_id=project_id, status__in=RESERVING_PO_STATUSES
    ):
        _merge(totals, reservation_by_category(po))

    for invoice in VendorInvoice.objects.filter(
        project_id=project_id, status__in=RESERVING_INVOICE_STATUSES, po__isnull=True
    ):
        _merge(totals, reservation_by_category(invoice))
    return totals


def committed_actuals(project_id: str) -> Dict[str, Decimal]:
    """Sum of actuals recorded by the project's paid payments."""
    totals = {}
    payments = (
        Payment.objects
        .filter(project_id=project_id, status=PaymentStatus.PAID, type=PaymentType.PAYMENT)
        .select_related('purchase_order', 'invoice')
    )
    for payment in payments:
        _merge(totals, actuals_by_category(payment))
    return totals


def _document_uses(document, category: str) -> bool:
    if document.budget_category == category:
        return True
    return any(line.budget_category == category for line in document.line_items)


def category_references(project_id: str, category: str) -> Dict[str, int]:
    """
    Count the project's documents that reference a budget category.

    A document references a category through its own budget category or
    through a line-item override.
    """
    purchase_orders = sum(
        1 for po in PurchaseOrder.objects.filter(project_id=project_id)
        if _document_uses(po, category)
    )
    vendor_invoices = sum(
        1 for invoice in VendorInvoice.objects.filter(project_id=project_id)
        if _document_uses(invoice, category)
    )
    payments = sum(
        1 for payment in Payment.objects.filter(project_id=project_id)
        if payment.budget_category == category
        or any(line.budget_category == category for line in payment.line_payments)
    )
    return {
        'purchase_orders': purchase_orders,
        'vendor_invoices': vendor_invoices,
        'payments': payments,
    }
