from django.db import models
from django.core.serializers.json import DjangoJSONEncoder
from decimal import Decimal
import uuid

from .lines import LineItem, LineItemPayment


MONEY_FIELD_OPTIONS = {
    'max_digits': 20,
    'decimal_places': 6,
    'default': Decimal('0'),
}


class VatTreatment(models.TextChoices):
    NOT_APPLICABLE = 'not_applicable', 'Not applicable'
    INCLUSIVE = 'inclusive', 'Inclusive'
    EXCLUSIVE = 'exclusive', 'Exclusive'


class PurchaseOrderStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING_APPROVAL = 'pending_approval', 'Pending approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    ISSUED = 'issued', 'Issued'
    RECEIVED = 'received', 'Received'
    PARTIALLY_PAID = 'partially_paid', 'Partially paid'
    PAID = 'paid', 'Paid'


class InvoiceStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING = 'pending', 'Pending'
    PENDING_APPROVAL = 'pending_approval', 'Pending approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    PAID = 'paid', 'Paid'


class PaymentStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING_APPROVAL = 'pending_approval', 'Pending approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    PAID = 'paid', 'Paid'


class PaymentType(models.TextChoices):
    PAYMENT = 'payment', 'Payment'
    RECEIPT = 'receipt', 'Receipt'


class PaymentMethod(models.TextChoices):
    BANK_TRANSFER = 'bank_transfer', 'Bank transfer'
    CHEQUE = 'cheque', 'Cheque'
    CASH = 'cash', 'Cash'


class LinePaymentType(models.TextChoices):
    FULL = 'full', 'Full'
    FIXED = 'fixed', 'Fixed amount'
    PERCENTAGE = 'percentage', 'Percentage'


class DocumentType(models.TextChoices):
    PURCHASE_ORDER = 'purchase_order', 'Purchase order'
    VENDOR_INVOICE = 'vendor_invoice', 'Vendor invoice'
    PAYMENT = 'payment', 'Payment'


class ApprovalTrail(models.Model):
    """Who created, approved and rejected a document, and when."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_created'
    )
    approved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_rejected'
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class PricedDocument(ApprovalTrail):
    """Line-itemised document with VAT totals (purchase order, vendor invoice)."""

    project_id = models.CharField(max_length=64, db_index=True)
    vendor_id = models.CharField(max_length=64, blank=True)

    # Line items, stored as JSON with decimal strings
    items = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    vat_treatment = models.CharField(
        max_length=20,
        choices=VatTreatment.choices,
        default=VatTreatment.NOT_APPLICABLE
    )
    subtotal = models.DecimalField(**MONEY_FIELD_OPTIONS)
    vat = models.DecimalField(**MONEY_FIELD_OPTIONS)
    total = models.DecimalField(**MONEY_FIELD_OPTIONS)
    budget_category = models.CharField(max_length=100, blank=True)

    notes = models.TextField(blank=True)

    # Modification request (an annotation on an approved document, not a status)
    modification_requested_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_modification_requests'
    )
    modification_requested_at = models.DateTimeField(null=True, blank=True)
    modification_request_reason = models.TextField(blank=True)

    class Meta:
        abstract = True

    @property
    def line_items(self):
        return [LineItem.from_dict(item) for item in self.items or []]

    @property
    def has_open_modification_request(self):
        return self.modification_requested_at is not None


class PurchaseOrder(PricedDocument):
    """Purchase order placed with a vendor."""

    po_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        default=PurchaseOrderStatus.DRAFT
    )
    issue_date = models.DateField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'purchase_orders'
        indexes = [
            models.Index(fields=['project_id', 'status'], name='po_project_status_idx'),
            models.Index(fields=['status'], name='po_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.po_number} ({self.get_status_display()})"


class VendorInvoice(PricedDocument):
    """Invoice received from a vendor, optionally against a purchase order."""

    invoice_number = models.CharField(max_length=50, unique=True)
    po = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices'
    )
    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.DRAFT
    )
    invoice_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    sent_for_approval_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices_sent_for_approval'
    )
    sent_for_approval_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'vendor_invoices'
        indexes = [
            models.Index(fields=['project_id', 'status'], name='invoice_project_status_idx'),
            models.Index(fields=['status'], name='invoice_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.invoice_number} ({self.get_status_display()})"


class Payment(ApprovalTrail):
    """Outgoing payment (or receipt), possibly allocated against document lines."""

    payment_number = models.CharField(max_length=50, unique=True)
    project_id = models.CharField(max_length=64, db_index=True)
    vendor_id = models.CharField(max_length=64, blank=True)

    type = models.CharField(
        max_length=20,
        choices=PaymentType.choices,
        default=PaymentType.PAYMENT
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.DRAFT
    )

    # Financial details (amount is the VAT-inclusive total)
    amount = models.DecimalField(**MONEY_FIELD_OPTIONS)
    subtotal = models.DecimalField(**MONEY_FIELD_OPTIONS)
    vat = models.DecimalField(**MONEY_FIELD_OPTIONS)
    vat_treatment = models.CharField(
        max_length=20,
        choices=VatTreatment.choices,
        default=VatTreatment.NOT_APPLICABLE
    )

    # Source documents
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    invoice = models.ForeignKey(
        VendorInvoice,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    line_item_payments = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    budget_category = models.CharField(max_length=100, blank=True)

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.BANK_TRANSFER
    )
    payment_date = models.DateField(null=True, blank=True)
    reference_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    paid_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments_marked_paid'
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'payments'
        indexes = [
            models.Index(fields=['project_id', 'status'], name='payment_project_status_idx'),
            models.Index(fields=['purchase_order', 'status'], name='payment_po_status_idx'),
            models.Index(fields=['invoice', 'status'], name='payment_invoice_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.payment_number} - {self.amount} ({self.get_status_display()})"

    @property
    def line_payments(self):
        return [LineItemPayment.from_dict(line) for line in self.line_item_payments or []]

    @property
    def source_document(self):
        """Invoice if linked, else purchase order, else None."""
        return self.invoice or self.purchase_order


class AuditEntry(models.Model):
    """Record of one status transition or workflow action."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    document_id = models.UUIDField(db_index=True)
    action = models.CharField(max_length=50)
    from_status = models.CharField(max_length=20, blank=True)
    to_status = models.CharField(max_length=20, blank=True)
    actor = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries'
    )
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'procurement_audit_entries'
        indexes = [
            models.Index(fields=['document_type', 'document_id'], name='audit_document_idx'),
        ]
        ordering = ['created_at']
        verbose_name_plural = 'audit entries'

    def __str__(self):
        return f"{self.document_type} {self.document_id}: {self.action}"
