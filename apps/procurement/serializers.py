from rest_framework import serializers
from decimal import Decimal
from apps.accounts.serializers import UserMinimalSerializer
from config.fields import MoneyField, AmountField
from .models import (
    AuditEntry,
    InvoiceStatus,
    LinePaymentType,
    Payment,
    PaymentMethod,
    PaymentType,
    PurchaseOrder,
    VatTreatment,
    VendorInvoice,
)


# =============================================================================
# Line Items
# =============================================================================

class LineItemSerializer(serializers.Serializer):
    """One priced line; used for input and for output of stored lines."""

    description = serializers.CharField(max_length=500, allow_blank=True, default='')
    quantity = AmountField(min_value=Decimal('0'))
    unit_price = AmountField(min_value=Decimal('0'))
    total = MoneyField()
    budget_category = serializers.CharField(
        max_length=100, required=False, allow_blank=True, allow_null=True
    )
    unit = serializers.CharField(max_length=20, required=False, allow_blank=True)


class LineItemPaymentSerializer(serializers.Serializer):
    """Per-line breakdown of an allocated payment."""

    line_index = serializers.IntegerField()
    description = serializers.CharField()
    quantity = AmountField()
    unit_price = AmountField()
    line_total = MoneyField()
    payment_type = serializers.CharField()
    payment_value = AmountField()
    previously_paid = MoneyField()
    remaining = MoneyField()
    remaining_percentage = AmountField()
    payment_amount = MoneyField()
    budget_category = serializers.CharField(allow_null=True)


# =============================================================================
# Input Serializers
# =============================================================================

class DocumentFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for document lists.

    Query Parameters:
        projectId (str): Only documents of this project
        status (str): Only documents in this status
    """

    projectId = serializers.CharField(max_length=64, required=False)
    status = serializers.CharField(max_length=20, required=False)


class PurchaseOrderInputSerializer(serializers.Serializer):
    """Validate input for creating (or, partially, updating) a purchase order."""

    project_id = serializers.CharField(max_length=64)
    vendor_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    po_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    items = LineItemSerializer(many=True)
    vat_status = serializers.ChoiceField(
        choices=VatTreatment.choices,
        source='vat_treatment',
        default=VatTreatment.NOT_APPLICABLE,
    )
    budget_category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    issue_date = serializers.DateField(required=False, allow_null=True)
    delivery_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class PurchaseOrderUpdateSerializer(PurchaseOrderInputSerializer):
    """Every field optional; the project cannot change."""

    project_id = None
    items = LineItemSerializer(many=True, required=False)
    vat_status = serializers.ChoiceField(
        choices=VatTreatment.choices, source='vat_treatment', required=False
    )


class VendorInvoiceInputSerializer(serializers.Serializer):
    """Validate input for creating a vendor invoice."""

    project_id = serializers.CharField(max_length=64)
    vendor_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    invoice_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    po = serializers.UUIDField(required=False, allow_null=True)
    items = LineItemSerializer(many=True)
    vat_treatment = serializers.ChoiceField(
        choices=VatTreatment.choices, default=VatTreatment.NOT_APPLICABLE
    )
    budget_category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    status = serializers.ChoiceField(
        choices=[InvoiceStatus.DRAFT, InvoiceStatus.PENDING],
        default=InvoiceStatus.DRAFT,
    )
    invoice_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class VendorInvoiceUpdateSerializer(VendorInvoiceInputSerializer):
    """Every field optional; project and status cannot change here."""

    project_id = None
    status = None
    items = LineItemSerializer(many=True, required=False)
    vat_treatment = serializers.ChoiceField(choices=VatTreatment.choices, required=False)


class PaymentInputSerializer(serializers.Serializer):
    """Validate input for recording a manual payment or receipt."""

    project_id = serializers.CharField(max_length=64)
    vendor_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    payment_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=PaymentType.choices, default=PaymentType.PAYMENT)
    amount = AmountField(min_value=Decimal('0'))
    vat_treatment = serializers.ChoiceField(
        choices=VatTreatment.choices, default=VatTreatment.NOT_APPLICABLE
    )
    budget_category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    purchase_order = serializers.UUIDField(required=False, allow_null=True)
    invoice = serializers.UUIDField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.BANK_TRANSFER
    )
    payment_date = serializers.DateField(required=False, allow_null=True)
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class PaymentUpdateSerializer(PaymentInputSerializer):
    """Every field optional; the project cannot change."""

    project_id = None
    type = serializers.ChoiceField(choices=PaymentType.choices, required=False)
    amount = AmountField(min_value=Decimal('0'), required=False)
    vat_treatment = serializers.ChoiceField(choices=VatTreatment.choices, required=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)


class LineAllocationRequestSerializer(serializers.Serializer):
    """How one source line should be paid."""

    line_index = serializers.IntegerField(min_value=0)
    payment_type = serializers.ChoiceField(
        choices=LinePaymentType.choices, default=LinePaymentType.FULL
    )
    payment_value = AmountField(required=False, allow_null=True)


class AllocationPreviewInputSerializer(serializers.Serializer):
    """
    Validate input for an allocation preview.

    Fields:
        purchase_order (UUID): Source purchase order, or
        invoice (UUID): Source vendor invoice (exactly one of the two)
        lines (list): Optional per-line requests; other lines are paid in full
    """

    purchase_order = serializers.UUIDField(required=False, allow_null=True)
    invoice = serializers.UUIDField(required=False, allow_null=True)
    lines = LineAllocationRequestSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        if bool(attrs.get('purchase_order')) == bool(attrs.get('invoice')):
            raise serializers.ValidationError(
                'Provide exactly one of purchase_order or invoice.'
            )
        return attrs


class AllocateInputSerializer(AllocationPreviewInputSerializer):
    """Allocation preview input plus the payment details to store."""

    payment_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.BANK_TRANSFER
    )
    payment_date = serializers.DateField(required=False, allow_null=True)
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class RejectInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ModificationRequestInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ResolveModificationInputSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default='')


# =============================================================================
# Output Serializers
# =============================================================================

APPROVAL_TRAIL_FIELDS = [
    'created_by',
    'approved_by',
    'approved_at',
    'rejected_by',
    'rejected_at',
    'rejection_reason',
    'created_at',
    'updated_at',
]

MODIFICATION_FIELDS = [
    'modification_requested_by',
    'modification_requested_at',
    'modification_request_reason',
    'has_open_modification_request',
]


class PricedDocumentSerializer(serializers.ModelSerializer):
    """Shared output of purchase orders and vendor invoices."""

    items = LineItemSerializer(source='line_items', many=True, read_only=True)
    subtotal = MoneyField()
    vat = MoneyField()
    total = MoneyField()
    created_by = UserMinimalSerializer(read_only=True)
    approved_by = UserMinimalSerializer(read_only=True)
    rejected_by = UserMinimalSerializer(read_only=True)
    modification_requested_by = UserMinimalSerializer(read_only=True)
    has_open_modification_request = serializers.BooleanField(read_only=True)


class PurchaseOrderSerializer(PricedDocumentSerializer):
    """Purchase order with totals, line items and approval trail."""

    vat_status = serializers.CharField(source='vat_treatment', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id',
            'po_number',
            'project_id',
            'vendor_id',
            'status',
            'items',
            'vat_status',
            'subtotal',
            'vat',
            'total',
            'budget_category',
            'issue_date',
            'delivery_date',
            'notes',
            *MODIFICATION_FIELDS,
            *APPROVAL_TRAIL_FIELDS,
        ]
        read_only_fields = fields


class VendorInvoiceSerializer(PricedDocumentSerializer):
    """Vendor invoice with totals, line items and approval trail."""

    sent_for_approval_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = VendorInvoice
        fields = [
            'id',
            'invoice_number',
            'project_id',
            'vendor_id',
            'po',
            'status',
            'items',
            'vat_treatment',
            'subtotal',
            'vat',
            'total',
            'budget_category',
            'invoice_date',
            'due_date',
            'notes',
            'sent_for_approval_by',
            'sent_for_approval_at',
            *MODIFICATION_FIELDS,
            *APPROVAL_TRAIL_FIELDS,
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    """Payment with VAT breakdown, line allocation and approval trail."""

    amount = MoneyField()
    subtotal = MoneyField()
    vat = MoneyField()
    line_item_payments = LineItemPaymentSerializer(source='line_payments', many=True, read_only=True)
    created_by = UserMinimalSerializer(read_only=True)
    approved_by = UserMinimalSerializer(read_only=True)
    rejected_by = UserMinimalSerializer(read_only=True)
    paid_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id',
            'payment_number',
            'project_id',
            'vendor_id',
            'type',
            'status',
            'amount',
            'subtotal',
            'vat',
            'vat_treatment',
            'purchase_order',
            'invoice',
            'line_item_payments',
            'budget_category',
            'payment_method',
            'payment_date',
            'reference_number',
            'notes',
            'paid_by',
            'paid_at',
            *APPROVAL_TRAIL_FIELDS,
        ]
        read_only_fields = fields


class AllocationSerializer(serializers.Serializer):
    """Preview of a line allocation and the resulting payment totals."""

    vat_treatment = serializers.CharField()
    lines = LineItemPaymentSerializer(many=True)
    subtotal = MoneyField()
    vat = MoneyField()
    total = MoneyField()


class AuditEntrySerializer(serializers.ModelSerializer):
    actor = UserMinimalSerializer(read_only=True)

    class Meta:
        model = AuditEntry
        fields = ['id', 'action', 'from_status', 'to_status', 'actor', 'note', 'created_at']
        read_only_fields = fields
