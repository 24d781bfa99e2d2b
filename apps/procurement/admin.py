# ==========================================
# apps/procurement/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import PurchaseOrder, VendorInvoice, Payment, AuditEntry


STATUS_COLORS = {
    'draft': ('#E0E0E0', '#333'),
    'pending': ('#E0E0E0', '#333'),
    'pending_approval': ('#F3D98B', '#333'),
    'approved': ('#8FB8DE', 'white'),
    'issued': ('#8FB8DE', 'white'),
    'received': ('#8FB8DE', 'white'),
    'partially_paid': ('#E5C49A', '#333'),
    'paid': ('#6B8E5E', 'white'),
    'rejected': ('#B85C5C', 'white'),
}


class StatusBadgeMixin:
    """Render the document status as a coloured badge."""

    def status_badge(self, obj):
        bg, fg = STATUS_COLORS.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'


class ReadOnlyWorkflowAdmin(StatusBadgeMixin, admin.ModelAdmin):
    """
    Documents are browsed here, not edited.

    Status, totals and the ledger move only through the API workflow, so the
    admin never writes these rows.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(ReadOnlyWorkflowAdmin):
    list_display = ['po_number', 'project_id', 'vendor_id', 'status_badge', 'total', 'created_at']
    list_filter = ['status', 'vat_treatment']
    search_fields = ['po_number', 'project_id', 'vendor_id']
    date_hierarchy = 'created_at'


@admin.register(VendorInvoice)
class VendorInvoiceAdmin(ReadOnlyWorkflowAdmin):
    list_display = ['invoice_number', 'project_id', 'po', 'status_badge', 'total', 'created_at']
    list_filter = ['status', 'vat_treatment']
    search_fields = ['invoice_number', 'project_id', 'vendor_id']
    date_hierarchy = 'created_at'


@admin.register(Payment)
class PaymentAdmin(ReadOnlyWorkflowAdmin):
    list_display = [
        'payment_number',
        'project_id',
        'type',
        'status_badge',
        'amount',
        'purchase_order',
        'invoice',
        'paid_at',
    ]
    list_filter = ['status', 'type', 'payment_method']
    search_fields = ['payment_number', 'project_id', 'reference_number']
    date_hierarchy = 'created_at'


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'document_type', 'document_id', 'action', 'from_status', 'to_status', 'actor']
    list_filter = ['document_type', 'action']
    search_fields = ['document_id']
    readonly_fields = [field.name for field in AuditEntry._meta.fields]

    def has_add_permission(self, request):
        return False
