# Generated manually for procurement app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import migrations, models
import django.db.models.deletion


VAT_CHOICES = [('not_applicable', 'Not applicable'), ('inclusive', 'Inclusive'), ('exclusive', 'Exclusive')]


def money():
    return models.DecimalField(decimal_places=6, default=Decimal('0'), max_digits=20)


def user_fk(related_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PurchaseOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('project_id', models.CharField(db_index=True, max_length=64)),
                ('vendor_id', models.CharField(blank=True, max_length=64)),
                ('items', models.JSONField(blank=True, default=list, encoder=DjangoJSONEncoder)),
                ('vat_treatment', models.CharField(choices=VAT_CHOICES, default='not_applicable', max_length=20)),
                ('subtotal', money()),
                ('vat', money()),
                ('total', money()),
                ('budget_category', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('modification_requested_at', models.DateTimeField(blank=True, null=True)),
                ('modification_request_reason', models.TextField(blank=True)),
                ('po_number', models.CharField(max_length=50, unique=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_approval', 'Pending approval'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('issued', 'Issued'), ('received', 'Received'), ('partially_paid', 'Partially paid'), ('paid', 'Paid')], default='draft', max_length=20)),
                ('issue_date', models.DateField(blank=True, null=True)),
                ('delivery_date', models.DateField(blank=True, null=True)),
                ('approved_by', user_fk('purchaseorder_approved')),
                ('created_by', user_fk('purchaseorder_created')),
                ('modification_requested_by', user_fk('purchaseorder_modification_requests')),
                ('rejected_by', user_fk('purchaseorder_rejected')),
            ],
            options={
                'db_table': 'purchase_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['project_id', 'status'], name='po_project_status_idx'),
                    models.Index(fields=['status'], name='po_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VendorInvoice',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('project_id', models.CharField(db_index=True, max_length=64)),
                ('vendor_id', models.CharField(blank=True, max_length=64)),
                ('items', models.JSONField(blank=True, default=list, encoder=DjangoJSONEncoder)),
                ('vat_treatment', models.CharField(choices=VAT_CHOICES, default='not_applicable', max_length=20)),
                ('subtotal', money()),
                ('vat', money()),
                ('total', money()),
                ('budget_category', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('modification_requested_at', models.DateTimeField(blank=True, null=True)),
                ('modification_request_reason', models.TextField(blank=True)),
                ('invoice_number', models.CharField(max_length=50, unique=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending'), ('pending_approval', 'Pending approval'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('paid', 'Paid')], default='draft', max_length=20)),
                ('invoice_date', models.DateField(blank=True, null=True)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('sent_for_approval_at', models.DateTimeField(blank=True, null=True)),
                ('approved_by', user_fk('vendorinvoice_approved')),
                ('created_by', user_fk('vendorinvoice_created')),
                ('modification_requested_by', user_fk('vendorinvoice_modification_requests')),
                ('rejected_by', user_fk('vendorinvoice_rejected')),
                ('sent_for_approval_by', user_fk('invoices_sent_for_approval')),
                ('po', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='procurement.purchaseorder')),
            ],
            options={
                'db_table': 'vendor_invoices',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['project_id', 'status'], name='invoice_project_status_idx'),
                    models.Index(fields=['status'], name='invoice_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('payment_number', models.CharField(max_length=50, unique=True)),
                ('project_id', models.CharField(db_index=True, max_length=64)),
                ('vendor_id', models.CharField(blank=True, max_length=64)),
                ('type', models.CharField(choices=[('payment', 'Payment'), ('receipt', 'Receipt')], default='payment', max_length=20)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_approval', 'Pending approval'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('paid', 'Paid')], default='draft', max_length=20)),
                ('amount', money()),
                ('subtotal', money()),
                ('vat', money()),
                ('vat_treatment', models.CharField(choices=VAT_CHOICES, default='not_applicable', max_length=20)),
                ('line_item_payments', models.JSONField(blank=True, default=list, encoder=DjangoJSONEncoder)),
                ('budget_category', models.CharField(blank=True, max_length=100)),
                ('payment_method', models.CharField(choices=[('bank_transfer', 'Bank transfer'), ('cheque', 'Cheque'), ('cash', 'Cash')], default='bank_transfer', max_length=20)),
                ('payment_date', models.DateField(blank=True, null=True)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('approved_by', user_fk('payment_approved')),
                ('created_by', user_fk('payment_created')),
                ('rejected_by', user_fk('payment_rejected')),
                ('paid_by', user_fk('payments_marked_paid')),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='procurement.purchaseorder')),
                ('invoice', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='procurement.vendorinvoice')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['project_id', 'status'], name='payment_project_status_idx'),
                    models.Index(fields=['purchase_order', 'status'], name='payment_po_status_idx'),
                    models.Index(fields=['invoice', 'status'], name='payment_invoice_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('document_type', models.CharField(choices=[('purchase_order', 'Purchase order'), ('vendor_invoice', 'Vendor invoice'), ('payment', 'Payment')], max_length=20)),
                ('document_id', models.UUIDField(db_index=True)),
                ('action', models.CharField(max_length=50)),
                ('from_status', models.CharField(blank=True, max_length=20)),
                ('to_status', models.CharField(blank=True, max_length=20)),
                ('note', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', user_fk('audit_entries')),
            ],
            options={
                'db_table': 'procurement_audit_entries',
                'ordering': ['created_at'],
                'verbose_name_plural': 'audit entries',
                'indexes': [
                    models.Index(fields=['document_type', 'document_id'], name='audit_document_idx'),
                ],
            },
        ),
    ]
