import pytest
from decimal import Decimal
from django.db.models import ProtectedError
from django.utils import timezone
from apps.budget.services import UnknownCategoryError
from apps.procurement import services
from apps.procurement.models import (
    InvoiceStatus,
    Payment,
    PaymentStatus,
    PurchaseOrder,
    VatTreatment,
)
from apps.procurement.services import (
    DocumentLockedError,
    DuplicateDocumentNumberError,
    InvalidDocumentLinkError,
    InvalidLineItemsError,
    InvalidStateTransitionError,
)


# =============================================================================
# Purchase orders
# =============================================================================

@pytest.mark.django_db
class TestCreatePurchaseOrder:

    def test_totals_and_number(self, draft_po):
        year = timezone.localdate().year

        assert draft_po.po_number == f'PO-{year}-0001'
        assert draft_po.subtotal == Decimal('1000')
        assert draft_po.vat == Decimal('150')
        assert draft_po.total == Decimal('1150')
        assert draft_po.line_items[0].total == Decimal('1000')

    def test_numbers_increase(self, draft_po, user, cable_items, project_id):
        second = services.create_purchase_order(user=user, project_id=project_id, items=cable_items)

        assert second.po_number.endswith('-0002')
        assert second.vat_treatment == VatTreatment.NOT_APPLICABLE
        assert second.total == Decimal('1000')

    def test_explicit_number_must_be_unique(self, draft_po, user, cable_items, project_id):
        with pytest.raises(DuplicateDocumentNumberError):
            services.create_purchase_order(
                user=user, project_id=project_id, items=cable_items, po_number=draft_po.po_number
            )

    def test_unknown_category(self, user, cable_items, project_id):
        with pytest.raises(UnknownCategoryError):
            services.create_purchase_order(
                user=user, project_id=project_id, items=cable_items, budget_category='Catering'
            )

    def test_unknown_line_category(self, user, project_id):
        with pytest.raises(UnknownCategoryError):
            services.create_purchase_order(
                user=user,
                project_id=project_id,
                items=[{'quantity': 1, 'unit_price': 1, 'budget_category': 'Catering'}],
            )

    @pytest.mark.parametrize('item', [
        {'quantity': -1, 'unit_price': 10},
        {'quantity': 1, 'unit_price': 'ten'},
        'not a line',
    ])
    def test_malformed_lines(self, user, project_id, item):
        with pytest.raises(InvalidLineItemsError):
            services.create_purchase_order(user=user, project_id=project_id, items=[item])

        assert not PurchaseOrder.objects.exists()


@pytest.mark.django_db
class TestUpdatePurchaseOrder:

    def test_draft_is_repriced(self, draft_po, user):
        result = services.update_priced_document(
            draft_po, user=user, data={'vat_treatment': VatTreatment.INCLUSIVE}
        )

        assert result.document.total == Decimal('1000')
        assert result.document.subtotal.quantize(Decimal('0.01')) == Decimal('869.57')

    def test_non_monetary_fields_editable_after_approval(self, approved_po, user):
        result = services.update_priced_document(
            approved_po, user=user, data={'notes': 'Deliver to gate 2'}
        )

        assert result.document.notes == 'Deliver to gate 2'

    def test_unchanged_amounts_do_not_count_as_changes(self, approved_po, user):
        result = services.update_priced_document(
            approved_po,
            user=user,
            data={
                'items': [{'description': 'Cable', 'quantity': '10.0', 'unit_price': 100}],
                'vat_treatment': VatTreatment.EXCLUSIVE,
            },
        )

        assert result.document.total == Decimal('1150')

    def test_category_locked_after_approval(self, approved_po, user):
        with pytest.raises(DocumentLockedError):
            services.update_priced_document(approved_po, user=user, data={'budget_category': 'HVAC'})


@pytest.mark.django_db
class TestDeleteDocuments:

    def test_delete_draft(self, draft_po):
        services.delete_priced_document(draft_po)

        assert not PurchaseOrder.objects.exists()

    def test_approved_cannot_be_deleted(self, approved_po):
        with pytest.raises(DocumentLockedError):
            services.delete_priced_document(approved_po)

    def test_linked_payment_protects_document(self, draft_po, user):
        services.create_payment(
            user=user, project_id=draft_po.project_id, amount=Decimal('10'), type='receipt',
            purchase_order=draft_po.id,
        )

        with pytest.raises(ProtectedError):
            services.delete_priced_document(draft_po)


# =============================================================================
# Vendor invoices
# =============================================================================

@pytest.mark.django_db
class TestVendorInvoices:

    def test_invoice_inherits_po_category(self, approved_po, user):
        invoice = services.create_vendor_invoice(
            user=user,
            project_id=approved_po.project_id,
            po=approved_po.id,
            items=[{'quantity': 1, 'unit_price': 1150}],
            vat_treatment=VatTreatment.INCLUSIVE,
        )

        assert invoice.budget_category == 'Electrical'
        assert invoice.invoice_number.startswith('INV-')
        assert invoice.subtotal == Decimal('1000')
        assert invoice.vat == Decimal('150')

    def test_po_of_other_project_rejected(self, approved_po, user):
        with pytest.raises(InvalidDocumentLinkError):
            services.create_vendor_invoice(
                user=user, project_id='P-999', po=approved_po.id, items=[]
            )

    def test_created_as_draft_or_pending_only(self, user, project_id):
        with pytest.raises(InvalidStateTransitionError):
            services.create_vendor_invoice(
                user=user, project_id=project_id, items=[], status=InvoiceStatus.APPROVED
            )


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestPayments:

    def test_manual_payment_is_draft(self, user, project_id):
        payment = services.create_payment(
            user=user,
            project_id=project_id,
            amount=Decimal('1150'),
            vat_treatment=VatTreatment.INCLUSIVE,
        )

        assert payment.status == PaymentStatus.DRAFT
        assert payment.subtotal == Decimal('1000')
        assert payment.amount == Decimal('1150')

    def test_invoice_receipt_links_invoice_po(self, approved_po, user):
        invoice = services.create_vendor_invoice(
            user=user, project_id=approved_po.project_id, po=approved_po.id, items=[]
        )

        receipt = services.create_payment(
            user=user,
            project_id=approved_po.project_id,
            amount=Decimal('5'),
            type='receipt',
            invoice=invoice.id,
        )

        assert receipt.purchase_order == approved_po

    def test_manual_payment_cannot_link_purchase_order(self, approved_po, user):
        with pytest.raises(InvalidDocumentLinkError):
            services.create_payment(
                user=user,
                project_id=approved_po.project_id,
                amount=Decimal('500'),
                vat_treatment=VatTreatment.EXCLUSIVE,
                purchase_order=approved_po.id,
            )

        assert not Payment.objects.exists()
        payment = services.create_payment_from_allocation(
            user=user, purchase_order_id=approved_po.id
        ).document
        assert payment.amount == Decimal('1150')

    def test_update_cannot_link_invoice(self, approved_invoice, user):
        payment = services.create_payment(
            user=user, project_id=approved_invoice.project_id, amount=Decimal('10')
        )

        with pytest.raises(InvalidDocumentLinkError):
            services.update_payment(payment, user=user, data={'invoice': approved_invoice.id})

        payment.refresh_from_db()
        assert payment.invoice is None

    def test_linked_receipt_cannot_become_payment(self, approved_po, user):
        receipt = services.create_payment(
            user=user,
            project_id=approved_po.project_id,
            amount=Decimal('10'),
            type='receipt',
            purchase_order=approved_po.id,
        )

        with pytest.raises(InvalidDocumentLinkError):
            services.update_payment(receipt, user=user, data={'type': 'payment'})

    def test_update_draft_payment_reprices(self, user, project_id):
        payment = services.create_payment(
            user=user, project_id=project_id, amount=Decimal('100'), vat_treatment=VatTreatment.EXCLUSIVE
        )

        result = services.update_payment(payment, user=user, data={'amount': Decimal('200')})

        assert result.document.amount == Decimal('230')
        assert result.document.vat_treatment == VatTreatment.EXCLUSIVE

    def test_vat_change_keeps_raw_amount(self, user, project_id):
        payment = services.create_payment(
            user=user, project_id=project_id, amount=Decimal('100'), vat_treatment=VatTreatment.EXCLUSIVE
        )

        result = services.update_payment(
            payment, user=user, data={'vat_treatment': VatTreatment.NOT_APPLICABLE}
        )

        assert result.document.amount == Decimal('100')

    def test_allocated_payment_cannot_be_repriced(self, approved_po, user):
        payment = services.create_payment_from_allocation(
            user=user, purchase_order_id=approved_po.id
        ).document

        with pytest.raises(DocumentLockedError):
            services.update_payment(payment, user=user, data={'amount': Decimal('1')})

        result = services.update_payment(payment, user=user, data={'reference_number': 'TRX-88'})
        assert result.document.reference_number == 'TRX-88'

    def test_paid_payment_cannot_be_deleted(self, user, admin_user, project_id):
        payment = services.create_payment(user=user, project_id=project_id, amount=Decimal('10'))
        services.submit(payment, user=user)
        services.approve(payment, user=admin_user)
        services.mark_paid(payment, user=admin_user)

        with pytest.raises(DocumentLockedError):
            services.delete_payment(payment)
        assert Payment.objects.count() == 1
