import pytest
from decimal import Decimal
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from apps.procurement import services
from apps.procurement.models import (
    AuditEntry,
    Payment,
    PaymentStatus,
    PurchaseOrder,
    PurchaseOrderStatus,
)


def po_url(po, action=None):
    if action:
        return reverse(f'procurement:purchase-order-{action.replace("_", "-")}', kwargs={'pk': po.id})
    return reverse('procurement:purchase-order-detail', kwargs={'pk': po.id})


# =============================================================================
# Purchase order endpoints
# =============================================================================

@pytest.mark.django_db
class TestPurchaseOrderCreate:
    """Tests for POST /api/purchaseOrders/"""

    def test_create_computes_vat(self, user_client, electrical_budget, project_id):
        url = reverse('procurement:purchase-order-list')
        response = user_client.post(url, {
            'project_id': project_id,
            'items': [{'description': 'Cable', 'quantity': 10, 'unit_price': 100}],
            'vat_status': 'exclusive',
            'budget_category': 'Electrical',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body['success'] is True
        assert body['data']['status'] == 'draft'
        assert body['data']['subtotal'] == 1000
        assert body['data']['vat'] == 150
        assert body['data']['total'] == 1150
        assert body['data']['items'][0]['total'] == 1000

    def test_missing_items(self, user_client, project_id):
        url = reverse('procurement:purchase-order-list')
        response = user_client.post(url, {'project_id': project_id}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body['success'] is False
        assert body['error'].startswith('items')
        assert 'items' in body['details']

    def test_unknown_category(self, user_client, project_id):
        url = reverse('procurement:purchase-order-list')
        response = user_client.post(url, {
            'project_id': project_id,
            'items': [],
            'budget_category': 'Catering',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'unknown_category'

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('procurement:purchase-order-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()['code'] == 'not_authenticated'


@pytest.mark.django_db
class TestPurchaseOrderList:
    """Tests for GET /api/purchaseOrders/"""

    def test_list_is_paginated(self, user_client, draft_po):
        response = user_client.get(reverse('procurement:purchase-order-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['po_number'] == draft_po.po_number

    def test_filter_by_project_and_status(self, user_client, draft_po, approved_po):
        url = reverse('procurement:purchase-order-list')

        assert user_client.get(url, {'projectId': 'P-404'}).data['count'] == 0
        assert user_client.get(url, {'projectId': draft_po.project_id, 'status': 'approved'}).data['count'] == 1

    def test_retrieve_missing(self, user_client):
        url = reverse('procurement:purchase-order-detail', kwargs={'pk': '00000000-0000-0000-0000-000000000000'})
        response = user_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body['success'] is False
        assert body['code'] == 'not_found'
        assert 'details' not in body


@pytest.mark.django_db
class TestPurchaseOrderWorkflow:
    """Tests for the workflow actions of /api/purchaseOrders/{id}/"""

    def test_submit_and_approve(self, user_client, admin_client, draft_po, electrical_budget):
        response = user_client.post(po_url(draft_po, 'submit'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['status'] == 'pending_approval'

        response = admin_client.post(po_url(draft_po, 'approve'))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['status'] == 'approved'
        assert data['approved_by']['email'] == 'approver@example.com'

        electrical_budget.refresh_from_db()
        assert electrical_budget.reserved == Decimal('1000')

    def test_regular_user_cannot_approve(self, user_client, draft_po, user):
        services.submit(draft_po, user=user)
        response = user_client.post(po_url(draft_po, 'approve'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['code'] == 'permission_denied'

    def test_self_approval_forbidden(self, admin_client, admin_user, electrical_budget, cable_items, project_id):
        po = services.create_purchase_order(user=admin_user, project_id=project_id, items=cable_items)
        services.submit(po, user=admin_user)

        response = admin_client.post(po_url(po, 'approve'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()['code'] == 'self_approval'

    def test_invalid_transition(self, user_client, draft_po):
        response = user_client.post(po_url(draft_po, 'issue'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body['code'] == 'invalid_state_transition'
        assert 'draft' in body['error']

    def test_reject_requires_reason(self, admin_client, draft_po, user):
        services.submit(draft_po, user=user)
        response = admin_client.post(po_url(draft_po, 'reject'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'rejection_reason_required'

    def test_reject(self, admin_client, draft_po, user):
        services.submit(draft_po, user=user)
        response = admin_client.post(po_url(draft_po, 'reject'), {'reason': 'Over budget'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['status'] == 'rejected'
        assert data['rejection_reason'] == 'Over budget'

    def test_locked_amounts(self, user_client, approved_po):
        response = user_client.patch(po_url(approved_po), {'vat_status': 'inclusive'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'document_locked'

    def test_modification_flow(self, user_client, admin_client, approved_po, electrical_budget):
        response = user_client.post(
            po_url(approved_po, 'request_modification'), {'reason': 'Vendor revised quote'}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['has_open_modification_request'] is True

        response = admin_client.patch(po_url(approved_po), {
            'items': [{'description': 'Cable', 'quantity': 8, 'unit_price': 100}],
        }, format='json')
        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['total'] == 920
        assert data['has_open_modification_request'] is False

        electrical_budget.refresh_from_db()
        assert electrical_budget.reserved == Decimal('800')

    def test_history(self, user_client, approved_po):
        response = user_client.get(po_url(approved_po, 'history'))

        assert response.status_code == status.HTTP_200_OK
        assert [entry['action'] for entry in response.data] == ['created', 'submitted', 'approved']

    def test_audit_failure_reported_as_warning(self, user_client, draft_po, monkeypatch):
        def broken_create(**kwargs):
            raise DatabaseError('audit table unavailable')

        monkeypatch.setattr(AuditEntry.objects, 'create', broken_create)
        response = user_client.post(po_url(draft_po, 'submit'))

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['data']['status'] == 'pending_approval'
        assert len(body['warnings']) == 1

    def test_delete_draft(self, user_client, draft_po):
        response = user_client.delete(po_url(draft_po))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert response.content == b''
        assert not PurchaseOrder.objects.exists()

    def test_delete_referenced_document(self, user_client, user, draft_po):
        services.create_payment(
            user=user, project_id=draft_po.project_id, amount=Decimal('10'), type='receipt',
            purchase_order=draft_po.id,
        )

        response = user_client.delete(po_url(draft_po))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['success'] is False
        assert PurchaseOrder.objects.filter(id=draft_po.id).exists()


# =============================================================================
# Vendor invoice endpoints
# =============================================================================

@pytest.mark.django_db
class TestVendorInvoiceAPI:

    def test_create_inclusive_invoice(self, user_client, hvac_budget, project_id):
        response = user_client.post(reverse('procurement:vendor-invoice-list'), {
            'project_id': project_id,
            'items': [{'description': 'Chiller', 'quantity': 1, 'unit_price': 1150}],
            'vat_treatment': 'inclusive',
            'budget_category': 'HVAC',
            'status': 'pending',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'pending'
        assert response.data['subtotal'] == Decimal('1000.00')
        assert response.data['vat'] == Decimal('150.00')

    def test_submit_and_approve(self, user_client, admin_client, user, hvac_budget, project_id):
        invoice = services.create_vendor_invoice(
            user=user,
            project_id=project_id,
            items=[{'quantity': 1, 'unit_price': 1150}],
            vat_treatment='inclusive',
            budget_category='HVAC',
        )
        user_client.post(reverse('procurement:vendor-invoice-submit', kwargs={'pk': invoice.id}))
        response = admin_client.post(reverse('procurement:vendor-invoice-approve', kwargs={'pk': invoice.id}))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['sent_for_approval_by']['email'] == 'requester@example.com'
        hvac_budget.refresh_from_db()
        assert hvac_budget.reserved == Decimal('1000')


# =============================================================================
# Payment endpoints
# =============================================================================

@pytest.mark.django_db
class TestPaymentAPI:

    def test_allocation_preview(self, user_client, two_line_po):
        payment_count = Payment.objects.count()
        response = user_client.post(reverse('procurement:payment-allocation-preview'), {
            'purchase_order': str(two_line_po.id),
            'lines': [{'line_index': 0, 'payment_type': 'percentage', 'payment_value': 50}],
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert [line['payment_amount'] for line in data['lines']] == [250, 800]
        assert data['subtotal'] == 1050
        assert data['total'] == 1207.5
        assert Payment.objects.count() == payment_count

    def test_preview_needs_exactly_one_source(self, user_client, two_line_po):
        response = user_client.post(reverse('procurement:payment-allocation-preview'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['success'] is False

    def test_allocate_then_pay(self, user_client, admin_client, approved_po, electrical_budget):
        response = user_client.post(reverse('procurement:payment-allocate'), {
            'purchase_order': str(approved_po.id),
            'reference_number': 'BANK-001',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()['data']
        payment_id = data['id']
        assert data['status'] == PaymentStatus.PENDING_APPROVAL
        assert data['amount'] == 1150

        admin_client.post(reverse('procurement:payment-approve', kwargs={'pk': payment_id}))
        response = admin_client.post(reverse('procurement:payment-mark-paid', kwargs={'pk': payment_id}))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['status'] == 'paid'
        approved_po.refresh_from_db()
        electrical_budget.refresh_from_db()
        assert approved_po.status == PurchaseOrderStatus.PAID
        assert electrical_budget.actual == Decimal('1000')

    def test_allocate_draft_document(self, user_client, draft_po):
        response = user_client.post(reverse('procurement:payment-allocate'), {
            'purchase_order': str(draft_po.id),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'not_payable'

    def test_nothing_to_pay(self, user_client, user, approved_po):
        services.create_payment_from_allocation(user=user, purchase_order_id=approved_po.id)

        response = user_client.post(reverse('procurement:payment-allocate'), {
            'purchase_order': str(approved_po.id),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'nothing_to_pay'

    def test_mark_paid_admin_only(self, user_client, user, admin_user, approved_po):
        payment = services.create_payment_from_allocation(
            user=user, purchase_order_id=approved_po.id
        ).document
        services.approve(payment, user=admin_user)

        response = user_client.post(reverse('procurement:payment-mark-paid', kwargs={'pk': payment.id}))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_manual_payment(self, user_client, project_id):
        response = user_client.post(reverse('procurement:payment-list'), {
            'project_id': project_id,
            'amount': '100',
            'vat_treatment': 'exclusive',
            'payment_method': 'cheque',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'draft'
        assert response.data['amount'] == Decimal('115.00')
        assert response.data['line_item_payments'] == []

    def test_manual_payment_against_purchase_order_refused(self, user_client, approved_po):
        response = user_client.post(reverse('procurement:payment-list'), {
            'project_id': approved_po.project_id,
            'amount': '500',
            'vat_treatment': 'exclusive',
            'purchase_order': str(approved_po.id),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['code'] == 'invalid_document_link'
        assert not Payment.objects.exists()

        response = user_client.post(reverse('procurement:payment-allocate'), {
            'purchase_order': str(approved_po.id),
        }, format='json')
        assert response.json()['data']['amount'] == 1150
