from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'procurement'

router = DefaultRouter()
router.register(r'purchaseOrders', views.PurchaseOrderViewSet, basename='purchase-order')
router.register(r'vendorInvoices', views.VendorInvoiceViewSet, basename='vendor-invoice')
router.register(r'payments', views.PaymentViewSet, basename='payment')

urlpatterns = [
    # Purchase orders / vendor invoices / payments
    # GET    /api/{documents}/                 - List (?projectId=, ?status=)
    # POST   /api/{documents}/                 - Create
    # GET    /api/{documents}/{id}/            - Retrieve
    # PUT    /api/{documents}/{id}/            - Update (amounts follow freeze rules)
    # DELETE /api/{documents}/{id}/            - Delete
    # GET    /api/{documents}/{id}/history/    - Audit trail

    # Workflow actions
    # POST   /api/{documents}/{id}/submit/
    # POST   /api/{documents}/{id}/approve/
    # POST   /api/{documents}/{id}/reject/
    # POST   /api/purchaseOrders/{id}/issue/
    # POST   /api/purchaseOrders/{id}/receive/
    # POST   /api/{purchaseOrders|vendorInvoices}/{id}/request_modification/
    # POST   /api/{purchaseOrders|vendorInvoices}/{id}/resolve_modification/
    # POST   /api/payments/{id}/mark_paid/

    # Line-item allocation
    # POST   /api/payments/allocation_preview/
    # POST   /api/payments/allocate/
    path('', include(router.urls)),
]
