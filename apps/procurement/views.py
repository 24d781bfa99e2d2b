from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from apps.accounts.permissions import IsAdminRole
from config.envelope import success
from .models import PurchaseOrder, VendorInvoice, Payment
from .serializers import (
    PurchaseOrderSerializer,
    PurchaseOrderInputSerializer,
    PurchaseOrderUpdateSerializer,
    VendorInvoiceSerializer,
    VendorInvoiceInputSerializer,
    VendorInvoiceUpdateSerializer,
    PaymentSerializer,
    PaymentInputSerializer,
    PaymentUpdateSerializer,
    AllocationSerializer,
    AllocationPreviewInputSerializer,
    AllocateInputSerializer,
    AuditEntrySerializer,
    DocumentFilterSerializer,
    RejectInputSerializer,
    ModificationRequestInputSerializer,
    ResolveModificationInputSerializer,
)
from . import services


DOCUMENT_FILTER_PARAMS = [
    OpenApiParameter(name='projectId', type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name='status', type=str, location=OpenApiParameter.QUERY, required=False),
]


class DocumentPagination(PageNumberPagination):
    """Pagination for procurement document lists."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class WorkflowDocumentViewSet(viewsets.ModelViewSet):
    """
    Shared CRUD and approval actions of procurement documents.

    Subclasses set the model, the output serializer and the input
    serializers, and route create/update/delete through the services layer.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = DocumentPagination
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']

    input_serializer_class = None
    update_serializer_class = None
    approver_actions = ['approve', 'reject', 'resolve_modification']

    def get_permissions(self):
        """Approval actions are limited to administrators."""
        if self.action in self.approver_actions:
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        """Filter documents using input serializer validation."""
        filter_serializer = DocumentFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        return services.list_documents(
            self.queryset.model,
            project_id=params.get('projectId'),
            status=params.get('status'),
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return self.input_serializer_class
        if self.action in ['update', 'partial_update']:
            return self.update_serializer_class
        return self.serializer_class

    def respond(self, result, status_code=status.HTTP_200_OK):
        """Serialize an ActionResult, passing audit warnings through the envelope."""
        data = self.serializer_class(result.document).data
        return Response(success(data, result.warnings), status=status_code)

    @extend_schema(parameters=DOCUMENT_FILTER_PARAMS)
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def perform_destroy(self, instance):
        services.delete_priced_document(instance)

    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """
        Send the document for approval.

        POST /api/{documents}/{id}/submit/
        """
        return self.respond(services.submit(self.get_object(), user=request.user))

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """
        Approve the document (admin, not the creator).

        POST /api/{documents}/{id}/approve/
        """
        return self.respond(services.approve(self.get_object(), user=request.user))

    @extend_schema(request=RejectInputSerializer)
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """
        Reject the document (admin, not the creator).

        POST /api/{documents}/{id}/reject/
        Body: {"reason": "Over budget"}
        """
        serializer = RejectInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self.respond(services.reject(
            self.get_object(),
            user=request.user,
            reason=serializer.validated_data['reason'],
        ))

    @extend_schema(request=None, responses=AuditEntrySerializer(many=True))
    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """
        Audit trail of the document.

        GET /api/{documents}/{id}/history/
        """
        entries = services.history(self.get_object())
        return Response(AuditEntrySerializer(entries, many=True).data)


class ModifiableDocumentMixin:
    """Modification request actions of purchase orders and invoices."""

    @extend_schema(request=ModificationRequestInputSerializer)
    @action(detail=True, methods=['post'])
    def request_modification(self, request, pk=None):
        """
        Ask for an approved document to be re-priced.

        POST /api/{documents}/{id}/request_modification/
        Body: {"reason": "Vendor revised quote"}
        """
        serializer = ModificationRequestInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self.respond(services.request_modification(
            self.get_object(),
            user=request.user,
            reason=serializer.validated_data['reason'],
        ))

    @extend_schema(request=ResolveModificationInputSerializer)
    @action(detail=True, methods=['post'])
    def resolve_modification(self, request, pk=None):
        """
        Close the open modification request (admin).

        POST /api/{documents}/{id}/resolve_modification/
        """
        serializer = ResolveModificationInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self.respond(services.resolve_modification(
            self.get_object(),
            user=request.user,
            note=serializer.validated_data['note'],
        ))

    def update(self, request, *args, **kwargs):
        serializer = self.update_serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_priced_document(
            self.get_object(), user=request.user, data=serializer.validated_data
        )
        return self.respond(result)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)


class PurchaseOrderViewSet(ModifiableDocumentMixin, WorkflowDocumentViewSet):
    """
    ViewSet for purchase orders.

    list: Purchase orders (filterable by ?projectId= and ?status=)
    create: Create a draft purchase order
    retrieve / update / destroy: Single purchase order (amounts freeze on approval)
    submit / approve / reject / issue / receive: Workflow transitions
    request_modification / resolve_modification: Re-pricing channel
    """

    queryset = PurchaseOrder.objects.all()
    serializer_class = PurchaseOrderSerializer
    input_serializer_class = PurchaseOrderInputSerializer
    update_serializer_class = PurchaseOrderUpdateSerializer

    @extend_schema(request=PurchaseOrderInputSerializer, responses={201: PurchaseOrderSerializer})
    def create(self, request, *args, **kwargs):
        serializer = PurchaseOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        po = services.create_purchase_order(user=request.user, **serializer.validated_data)
        return Response(PurchaseOrderSerializer(po).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def issue(self, request, pk=None):
        """
        Mark the purchase order as issued to the vendor.

        POST /api/purchaseOrders/{id}/issue/
        """
        return self.respond(services.issue(self.get_object(), user=request.user))

    @action(detail=True, methods=['post'])
    def receive(self, request, pk=None):
        """
        Mark the purchase order as received.

        POST /api/purchaseOrders/{id}/receive/
        """
        return self.respond(services.receive(self.get_object(), user=request.user))


class VendorInvoiceViewSet(ModifiableDocumentMixin, WorkflowDocumentViewSet):
    """
    ViewSet for vendor invoices.

    list: Invoices (filterable by ?projectId= and ?status=)
    create: Create an invoice (draft or pending)
    retrieve / update / destroy: Single invoice (amounts freeze on approval)
    submit / approve / reject: Workflow transitions
    request_modification / resolve_modification: Re-pricing channel
    """

    queryset = VendorInvoice.objects.all()
    serializer_class = VendorInvoiceSerializer
    input_serializer_class = VendorInvoiceInputSerializer
    update_serializer_class = VendorInvoiceUpdateSerializer

    @extend_schema(request=VendorInvoiceInputSerializer, responses={201: VendorInvoiceSerializer})
    def create(self, request, *args, **kwargs):
        serializer = VendorInvoiceInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = services.create_vendor_invoice(user=request.user, **serializer.validated_data)
        return Response(VendorInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class PaymentViewSet(WorkflowDocumentViewSet):
    """
    ViewSet for payments.

    list: Payments (filterable by ?projectId= and ?status=)
    create: Record a manual payment or receipt (draft)
    retrieve / update / destroy: Single payment (amounts freeze after approval)
    submit / approve / reject / mark_paid: Workflow transitions
    allocation_preview / allocate: Line-item allocation against a PO or invoice
    """

    queryset = Payment.objects.all()
    serializer_class = PaymentSerializer
    input_serializer_class = PaymentInputSerializer
    update_serializer_class = PaymentUpdateSerializer
    approver_actions = ['approve', 'reject', 'mark_paid']

    def get_serializer_class(self):
        if self.action == 'allocation_preview':
            return AllocationPreviewInputSerializer
        if self.action == 'allocate':
            return AllocateInputSerializer
        return super().get_serializer_class()

    @extend_schema(request=PaymentInputSerializer, responses={201: PaymentSerializer})
    def create(self, request, *args, **kwargs):
        serializer = PaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.create_payment(user=request.user, **serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        serializer = PaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_payment(
            self.get_object(), user=request.user, data=serializer.validated_data
        )
        return self.respond(result)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def perform_destroy(self, instance):
        services.delete_payment(instance)

    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """
        Mark an approved payment as paid (admin).

        Records actuals in the budget ledger and advances the linked
        purchase order / invoice to partially paid or paid.

        POST /api/payments/{id}/mark_paid/
        """
        return self.respond(services.mark_paid(self.get_object(), user=request.user))

    def _source(self, data):
        if data.get('invoice'):
            return services.get_document(VendorInvoice, data['invoice'])
        return services.get_document(PurchaseOrder, data['purchase_order'])

    @extend_schema(request=AllocationPreviewInputSerializer, responses=AllocationSerializer)
    @action(detail=False, methods=['post'])
    def allocation_preview(self, request):
        """
        Preview a line-item allocation without storing anything.

        POST /api/payments/allocation_preview/
        Body: {"purchase_order": "<id>",
               "lines": [{"line_index": 0, "payment_type": "percentage", "payment_value": 50}]}
        """
        serializer = AllocationPreviewInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        source = self._source(serializer.validated_data)

        allocation = services.allocate(source, serializer.validated_data['lines'])
        return Response(AllocationSerializer({
            'vat_treatment': source.vat_treatment,
            'lines': allocation.lines,
            'subtotal': allocation.breakdown.subtotal,
            'vat': allocation.breakdown.vat,
            'total': allocation.breakdown.total,
        }).data)

    @extend_schema(request=AllocateInputSerializer, responses={201: PaymentSerializer})
    @action(detail=False, methods=['post'])
    def allocate(self, request):
        """
        Create a payment request (pending approval) from a line allocation.

        POST /api/payments/allocate/
        """
        serializer = AllocateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        result = services.create_payment_from_allocation(
            user=request.user,
            purchase_order_id=data.pop('purchase_order', None),
            invoice_id=data.pop('invoice', None),
            requests=data.pop('lines'),
            **data
        )
        return self.respond(result, status_code=status.HTTP_201_CREATED)
