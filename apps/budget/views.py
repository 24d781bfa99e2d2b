from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from apps.accounts.permissions import IsAdminRole, IsAdminRoleOrReadOnly
from .serializers import (
    BudgetItemSerializer,
    BudgetItemInputSerializer,
    BudgetItemUpdateSerializer,
    BudgetItemFilterSerializer,
    ProjectParamSerializer,
    CategoryListSerializer,
)
from . import services


PROJECT_ID_PARAM = OpenApiParameter(
    name='projectId', type=str, location=OpenApiParameter.QUERY, required=False,
)


class BudgetItemViewSet(viewsets.ViewSet):
    """
    ViewSet for per-project budget items.

    list: Budget items (filterable by ?projectId=)
    create: Add a budget item (admin)
    retrieve: Get a budget item
    update / partial_update: Edit name, budget or category (admin)
    destroy: Delete an unreferenced budget item (admin)
    rebuild: Recompute reserved / actual totals of a project (admin)
    """

    permission_classes = [IsAuthenticated, IsAdminRoleOrReadOnly]

    def get_permissions(self):
        if self.action == 'rebuild':
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    @extend_schema(parameters=[PROJECT_ID_PARAM], responses=BudgetItemSerializer(many=True))
    def list(self, request):
        params = BudgetItemFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        items = services.list_budget_items(params.validated_data.get('projectId'))
        return Response(BudgetItemSerializer(items, many=True).data)

    @extend_schema(request=BudgetItemInputSerializer, responses={201: BudgetItemSerializer})
    def create(self, request):
        serializer = BudgetItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = services.create_budget_item(**serializer.validated_data)
        return Response(BudgetItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses=BudgetItemSerializer)
    def retrieve(self, request, pk=None):
        item = services.get_budget_item(pk)
        return Response(BudgetItemSerializer(item).data)

    @extend_schema(request=BudgetItemUpdateSerializer, responses=BudgetItemSerializer)
    def update(self, request, pk=None):
        serializer = BudgetItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = services.update_budget_item(item_id=pk, **serializer.validated_data)
        return Response(BudgetItemSerializer(item).data)

    @extend_schema(request=BudgetItemUpdateSerializer, responses=BudgetItemSerializer)
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        services.delete_budget_item(item_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=None,
        parameters=[PROJECT_ID_PARAM],
        responses=BudgetItemSerializer(many=True),
    )
    @action(detail=False, methods=['post'])
    def rebuild(self, request):
        """
        Recompute the ledger totals of a project from its documents.

        POST /api/budgetItems/rebuild/?projectId=P-1
        """
        params = ProjectParamSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        items = services.rebuild_project_ledger(params.validated_data['projectId'])
        return Response(BudgetItemSerializer(items, many=True).data)


@extend_schema(request=CategoryListSerializer, responses=CategoryListSerializer)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRoleOrReadOnly])
def budget_categories(request):
    """
    Read or replace the budget category list.

    GET /api/budgetCategories/
    PUT /api/budgetCategories/   Body: {"categories": ["Fitout", "HVAC"]}
    """
    if request.method == 'PUT':
        serializer = CategoryListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        categories = services.save_categories(names=serializer.validated_data['categories'])
        return Response({'categories': categories})

    return Response({'categories': services.list_categories()})
