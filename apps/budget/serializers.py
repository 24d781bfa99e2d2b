from rest_framework import serializers
from decimal import Decimal
from config.fields import MoneyField, AmountField
from .models import BudgetItem


# =============================================================================
# Input Serializers
# =============================================================================

class BudgetItemFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for budget item filtering.

    Query Parameters:
        projectId (str): Only items of this project
    """

    projectId = serializers.CharField(max_length=64, required=False)


class ProjectParamSerializer(serializers.Serializer):
    """Required ``projectId`` query parameter."""

    projectId = serializers.CharField(max_length=64)


class BudgetItemInputSerializer(serializers.Serializer):
    """
    Validate input for creating a budget item.

    Fields:
        project_id (str): Owning project
        category (str): Budget category (must be in the category table)
        name (str): Optional label, defaults to the category
        budgeted (Decimal): Planned amount, not negative
    """

    project_id = serializers.CharField(max_length=64)
    category = serializers.CharField(max_length=100)
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    budgeted = AmountField(min_value=Decimal('0'))


class BudgetItemUpdateSerializer(serializers.Serializer):
    """Validate input for updating a budget item; every field is optional."""

    category = serializers.CharField(max_length=100, required=False)
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    budgeted = AmountField(min_value=Decimal('0'), required=False)


class CategoryListSerializer(serializers.Serializer):
    """Body of ``PUT /api/budgetCategories/``."""

    categories = serializers.ListField(
        child=serializers.CharField(max_length=100, allow_blank=True),
        allow_empty=True,
    )


# =============================================================================
# Output Serializers
# =============================================================================

class BudgetItemSerializer(serializers.ModelSerializer):
    """Budget item with its running ledger totals."""

    budgeted = MoneyField()
    reserved = MoneyField()
    actual = MoneyField()
    available = MoneyField()
    variance = MoneyField()

    class Meta:
        model = BudgetItem
        fields = [
            'id',
            'project_id',
            'category',
            'name',
            'budgeted',
            'reserved',
            'actual',
            'available',
            'variance',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
