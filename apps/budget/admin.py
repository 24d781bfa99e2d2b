# ==========================================
# apps/budget/admin.py
# ==========================================

from django.contrib import admin
from .models import BudgetCategory, BudgetItem


@admin.register(BudgetCategory)
class BudgetCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'position']
    ordering = ['position', 'name']


@admin.register(BudgetItem)
class BudgetItemAdmin(admin.ModelAdmin):
    """
    Admin interface for budget items.

    Reserved and actual totals are maintained by the ledger; use the
    ``rebuild_budget_ledger`` command to repair them.
    """

    list_display = [
        'project_id',
        'category',
        'name',
        'budgeted',
        'reserved',
        'actual',
        'updated_at',
    ]
    list_filter = ['category']
    search_fields = ['project_id', 'category', 'name']
    readonly_fields = ['reserved', 'actual', 'created_at', 'updated_at']
    ordering = ['project_id', 'category']
