from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


MONEY_FIELD_OPTIONS = {
    'max_digits': 20,
    'decimal_places': 6,
    'default': Decimal('0'),
}


class BudgetCategory(models.Model):
    """Maintained list of category names budgets and documents can use."""

    name = models.CharField(max_length=100, unique=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'budget_categories'
        ordering = ['position', 'name']
        verbose_name_plural = 'budget categories'

    def __str__(self):
        return self.name


class BudgetItem(models.Model):
    """
    Budget line of a project for one category.

    ``reserved`` and ``actual`` are running totals maintained by the ledger
    service from committed purchase orders, invoices and paid payments.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    project_id = models.CharField(max_length=64, db_index=True)
    category = models.CharField(max_length=100)
    name = models.CharField(max_length=200, blank=True)

    budgeted = models.DecimalField(
        validators=[MinValueValidator(Decimal('0'))],
        **MONEY_FIELD_OPTIONS
    )
    reserved = models.DecimalField(**MONEY_FIELD_OPTIONS)
    actual = models.DecimalField(**MONEY_FIELD_OPTIONS)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'budget_items'
        ordering = ['project_id', 'category']
        constraints = [
            models.UniqueConstraint(
                fields=['project_id', 'category'],
                name='budget_item_unique_project_category',
            ),
            models.CheckConstraint(
                condition=models.Q(budgeted__gte=0),
                name='budget_item_budgeted_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(reserved__gte=0),
                name='budget_item_reserved_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(actual__gte=0),
                name='budget_item_actual_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.project_id} / {self.category}"

    @property
    def available(self):
        """Budget not yet committed by reservations."""
        return self.budgeted - self.reserved

    @property
    def variance(self):
        """Positive when spending is under budget."""
        return self.budgeted - self.actual
