# Generated manually for budget app

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='BudgetCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('position', models.PositiveIntegerField(default=0)),
            ],
            options={
                'db_table': 'budget_categories',
                'ordering': ['position', 'name'],
                'verbose_name_plural': 'budget categories',
            },
        ),
        migrations.CreateModel(
            name='BudgetItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('project_id', models.CharField(db_index=True, max_length=64)),
                ('category', models.CharField(max_length=100)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('budgeted', models.DecimalField(decimal_places=6, default=Decimal('0'), max_digits=20, validators=[MinValueValidator(Decimal('0'))])),
                ('reserved', models.DecimalField(decimal_places=6, default=Decimal('0'), max_digits=20)),
                ('actual', models.DecimalField(decimal_places=6, default=Decimal('0'), max_digits=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'budget_items',
                'ordering': ['project_id', 'category'],
                'constraints': [
                    models.UniqueConstraint(fields=('project_id', 'category'), name='budget_item_unique_project_category'),
                    models.CheckConstraint(condition=models.Q(budgeted__gte=0), name='budget_item_budgeted_non_negative'),
                    models.CheckConstraint(condition=models.Q(reserved__gte=0), name='budget_item_reserved_non_negative'),
                    models.CheckConstraint(condition=models.Q(actual__gte=0), name='budget_item_actual_non_negative'),
                ],
            },
        ),
    ]
