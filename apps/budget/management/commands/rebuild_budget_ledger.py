"""
Management command to recompute budget ledger totals.

Rebuilds reserved and actual amounts of budget items from committed
purchase orders, vendor invoices and paid payments.

Usage:
    python manage.py rebuild_budget_ledger
    python manage.py rebuild_budget_ledger --project P-001 --dry-run
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from apps.budget.models import BudgetItem
from apps.budget.services import rebuild_project_ledger


class Command(BaseCommand):
    help = 'Recompute reserved/actual totals of budget items from documents'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project',
            action='append',
            dest='projects',
            help='Only rebuild this project (may be repeated)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would change without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        projects = options['projects'] or sorted(
            set(BudgetItem.objects.values_list('project_id', flat=True))
        )

        if not projects:
            self.stdout.write(self.style.SUCCESS('No budget items found. Nothing to rebuild.'))
            return

        changed = 0
        for project_id in projects:
            before = {
                item.id: (item.reserved, item.actual)
                for item in BudgetItem.objects.filter(project_id=project_id)
            }

            with transaction.atomic():
                items = rebuild_project_ledger(project_id)
                for item in items:
                    old_reserved, old_actual = before.get(item.id, (None, None))
                    if (old_reserved, old_actual) != (item.reserved, item.actual):
                        changed += 1
                        self.stdout.write(
                            f'  - {project_id} / {item.category}: '
                            f'reserved {old_reserved} -> {item.reserved}, '
                            f'actual {old_actual} -> {item.actual}'
                        )
                if dry_run:
                    transaction.set_rollback(True)

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f'\n--dry-run mode: {changed} budget item(s) would change.')
            )
            return

        self.stdout.write(
            self.style.SUCCESS(f'\nRebuilt {len(projects)} project(s), {changed} budget item(s) changed.')
        )
