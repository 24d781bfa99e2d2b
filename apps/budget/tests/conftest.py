import pytest
from decimal import Decimal
from apps.budget.models import BudgetItem


PROJECT_ID = 'P-001'


@pytest.fixture
def project_id():
    return PROJECT_ID


@pytest.fixture
def electrical_item(db):
    """Electrical budget line of P-001 with nothing reserved or spent."""
    return BudgetItem.objects.create(
        project_id=PROJECT_ID,
        category='Electrical',
        name='Electrical works',
        budgeted=Decimal('10000'),
    )


@pytest.fixture
def hvac_item(db):
    """HVAC budget line of P-001 with some reserved and actual amounts."""
    return BudgetItem.objects.create(
        project_id=PROJECT_ID,
        category='HVAC',
        name='HVAC',
        budgeted=Decimal('5000'),
        reserved=Decimal('1200'),
        actual=Decimal('300'),
    )


@pytest.fixture
def other_project_item(db):
    """Electrical budget line of another project."""
    return BudgetItem.objects.create(
        project_id='P-002',
        category='Electrical',
        name='Electrical',
        budgeted=Decimal('2500'),
    )
