import pytest
from decimal import Decimal
from apps.budget.models import BudgetItem
from apps.procurement import services
from apps.procurement.models import VatTreatment


PROJECT_ID = 'P-001'


@pytest.fixture
def project_id():
    return PROJECT_ID


@pytest.fixture
def electrical_budget(db):
    """Electrical budget line of P-001."""
    return BudgetItem.objects.create(
        project_id=PROJECT_ID,
        category='Electrical',
        budgeted=Decimal('20000'),
    )


@pytest.fixture
def hvac_budget(db):
    """HVAC budget line of P-001."""
    return BudgetItem.objects.create(
        project_id=PROJECT_ID,
        category='HVAC',
        budgeted=Decimal('8000'),
    )


@pytest.fixture
def cable_items():
    """One line worth 1000 before VAT."""
    return [{'description': 'Cable', 'quantity': 10, 'unit_price': 100}]


@pytest.fixture
def draft_po(user, cable_items, electrical_budget):
    """Draft purchase order: 1000 + 15% VAT on Electrical, created by a regular user."""
    return services.create_purchase_order(
        user=user,
        project_id=PROJECT_ID,
        items=cable_items,
        vat_treatment=VatTreatment.EXCLUSIVE,
        budget_category='Electrical',
    )


@pytest.fixture
def approved_po(draft_po, user, admin_user):
    """The draft purchase order, submitted and approved (1000 reserved)."""
    services.submit(draft_po, user=user)
    return services.approve(draft_po, user=admin_user).document


@pytest.fixture
def two_line_po(user, admin_user, electrical_budget, hvac_budget):
    """Approved purchase order with a 500 Electrical line and an 800 HVAC line."""
    po = services.create_purchase_order(
        user=user,
        project_id=PROJECT_ID,
        items=[
            {'description': 'Switchgear', 'quantity': 1, 'unit_price': 500},
            {'description': 'Ducting', 'quantity': 4, 'unit_price': 200, 'budget_category': 'HVAC'},
        ],
        vat_treatment=VatTreatment.EXCLUSIVE,
        budget_category='Electrical',
    )
    services.submit(po, user=user)
    return services.approve(po, user=admin_user).document


@pytest.fixture
def approved_invoice(user, admin_user, hvac_budget):
    """Approved stand-alone invoice of 1150 VAT inclusive on HVAC."""
    invoice = services.create_vendor_invoice(
        user=user,
        project_id=PROJECT_ID,
        items=[{'description': 'Chiller service', 'quantity': 1, 'unit_price': 1150}],
        vat_treatment=VatTreatment.INCLUSIVE,
        budget_category='HVAC',
    )
    services.submit(invoice, user=user)
    return services.approve(invoice, user=admin_user).document
