"""
Budget app services layer.

Services contain business logic and orchestrate operations across models.
All ledger mutations use transactions and row locks.
"""

from .exceptions import (
    BudgetItemNotFoundError,
    DuplicateBudgetItemError,
    UnknownCategoryError,
    BudgetItemInUseError,
    CategoryInUseError,
    InvalidCategoryListError,
)

from .categories import (
    list_categories,
    is_known_category,
    require_known_category,
    save_categories,
)

from .ledger import (
    ReserveDirection,
    reserve,
    record_actual,
    reserve_amounts,
    record_actual_amounts,
    rebuild_project_ledger,
)

from .budget_items import (
    get_budget_item,
    list_budget_items,
    create_budget_item,
    update_budget_item,
    delete_budget_item,
)


__all__ = [
    # Exceptions
    'BudgetItemNotFoundError',
    'DuplicateBudgetItemError',
    'UnknownCategoryError',
    'BudgetItemInUseError',
    'CategoryInUseError',
    'InvalidCategoryListError',

    # Categories
    'list_categories',
    'is_known_category',
    'require_known_category',
    'save_categories',

    # Ledger
    'ReserveDirection',
    'reserve',
    'record_actual',
    'reserve_amounts',
    'record_actual_amounts',
    'rebuild_project_ledger',

    # Budget items
    'get_budget_item',
    'list_budget_items',
    'create_budget_item',
    'update_budget_item',
    'delete_budget_item',
]
