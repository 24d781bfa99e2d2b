"""
Domain exceptions for the budget app.

Raised by the services layer and rendered by the API exception handler.
"""
from rest_framework.exceptions import APIException


class BudgetItemNotFoundError(APIException):
    """Budget item not found."""
    status_code = 404
    default_detail = 'Budget item not found.'
    default_code = 'budget_item_not_found'


class DuplicateBudgetItemError(APIException):
    """The project already has a budget item for this category."""
    status_code = 400
    default_detail = 'This project already has a budget item for this category.'
    default_code = 'duplicate_budget_item'


class UnknownCategoryError(APIException):
    """Category is not in the budget category table."""
    status_code = 400
    default_detail = 'Unknown budget category.'
    default_code = 'unknown_category'


class BudgetItemInUseError(APIException):
    """Budget item is still referenced by documents of its project."""
    status_code = 400
    default_detail = 'Budget item is referenced by other records.'
    default_code = 'budget_item_in_use'


class CategoryInUseError(APIException):
    """Category cannot be removed while a budget item uses it."""
    status_code = 400
    default_detail = 'Budget category is in use.'
    default_code = 'category_in_use'


class InvalidCategoryListError(APIException):
    """Submitted category list is malformed."""
    status_code = 400
    default_detail = 'Categories must be a list of non-empty names.'
    default_code = 'invalid_category_list'
