"""
Domain exceptions for the sequences app.
"""
from rest_framework.exceptions import APIException


class InvalidSequenceKeyError(APIException):
    """Sequence entity key is empty or contains unsupported characters."""
    status_code = 400
    default_detail = 'Sequence entity must be 1-64 characters of letters, digits, "_" or "-".'
    default_code = 'invalid_sequence_key'


class InvalidSequenceValueError(APIException):
    """Counter override is not a positive integer."""
    status_code = 400
    default_detail = 'current must be a positive integer.'
    default_code = 'invalid_sequence_value'
