"""
Domain exceptions for the procurement app.

This module defines the exception hierarchy for purchase order, vendor
invoice and payment errors. Each maps onto an HTTP status through the API
exception handler.
"""
from rest_framework.exceptions import APIException


class DocumentNotFoundError(APIException):
    """Purchase order, invoice or payment not found."""
    status_code = 404
    default_detail = 'Document not found.'
    default_code = 'document_not_found'


class InvalidVatTreatmentError(APIException):
    """VAT treatment is not one of not_applicable, inclusive, exclusive."""
    status_code = 400
    default_detail = 'Unknown VAT treatment.'
    default_code = 'invalid_vat_treatment'


class InvalidAmountError(APIException):
    """A monetary value is not a finite number."""
    status_code = 400
    default_detail = 'Amount must be a finite number.'
    default_code = 'invalid_amount'


class InvalidLineItemsError(APIException):
    """Line items are malformed."""
    status_code = 400
    default_detail = 'Line items are invalid.'
    default_code = 'invalid_line_items'


class InvalidStateTransitionError(APIException):
    """Requested status change is not allowed from the current status."""
    status_code = 400
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_state_transition'


class DocumentLockedError(APIException):
    """Monetary fields of the document can no longer be changed."""
    status_code = 400
    default_detail = 'This document can no longer be modified.'
    default_code = 'document_locked'


class RejectionReasonRequiredError(APIException):
    """Rejecting a document needs a reason."""
    status_code = 400
    default_detail = 'A rejection reason is required.'
    default_code = 'rejection_reason_required'


class ModificationReasonRequiredError(APIException):
    """Requesting a modification needs a reason."""
    status_code = 400
    default_detail = 'A modification reason is required.'
    default_code = 'modification_reason_required'


class NoModificationRequestError(APIException):
    """There is no open modification request to resolve."""
    status_code = 400
    default_detail = 'This document has no open modification request.'
    default_code = 'no_modification_request'


class NotPayableError(APIException):
    """Document is not in a status that accepts payments."""
    status_code = 400
    default_detail = 'This document cannot receive payments in its current status.'
    default_code = 'not_payable'


class NothingToPayError(APIException):
    """Allocation results in a zero payment."""
    status_code = 400
    default_detail = 'The payment total is zero. Nothing to pay.'
    default_code = 'nothing_to_pay'


class InvalidAllocationError(APIException):
    """Allocation request refers to unknown lines or payment types."""
    status_code = 400
    default_detail = 'Invalid line item allocation.'
    default_code = 'invalid_allocation'


class ApproverRequiredError(APIException):
    """Only administrators approve, reject and pay documents."""
    status_code = 403
    default_detail = 'Only administrators can perform this action.'
    default_code = 'approver_required'


class SelfApprovalError(APIException):
    """Creators cannot approve or reject their own documents."""
    status_code = 403
    default_detail = 'You cannot approve or reject a document you created.'
    default_code = 'self_approval'


class DuplicateDocumentNumberError(APIException):
    """Document number is already used."""
    status_code = 400
    default_detail = 'This document number is already in use.'
    default_code = 'duplicate_document_number'


class InvalidDocumentLinkError(APIException):
    """Linked document belongs to another project or does not exist."""
    status_code = 400
    default_detail = 'Linked document is invalid.'
    default_code = 'invalid_document_link'
