"""
Procurement app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks; budget ledger
updates happen only inside workflow transition handlers.
"""

from .exceptions import (
    DocumentNotFoundError,
    InvalidVatTreatmentError,
    InvalidAmountError,
    InvalidLineItemsError,
    InvalidStateTransitionError,
    DocumentLockedError,
    RejectionReasonRequiredError,
    ModificationReasonRequiredError,
    NoModificationRequestError,
    NotPayableError,
    NothingToPayError,
    InvalidAllocationError,
    ApproverRequiredError,
    SelfApprovalError,
    DuplicateDocumentNumberError,
    InvalidDocumentLinkError,
)

from .vat import (
    VatBreakdown,
    compute_vat,
    quantize_money,
    to_decimal,
)

from .allocation import (
    Allocation,
    allocate,
    allocate_line,
    build_allocation,
    create_payment_from_allocation,
    is_payable,
    previously_paid_by_line,
)

from .workflow import (
    allowed_transitions,
    can_transition,
    submit,
    approve,
    reject,
    issue,
    receive,
    request_modification,
    resolve_modification,
    apply_modification,
    mark_paid,
)

from .documents import (
    get_document,
    list_documents,
    create_purchase_order,
    create_vendor_invoice,
    update_priced_document,
    delete_priced_document,
    create_payment,
    update_payment,
    delete_payment,
)

from .audit import (
    ActionResult,
    history,
)


__all__ = [
    # Exceptions
    'DocumentNotFoundError',
    'InvalidVatTreatmentError',
    'InvalidAmountError',
    'InvalidLineItemsError',
    'InvalidStateTransitionError',
    'DocumentLockedError',
    'RejectionReasonRequiredError',
    'ModificationReasonRequiredError',
    'NoModificationRequestError',
    'NotPayableError',
    'NothingToPayError',
    'InvalidAllocationError',
    'ApproverRequiredError',
    'SelfApprovalError',
    'DuplicateDocumentNumberError',
    'InvalidDocumentLinkError',

    # VAT
    'VatBreakdown',
    'compute_vat',
    'quantize_money',
    'to_decimal',

    # Allocation
    'Allocation',
    'allocate',
    'allocate_line',
    'build_allocation',
    'create_payment_from_allocation',
    'is_payable',
    'previously_paid_by_line',

    # Workflow
    'allowed_transitions',
    'can_transition',
    'submit',
    'approve',
    'reject',
    'issue',
    'receive',
    'request_modification',
    'resolve_modification',
    'apply_modification',
    'mark_paid',

    # Documents
    'get_document',
    'list_documents',
    'create_purchase_order',
    'create_vendor_invoice',
    'update_priced_document',
    'delete_priced_document',
    'create_payment',
    'update_payment',
    'delete_payment',

    # Audit
    'ActionResult',
    'history',
]
