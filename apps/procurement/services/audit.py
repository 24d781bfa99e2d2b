"""
Best-effort audit trail for workflow actions.

An audit write runs in its own savepoint. If it fails, the failure is logged
and returned as a warning; the business transaction still commits.
"""

import logging
from collections import namedtuple
from typing import Optional

from django.db import DatabaseError, transaction

from apps.procurement.models import (
    AuditEntry,
    DocumentType,
    Payment,
    PurchaseOrder,
    VendorInvoice,
)

logger = logging.getLogger(__name__)

AUDIT_FAILED_WARNING = 'The action succeeded but could not be written to the audit log.'


def document_type_of(document) -> str:
    if isinstance(document, PurchaseOrder):
        return DocumentType.PURCHASE_ORDER
    if isinstance(document, VendorInvoice):
        return DocumentType.VENDOR_INVOICE
    if isinstance(document, Payment):
        return DocumentType.PAYMENT
    raise TypeError(f'Not a procurement document: {document!r}')


def record_action(
    document,
    *,
    action: str,
    actor=None,
    from_status: str = '',
    to_status: str = '',
    note: str = ''
) -> Optional[str]:
    """
    Write an AuditEntry for ``document``.

    Returns:
        None on success, or a warning message when the entry could not be
        stored
    """
    try:
        with transaction.atomic():
            AuditEntry.objects.create(
                document_type=document_type_of(document),
                document_id=document.pk,
                action=action,
                from_status=from_status or '',
                to_status=to_status or '',
                actor=actor,
                note=note or '',
            )
    except DatabaseError:
        logger.warning(
            "Audit entry for %s %s (%s) could not be written",
            document_type_of(document), document.pk, action,
            exc_info=True,
        )
        return AUDIT_FAILED_WARNING
    return None


def history(document):
    """Audit entries of a document, oldest first."""
    return AuditEntry.objects.filter(
        document_type=document_type_of(document),
        document_id=document.pk,
    ).select_related('actor')


class ActionResult(namedtuple('ActionResult', ['document', 'warnings'])):
    """Outcome of a workflow action: the document and any degraded-success warnings."""

    __slots__ = ()
