"""
Fiscal document lifecycle.

    draft --issue--> authorized --cancel--> canceled
    pending --status check--> authorized

Reissuing an authorized or pending document creates a new authorized
document that points back to the original; the original row is not touched.
Transitions are not locked: concurrent edits follow last write wins.
"""
import logging
from datetime import timedelta
from decimal import Decimal

import requests
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from repairshop.core.exceptions import DomainError
from .models import FiscalDocument, FiscalDocumentItem, FiscalDocumentEvent
from .numbering import next_sequence, format_document_number, generate_access_key, consult_url

logger = logging.getLogger('repairshop.fiscal')

SEQUENCE_RETRIES = 5

# Events about delivering a document to the customer are only kept for
# authorized documents
DELIVERY_ACTIONS = {'printed', 'downloaded', 'email_sent', 'shared_whatsapp', 'shared_sms', 'shared_other'}


class InvalidTransition(DomainError):
    """Raised when a document cannot move to the requested state"""

    def __init__(self, message):
        super().__init__(message, code='invalid_transition')


class StatusServiceError(DomainError):
    status_code = 502

    def __init__(self, message):
        super().__init__(message, code='status_service_error')


def cancel_window(doc_type):
    hours = settings.FISCAL_CANCEL_WINDOWS_HOURS.get(doc_type)
    if hours is None:
        hours = max(settings.FISCAL_CANCEL_WINDOWS_HOURS.values())
    return timedelta(hours=hours)


def cancel_deadline(document):
    """Last moment the document may be canceled, or None if it was never authorized"""
    start = document.authorization_date or (document.issue_date if document.status == 'authorized' else None)
    if start is None:
        return None
    return start + cancel_window(document.type)


def _cancel_rejection(document, now):
    if document.status != 'authorized':
        return f"Only authorized documents can be canceled (status: {document.status})"
    deadline = cancel_deadline(document)
    if deadline is None or now > deadline:
        hours = int(cancel_window(document.type).total_seconds() // 3600)
        return f"Cancellation window of {hours}h for {document.get_type_display()} has expired"
    return None


def can_cancel(document, now=None):
    return _cancel_rejection(document, now or timezone.now()) is None


def record_event(document, action, user=None, details=None):
    """
    Store a document event.

    Delivery events (print, download, share, email) are skipped unless the
    document is authorized. Returns the event or None.
    """
    if action in DELIVERY_ACTIONS and document.status != 'authorized':
        return None
    payload = {
        'document_type': document.type,
        'customer': document.customer_name,
        'status': document.status,
    }
    payload.update(details or {})
    return FiscalDocumentEvent.objects.create(
        organization_id=document.organization_id,
        document=document,
        document_number=document.number,
        action=action,
        details=payload,
        user=user if user is not None and user.is_authenticated else None,
    )


def _allocate_number(document, when):
    document.series = settings.FISCAL_SERIES if document.series is None else document.series
    document.sequence = next_sequence(document.organization, document.type, document.series)
    document.number = format_document_number(document.type, document.series, document.sequence)
    document.access_key = generate_access_key(document.type, document.series, document.sequence, when=when)
    if document.type == 'nfce':
        document.qr_code = consult_url(document.access_key)


def _save_with_new_number(document, when):
    """Insert a new document, retrying when another request took the same sequence"""
    for attempt in range(SEQUENCE_RETRIES):
        _allocate_number(document, when)
        try:
            with transaction.atomic():
                document.save()
            return document
        except IntegrityError:
            logger.warning(
                f"Sequence {document.sequence} for {document.type} already taken, retrying ({attempt + 1}/{SEQUENCE_RETRIES})"
            )
            document.pk = None
    raise DomainError("Could not allocate a document number, try again")


def create_document(organization, doc_type, customer_name, user=None, customer=None, description=None,
                    total_value=None, items=None, issue=False, issue_date=None, series=None, pending=False):
    """
    Create a draft document with its number and access key.

    When ``items`` are given the total is the sum of the item totals. With
    ``issue=True`` the draft is authorized right away. ``pending=True`` records
    a document sourced from an external system; it stays pending until a
    status check authorizes it.
    """
    if issue and pending:
        raise DomainError("Pending documents cannot be issued directly")
    now = timezone.now()
    items = items or []
    if items:
        total_value = sum(
            ((Decimal(item['quantity']) * Decimal(item['unit_price'])).quantize(Decimal('0.01')) for item in items),
            Decimal('0.00')
        )
    if total_value is None or Decimal(total_value) <= 0:
        raise DomainError("Document total must be greater than zero")

    with transaction.atomic():
        document = FiscalDocument(
            organization=organization,
            type=doc_type,
            series=series,
            status='pending' if pending else 'draft',
            customer=customer,
            customer_name=customer_name or (customer.name if customer else ''),
            description=description,
            total_value=Decimal(total_value),
            issue_date=issue_date or now,
            created_by=user if user is not None and user.is_authenticated else None,
        )
        _save_with_new_number(document, now)
        for item in items:
            FiscalDocumentItem.objects.create(
                document=document,
                description=item['description'],
                quantity=Decimal(item['quantity']),
                unit_price=Decimal(item['unit_price']),
            )
        logger.info(f"Fiscal document {document.number} created as {document.status} in organization {organization.id}")

        if issue:
            issue_document(document, user=user, when=now)
    return document


def issue_document(document, user=None, when=None):
    """draft -> authorized"""
    if document.status != 'draft':
        raise InvalidTransition(f"Only drafts can be issued (status: {document.status})")
    when = when or timezone.now()
    document.status = 'authorized'
    document.authorization_date = when
    document.save(update_fields=['status', 'authorization_date', 'updated_at'])
    record_event(document, 'issued', user=user, details={'authorization_date': when.isoformat()})
    logger.info(f"Fiscal document {document.number} issued")
    return document


def authorize_document(document, user=None, when=None):
    """pending -> authorized"""
    if document.status != 'pending':
        raise InvalidTransition(f"Only pending documents can be authorized (status: {document.status})")
    when = when or timezone.now()
    document.status = 'authorized'
    document.authorization_date = when
    document.save(update_fields=['status', 'authorization_date', 'updated_at'])
    record_event(document, 'authorized', user=user, details={'authorization_date': when.isoformat()})
    logger.info(f"Fiscal document {document.number} authorized")
    return document


def cancel_document(document, reason, user=None, now=None):
    """authorized -> canceled, inside the cancellation window of the type"""
    now = now or timezone.now()
    reason = (reason or '').strip()
    if not reason:
        raise InvalidTransition("A cancellation reason is required")
    rejection = _cancel_rejection(document, now)
    if rejection:
        logger.warning(f"Cancel of fiscal document {document.number} rejected: {rejection}")
        raise InvalidTransition(rejection)

    document.status = 'canceled'
    document.cancelation_date = now
    document.cancel_reason = reason
    document.save(update_fields=['status', 'cancelation_date', 'cancel_reason', 'updated_at'])
    record_event(document, 'canceled', user=user, details={'reason': reason})
    logger.info(f"Fiscal document {document.number} canceled")
    return document


def reissue_document(document, user=None):
    """
    Create a new authorized document from an authorized or pending one.

    The new document gets its own number and access key and a description
    that references the original number.
    """
    if document.status not in ('authorized', 'pending'):
        raise InvalidTransition(f"Only authorized or pending documents can be reissued (status: {document.status})")

    description = f"Reemissão do documento {document.number}"
    if document.description:
        description = f"{description} - {document.description}"
    items = [
        {'description': item.description, 'quantity': item.quantity, 'unit_price': item.unit_price}
        for item in document.items.all()
    ]

    with transaction.atomic():
        new_document = create_document(
            organization=document.organization,
            doc_type=document.type,
            customer_name=document.customer_name,
            customer=document.customer,
            user=user,
            description=description,
            total_value=document.total_value,
            items=items,
            issue=True,
            series=document.series,
        )
        new_document.reissued_from = document
        new_document.save(update_fields=['reissued_from', 'updated_at'])
        record_event(document, 'reissued', user=user, details={'new_number': new_document.number})
    logger.info(f"Fiscal document {document.number} reissued as {new_document.number}")
    return new_document


def _remote_status(document):
    try:
        response = requests.get(
            settings.FISCAL_STATUS_SERVICE_URL,
            params={'access_key': document.access_key, 'type': document.type},
            timeout=settings.FISCAL_STATUS_SERVICE_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Status service failed for {document.number}: {str(e)}", exc_info=True)
        raise StatusServiceError(f"Status service unavailable: {str(e)}")
    remote_status = payload.get('status')
    if remote_status not in dict(FiscalDocument.STATUS_CHOICES):
        raise StatusServiceError(f"Status service returned an unknown status: {remote_status}")
    return remote_status, payload.get('message', '')


def check_document_status(document, user=None):
    """
    Ask the status service (or the local simulation) for the document status.

    The local simulation authorizes pending documents and reports every other
    status unchanged. A remote ``authorized`` answer authorizes a pending
    document. Returns a dict with the resulting status and where it came from.
    """
    previous = document.status
    if settings.FISCAL_STATUS_SERVICE_URL:
        source = 'remote'
        reported, message = _remote_status(document)
    else:
        source = 'simulated'
        reported = 'authorized' if previous == 'pending' else previous
        message = 'Documento autorizado' if reported == 'authorized' else ''

    if previous == 'pending' and reported == 'authorized':
        authorize_document(document, user=user)

    checked_at = timezone.now()
    record_event(document, 'status_checked', user=user, details={
        'source': source,
        'reported_status': reported,
        'previous_status': previous,
    })
    return {
        'status': document.status,
        'previous_status': previous,
        'reported_status': reported,
        'source': source,
        'message': message,
        'checked_at': checked_at,
    }
