import logging

from django.conf import settings
from django.db import transaction
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.exceptions import DomainError
from repairshop.core.utils import create_audit_log, paginate_queryset
from repairshop.notifications.utils import send_document_notification
from repairshop.organizations.scoping import get_user_organization, scoped_queryset, get_scoped_object_or_404
from .demo import demo_documents, demo_payload
from .filters import FiscalDocumentFilter, filter_documents
from .lifecycle import (
    create_document, issue_document, cancel_document, reissue_document, check_document_status, record_event,
)
from .models import FiscalDocument, FiscalDocumentItem, FiscalDocumentEvent
from .receipts import render_document_html, download_filename, share_links, LAYOUTS
from .serializers import (
    FiscalDocumentSerializer, FiscalDocumentListSerializer, FiscalDocumentWriteSerializer,
    FiscalCancelSerializer, FiscalShareSerializer, FiscalDocumentEventSerializer,
)

logger = logging.getLogger('repairshop.fiscal')

SHARE_ACTIONS = {
    'email': 'email_sent',
    'whatsapp': 'shared_whatsapp',
    'sms': 'shared_sms',
    'other': 'shared_other',
}


def _document_queryset():
    return FiscalDocument.objects.select_related('customer', 'created_by', 'reissued_from').prefetch_related('items')


def _get_document(request, pk):
    return get_scoped_object_or_404(FiscalDocument, request.user, queryset=_document_queryset(), pk=pk)


def _notify(request, document, status_text):
    try:
        send_document_notification(request.user, document.number, status_text, document.id)
    except Exception as e:
        logger.error(f"Failed to send notification for document {document.number}: {str(e)}", exc_info=True)


def _audit(request, action, document, changes=None):
    create_audit_log(
        request=request,
        action=action,
        model_name='FiscalDocument',
        object_id=str(document.id),
        object_name=document.customer_name,
        object_reference=document.number,
        changes=changes or {}
    )


def _demo_response(request):
    """Demo dataset filtered with the same query parameters as the real list"""
    params = request.query_params
    try:
        documents = filter_documents(
            demo_documents(),
            status=params.get('status') or None,
            doc_type=params.get('type') or None,
            date_from=params.get('date_from') or None,
            date_to=params.get('date_to') or None,
            search=params.get('search') or None,
        )
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({
        'results': [demo_payload(document) for document in documents],
        'count': len(documents),
        'next': None,
        'previous': None,
        'page': 1,
        'page_size': len(documents),
        'total_pages': 1,
        'is_demo': True,
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_list_create(request):
    """
    List the organization's fiscal documents or create a new one.

    GET filters: status, type, date_from, date_to (YYYY-MM-DD), customer, search.
    Organizations without any document get the demo dataset when the
    FISCAL_DEMO_FALLBACK setting is on.

    POST creates a draft; send ``"issue": true`` to authorize it right away or
    ``"external": true`` for a document issued elsewhere that waits for
    authorization (pending).
    """
    organization = get_user_organization(request.user)

    if request.method == 'GET':
        queryset = scoped_queryset(FiscalDocument, request.user, queryset=_document_queryset())
        filterset = FiscalDocumentFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        if settings.FISCAL_DEMO_FALLBACK and not queryset.exists():
            logger.debug(f"Organization {organization.id} has no fiscal documents, returning demo dataset")
            return _demo_response(request)

        payload = paginate_queryset(request, filterset.qs, FiscalDocumentListSerializer)
        payload['is_demo'] = False
        return Response(payload)

    serializer = FiscalDocumentWriteSerializer(data=request.data, context={'organization': organization})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    document = create_document(
        organization=organization,
        doc_type=data['type'],
        customer_name=data['customer_name'],
        user=request.user,
        customer=data.get('customer'),
        description=data.get('description'),
        total_value=data.get('total_value'),
        items=data.get('items'),
        issue=data.get('issue', False),
        issue_date=data.get('issue_date'),
        pending=data.get('external', False),
    )
    _audit(request, 'create', document, {'type': document.type, 'total_value': str(document.total_value)})
    if document.status == 'authorized':
        _audit(request, 'document_issue', document)
        _notify(request, document, 'Documento emitido com sucesso')

    document = _get_document(request, document.pk)
    return Response(FiscalDocumentSerializer(document).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def fiscal_document_detail(request, pk):
    """Retrieve a document; drafts can also be edited or deleted"""
    document = _get_document(request, pk)

    if request.method == 'GET':
        return Response(FiscalDocumentSerializer(document).data)

    if document.status != 'draft':
        return Response(
            {'error': f"Only draft documents can be changed (status: {document.status})", 'code': 'invalid_transition'},
            status=status.HTTP_400_BAD_REQUEST
        )

    if request.method in ('PUT', 'PATCH'):
        serializer = FiscalDocumentWriteSerializer(
            document,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'organization': document.organization}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        if 'type' in data and data['type'] != document.type:
            return Response({'error': 'Document type cannot be changed'}, status=status.HTTP_400_BAD_REQUEST)

        changes = {}
        with transaction.atomic():
            for field in ('customer', 'customer_name', 'description', 'total_value', 'issue_date'):
                if field in data and getattr(document, field) != data[field]:
                    changes[field] = str(data[field])
                    setattr(document, field, data[field])
            document.save()
            if 'items' in data:
                document.items.all().delete()
                for item in data['items']:
                    FiscalDocumentItem.objects.create(document=document, **item)
                changes['items'] = len(data['items'])
        logger.info(f"Draft {document.number} updated by {request.user.username}")
        _audit(request, 'update', document, changes)
        document = _get_document(request, pk)
        return Response(FiscalDocumentSerializer(document).data)
    else:  # DELETE
        number = document.number
        document_id = document.id
        customer_name = document.customer_name
        document.delete()
        logger.info(f"Draft {number} deleted by {request.user.username}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='FiscalDocument',
            object_id=str(document_id),
            object_name=customer_name,
            object_reference=number
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_issue(request, pk):
    """Authorize a draft"""
    document = _get_document(request, pk)
    issue_document(document, user=request.user)
    _audit(request, 'document_issue', document, {'status': {'old': 'draft', 'new': document.status}})
    _notify(request, document, 'Documento emitido com sucesso')
    return Response(FiscalDocumentSerializer(document).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_cancel(request, pk):
    """Cancel an authorized document inside its cancellation window"""
    document = _get_document(request, pk)
    serializer = FiscalCancelSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    reason = serializer.validated_data['reason']
    cancel_document(document, reason, user=request.user)
    _audit(request, 'document_cancel', document, {'reason': reason})
    _notify(request, document, 'Documento cancelado')
    return Response(FiscalDocumentSerializer(document).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_reissue(request, pk):
    """Create a new authorized document from an authorized or pending one"""
    document = _get_document(request, pk)
    new_document = reissue_document(document, user=request.user)
    _audit(request, 'document_reissue', new_document, {'reissued_from': document.number})
    _notify(request, new_document, f"Documento reemitido a partir de {document.number}")
    new_document = _get_document(request, new_document.pk)
    return Response(FiscalDocumentSerializer(new_document).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_check_status(request, pk):
    """Refresh a document status from the status service"""
    document = _get_document(request, pk)
    result = check_document_status(document, user=request.user)
    if result['previous_status'] != result['status']:
        _audit(request, 'document_authorize', document, {
            'status': {'old': result['previous_status'], 'new': result['status']},
            'source': result['source'],
        })
        _notify(request, document, 'Documento autorizado')
    return Response({
        'document': FiscalDocumentSerializer(document).data,
        'status': result['status'],
        'previous_status': result['previous_status'],
        'source': result['source'],
        'message': result['message'],
        'checked_at': result['checked_at'],
    })


def _layout(request):
    layout = request.query_params.get('layout', 'thermal')
    if layout not in LAYOUTS:
        raise DomainError(f"Unknown layout: {layout}. Use one of: {', '.join(LAYOUTS)}")
    return layout


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fiscal_document_render(request, pk):
    """
    Printable HTML of the document.

    ?layout=thermal|a4, ?print=true records a print event.
    """
    document = _get_document(request, pk)
    html = render_document_html(document, layout=_layout(request))
    if request.query_params.get('print', '').lower() in ('1', 'true', 'yes'):
        record_event(document, 'printed', user=request.user, details={'layout': request.query_params.get('layout', 'thermal')})
    return HttpResponse(html, content_type='text/html; charset=utf-8')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fiscal_document_download(request, pk):
    """Document HTML as a file attachment"""
    document = _get_document(request, pk)
    layout = _layout(request)
    html = render_document_html(document, layout=layout)
    filename = download_filename(document)
    record_event(document, 'downloaded', user=request.user, details={'layout': layout, 'filename': filename})
    response = HttpResponse(html, content_type='text/html; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def fiscal_document_share(request, pk):
    """
    Share text and mailto / WhatsApp / SMS links.

    POST with a ``channel`` records that the document was shared.
    """
    document = _get_document(request, pk)
    serializer = FiscalShareSerializer(data=request.data if request.method == 'POST' else request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    links = share_links(document, email=serializer.validated_data.get('email') or None)
    channel = serializer.validated_data.get('channel')
    event = None
    if request.method == 'POST' and channel:
        event = record_event(document, SHARE_ACTIONS[channel], user=request.user, details={'channel': channel})
    links['recorded'] = event is not None
    return Response(links)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fiscal_document_events(request, pk):
    """History of a single document"""
    document = _get_document(request, pk)
    queryset = document.events.select_related('user')
    return Response(paginate_queryset(request, queryset, FiscalDocumentEventSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fiscal_event_list(request):
    """History of every fiscal document in the organization"""
    queryset = scoped_queryset(FiscalDocumentEvent, request.user).select_related('user')

    action = request.query_params.get('action', None)
    if action:
        queryset = queryset.filter(action=action)

    number = request.query_params.get('document_number', None)
    if number:
        queryset = queryset.filter(document_number__icontains=number)

    return Response(paginate_queryset(request, queryset, FiscalDocumentEventSerializer))
