"""
Fiscal document rendering.

``render_document_html`` is a pure function of the document fields: it takes a
FiscalDocument (or the plain dict built by ``document_fields``) and returns a
standalone HTML page with inlined CSS in the 80mm thermal or the A4 layout.
The same HTML is used for printing, for the download attachment and for sharing.
"""
import base64
import io
import logging
from urllib.parse import quote

import barcode
from barcode.writer import ImageWriter
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from repairshop.services.receipts import format_currency
from .numbering import format_access_key
from .taxes import calculate_taxes

logger = logging.getLogger('repairshop.fiscal')

LAYOUTS = ('thermal', 'a4')

DOCUMENT_TITLES = {
    'nf': 'NOTA FISCAL ELETRÔNICA',
    'nfce': 'NOTA FISCAL DE CONSUMIDOR ELETRÔNICA',
    'nfs': 'NOTA FISCAL DE SERVIÇO ELETRÔNICA',
}

STATUS_LABELS = {
    'authorized': 'NOTA EMITIDA',
    'draft': 'RASCUNHO',
    'pending': 'AGUARDANDO AUTORIZAÇÃO',
    'canceled': 'CANCELADA',
}


def document_fields(document):
    """Plain dict with everything the renderer needs from a FiscalDocument"""
    return {
        'id': document.id,
        'type': document.type,
        'number': document.number,
        'status': document.status,
        'access_key': document.access_key,
        'customer_name': document.customer_name,
        'customer_email': document.customer.email if document.customer_id and document.customer else None,
        'customer_phone': document.customer.phone if document.customer_id and document.customer else None,
        'description': document.description,
        'total_value': document.total_value,
        'issue_date': document.issue_date,
        'authorization_date': document.authorization_date,
        'qr_code': document.qr_code,
        'items': [
            {
                'description': item.description,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'total_price': item.total_price,
            }
            for item in document.items.all()
        ] if document.pk else [],
    }


def _as_fields(document):
    return document if isinstance(document, dict) else document_fields(document)


def document_title(doc_type):
    return DOCUMENT_TITLES.get(doc_type, 'DOCUMENTO FISCAL')


def _local(value):
    if value is not None and timezone.is_aware(value):
        return timezone.localtime(value)
    return value


def barcode_data_uri(value):
    """Code128 barcode of ``value`` as a PNG data URI"""
    code128 = barcode.get_barcode_class('code128')
    barcode_instance = code128(value, writer=ImageWriter())
    image = barcode_instance.render({
        'write_text': False,
        'module_width': 0.2,
        'module_height': 12.0,
        'quiet_zone': 2.0,
        'background': 'white',
        'foreground': 'black',
    })
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return f"data:image/png;base64,{base64.b64encode(buffer.getvalue()).decode('utf-8')}"


def render_document_html(document, layout='thermal', company=None):
    """Render a fiscal document as a standalone HTML page"""
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout: {layout}")
    fields = _as_fields(document)
    taxes = calculate_taxes(fields['type'], fields['total_value'])
    context = {
        'company': company or settings.COMPANY_INFO,
        'document': fields,
        'title': document_title(fields['type']),
        'status_label': STATUS_LABELS.get(fields['status'], fields['status']),
        'issue_date': _local(fields['issue_date']),
        'authorization_date': _local(fields.get('authorization_date')),
        'subtotal': format_currency(taxes['subtotal']),
        'tax_lines': [
            {'name': line['name'], 'rate': line['rate'], 'amount': format_currency(line['amount'])}
            for line in taxes['lines']
        ],
        'total_with_taxes': format_currency(taxes['total_with_taxes']),
        'items': [
            dict(item, unit_price=format_currency(item['unit_price']), total_price=format_currency(item['total_price']))
            for item in fields.get('items') or []
        ],
        'access_key': format_access_key(fields['access_key']),
        'barcode': None,
    }
    if layout == 'a4':
        context['barcode'] = barcode_data_uri(fields['access_key'])
    return render_to_string(f'fiscal/document_{layout}.html', context)


def download_filename(document):
    number = _as_fields(document)['number']
    return f"documento-{number.replace('/', '-')}.html"


def share_text(document, company=None):
    fields = _as_fields(document)
    company = company or settings.COMPANY_INFO
    total = calculate_taxes(fields['type'], fields['total_value'])['total_with_taxes']
    issued = _local(fields['issue_date'])
    return (
        f"Documento Fiscal {fields['number']} - {company['name']} - "
        f"Valor: {format_currency(total)} - Emitido em: {issued.strftime('%d/%m/%Y')}"
    )


def email_subject(document):
    fields = _as_fields(document)
    return f"{document_title(fields['type'])} - {fields['number']}"


def email_body(document, company=None):
    fields = _as_fields(document)
    company = company or settings.COMPANY_INFO
    total = calculate_taxes(fields['type'], fields['total_value'])['total_with_taxes']
    return (
        f"Olá {fields['customer_name']},\n\n"
        f"Segue o documento fiscal {fields['number']} ({document_title(fields['type'])}).\n"
        f"Valor total: {format_currency(total)}\n"
        f"Chave de acesso: {format_access_key(fields['access_key'])}\n\n"
        f"Atenciosamente,\n{company['name']}"
    )


def share_links(document, email=None, company=None):
    """mailto / WhatsApp / SMS links carrying the document summary"""
    fields = _as_fields(document)
    text = share_text(fields, company=company)
    email = email or fields.get('customer_email') or ''
    return {
        'text': text,
        'email': f"mailto:{email}?subject={quote(email_subject(fields))}&body={quote(email_body(fields, company=company))}",
        'whatsapp': f"https://wa.me/?text={quote(text)}",
        'sms': f"sms:?&body={quote(text)}",
    }
