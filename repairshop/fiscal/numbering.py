"""
Document numbers and access keys.

Access keys follow the 44 digit layout of real fiscal documents but are
cosmetic only: the check digit is fixed and nothing is registered anywhere.

    state(2) yymm(4) cnpj(14) model(2) series(3) sequence(9) timestamp(9) check(1)
"""
import random

from django.conf import settings
from django.db.models import Max
from django.utils import timezone

from repairshop.customers.documents import only_digits

ACCESS_KEY_LENGTH = 44

MODEL_CODES = {
    'nf': '55',
    'nfce': '65',
    'nfs': '99',
}

NUMBER_PREFIXES = {
    'nf': 'NF',
    'nfce': 'NFCe',
    'nfs': 'NFS',
}

FIXED_CHECK_DIGIT = '0'


def next_sequence(organization, doc_type, series=None):
    """Next free sequence number for the organization's type/series"""
    from .models import FiscalDocument

    series = settings.FISCAL_SERIES if series is None else series
    current = FiscalDocument.objects.filter(
        organization=organization, type=doc_type, series=series
    ).aggregate(max_sequence=Max('sequence'))['max_sequence']
    return (current or 0) + 1


def format_document_number(doc_type, series, sequence):
    """NFCe-000042/001 style number"""
    if doc_type not in NUMBER_PREFIXES:
        raise ValueError(f"Unknown document type: {doc_type}")
    return f"{NUMBER_PREFIXES[doc_type]}-{sequence:06d}/{series:03d}"


def _fixed_width(value, width):
    digits = only_digits(str(value))
    return digits[-width:].zfill(width)


def generate_access_key(doc_type, series, sequence, when=None, rng=None):
    """Build a 44 digit access key for a document"""
    if doc_type not in MODEL_CODES:
        raise ValueError(f"Unknown document type: {doc_type}")
    when = when or timezone.now()
    rng = rng or random

    timestamp_digits = str(int(when.timestamp() * 1000))[-8:] + str(rng.randint(0, 9))
    key = ''.join([
        _fixed_width(settings.FISCAL_STATE_CODE, 2),
        when.strftime('%y%m'),
        _fixed_width(settings.FISCAL_CNPJ_PLACEHOLDER, 14),
        MODEL_CODES[doc_type],
        _fixed_width(series, 3),
        _fixed_width(sequence, 9),
        _fixed_width(timestamp_digits, 9),
        FIXED_CHECK_DIGIT,
    ])
    if len(key) != ACCESS_KEY_LENGTH or not key.isdigit():
        raise ValueError(f"Generated access key has invalid format: {key}")
    return key


def format_access_key(access_key):
    """Groups of four digits, as printed on receipts"""
    return ' '.join(access_key[i:i + 4] for i in range(0, len(access_key), 4))


def consult_url(access_key):
    return f"https://{settings.COMPANY_INFO['consult_url']}/consulta?chave={access_key}"
