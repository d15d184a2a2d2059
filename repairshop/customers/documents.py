"""CPF / CNPJ document helpers"""
import re
from urllib.parse import quote

DOCUMENT_LENGTHS = {
    'cpf': 11,
    'cnpj': 14,
}

_NON_DIGITS = re.compile(r'\D')


def only_digits(value):
    return _NON_DIGITS.sub('', value or '')


def normalize_document(value, document_type):
    """
    Strip mask characters from a CPF/CNPJ and check its length.

    Raises ValueError when the type is unknown or the digit count is wrong.
    """
    if document_type not in DOCUMENT_LENGTHS:
        raise ValueError(f"Unknown document type: {document_type}")
    digits = only_digits(value)
    expected = DOCUMENT_LENGTHS[document_type]
    if len(digits) != expected:
        raise ValueError(f"{document_type.upper()} must have {expected} digits")
    return digits


def format_document(value, document_type):
    """000.000.000-00 for CPF, 00.000.000/0000-00 for CNPJ"""
    digits = only_digits(value)
    if document_type == 'cpf' and len(digits) == 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if document_type == 'cnpj' and len(digits) == 14:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
    return value or ''


def contact_links(name=None, phone=None, email=None, message=None):
    """mailto / tel / sms / WhatsApp links for a contact; missing channels are None"""
    phone_digits = only_digits(phone)
    links = {
        'email': None,
        'phone': None,
        'sms': None,
        'whatsapp': None,
    }
    if email:
        links['email'] = f"mailto:{email}"
    if phone_digits:
        links['phone'] = f"tel:{phone_digits}"
        links['sms'] = f"sms:{phone_digits}"
        # Brazilian numbers without country code get 55 prefixed
        whatsapp_number = phone_digits if phone_digits.startswith('55') and len(phone_digits) > 11 else f"55{phone_digits}"
        text = message or (f"Olá {name}!" if name else '')
        links['whatsapp'] = f"https://wa.me/{whatsapp_number}"
        if text:
            links['whatsapp'] += f"?text={quote(text)}"
    return links
