import re
import unicodedata

from .models import Part

SKU_PATTERN = re.compile(r'^([A-Z0-9]{3})-(\d+)$')


def get_prefix_for_part(name, category=None):
    """
    Three letter SKU prefix taken from the category, or the part name when
    the category is the generic one.
    """
    source = category if category and category != 'Outros' else name
    ascii_text = unicodedata.normalize('NFKD', source or '').encode('ascii', 'ignore').decode('ascii')
    letters = re.sub(r'[^A-Za-z0-9]', '', ascii_text).upper()
    return (letters + 'XXX')[:3]


def get_max_number_for_prefix(organization, prefix):
    max_number = 0
    for sku in Part.objects.filter(organization=organization, sku__startswith=f"{prefix}-").values_list('sku', flat=True):
        match = SKU_PATTERN.match(sku)
        if match:
            max_number = max(max_number, int(match.group(2)))
    return max_number


def generate_sku(organization, name, category=None):
    """
    Generate a SKU unique within the organization.
    Format: PREFIX-NUMBER (e.g., TEL-0001)
    """
    prefix = get_prefix_for_part(name, category)
    next_number = get_max_number_for_prefix(organization, prefix) + 1
    sku = f"{prefix}-{next_number:04d}"
    while Part.objects.filter(organization=organization, sku=sku).exists():
        next_number += 1
        sku = f"{prefix}-{next_number:04d}"
    return sku
