"""Simplified tax breakdown printed on fiscal documents"""
from decimal import Decimal, ROUND_HALF_UP

TAX_RATES = {
    'nf': [('ICMS', Decimal('18')), ('IPI', Decimal('5'))],
    'nfce': [('ICMS', Decimal('18'))],
    'nfs': [('ISS', Decimal('5'))],
}

CENTS = Decimal('0.01')


def _money(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_taxes(doc_type, value):
    """
    Tax lines for a document value.

    Returns a dict with ``lines`` (name, rate, amount), ``total`` taxes and
    ``total_with_taxes``. Unknown types carry no taxes.
    """
    value = _money(value or 0)
    lines = []
    for name, rate in TAX_RATES.get(doc_type, []):
        lines.append({
            'name': name,
            'rate': rate,
            'amount': _money(value * rate / Decimal('100')),
        })
    total = sum((line['amount'] for line in lines), Decimal('0.00'))
    return {
        'subtotal': value,
        'lines': lines,
        'total': total,
        'total_with_taxes': value + total,
    }
