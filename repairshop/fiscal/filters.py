"""
Fiscal document filters.

``FiscalDocumentFilter`` works on querysets, ``filter_documents`` on lists of
documents already in memory (the demo dataset, for instance). Both accept the
same criteria and never reorder their input.
"""
from datetime import date, datetime

import django_filters
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .models import FiscalDocument

SEARCH_FIELDS = ('number', 'customer_name', 'access_key', 'description')


class FiscalDocumentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=FiscalDocument.STATUS_CHOICES)
    type = django_filters.ChoiceFilter(choices=FiscalDocument.TYPE_CHOICES)
    date_from = django_filters.DateFilter(field_name='issue_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='issue_date', lookup_expr='date__lte')
    customer = django_filters.NumberFilter(field_name='customer_id')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = FiscalDocument
        fields = ['status', 'type', 'date_from', 'date_to', 'customer', 'search']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        query = Q()
        for field in SEARCH_FIELDS:
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)


def _value(document, field):
    if isinstance(document, dict):
        return document.get(field)
    return getattr(document, field, None)


def _as_date(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime(value)
    if parsed is not None:
        return _as_date(parsed)
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value}")
    return parsed


def filter_documents(documents, status=None, doc_type=None, date_from=None, date_to=None, search=None):
    """
    Subset of ``documents`` matching every given criterion, in the input order.

    Documents may be dicts or model instances. Dates compare on the local
    calendar day of ``issue_date``; ``search`` is a case-insensitive substring
    match on number, customer name, access key and description.
    """
    date_from = _as_date(date_from)
    date_to = _as_date(date_to)
    term = (search or '').strip().lower()

    result = []
    for document in documents:
        if status and _value(document, 'status') != status:
            continue
        if doc_type and _value(document, 'type') != doc_type:
            continue
        if date_from or date_to:
            issued = _as_date(_value(document, 'issue_date'))
            if issued is None:
                continue
            if date_from and issued < date_from:
                continue
            if date_to and issued > date_to:
                continue
        if term and not any(term in str(_value(document, field) or '').lower() for field in SEARCH_FIELDS):
            continue
        result.append(document)
    return result
