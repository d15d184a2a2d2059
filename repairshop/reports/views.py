import logging
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum, Count, F, DecimalField
from django.db.models.functions import TruncDate, TruncMonth
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.cache_utils import get_cached_dashboard_kpis, cache_dashboard_kpis
from repairshop.customers.models import Customer
from repairshop.fiscal.models import FiscalDocument
from repairshop.inventory.models import Part
from repairshop.inventory.serializers import PartSerializer
from repairshop.organizations.scoping import get_user_organization, scoped_queryset
from repairshop.services.models import ServiceOrder
from repairshop.services.serializers import ServiceOrderSerializer
from repairshop.services.status import add_months

logger = logging.getLogger('repairshop.reports')

MONTH_ABBREVIATIONS = ['jan', 'fev', 'mar', 'abr', 'mai', 'jun', 'jul', 'ago', 'set', 'out', 'nov', 'dez']

DEFAULT_MONTHS = 6
MAX_MONTHS = 24
RECENT_SERVICES_LIMIT = 5
LOW_STOCK_LIMIT = 10


def _revenue_services(user):
    """Service orders that count as revenue (everything except canceled)"""
    return scoped_queryset(ServiceOrder, user).exclude(status='canceled')


def _parse_months(request):
    try:
        months = int(request.query_params.get('months', DEFAULT_MONTHS))
    except (TypeError, ValueError):
        return None
    if months < 1 or months > MAX_MONTHS:
        return None
    return months


def _period_start(months):
    """First day of the month ``months`` months before the current one"""
    today = timezone.localdate()
    first = add_months(today.replace(day=1), -months)
    return timezone.make_aware(datetime.combine(first, datetime.min.time()))


def _parse_date(value):
    if not value:
        return None
    return datetime.strptime(value, '%Y-%m-%d').date()


def month_label(day):
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"


def _as_date(value):
    """TruncDate gives a date, TruncMonth an aware datetime"""
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return value


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """
    Dashboard KPIs of the organization

    Cached per organization; any change to services, parts, customers or
    fiscal documents drops the cache. ?refresh=true skips it.
    """
    organization = get_user_organization(request.user)
    refresh = request.query_params.get('refresh', '').lower() in ('1', 'true', 'yes')

    cache_key = None
    try:
        cached_data, cache_key = get_cached_dashboard_kpis(organization.id)
        if cached_data and not refresh:
            logger.info(f"Dashboard cache HIT (organization: {organization.id}, user: {request.user.username})")
            response = Response(cached_data)
            response['X-Cache'] = 'HIT'
            return response
        logger.info(f"Dashboard cache MISS (organization: {organization.id}, user: {request.user.username})")
    except Exception as e:
        logger.warning(f"Cache unavailable, proceeding without cache: {e}")

    today = timezone.localdate()
    services = scoped_queryset(ServiceOrder, request.user)
    revenue_services = _revenue_services(request.user)

    revenue_today = revenue_services.filter(created_at__date=today).aggregate(
        total=Sum('price', output_field=DecimalField())
    )['total'] or Decimal('0.00')

    status_counts = dict(services.values_list('status').annotate(count=Count('id')))

    recent_services = services.select_related('customer', 'device', 'technician').order_by('-created_at', '-id')
    recent_services = recent_services[:RECENT_SERVICES_LIMIT]

    low_stock = scoped_queryset(Part, request.user).filter(
        quantity__lte=F('minimum_stock')
    ).order_by('quantity', 'name')[:LOW_STOCK_LIMIT]

    daily = revenue_services.filter(
        created_at__date__gte=today.replace(day=1),
        created_at__date__lte=today
    ).annotate(day=TruncDate('created_at')).values('day').annotate(
        revenue=Sum('price', output_field=DecimalField())
    ).order_by('day')
    daily_revenue = {_as_date(row['day']): row['revenue'] or Decimal('0.00') for row in daily}

    month_revenue = []
    day = today.replace(day=1)
    while day <= today:
        month_revenue.append({
            'date': day.strftime('%d/%m'),
            'revenue': float(daily_revenue.get(day, Decimal('0.00'))),
        })
        day += timedelta(days=1)

    response_data = {
        'total_services': sum(status_counts.values()),
        'total_clients': scoped_queryset(Customer, request.user).count(),
        'revenue_today': float(revenue_today),
        'pending_services': sum(status_counts.get(s, 0) for s in ServiceOrder.OPEN_STATUSES),
        'completed_services': status_counts.get('completed', 0) + status_counts.get('delivered', 0),
        'recent_services': [dict(item) for item in ServiceOrderSerializer(recent_services, many=True).data],
        'low_stock_items': [dict(item) for item in PartSerializer(low_stock, many=True).data],
        'month_revenue': month_revenue,
        'generated_at': timezone.now().isoformat(),
    }

    if cache_key:
        try:
            cache_dashboard_kpis(cache_key, response_data, settings.DASHBOARD_CACHE_TTL)
        except Exception as e:
            logger.warning(f"Unable to cache dashboard: {e}")

    response = Response(response_data)
    response['X-Cache'] = 'MISS'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def revenue_by_month(request):
    """Service revenue per month for the last ?months= months (default 6), current month included"""
    months = _parse_months(request)
    if months is None:
        return Response({'error': f'months must be between 1 and {MAX_MONTHS}'}, status=status.HTTP_400_BAD_REQUEST)

    start = _period_start(months)
    rows = _revenue_services(request.user).filter(created_at__gte=start).annotate(
        month=TruncMonth('created_at')
    ).values('month').annotate(
        revenue=Sum('price', output_field=DecimalField()),
        count=Count('id')
    ).order_by('month')
    by_month = {_as_date(row['month']): row for row in rows}

    results = []
    first_day = _as_date(start)
    for offset in range(months + 1):
        month = add_months(first_day, offset)
        row = by_month.get(month, {})
        results.append({
            'month': month.strftime('%Y-%m'),
            'label': month_label(month),
            'revenue': float(row.get('revenue') or 0),
            'services': row.get('count', 0),
        })

    return Response({
        'period': {'from': first_day.isoformat(), 'to': timezone.localdate().isoformat(), 'months': months},
        'results': results,
        'total': float(sum(Decimal(str(item['revenue'])) for item in results)),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def services_by_status(request):
    """Service order count per status; every status is present"""
    months = _parse_months(request)
    if months is None:
        return Response({'error': f'months must be between 1 and {MAX_MONTHS}'}, status=status.HTTP_400_BAD_REQUEST)

    counts = dict(
        scoped_queryset(ServiceOrder, request.user).filter(created_at__gte=_period_start(months))
        .values_list('status').annotate(count=Count('id'))
    )
    results = [
        {'status': value, 'label': label, 'count': counts.get(value, 0)}
        for value, label in ServiceOrder.STATUS_CHOICES
    ]
    return Response({'months': months, 'results': results, 'total': sum(item['count'] for item in results)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def services_by_type(request):
    """Service order count per service type, most frequent first"""
    months = _parse_months(request)
    if months is None:
        return Response({'error': f'months must be between 1 and {MAX_MONTHS}'}, status=status.HTTP_400_BAD_REQUEST)

    labels = dict(ServiceOrder.SERVICE_TYPE_CHOICES)
    rows = scoped_queryset(ServiceOrder, request.user).filter(
        created_at__gte=_period_start(months)
    ).values('service_type').annotate(
        count=Count('id'),
        revenue=Sum('price', output_field=DecimalField())
    ).order_by('-count', 'service_type')

    results = [
        {
            'service_type': row['service_type'],
            'label': labels.get(row['service_type'], row['service_type']),
            'count': row['count'],
            'revenue': float(row['revenue'] or 0),
        }
        for row in rows
    ]
    return Response({'months': months, 'results': results})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fiscal_summary(request):
    """Fiscal document count and value per type and status (?date_from / ?date_to on issue date)"""
    try:
        date_from = _parse_date(request.query_params.get('date_from'))
        date_to = _parse_date(request.query_params.get('date_to'))
    except ValueError:
        return Response({'error': 'Dates must use the YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    documents = scoped_queryset(FiscalDocument, request.user)
    if date_from:
        documents = documents.filter(issue_date__date__gte=date_from)
    if date_to:
        documents = documents.filter(issue_date__date__lte=date_to)

    rows = documents.values('type', 'status').annotate(
        count=Count('id'),
        total=Sum('total_value', output_field=DecimalField())
    )
    by_key = {(row['type'], row['status']): row for row in rows}

    by_type = []
    for type_value, type_label in FiscalDocument.TYPE_CHOICES:
        statuses = []
        for status_value, status_label in FiscalDocument.STATUS_CHOICES:
            row = by_key.get((type_value, status_value), {})
            statuses.append({
                'status': status_value,
                'label': status_label,
                'count': row.get('count', 0),
                'total_value': float(row.get('total') or 0),
            })
        by_type.append({
            'type': type_value,
            'label': type_label,
            'count': sum(item['count'] for item in statuses),
            'total_value': float(sum(Decimal(str(item['total_value'])) for item in statuses)),
            'statuses': statuses,
        })

    authorized_value = documents.filter(status='authorized').aggregate(
        total=Sum('total_value', output_field=DecimalField())
    )['total'] or Decimal('0.00')

    return Response({
        'period': {
            'from': date_from.isoformat() if date_from else None,
            'to': date_to.isoformat() if date_to else None,
        },
        'by_type': by_type,
        'total_documents': sum(item['count'] for item in by_type),
        'authorized_value': float(authorized_value),
    })
