"""Service order status changes and warranty dates"""
import calendar
import logging

from django.utils import timezone

from .models import ServiceOrder

logger = logging.getLogger('repairshop.services')

VALID_STATUSES = [choice[0] for choice in ServiceOrder.STATUS_CHOICES]


def add_months(day, months):
    """Add calendar months to a date, clamping to the last day of the month"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def apply_status(service, new_status, when=None):
    """
    Set the status of a service order and stamp the derived dates.

    ``completed`` stamps completion_date. ``delivered`` also stamps
    completion_date when missing and sets warranty_until to the delivery
    date plus the warranty period. Returns the previous status.
    Does not save.
    """
    if new_status not in VALID_STATUSES:
        raise ValueError(f'status must be one of: {", ".join(VALID_STATUSES)}')

    when = when or timezone.now()
    old_status = service.status
    service.status = new_status

    if new_status == 'completed':
        service.completion_date = when
    elif new_status == 'delivered':
        if service.completion_date is None:
            service.completion_date = when
        delivery_day = timezone.localtime(when).date() if timezone.is_aware(when) else when.date()
        service.warranty_until = add_months(delivery_day, service.warranty_period or 0)
    return old_status
