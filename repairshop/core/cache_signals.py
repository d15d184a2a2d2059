"""
Cache invalidation signals
Automatically invalidate the dashboard cache when tenant data changes
"""
import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger('repairshop.core')

DASHBOARD_SENDERS = (
    'services.ServiceOrder',
    'inventory.Part',
    'customers.Customer',
    'fiscal.FiscalDocument',
)


def _invalidate_for_instance(sender, instance, **kwargs):
    invalidate_dashboard_cache(getattr(instance, 'organization_id', None))


for _sender in DASHBOARD_SENDERS:
    receiver(post_save, sender=_sender, dispatch_uid=f'dashboard_save_{_sender}')(_invalidate_for_instance)
    receiver(post_delete, sender=_sender, dispatch_uid=f'dashboard_delete_{_sender}')(_invalidate_for_instance)
