"""
Caching utilities for expensive report queries.
Uses the default cache (Redis through django-redis when configured).
"""
import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger('repairshop.core')

DASHBOARD_KPI_CACHE_TTL = getattr(settings, 'DASHBOARD_CACHE_TTL', 120)

DASHBOARD_PREFIX = 'dashboard_kpis'


def dashboard_cache_key(organization_id):
    return f"{DASHBOARD_PREFIX}:{organization_id}"


def get_cached_dashboard_kpis(organization_id):
    """Get cached dashboard KPIs. Returns tuple: (cached_data, cache_key)"""
    cache_key = dashboard_cache_key(organization_id)
    return cache.get(cache_key), cache_key


def cache_dashboard_kpis(cache_key, data, ttl=DASHBOARD_KPI_CACHE_TTL):
    """Cache dashboard KPIs data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard KPIs: {cache_key}")


def invalidate_dashboard_cache(organization_id):
    """Invalidate the dashboard KPIs of one organization"""
    if organization_id is None:
        return
    try:
        cache.delete(dashboard_cache_key(organization_id))
        logger.debug(f"Invalidated dashboard cache for organization {organization_id}")
    except Exception as e:
        logger.warning(f"Could not invalidate dashboard cache for organization {organization_id}: {str(e)}")
