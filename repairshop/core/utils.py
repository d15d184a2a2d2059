"""Utility functions for audit logging and pagination"""
import logging

from django.core.paginator import Paginator

from .models import AuditLog

logger = logging.getLogger('repairshop.core')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None,
                     organization=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, status_change, document_issue, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., customer name, document number)
        object_reference: Reference identifier (e.g., document number, SKU)
        organization: Owning organization (defaults to the user's organization)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user
        if audit_user is not None and not audit_user.is_authenticated:
            audit_user = None

        if organization is None and audit_user is not None:
            organization = getattr(audit_user, 'organization', None)

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user,
            organization=organization,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}", exc_info=True)
        return None


def paginate_queryset(request, queryset, serializer_class, context=None):
    """
    Paginate a queryset (or list) with Django's Paginator and serialize the page.

    Returns the payload used by every list endpoint:
    results, count, next, previous, page, page_size, total_pages.
    """
    try:
        page_size = int(request.query_params.get('page_size') or request.query_params.get('limit') or DEFAULT_PAGE_SIZE)
    except (TypeError, ValueError):
        page_size = DEFAULT_PAGE_SIZE
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    paginator = Paginator(queryset, page_size)
    page = paginator.get_page(request.query_params.get('page', 1))

    serializer = serializer_class(page.object_list, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page.next_page_number() if page.has_next() else None,
        'previous': page.previous_page_number() if page.has_previous() else None,
        'page': page.number,
        'page_size': page_size,
        'total_pages': paginator.num_pages,
    }


def parse_ordering(value, allowed, default='-created_at'):
    """Validate an ``ordering`` query param against the allowed field names"""
    if not value:
        return default
    field = value.lstrip('-')
    if field not in allowed:
        return default
    return value
