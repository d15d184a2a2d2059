"""
Organization scoping helpers.

Every tenant-owned table carries an ``organization`` foreign key. Views never
query those tables directly; they go through the helpers below so that reads,
writes and deletes are always restricted to the caller's organization.
"""
import logging

from django.http import Http404

logger = logging.getLogger('repairshop.organizations')


class NoOrganizationError(Exception):
    """Raised when the authenticated user is not attached to an organization"""

    def __init__(self, user=None):
        self.user = user
        username = getattr(user, 'username', None)
        super().__init__(f"User {username} has no organization" if username else "User has no organization")


def get_user_organization(user):
    """Return the user's organization or raise NoOrganizationError"""
    organization = getattr(user, 'organization', None) if user is not None else None
    if organization is None:
        raise NoOrganizationError(user)
    return organization


def scoped_queryset(model, user, queryset=None):
    """Queryset of ``model`` restricted to the user's organization"""
    organization = get_user_organization(user)
    if queryset is None:
        queryset = model.objects.all()
    return queryset.filter(organization=organization)


def get_scoped_object_or_404(model, user, queryset=None, **lookup):
    """Fetch a single object owned by the user's organization or raise Http404"""
    queryset = scoped_queryset(model, user, queryset=queryset)
    try:
        return queryset.get(**lookup)
    except model.DoesNotExist:
        raise Http404(f"{model.__name__} not found")


def save_with_org(serializer, user, **extra):
    """Save a validated serializer, stamping the user's organization"""
    organization = get_user_organization(user)
    return serializer.save(organization=organization, **extra)
