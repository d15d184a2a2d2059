from django.urls import path
from .views import organization_create, organization_current, organization_members

urlpatterns = [
    path('organizations/', organization_create, name='organization-create'),
    path('organizations/current/', organization_current, name='organization-current'),
    path('organizations/current/members/', organization_members, name='organization-members'),
]
