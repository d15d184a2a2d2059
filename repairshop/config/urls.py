"""
URL configuration for the repairshop project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "RepairShop Admin Panel"
admin.site.site_title = "RepairShop Admin Portal"
admin.site.index_title = "Repair shop administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('repairshop.core.urls')),
    path('api/v1/', include('repairshop.organizations.urls')),
    path('api/v1/', include('repairshop.customers.urls')),
    path('api/v1/', include('repairshop.devices.urls')),
    path('api/v1/', include('repairshop.services.urls')),
    path('api/v1/', include('repairshop.inventory.urls')),
    path('api/v1/', include('repairshop.fiscal.urls')),
    path('api/v1/', include('repairshop.notifications.urls')),
    path('api/v1/', include('repairshop.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
