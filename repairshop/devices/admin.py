from django.contrib import admin
from .models import Device


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = ['brand', 'model', 'device_type', 'customer', 'condition', 'imei', 'organization', 'created_at']
    list_filter = ['device_type', 'condition', 'password_type', 'organization']
    search_fields = ['brand', 'model', 'imei', 'serial_number', 'customer__name']
    ordering = ['-created_at']
