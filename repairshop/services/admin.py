from django.contrib import admin
from .models import ServiceOrder


@admin.register(ServiceOrder)
class ServiceOrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'device', 'service_type', 'status', 'priority', 'price', 'technician', 'created_at']
    list_filter = ['status', 'priority', 'service_type', 'organization']
    search_fields = ['customer__name', 'device__brand', 'device__model', 'other_service_description']
    ordering = ['-created_at']
    readonly_fields = ['completion_date', 'warranty_until', 'created_at', 'updated_at']
