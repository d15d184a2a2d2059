from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'document_type', 'document', 'phone', 'email', 'city', 'organization', 'created_at']
    list_filter = ['document_type', 'state', 'organization']
    search_fields = ['name', 'document', 'phone', 'email']
    ordering = ['name']
