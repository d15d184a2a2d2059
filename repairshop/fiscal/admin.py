from django.contrib import admin
from .models import FiscalDocument, FiscalDocumentItem, FiscalDocumentEvent


class FiscalDocumentItemInline(admin.TabularInline):
    model = FiscalDocumentItem
    extra = 0
    readonly_fields = ['total_price']


@admin.register(FiscalDocument)
class FiscalDocumentAdmin(admin.ModelAdmin):
    list_display = ['number', 'type', 'status', 'customer_name', 'total_value', 'issue_date', 'organization']
    list_filter = ['type', 'status', 'organization', 'issue_date']
    search_fields = ['number', 'customer_name', 'access_key']
    ordering = ['-issue_date']
    readonly_fields = ['number', 'sequence', 'access_key', 'authorization_date', 'cancelation_date',
                       'reissued_from', 'created_at', 'updated_at']
    inlines = [FiscalDocumentItemInline]


@admin.register(FiscalDocumentEvent)
class FiscalDocumentEventAdmin(admin.ModelAdmin):
    list_display = ['document_number', 'action', 'user', 'organization', 'created_at']
    list_filter = ['action', 'organization', 'created_at']
    search_fields = ['document_number', 'user__username']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
