from django.contrib import admin
from .models import Part, StockMovement


@admin.register(Part)
class PartAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'quantity', 'minimum_stock', 'selling_price', 'organization']
    list_filter = ['category', 'organization']
    search_fields = ['name', 'sku', 'compatibility']
    ordering = ['name']


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['part', 'movement_type', 'quantity', 'reason', 'quantity_after', 'created_by', 'created_at']
    list_filter = ['movement_type', 'reason']
    search_fields = ['part__name', 'part__sku', 'notes']
    ordering = ['-created_at']
