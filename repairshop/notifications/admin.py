from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'user', 'read', 'created_at']
    list_filter = ['type', 'read', 'organization']
    search_fields = ['title', 'description', 'user__username']
    ordering = ['-created_at']
