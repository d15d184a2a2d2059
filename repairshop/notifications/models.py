from django.conf import settings
from django.db import models


class Notification(models.Model):
    """In-app notification addressed to a single user"""
    TYPE_CHOICES = [
        ('service', 'Service'),
        ('inventory', 'Inventory'),
        ('payment', 'Payment'),
        ('document', 'Document'),
        ('system', 'System'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    organization = models.ForeignKey(
        'organizations.Organization', on_delete=models.CASCADE, null=True, blank=True, related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    description = models.TextField()
    read = models.BooleanField(default=False)
    action_link = models.CharField(max_length=255, blank=True, null=True)
    related_id = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} -> {self.user_id}"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read'], name='idx_notification_user_read'),
            models.Index(fields=['user', '-created_at'], name='idx_notification_user_created'),
        ]
