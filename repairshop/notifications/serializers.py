from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'description', 'read', 'action_link', 'related_id', 'created_at']
        read_only_fields = ['type', 'title', 'description', 'action_link', 'related_id', 'created_at']
