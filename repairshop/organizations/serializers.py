from rest_framework import serializers

from .models import Organization


class OrganizationSerializer(serializers.ModelSerializer):
    members_count = serializers.IntegerField(source='members.count', read_only=True)

    class Meta:
        model = Organization
        fields = ['id', 'name', 'members_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("Organization name cannot be empty")
        return value


class MemberAssignmentSerializer(serializers.Serializer):
    username = serializers.CharField()
    role = serializers.ChoiceField(choices=['admin', 'technician', 'attendant'], required=False)
