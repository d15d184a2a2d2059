from django.contrib.auth import get_user_model
from rest_framework import serializers

from repairshop.customers.models import Customer
from repairshop.devices.models import Device
from .models import ServiceOrder

User = get_user_model()


class ServiceOrderSerializer(serializers.ModelSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    device = serializers.PrimaryKeyRelatedField(queryset=Device.objects.all())
    technician = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    device_name = serializers.CharField(source='device.__str__', read_only=True)
    technician_name = serializers.SerializerMethodField()
    service_name = serializers.CharField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = ServiceOrder
        fields = ['id', 'customer', 'customer_name', 'device', 'device_name', 'service_type',
                  'other_service_description', 'service_name', 'description', 'status', 'status_display',
                  'priority', 'price', 'technician', 'technician_name', 'estimated_completion_date',
                  'completion_date', 'warranty_period', 'warranty_until', 'observations',
                  'created_at', 'updated_at']
        read_only_fields = ['status', 'completion_date', 'warranty_until', 'created_at', 'updated_at']

    def get_technician_name(self, obj):
        if not obj.technician:
            return None
        return obj.technician.get_full_name() or obj.technician.username

    def _check_organization(self, obj, label):
        organization = self.context.get('organization')
        if obj is not None and organization is not None and obj.organization_id != organization.id:
            raise serializers.ValidationError(f"{label} not found")
        return obj

    def validate_customer(self, value):
        return self._check_organization(value, 'Customer')

    def validate_device(self, value):
        return self._check_organization(value, 'Device')

    def validate_technician(self, value):
        return self._check_organization(value, 'Technician')

    def validate_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        return value

    def validate(self, attrs):
        customer = attrs.get('customer', getattr(self.instance, 'customer', None))
        device = attrs.get('device', getattr(self.instance, 'device', None))
        if customer is not None and device is not None and device.customer_id != customer.id:
            raise serializers.ValidationError({'device': 'Device does not belong to this customer'})

        service_type = attrs.get('service_type', getattr(self.instance, 'service_type', None))
        other = attrs.get('other_service_description', getattr(self.instance, 'other_service_description', None))
        if service_type == 'other' and not (other or '').strip():
            raise serializers.ValidationError({'other_service_description': 'Describe the service when type is other'})
        if service_type != 'other' and 'service_type' in attrs:
            attrs['other_service_description'] = None
        return attrs


class ServiceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ServiceOrder.STATUS_CHOICES)
