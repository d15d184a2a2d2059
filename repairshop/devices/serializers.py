from rest_framework import serializers

from repairshop.customers.models import Customer
from .models import Device
from .patterns import parse_pattern, format_pattern


class DeviceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())

    class Meta:
        model = Device
        fields = ['id', 'customer', 'customer_name', 'device_type', 'brand', 'model', 'serial_number',
                  'imei', 'color', 'condition', 'password_type', 'password', 'observations',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_customer(self, value):
        organization = self.context.get('organization')
        if organization is not None and value.organization_id != organization.id:
            raise serializers.ValidationError("Customer not found")
        return value

    def validate_imei(self, value):
        if value:
            value = value.strip()
            if not value.isdigit() or len(value) not in (15, 16):
                raise serializers.ValidationError("IMEI must have 15 or 16 digits")
        return value

    def validate(self, attrs):
        password_type = attrs.get('password_type', getattr(self.instance, 'password_type', 'none'))
        password = attrs.get('password', getattr(self.instance, 'password', None))

        if password_type == 'none':
            attrs['password'] = None
        elif password_type == 'pattern':
            try:
                attrs['password'] = format_pattern(parse_pattern(password))
            except ValueError as e:
                raise serializers.ValidationError({'password': str(e)})
        elif password_type == 'pin':
            if not password or not str(password).isdigit():
                raise serializers.ValidationError({'password': 'PIN must contain only digits'})
        elif not password:
            raise serializers.ValidationError({'password': 'Password is required'})
        return attrs
