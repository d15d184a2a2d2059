from decimal import Decimal

from rest_framework import serializers

from repairshop.customers.models import Customer
from .lifecycle import can_cancel, cancel_deadline
from .models import FiscalDocument, FiscalDocumentItem, FiscalDocumentEvent
from .numbering import format_access_key
from .taxes import calculate_taxes


class FiscalDocumentItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = FiscalDocumentItem
        fields = ['id', 'description', 'quantity', 'unit_price', 'total_price']
        read_only_fields = ['total_price']

    def validate_description(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("Item description is required")
        return value

    def validate_quantity(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value

    def validate_unit_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Unit price must be greater than zero")
        return value


class FiscalDocumentListSerializer(serializers.ModelSerializer):
    """Lightweight representation for lists and search results"""
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_demo = serializers.SerializerMethodField()

    class Meta:
        model = FiscalDocument
        fields = ['id', 'type', 'type_display', 'number', 'series', 'sequence', 'status', 'status_display',
                  'access_key', 'customer', 'customer_name', 'description', 'total_value', 'issue_date',
                  'authorization_date', 'cancelation_date', 'is_demo']

    def get_is_demo(self, obj):
        return False


class FiscalDocumentSerializer(FiscalDocumentListSerializer):
    items = FiscalDocumentItemSerializer(many=True, read_only=True)
    formatted_access_key = serializers.SerializerMethodField()
    taxes = serializers.SerializerMethodField()
    can_cancel = serializers.SerializerMethodField()
    cancel_deadline = serializers.SerializerMethodField()
    reissued_from_number = serializers.CharField(source='reissued_from.number', read_only=True, default=None)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta(FiscalDocumentListSerializer.Meta):
        fields = FiscalDocumentListSerializer.Meta.fields + [
            'formatted_access_key', 'cancel_reason', 'reissued_from', 'reissued_from_number', 'qr_code',
            'items', 'taxes', 'can_cancel', 'cancel_deadline', 'created_by', 'created_by_username',
            'created_at', 'updated_at',
        ]

    def get_formatted_access_key(self, obj):
        return format_access_key(obj.access_key)

    def get_taxes(self, obj):
        taxes = calculate_taxes(obj.type, obj.total_value)
        return {
            'subtotal': str(taxes['subtotal']),
            'lines': [
                {'name': line['name'], 'rate': str(line['rate']), 'amount': str(line['amount'])}
                for line in taxes['lines']
            ],
            'total': str(taxes['total']),
            'total_with_taxes': str(taxes['total_with_taxes']),
        }

    def get_can_cancel(self, obj):
        return can_cancel(obj)

    def get_cancel_deadline(self, obj):
        deadline = cancel_deadline(obj)
        return deadline.isoformat() if deadline else None


class FiscalDocumentWriteSerializer(serializers.Serializer):
    """Input for creating a document or editing a draft"""
    type = serializers.ChoiceField(choices=FiscalDocument.TYPE_CHOICES)
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    total_value = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    issue_date = serializers.DateTimeField(required=False)
    items = FiscalDocumentItemSerializer(many=True, required=False)
    issue = serializers.BooleanField(required=False, default=False)
    external = serializers.BooleanField(required=False, default=False)

    def validate_customer(self, value):
        organization = self.context.get('organization')
        if value is not None and organization is not None and value.organization_id != organization.id:
            raise serializers.ValidationError("Customer not found")
        return value

    def validate_total_value(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError("Total value must be greater than zero")
        return value

    def validate(self, attrs):
        instance = self.instance
        customer = attrs.get('customer', getattr(instance, 'customer', None))
        customer_changed = 'customer' in attrs and (instance is None or attrs['customer'] != instance.customer)
        customer_name = (attrs.get('customer_name') or '').strip()
        if not customer_name and instance is not None and not customer_changed:
            customer_name = instance.customer_name
        if not customer_name and customer:
            customer_name = customer.name
        if not customer_name:
            raise serializers.ValidationError({'customer_name': 'Customer name is required'})
        attrs['customer_name'] = customer_name

        if attrs.get('issue') and attrs.get('external'):
            raise serializers.ValidationError({'external': 'External documents wait for authorization and cannot be issued'})

        items = attrs.get('items')
        if items:
            attrs['total_value'] = sum(
                ((Decimal(item['quantity']) * Decimal(item['unit_price'])).quantize(Decimal('0.01')) for item in items),
                Decimal('0.00')
            )
        elif instance is None and attrs.get('total_value') is None:
            raise serializers.ValidationError({'total_value': 'Provide a total value or at least one item'})
        elif instance is not None and 'items' not in attrs and attrs.get('total_value') is not None:
            stored_items = list(instance.items.all())
            if stored_items and attrs['total_value'] != sum((item.total_price for item in stored_items), Decimal('0.00')):
                raise serializers.ValidationError(
                    {'total_value': 'The total of a document with items is the sum of its items; send the items instead'}
                )
        return attrs


class FiscalCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)

    def validate_reason(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("A cancellation reason is required")
        return value


class FiscalShareSerializer(serializers.Serializer):
    CHANNEL_CHOICES = [
        ('email', 'Email'),
        ('whatsapp', 'WhatsApp'),
        ('sms', 'SMS'),
        ('other', 'Other'),
    ]
    channel = serializers.ChoiceField(choices=CHANNEL_CHOICES, required=False, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class FiscalDocumentEventSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = FiscalDocumentEvent
        fields = ['id', 'document', 'document_number', 'action', 'action_display', 'details',
                  'user', 'username', 'created_at']
