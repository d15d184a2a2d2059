from rest_framework import serializers

from .models import Part, StockMovement


class PartSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(max_length=50, required=False, allow_blank=True)
    display_category = serializers.CharField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Part
        fields = ['id', 'name', 'sku', 'category', 'custom_category', 'display_category', 'compatibility',
                  'quantity', 'minimum_stock', 'is_low_stock', 'cost_price', 'selling_price',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_sku(self, value):
        value = (value or '').strip().upper()
        if not value:
            return value
        organization = self.context.get('organization')
        if organization is not None:
            duplicates = Part.objects.filter(organization=organization, sku=value)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError("A part with this SKU already exists")
        return value

    def validate(self, attrs):
        cost = attrs.get('cost_price', getattr(self.instance, 'cost_price', None))
        selling = attrs.get('selling_price', getattr(self.instance, 'selling_price', None))
        if cost is not None and cost < 0:
            raise serializers.ValidationError({'cost_price': 'Cost price cannot be negative'})
        if selling is not None and selling < 0:
            raise serializers.ValidationError({'selling_price': 'Selling price cannot be negative'})

        category = attrs.get('category', getattr(self.instance, 'category', None))
        custom = attrs.get('custom_category', getattr(self.instance, 'custom_category', None))
        if category == 'Outros' and 'custom_category' in attrs and custom:
            attrs['custom_category'] = custom.strip()
        elif category != 'Outros':
            attrs['custom_category'] = None
        return attrs


class StockMovementSerializer(serializers.ModelSerializer):
    part_name = serializers.CharField(source='part.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)

    class Meta:
        model = StockMovement
        fields = ['id', 'part', 'part_name', 'movement_type', 'quantity', 'reason', 'notes',
                  'quantity_after', 'created_by', 'created_by_username', 'created_at']
        read_only_fields = ['part', 'quantity_after', 'created_by', 'created_at']


class StockAdjustmentSerializer(serializers.Serializer):
    movement_type = serializers.ChoiceField(choices=StockMovement.MOVEMENT_TYPE_CHOICES)
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(choices=StockMovement.REASON_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
