from rest_framework import serializers

from .documents import normalize_document, only_digits, contact_links
from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    document = serializers.CharField(max_length=20)
    formatted_document = serializers.CharField(read_only=True)
    full_address = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'name', 'document', 'document_type', 'formatted_document', 'email', 'phone',
                  'cep', 'street', 'number', 'complement', 'neighborhood', 'city', 'state',
                  'full_address', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_cep(self, value):
        if not value:
            return value
        digits = only_digits(value)
        if len(digits) != 8:
            raise serializers.ValidationError("CEP must have 8 digits")
        return digits

    def validate_state(self, value):
        return value.upper() if value else value

    def validate(self, attrs):
        document_type = attrs.get('document_type', getattr(self.instance, 'document_type', 'cpf'))
        document = attrs.get('document', getattr(self.instance, 'document', None))
        if 'document' in attrs or 'document_type' in attrs:
            try:
                attrs['document'] = normalize_document(document, document_type)
            except ValueError as e:
                raise serializers.ValidationError({'document': str(e)})

            organization = self.context.get('organization')
            if organization is not None:
                duplicates = Customer.objects.filter(organization=organization, document=attrs['document'])
                if self.instance is not None:
                    duplicates = duplicates.exclude(pk=self.instance.pk)
                if duplicates.exists():
                    raise serializers.ValidationError({'document': 'A customer with this document already exists'})
        return attrs


class CustomerContactSerializer(serializers.ModelSerializer):
    links = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = ['id', 'name', 'phone', 'email', 'links']

    def get_links(self, obj):
        return contact_links(name=obj.name, phone=obj.phone, email=obj.email)
