from django.db import models

from .documents import format_document


class Customer(models.Model):
    """Repair shop customers (people or companies)"""
    DOCUMENT_TYPE_CHOICES = [
        ('cpf', 'CPF'),
        ('cnpj', 'CNPJ'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='customers')
    name = models.CharField(max_length=200)
    document = models.CharField(max_length=14, help_text="CPF or CNPJ digits only")
    document_type = models.CharField(max_length=4, choices=DOCUMENT_TYPE_CHOICES, default='cpf')
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    cep = models.CharField(max_length=9, blank=True, null=True)
    street = models.CharField(max_length=200, blank=True, null=True)
    number = models.CharField(max_length=20, blank=True, null=True)
    complement = models.CharField(max_length=100, blank=True, null=True)
    neighborhood = models.CharField(max_length=100, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    state = models.CharField(max_length=2, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def formatted_document(self):
        return format_document(self.document, self.document_type)

    @property
    def full_address(self):
        parts = [self.street, self.number, self.complement, self.neighborhood]
        line = ', '.join(p for p in parts if p)
        city = ' - '.join(p for p in [self.city, self.state] if p)
        return ', '.join(p for p in [line, city, self.cep] if p)

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'name'], name='idx_customer_org_name'),
            models.Index(fields=['organization', 'document'], name='idx_customer_org_document'),
        ]
