from decimal import Decimal

from django.conf import settings
from django.db import models


class FiscalDocument(models.Model):
    """Simulated NF-e / NFC-e / NFS-e document"""
    TYPE_CHOICES = [
        ('nf', 'NF-e'),
        ('nfce', 'NFC-e'),
        ('nfs', 'NFS-e'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending'),
        ('authorized', 'Authorized'),
        ('canceled', 'Canceled'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='fiscal_documents')
    type = models.CharField(max_length=5, choices=TYPE_CHOICES)
    number = models.CharField(max_length=30)
    series = models.PositiveSmallIntegerField(default=1)
    sequence = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    access_key = models.CharField(max_length=44)
    customer = models.ForeignKey(
        'customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='fiscal_documents'
    )
    customer_name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    total_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    issue_date = models.DateTimeField()
    authorization_date = models.DateTimeField(blank=True, null=True)
    cancelation_date = models.DateTimeField(blank=True, null=True)
    cancel_reason = models.TextField(blank=True, null=True)
    reissued_from = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='reissues'
    )
    qr_code = models.CharField(max_length=255, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='fiscal_documents'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.number} ({self.get_status_display()})"

    class Meta:
        db_table = 'fiscal_documents'
        ordering = ['-issue_date', '-id']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'type', 'series', 'sequence'], name='uniq_fiscal_doc_sequence'),
        ]
        indexes = [
            models.Index(fields=['organization', 'status'], name='idx_fiscal_org_status'),
            models.Index(fields=['organization', '-issue_date'], name='idx_fiscal_org_issue'),
            models.Index(fields=['access_key'], name='idx_fiscal_access_key'),
        ]


class FiscalDocumentItem(models.Model):
    """Line item of a fiscal document"""
    document = models.ForeignKey(FiscalDocument, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('1.000'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    def save(self, *args, **kwargs):
        self.total_price = (self.quantity * self.unit_price).quantize(Decimal('0.01'))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} x {self.quantity}"

    class Meta:
        db_table = 'fiscal_document_items'
        ordering = ['id']


class FiscalDocumentEvent(models.Model):
    """History of what happened to a fiscal document"""
    ACTION_CHOICES = [
        ('issued', 'Issued'),
        ('authorized', 'Authorized'),
        ('canceled', 'Canceled'),
        ('reissued', 'Reissued'),
        ('status_checked', 'Status checked'),
        ('printed', 'Printed'),
        ('downloaded', 'Downloaded'),
        ('email_sent', 'Email sent'),
        ('shared_whatsapp', 'Shared via WhatsApp'),
        ('shared_sms', 'Shared via SMS'),
        ('shared_other', 'Shared'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='fiscal_events')
    document = models.ForeignKey(FiscalDocument, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    document_number = models.CharField(max_length=30)
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    details = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='fiscal_events')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.document_number} {self.action}"

    class Meta:
        db_table = 'fiscal_document_logs'
        ordering = ['-created_at', '-id']
