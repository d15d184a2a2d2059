from decimal import Decimal

from django.conf import settings
from django.db import models


class Part(models.Model):
    """Spare part kept in stock"""
    CATEGORY_CHOICES = [
        ('Telas', 'Telas'),
        ('Baterias', 'Baterias'),
        ('Conectores', 'Conectores'),
        ('Placas', 'Placas'),
        ('Tampas', 'Tampas'),
        ('Câmeras', 'Câmeras'),
        ('Alto-falantes', 'Alto-falantes'),
        ('Outros', 'Outros'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='parts')
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=50)
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default='Outros')
    custom_category = models.CharField(max_length=100, blank=True, null=True)
    compatibility = models.CharField(max_length=255, blank=True, null=True, help_text="Compatible device models")
    quantity = models.PositiveIntegerField(default=0)
    minimum_stock = models.PositiveIntegerField(default=1)
    cost_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    selling_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def display_category(self):
        if self.category == 'Outros' and self.custom_category:
            return self.custom_category
        return self.category

    @property
    def is_low_stock(self):
        return self.quantity <= self.minimum_stock

    class Meta:
        db_table = 'parts'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'sku'], name='uniq_part_org_sku'),
        ]
        indexes = [
            models.Index(fields=['organization', 'category'], name='idx_part_org_category'),
        ]


class StockMovement(models.Model):
    """Stock in/out movements for a part"""
    MOVEMENT_TYPE_CHOICES = [
        ('in', 'Stock In'),
        ('out', 'Stock Out'),
    ]

    REASON_CHOICES = [
        ('purchase', 'Purchase'),
        ('service', 'Used in service'),
        ('damaged', 'Damaged'),
        ('correction', 'Correction'),
        ('other', 'Other'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='stock_movements')
    part = models.ForeignKey(Part, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=10, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    notes = models.TextField(blank=True)
    quantity_after = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='stock_movements')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.movement_type} {self.quantity} x {self.part.name}"

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-created_at']
