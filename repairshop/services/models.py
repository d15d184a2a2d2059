from decimal import Decimal

from django.conf import settings
from django.db import models


class ServiceOrder(models.Model):
    """Repair service order for a customer's device"""
    SERVICE_TYPE_CHOICES = [
        ('screen_repair', 'Troca de Tela'),
        ('battery_replacement', 'Troca de Bateria'),
        ('water_damage', 'Dano por Água'),
        ('software_issue', 'Problema de Software'),
        ('charging_port', 'Porta de Carregamento'),
        ('button_repair', 'Reparo de Botões'),
        ('camera_repair', 'Reparo de Câmera'),
        ('mic_speaker_repair', 'Reparo de Microfone/Alto-falante'),
        ('diagnostics', 'Diagnóstico Completo'),
        ('unlocking', 'Desbloqueio'),
        ('data_recovery', 'Recuperação de Dados'),
        ('other', 'Outros Serviços'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('in_progress', 'Em andamento'),
        ('waiting_parts', 'Aguardando peças'),
        ('completed', 'Concluído'),
        ('delivered', 'Entregue'),
        ('canceled', 'Cancelado'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Baixa'),
        ('normal', 'Normal'),
        ('high', 'Alta'),
        ('urgent', 'Urgente'),
    ]
    WARRANTY_CHOICES = [
        (1, '1 mês'),
        (3, '3 meses'),
        (6, '6 meses'),
        (12, '12 meses'),
    ]
    OPEN_STATUSES = ['pending', 'in_progress', 'waiting_parts']

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='service_orders')
    customer = models.ForeignKey('customers.Customer', on_delete=models.CASCADE, related_name='service_orders')
    device = models.ForeignKey('devices.Device', on_delete=models.CASCADE, related_name='service_orders')
    service_type = models.CharField(max_length=30, choices=SERVICE_TYPE_CHOICES)
    other_service_description = models.CharField(max_length=255, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    technician = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_services'
    )
    estimated_completion_date = models.DateField(blank=True, null=True)
    completion_date = models.DateTimeField(blank=True, null=True)
    warranty_period = models.PositiveSmallIntegerField(choices=WARRANTY_CHOICES, default=3, help_text="Warranty in months")
    warranty_until = models.DateField(blank=True, null=True)
    observations = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_services'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"OS #{self.pk} - {self.service_name}"

    @property
    def service_name(self):
        if self.service_type == 'other':
            return self.other_service_description or self.get_service_type_display()
        return self.get_service_type_display()

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    class Meta:
        db_table = 'service_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'status'], name='idx_service_org_status'),
            models.Index(fields=['organization', '-created_at'], name='idx_service_org_created'),
        ]
