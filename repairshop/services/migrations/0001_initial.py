import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('organizations', '0001_initial'),
        ('customers', '0001_initial'),
        ('devices', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ServiceOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('service_type', models.CharField(choices=[('screen_repair', 'Troca de Tela'), ('battery_replacement', 'Troca de Bateria'), ('water_damage', 'Dano por Água'), ('software_issue', 'Problema de Software'), ('charging_port', 'Porta de Carregamento'), ('button_repair', 'Reparo de Botões'), ('camera_repair', 'Reparo de Câmera'), ('mic_speaker_repair', 'Reparo de Microfone/Alto-falante'), ('diagnostics', 'Diagnóstico Completo'), ('unlocking', 'Desbloqueio'), ('data_recovery', 'Recuperação de Dados'), ('other', 'Outros Serviços')], max_length=30)),
                ('other_service_description', models.CharField(blank=True, max_length=255, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('in_progress', 'Em andamento'), ('waiting_parts', 'Aguardando peças'), ('completed', 'Concluído'), ('delivered', 'Entregue'), ('canceled', 'Cancelado')], default='pending', max_length=20)),
                ('priority', models.CharField(choices=[('low', 'Baixa'), ('normal', 'Normal'), ('high', 'Alta'), ('urgent', 'Urgente')], default='normal', max_length=10)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('estimated_completion_date', models.DateField(blank=True, null=True)),
                ('completion_date', models.DateTimeField(blank=True, null=True)),
                ('warranty_period', models.PositiveSmallIntegerField(choices=[(1, '1 mês'), (3, '3 meses'), (6, '6 meses'), (12, '12 meses')], default=3, help_text='Warranty in months')),
                ('warranty_until', models.DateField(blank=True, null=True)),
                ('observations', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_services', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='service_orders', to='customers.customer')),
                ('device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='service_orders', to='devices.device')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='service_orders', to='organizations.organization')),
                ('technician', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_services', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'service_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['organization', 'status'], name='idx_service_org_status'),
                    models.Index(fields=['organization', '-created_at'], name='idx_service_org_created'),
                ],
            },
        ),
    ]
