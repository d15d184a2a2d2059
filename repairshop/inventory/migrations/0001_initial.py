import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('organizations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Part',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('sku', models.CharField(max_length=50)),
                ('category', models.CharField(choices=[('Telas', 'Telas'), ('Baterias', 'Baterias'), ('Conectores', 'Conectores'), ('Placas', 'Placas'), ('Tampas', 'Tampas'), ('Câmeras', 'Câmeras'), ('Alto-falantes', 'Alto-falantes'), ('Outros', 'Outros')], default='Outros', max_length=50)),
                ('custom_category', models.CharField(blank=True, max_length=100, null=True)),
                ('compatibility', models.CharField(blank=True, help_text='Compatible device models', max_length=255, null=True)),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('minimum_stock', models.PositiveIntegerField(default=1)),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('selling_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='parts', to='organizations.organization')),
            ],
            options={
                'db_table': 'parts',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['organization', 'category'], name='idx_part_org_category')],
                'constraints': [models.UniqueConstraint(fields=('organization', 'sku'), name='uniq_part_org_sku')],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_type', models.CharField(choices=[('in', 'Stock In'), ('out', 'Stock Out')], max_length=10)),
                ('quantity', models.PositiveIntegerField()),
                ('reason', models.CharField(choices=[('purchase', 'Purchase'), ('service', 'Used in service'), ('damaged', 'Damaged'), ('correction', 'Correction'), ('other', 'Other')], max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('quantity_after', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_movements', to=settings.AUTH_USER_MODEL)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_movements', to='organizations.organization')),
                ('part', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to='inventory.part')),
            ],
            options={
                'db_table': 'stock_movements',
                'ordering': ['-created_at'],
            },
        ),
    ]
