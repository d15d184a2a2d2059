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
    ]

    operations = [
        migrations.CreateModel(
            name='FiscalDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('nf', 'NF-e'), ('nfce', 'NFC-e'), ('nfs', 'NFS-e')], max_length=5)),
                ('number', models.CharField(max_length=30)),
                ('series', models.PositiveSmallIntegerField(default=1)),
                ('sequence', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending'), ('authorized', 'Authorized'), ('canceled', 'Canceled')], default='draft', max_length=20)),
                ('access_key', models.CharField(max_length=44)),
                ('customer_name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, null=True)),
                ('total_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('issue_date', models.DateTimeField()),
                ('authorization_date', models.DateTimeField(blank=True, null=True)),
                ('cancelation_date', models.DateTimeField(blank=True, null=True)),
                ('cancel_reason', models.TextField(blank=True, null=True)),
                ('qr_code', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fiscal_documents', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fiscal_documents', to='customers.customer')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='fiscal_documents', to='organizations.organization')),
                ('reissued_from', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reissues', to='fiscal.fiscaldocument')),
            ],
            options={
                'db_table': 'fiscal_documents',
                'ordering': ['-issue_date', '-id'],
                'indexes': [
                    models.Index(fields=['organization', 'status'], name='idx_fiscal_org_status'),
                    models.Index(fields=['organization', '-issue_date'], name='idx_fiscal_org_issue'),
                    models.Index(fields=['access_key'], name='idx_fiscal_access_key'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('organization', 'type', 'series', 'sequence'), name='uniq_fiscal_doc_sequence'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FiscalDocumentItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(max_length=255)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('1.000'), max_digits=10)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='fiscal.fiscaldocument')),
            ],
            options={
                'db_table': 'fiscal_document_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='FiscalDocumentEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('document_number', models.CharField(max_length=30)),
                ('action', models.CharField(choices=[('issued', 'Issued'), ('authorized', 'Authorized'), ('canceled', 'Canceled'), ('reissued', 'Reissued'), ('status_checked', 'Status checked'), ('printed', 'Printed'), ('downloaded', 'Downloaded'), ('email_sent', 'Email sent'), ('shared_whatsapp', 'Shared via WhatsApp'), ('shared_sms', 'Shared via SMS'), ('shared_other', 'Shared')], max_length=30)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('document', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='fiscal.fiscaldocument')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='fiscal_events', to='organizations.organization')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fiscal_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'fiscal_document_logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
