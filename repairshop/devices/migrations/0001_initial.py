import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('organizations', '0001_initial'),
        ('customers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Device',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('device_type', models.CharField(choices=[('smartphone', 'Smartphone'), ('tablet', 'Tablet'), ('notebook', 'Notebook'), ('other', 'Other')], default='smartphone', max_length=20)),
                ('brand', models.CharField(max_length=100)),
                ('model', models.CharField(max_length=100)),
                ('serial_number', models.CharField(blank=True, max_length=100, null=True)),
                ('imei', models.CharField(blank=True, max_length=20, null=True)),
                ('color', models.CharField(blank=True, max_length=50, null=True)),
                ('condition', models.CharField(choices=[('good', 'Good'), ('minor_issues', 'Minor issues'), ('critical_issues', 'Critical issues')], default='good', max_length=20)),
                ('password_type', models.CharField(choices=[('none', 'None'), ('pin', 'PIN'), ('pattern', 'Pattern'), ('password', 'Password')], default='none', max_length=10)),
                ('password', models.CharField(blank=True, help_text='Pattern passwords are comma separated dot indices (0-8)', max_length=100, null=True)),
                ('observations', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='devices', to='customers.customer')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='devices', to='organizations.organization')),
            ],
            options={
                'db_table': 'devices',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['organization', 'customer'], name='idx_device_org_customer'),
                    models.Index(fields=['imei'], name='idx_device_imei'),
                ],
            },
        ),
    ]
