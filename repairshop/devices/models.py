from django.db import models


class Device(models.Model):
    """Customer device brought in for repair"""
    DEVICE_TYPE_CHOICES = [
        ('smartphone', 'Smartphone'),
        ('tablet', 'Tablet'),
        ('notebook', 'Notebook'),
        ('other', 'Other'),
    ]
    CONDITION_CHOICES = [
        ('good', 'Good'),
        ('minor_issues', 'Minor issues'),
        ('critical_issues', 'Critical issues'),
    ]
    PASSWORD_TYPE_CHOICES = [
        ('none', 'None'),
        ('pin', 'PIN'),
        ('pattern', 'Pattern'),
        ('password', 'Password'),
    ]

    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='devices')
    customer = models.ForeignKey('customers.Customer', on_delete=models.CASCADE, related_name='devices')
    device_type = models.CharField(max_length=20, choices=DEVICE_TYPE_CHOICES, default='smartphone')
    brand = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    serial_number = models.CharField(max_length=100, blank=True, null=True)
    imei = models.CharField(max_length=20, blank=True, null=True)
    color = models.CharField(max_length=50, blank=True, null=True)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default='good')
    password_type = models.CharField(max_length=10, choices=PASSWORD_TYPE_CHOICES, default='none')
    password = models.CharField(max_length=100, blank=True, null=True, help_text="Pattern passwords are comma separated dot indices (0-8)")
    observations = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.brand} {self.model}"

    class Meta:
        db_table = 'devices'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['organization', 'customer'], name='idx_device_org_customer'),
            models.Index(fields=['imei'], name='idx_device_imei'),
        ]
