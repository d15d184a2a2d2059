"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from repairshop.organizations.models import Organization
from repairshop.customers.models import Customer
from repairshop.devices.models import Device
from repairshop.services.models import ServiceOrder
from repairshop.inventory.models import Part
from repairshop.fiscal.lifecycle import create_document
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_digits(length):
        return ''.join(random.choices(string.digits, k=length))

    @staticmethod
    def create_organization(name=None):
        """Create a test organization"""
        if not name:
            name = f'Org_{TestDataFactory.random_string(6)}'
        return Organization.objects.create(name=name)

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', organization=None, role='attendant',
                    is_staff=False, is_superuser=False):
        """Create a test user attached to ``organization`` (None leaves it unattached)"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            organization=organization,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_admin(organization, username=None):
        """Create an organization admin"""
        return TestDataFactory.create_user(username=username, organization=organization, role='admin')

    @staticmethod
    def create_customer(organization, name=None, phone=None, email=None, document=None, document_type='cpf'):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'119{random.randint(10000000, 99999999)}'
        if not email:
            email = f'{name.lower()}@test.com'
        if not document:
            document = TestDataFactory.random_digits(11 if document_type == 'cpf' else 14)
        return Customer.objects.create(
            organization=organization,
            name=name,
            phone=phone,
            email=email,
            document=document,
            document_type=document_type,
            city='São Paulo',
            state='SP'
        )

    @staticmethod
    def create_device(customer, brand='Apple', model='iPhone 12', device_type='smartphone', **kwargs):
        """Create a test device for a customer"""
        return Device.objects.create(
            organization=customer.organization,
            customer=customer,
            brand=brand,
            model=model,
            device_type=device_type,
            **kwargs
        )

    @staticmethod
    def create_service(device, service_type='screen_repair', status='pending', price=None, created_by=None, **kwargs):
        """Create a test service order for a device"""
        if price is None:
            price = Decimal('250.00')
        return ServiceOrder.objects.create(
            organization=device.organization,
            customer=device.customer,
            device=device,
            service_type=service_type,
            status=status,
            price=price,
            created_by=created_by,
            **kwargs
        )

    @staticmethod
    def create_part(organization, name=None, sku=None, quantity=10, minimum_stock=2, category='Telas'):
        """Create a test part"""
        if not name:
            name = f'Part_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        return Part.objects.create(
            organization=organization,
            name=name,
            sku=sku,
            category=category,
            quantity=quantity,
            minimum_stock=minimum_stock,
            cost_price=Decimal('50.00'),
            selling_price=Decimal('120.00')
        )

    @staticmethod
    def create_fiscal_document(organization, doc_type='nfce', customer_name='Cliente Teste', total_value=None,
                               issue=False, user=None, **kwargs):
        """Create a numbered fiscal document (draft unless ``issue``)"""
        if total_value is None:
            total_value = Decimal('100.00')
        return create_document(
            organization=organization,
            doc_type=doc_type,
            customer_name=customer_name,
            user=user,
            total_value=total_value,
            issue=issue,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
