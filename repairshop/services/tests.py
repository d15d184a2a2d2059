"""
Tests for service orders: status transitions, warranty dates, receipts and the API
"""
from datetime import date, datetime
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from repairshop.core.models import AuditLog
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.notifications.models import Notification
from repairshop.services.receipts import render_service_receipt, format_currency
from repairshop.services.status import add_months, apply_status


class StatusHelperTests(TestCase):

    def setUp(self):
        organization = TestDataFactory.create_organization()
        customer = TestDataFactory.create_customer(organization)
        self.service = TestDataFactory.create_service(TestDataFactory.create_device(customer), warranty_period=3)

    def test_add_months_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))
        self.assertEqual(add_months(date(2024, 3, 10), -3), date(2023, 12, 10))

    def test_completed_stamps_completion_date(self):
        when = timezone.make_aware(datetime(2024, 5, 10, 15, 0))
        old = apply_status(self.service, 'completed', when=when)
        self.assertEqual(old, 'pending')
        self.assertEqual(self.service.completion_date, when)
        self.assertIsNone(self.service.warranty_until)

    def test_delivered_sets_warranty(self):
        when = timezone.make_aware(datetime(2024, 5, 10, 15, 0))
        apply_status(self.service, 'delivered', when=when)
        self.assertEqual(self.service.completion_date, when)
        self.assertEqual(self.service.warranty_until, date(2024, 8, 10))

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            apply_status(self.service, 'lost')

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal('1234.5')), 'R$ 1.234,50')
        self.assertEqual(format_currency(None), 'R$ 0,00')


class ServiceOrderAPITests(TestCase):
    """Service order API scoped to the organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.technician = TestDataFactory.create_user(organization=self.organization, role='technician')
        self.customer = TestDataFactory.create_customer(self.organization, name='Maria Silva')
        self.device = TestDataFactory.create_device(self.customer)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _payload(self, **overrides):
        payload = {
            'customer': self.customer.id,
            'device': self.device.id,
            'service_type': 'screen_repair',
            'description': 'Tela trincada',
            'priority': 'high',
            'price': '350.00',
            'technician': self.technician.id,
        }
        payload.update(overrides)
        return payload

    def test_create_service(self):
        response = self.client.post('/api/v1/services/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['service_name'], 'Troca de Tela')
        self.assertEqual(response.data['warranty_period'], 3)

    def test_status_cannot_be_set_on_create(self):
        response = self.client.post('/api/v1/services/', self._payload(status='delivered'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')

    def test_other_type_requires_description(self):
        response = self.client.post('/api/v1/services/', self._payload(service_type='other'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/services/',
                                    self._payload(service_type='other', other_service_description='Troca de lente'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['service_name'], 'Troca de lente')

    def test_device_must_belong_to_customer(self):
        other_customer = TestDataFactory.create_customer(self.organization)
        response = self.client.post('/api/v1/services/', self._payload(customer=other_customer.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('device', response.data)

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/services/', self._payload(price='-10.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_from_other_organization_rejected(self):
        outsider = TestDataFactory.create_user(organization=TestDataFactory.create_organization())
        response = self.client.post('/api/v1/services/', self._payload(technician=outsider.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_service(self.device, status='pending')
        TestDataFactory.create_service(self.device, status='in_progress', service_type='battery_replacement')
        TestDataFactory.create_service(self.device, status='delivered')

        response = self.client.get('/api/v1/services/', {'status': 'pending,in_progress'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/services/', {'service_type': 'battery_replacement'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/services/', {'search': 'maria'})
        self.assertEqual(response.data['count'], 3)

    def test_list_ordering_by_price(self):
        TestDataFactory.create_service(self.device, price=Decimal('100.00'))
        TestDataFactory.create_service(self.device, price=Decimal('300.00'))
        response = self.client.get('/api/v1/services/', {'ordering': 'price'})
        prices = [item['price'] for item in response.data['results']]
        self.assertEqual(prices, ['100.00', '300.00'])

    def test_update_status_to_delivered(self):
        service = TestDataFactory.create_service(self.device, warranty_period=6)
        response = self.client.post(f'/api/v1/services/{service.id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'delivered')
        self.assertIsNotNone(response.data['completion_date'])
        self.assertEqual(
            response.data['warranty_until'],
            add_months(timezone.localdate(), 6).isoformat()
        )
        log = AuditLog.objects.get(action='status_change', model_name='ServiceOrder')
        self.assertEqual(log.changes['status'], {'old': 'pending', 'new': 'delivered'})

    def test_status_change_notifies_admins(self):
        service = TestDataFactory.create_service(self.device)
        self.client.post(f'/api/v1/services/{service.id}/status/', {'status': 'in_progress'}, format='json')
        self.assertTrue(Notification.objects.filter(user=self.admin, type='service', related_id=service.id).exists())

    def test_invalid_status(self):
        service = TestDataFactory.create_service(self.device)
        response = self.client.post(f'/api/v1/services/{service.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_organization_service_not_found(self):
        foreign_customer = TestDataFactory.create_customer(TestDataFactory.create_organization())
        service = TestDataFactory.create_service(TestDataFactory.create_device(foreign_customer))
        response = self.client.get(f'/api/v1/services/{service.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.post(f'/api/v1/services/{service.id}/status/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_receipt(self):
        service = TestDataFactory.create_service(self.device, price=Decimal('1234.50'))
        response = self.client.get(f'/api/v1/services/{service.id}/receipt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/html; charset=utf-8')
        html = response.content.decode('utf-8')
        self.assertIn(f'ORDEM DE SERVIÇO #{service.id}', html)
        self.assertIn('Maria Silva', html)
        self.assertIn('R$ 1.234,50', html)

    def test_render_receipt_directly(self):
        service = TestDataFactory.create_service(self.device, service_type='battery_replacement')
        html = render_service_receipt(service)
        self.assertIn('Troca de Bateria', html)
        self.assertIn('80mm', html)
