"""
Tests for devices: unlock patterns and the device API
"""
from django.test import TestCase
from rest_framework import status
from repairshop.core.models import AuditLog
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.devices.patterns import parse_pattern, format_pattern


class PatternTests(TestCase):

    def test_parse_pattern(self):
        self.assertEqual(parse_pattern('0,4,8'), [0, 4, 8])
        self.assertEqual(parse_pattern(' 2, 1 ,0'), [2, 1, 0])
        self.assertEqual(format_pattern([6, 3, 0]), '6,3,0')

    def test_invalid_patterns(self):
        for value in ['', None, '0,9', '1,1,2', 'a,b', '-1,2']:
            with self.assertRaises(ValueError):
                parse_pattern(value)


class DeviceAPITests(TestCase):
    """Device registration scoped to the organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.customer = TestDataFactory.create_customer(self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _payload(self, **overrides):
        payload = {
            'customer': self.customer.id,
            'device_type': 'smartphone',
            'brand': 'Samsung',
            'model': 'Galaxy A52',
            'imei': '356938035643809',
            'condition': 'minor_issues',
            'password_type': 'none',
        }
        payload.update(overrides)
        return payload

    def test_create_device(self):
        response = self.client.post('/api/v1/devices/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], self.customer.name)
        self.assertIsNone(response.data['password'])

    def test_invalid_imei(self):
        response = self.client.post('/api/v1/devices/', self._payload(imei='12345'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('imei', response.data)

    def test_pattern_password_is_normalized(self):
        response = self.client.post('/api/v1/devices/',
                                    self._payload(password_type='pattern', password='0, 1, 2, 5, 8'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['password'], '0,1,2,5,8')

    def test_pattern_with_repeated_dot_rejected(self):
        response = self.client.post('/api/v1/devices/',
                                    self._payload(password_type='pattern', password='0,1,0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pin_must_be_digits(self):
        response = self.client.post('/api/v1/devices/', self._payload(password_type='pin', password='12a4'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/devices/', self._payload(password_type='pin', password='1234'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_password_type_requires_password(self):
        response = self.client.post('/api/v1/devices/', self._payload(password_type='password'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_from_other_organization_rejected(self):
        foreign = TestDataFactory.create_customer(TestDataFactory.create_organization())
        response = self.client.post('/api/v1/devices/', self._payload(customer=foreign.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer', response.data)

    def test_filter_by_customer(self):
        other_customer = TestDataFactory.create_customer(self.organization)
        TestDataFactory.create_device(self.customer)
        TestDataFactory.create_device(other_customer, brand='Xiaomi', model='Redmi Note 10')
        response = self.client.get('/api/v1/devices/', {'customer': self.customer.id})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/devices/', {'search': 'redmi'})
        self.assertEqual(response.data['count'], 1)

    def test_password_not_written_to_audit_log(self):
        device = TestDataFactory.create_device(self.customer)
        response = self.client.patch(f'/api/v1/devices/{device.id}/',
                                     {'password_type': 'pin', 'password': '4321'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(model_name='Device', action='update')
        self.assertNotIn('password', log.changes)

    def test_other_organization_device_not_found(self):
        foreign_customer = TestDataFactory.create_customer(TestDataFactory.create_organization())
        device = TestDataFactory.create_device(foreign_customer)
        response = self.client.get(f'/api/v1/devices/{device.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
