"""
Tests for customers: CPF/CNPJ handling, contact links and the customer API
"""
from django.test import TestCase
from rest_framework import status
from repairshop.core.models import AuditLog
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.customers.documents import normalize_document, format_document, contact_links
from repairshop.customers.models import Customer
from repairshop.devices.models import Device
from repairshop.services.models import ServiceOrder


class DocumentHelperTests(TestCase):

    def test_normalize_strips_mask(self):
        self.assertEqual(normalize_document('123.456.789-09', 'cpf'), '12345678909')
        self.assertEqual(normalize_document('12.345.678/0001-95', 'cnpj'), '12345678000195')

    def test_normalize_rejects_wrong_length(self):
        with self.assertRaises(ValueError):
            normalize_document('1234', 'cpf')
        with self.assertRaises(ValueError):
            normalize_document('12345678909', 'cnpj')
        with self.assertRaises(ValueError):
            normalize_document('12345678909', 'rg')

    def test_format_document(self):
        self.assertEqual(format_document('12345678909', 'cpf'), '123.456.789-09')
        self.assertEqual(format_document('12345678000195', 'cnpj'), '12.345.678/0001-95')

    def test_contact_links(self):
        links = contact_links(name='Maria', phone='(11) 98765-4321', email='maria@test.com')
        self.assertEqual(links['email'], 'mailto:maria@test.com')
        self.assertEqual(links['phone'], 'tel:11987654321')
        self.assertEqual(links['sms'], 'sms:11987654321')
        self.assertTrue(links['whatsapp'].startswith('https://wa.me/5511987654321?text='))

    def test_contact_links_without_phone(self):
        links = contact_links(name='Maria', email=None, phone=None)
        self.assertIsNone(links['whatsapp'])
        self.assertIsNone(links['email'])


class CustomerAPITests(TestCase):
    """Customer CRUD scoped to the organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_normalizes_document(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Maria Silva',
            'document': '123.456.789-09',
            'document_type': 'cpf',
            'phone': '11987654321',
            'cep': '01310-100',
            'state': 'sp',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['document'], '12345678909')
        self.assertEqual(response.data['formatted_document'], '123.456.789-09')
        self.assertEqual(response.data['cep'], '01310100')
        self.assertEqual(response.data['state'], 'SP')
        customer = Customer.objects.get(pk=response.data['id'])
        self.assertEqual(customer.organization, self.organization)

    def test_create_company_with_masked_cnpj(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Empresa LTDA',
            'document': '12.345.678/0001-95',
            'document_type': 'cnpj',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['document'], '12345678000195')

    def test_duplicate_document_rejected_in_same_organization(self):
        TestDataFactory.create_customer(self.organization, document='12345678909')
        response = self.client.post('/api/v1/customers/', {
            'name': 'Outra Maria',
            'document': '123.456.789-09',
            'document_type': 'cpf',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('document', response.data)

    def test_same_document_allowed_in_other_organization(self):
        TestDataFactory.create_customer(TestDataFactory.create_organization(), document='12345678909')
        response = self.client.post('/api/v1/customers/', {
            'name': 'Maria',
            'document': '12345678909',
            'document_type': 'cpf',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_invalid_cpf_length(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Maria',
            'document': '123',
            'document_type': 'cpf',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_scoped_and_searchable(self):
        TestDataFactory.create_customer(self.organization, name='Carlos Souza')
        TestDataFactory.create_customer(self.organization, name='Fernanda Lima', document='98765432100')
        TestDataFactory.create_customer(TestDataFactory.create_organization(), name='Carlos Externo')

        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/customers/', {'search': 'carlos'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/customers/', {'search': '987.654.321-00'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Fernanda Lima')

    def test_other_organization_customer_not_found(self):
        foreign = TestDataFactory.create_customer(TestDataFactory.create_organization())
        response = self.client.get(f'/api/v1/customers/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/customers/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Customer.objects.filter(pk=foreign.pk).exists())

    def test_update_customer(self):
        customer = TestDataFactory.create_customer(self.organization)
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'city': 'Campinas'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['city'], 'Campinas')

    def test_delete_removes_devices_and_services(self):
        customer = TestDataFactory.create_customer(self.organization)
        device = TestDataFactory.create_device(customer)
        TestDataFactory.create_service(device)

        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Device.objects.filter(customer_id=customer.id).exists())
        self.assertFalse(ServiceOrder.objects.filter(customer_id=customer.id).exists())
        log = AuditLog.objects.get(model_name='Customer', action='delete')
        self.assertEqual(log.changes, {'devices_deleted': 1, 'services_deleted': 1})

    def test_contact_links_endpoint(self):
        customer = TestDataFactory.create_customer(self.organization, name='Ana', phone='11912345678', email='ana@test.com')
        response = self.client.get(f'/api/v1/customers/{customer.id}/contact/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['links']['phone'], 'tel:11912345678')
        self.assertEqual(response.data['links']['email'], 'mailto:ana@test.com')

    def test_history(self):
        customer = TestDataFactory.create_customer(self.organization)
        device = TestDataFactory.create_device(customer)
        TestDataFactory.create_service(device, status='pending')
        TestDataFactory.create_service(device, status='delivered')

        response = self.client.get(f'/api/v1/customers/{customer.id}/history/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['devices_count'], 1)
        self.assertEqual(response.data['summary']['services_count'], 2)
        self.assertEqual(response.data['summary']['open_services'], 1)
