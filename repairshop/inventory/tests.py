"""
Tests for inventory: SKU generation, stock movements, low stock alerts and the parts API
"""
from django.test import TestCase
from rest_framework import status
from repairshop.core.models import AuditLog
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.inventory.models import StockMovement
from repairshop.inventory.stock import adjust_stock, InsufficientStock
from repairshop.inventory.utils import get_prefix_for_part, generate_sku
from repairshop.notifications.models import Notification


class SkuTests(TestCase):

    def setUp(self):
        self.organization = TestDataFactory.create_organization()

    def test_prefix_from_category_or_name(self):
        self.assertEqual(get_prefix_for_part('Tela iPhone 11', 'Telas'), 'TEL')
        self.assertEqual(get_prefix_for_part('Película 3D', 'Outros'), 'PEL')
        self.assertEqual(get_prefix_for_part('Câmera traseira', 'Câmeras'), 'CAM')
        self.assertEqual(get_prefix_for_part('X', None), 'XXX')

    def test_generate_sku_is_sequential_per_organization(self):
        self.assertEqual(generate_sku(self.organization, 'Tela', 'Telas'), 'TEL-0001')
        TestDataFactory.create_part(self.organization, sku='TEL-0001')
        TestDataFactory.create_part(self.organization, sku='TEL-0007')
        self.assertEqual(generate_sku(self.organization, 'Tela', 'Telas'), 'TEL-0008')

        other = TestDataFactory.create_organization()
        self.assertEqual(generate_sku(other, 'Tela', 'Telas'), 'TEL-0001')


class StockAdjustmentTests(TestCase):

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.part = TestDataFactory.create_part(self.organization, quantity=5, minimum_stock=2)

    def test_stock_in(self):
        part, movement, low_stock = adjust_stock(self.part, 'in', 3, 'purchase', user=self.user)
        self.assertEqual(part.quantity, 8)
        self.assertEqual(movement.quantity_after, 8)
        self.assertEqual(movement.created_by, self.user)
        self.assertFalse(low_stock)

    def test_stock_out_reaching_minimum_is_low(self):
        part, movement, low_stock = adjust_stock(self.part, 'out', 3, 'service')
        self.assertEqual(part.quantity, 2)
        self.assertTrue(low_stock)

    def test_stock_out_above_minimum(self):
        _, _, low_stock = adjust_stock(self.part, 'out', 1, 'service')
        self.assertFalse(low_stock)

    def test_insufficient_stock(self):
        with self.assertRaises(InsufficientStock):
            adjust_stock(self.part, 'out', 6, 'service')
        self.part.refresh_from_db()
        self.assertEqual(self.part.quantity, 5)
        self.assertEqual(StockMovement.objects.count(), 0)


class PartAPITests(TestCase):
    """Parts API scoped to the organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_part_generates_sku(self):
        response = self.client.post('/api/v1/parts/', {
            'name': 'Bateria Samsung S21',
            'category': 'Baterias',
            'quantity': 4,
            'minimum_stock': 2,
            'cost_price': '80.00',
            'selling_price': '150.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sku'], 'BAT-0001')

    def test_duplicate_sku_rejected(self):
        TestDataFactory.create_part(self.organization, sku='SCR-IP11')
        response = self.client.post('/api/v1/parts/', {'name': 'Tela', 'sku': 'scr-ip11'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data)

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/parts/', {'name': 'Tela', 'cost_price': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filters(self):
        TestDataFactory.create_part(self.organization, name='Tela iPhone 11', quantity=1, minimum_stock=5)
        TestDataFactory.create_part(self.organization, name='Bateria', quantity=10, minimum_stock=2, category='Baterias')
        TestDataFactory.create_part(TestDataFactory.create_organization(), name='Tela Externa', quantity=0)

        response = self.client.get('/api/v1/parts/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/parts/', {'low_stock': 'true'})
        self.assertEqual([item['name'] for item in response.data['results']], ['Tela iPhone 11'])

        response = self.client.get('/api/v1/parts/', {'category': 'Baterias'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/parts/', {'search': 'tela'})
        self.assertEqual(response.data['count'], 1)

    def test_adjust_stock_endpoint(self):
        part = TestDataFactory.create_part(self.organization, quantity=3, minimum_stock=1)
        response = self.client.post(f'/api/v1/parts/{part.id}/adjust-stock/', {
            'movement_type': 'out',
            'quantity': 2,
            'reason': 'service',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['part']['quantity'], 1)
        self.assertTrue(response.data['low_stock'])

        log = AuditLog.objects.get(action='stock_adjust')
        self.assertEqual(log.changes['quantity'], {'old': 3, 'new': 1})
        self.assertEqual(log.changes['moved'], 2)

        self.assertTrue(Notification.objects.filter(user=self.user, type='inventory').exists())
        self.assertTrue(Notification.objects.filter(user=self.admin, type='inventory').exists())

    def test_adjust_stock_insufficient(self):
        part = TestDataFactory.create_part(self.organization, quantity=1)
        response = self.client.post(f'/api/v1/parts/{part.id}/adjust-stock/', {
            'movement_type': 'out',
            'quantity': 5,
            'reason': 'service',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'insufficient_stock')

    def test_movements_listed(self):
        part = TestDataFactory.create_part(self.organization, quantity=3)
        adjust_stock(part, 'in', 2, 'purchase', user=self.user)
        adjust_stock(part, 'out', 1, 'damaged', user=self.user)
        response = self.client.get(f'/api/v1/parts/{part.id}/movements/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/stock-movements/')
        self.assertEqual(response.data['count'], 2)

    def test_categories_include_custom(self):
        part = TestDataFactory.create_part(self.organization, category='Outros')
        part.custom_category = 'Películas'
        part.save()
        response = self.client.get('/api/v1/parts/categories/')
        self.assertIn('Telas', response.data['categories'])
        self.assertIn('Películas', response.data['categories'])

    def test_other_organization_part_not_found(self):
        part = TestDataFactory.create_part(TestDataFactory.create_organization())
        response = self.client.post(f'/api/v1/parts/{part.id}/adjust-stock/', {
            'movement_type': 'in', 'quantity': 1, 'reason': 'purchase'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
