"""
Tests for report endpoints
"""
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.services.models import ServiceOrder
from repairshop.services.status import add_months


def months_ago(months):
    """Noon of the first day of the month ``months`` months ago"""
    first = add_months(timezone.localdate().replace(day=1), -months)
    return timezone.make_aware(datetime.combine(first, time(12, 0)))


class ReportTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.customer = TestDataFactory.create_customer(self.organization)
        self.device = TestDataFactory.create_device(self.customer)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        other_organization = TestDataFactory.create_organization()
        other_customer = TestDataFactory.create_customer(other_organization)
        TestDataFactory.create_service(TestDataFactory.create_device(other_customer), price=Decimal('999.00'))

    def create_service(self, created_at=None, **kwargs):
        service = TestDataFactory.create_service(self.device, **kwargs)
        if created_at is not None:
            ServiceOrder.objects.filter(pk=service.pk).update(created_at=created_at)
        return service


class DashboardTests(ReportTestCase):

    def test_dashboard_kpis(self):
        self.create_service(price=Decimal('250.00'))
        self.create_service(status='in_progress', price=Decimal('100.00'))
        self.create_service(status='delivered', price=Decimal('80.00'))
        self.create_service(status='canceled', price=Decimal('500.00'))
        TestDataFactory.create_part(self.organization, name='Tela iPhone 12', quantity=1, minimum_stock=3)
        TestDataFactory.create_part(self.organization, name='Bateria', quantity=20, minimum_stock=3)

        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_services'], 4)
        self.assertEqual(response.data['total_clients'], 1)
        self.assertEqual(response.data['pending_services'], 2)
        self.assertEqual(response.data['completed_services'], 1)
        self.assertEqual(response.data['revenue_today'], 430.0)
        self.assertEqual(len(response.data['recent_services']), 4)
        self.assertEqual([part['name'] for part in response.data['low_stock_items']], ['Tela iPhone 12'])

        month_revenue = response.data['month_revenue']
        self.assertEqual(len(month_revenue), timezone.localdate().day)
        self.assertEqual(month_revenue[-1]['date'], timezone.localdate().strftime('%d/%m'))
        self.assertEqual(month_revenue[-1]['revenue'], 430.0)

    def test_recent_services_limited_to_five(self):
        for _ in range(7):
            self.create_service()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(len(response.data['recent_services']), 5)

    def test_dashboard_is_cached(self):
        self.create_service()
        first = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(first['X-Cache'], 'MISS')

        second = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(second['X-Cache'], 'HIT')
        self.assertEqual(second.data['generated_at'], first.data['generated_at'])

        refreshed = self.client.get('/api/v1/reports/dashboard/', {'refresh': 'true'})
        self.assertEqual(refreshed['X-Cache'], 'MISS')

    def test_cache_invalidated_when_data_changes(self):
        self.client.get('/api/v1/reports/dashboard/')
        self.create_service()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_services'], 1)

    def test_cache_is_per_organization(self):
        self.client.get('/api/v1/reports/dashboard/')
        other_user = TestDataFactory.create_user(organization=TestDataFactory.create_organization())
        other_client = AuthenticatedAPIClient()
        other_client.authenticate_user(other_user)
        response = other_client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_services'], 0)

    def test_user_without_organization(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'no_organization')

    def test_requires_authentication(self):
        response = AuthenticatedAPIClient().get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class RevenueByMonthTests(ReportTestCase):

    def test_months_are_zero_filled(self):
        self.create_service(price=Decimal('250.00'))
        self.create_service(price=Decimal('100.00'), created_at=months_ago(2))
        self.create_service(status='canceled', price=Decimal('70.00'), created_at=months_ago(2))
        self.create_service(price=Decimal('40.00'), created_at=months_ago(8))

        response = self.client.get('/api/v1/reports/revenue-by-month/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data['results']
        self.assertEqual(len(results), 7)
        self.assertEqual(results[-1]['month'], timezone.localdate().strftime('%Y-%m'))
        self.assertEqual(results[-1]['revenue'], 250.0)
        self.assertEqual(results[-1]['services'], 1)
        self.assertEqual(results[4]['revenue'], 100.0)
        self.assertEqual(results[0]['revenue'], 0.0)
        self.assertEqual(response.data['total'], 350.0)

        months = [item['month'] for item in results]
        self.assertEqual(months, sorted(months))

    def test_month_labels(self):
        response = self.client.get('/api/v1/reports/revenue-by-month/', {'months': 1})
        self.assertEqual(len(response.data['results']), 2)
        today = timezone.localdate()
        abbreviations = ['jan', 'fev', 'mar', 'abr', 'mai', 'jun', 'jul', 'ago', 'set', 'out', 'nov', 'dez']
        self.assertEqual(response.data['results'][-1]['label'], f'{abbreviations[today.month - 1]} {today.year}')

    def test_invalid_months(self):
        for value in ['0', '25', 'abc']:
            response = self.client.get('/api/v1/reports/revenue-by-month/', {'months': value})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ServiceBreakdownTests(ReportTestCase):

    def test_services_by_status_lists_every_status(self):
        self.create_service(status='pending')
        self.create_service(status='pending')
        self.create_service(status='canceled')

        response = self.client.get('/api/v1/reports/services-by-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {item['status']: item['count'] for item in response.data['results']}
        self.assertEqual(set(counts), {value for value, label in ServiceOrder.STATUS_CHOICES})
        self.assertEqual(counts['pending'], 2)
        self.assertEqual(counts['canceled'], 1)
        self.assertEqual(counts['delivered'], 0)
        self.assertEqual(response.data['total'], 3)

    def test_services_by_type_sorted_by_count(self):
        self.create_service(service_type='battery_replacement', price=Decimal('150.00'))
        self.create_service(service_type='screen_repair')
        self.create_service(service_type='battery_replacement', price=Decimal('150.00'))

        response = self.client.get('/api/v1/reports/services-by-type/')
        results = response.data['results']
        self.assertEqual(results[0]['service_type'], 'battery_replacement')
        self.assertEqual(results[0]['label'], 'Troca de Bateria')
        self.assertEqual(results[0]['count'], 2)
        self.assertEqual(results[0]['revenue'], 300.0)
        self.assertEqual(results[1]['service_type'], 'screen_repair')

    def test_old_services_outside_period(self):
        self.create_service(created_at=months_ago(12))
        response = self.client.get('/api/v1/reports/services-by-type/', {'months': 3})
        self.assertEqual(response.data['results'], [])


class FiscalSummaryTests(ReportTestCase):

    def test_summary_by_type_and_status(self):
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nf', total_value=Decimal('200.00'), issue=True)
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nf', total_value=Decimal('50.00'))
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce', total_value=Decimal('80.00'), issue=True)
        TestDataFactory.create_fiscal_document(TestDataFactory.create_organization(), doc_type='nf', issue=True)

        response = self.client.get('/api/v1/reports/fiscal-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_documents'], 3)
        self.assertEqual(response.data['authorized_value'], 280.0)

        by_type = {item['type']: item for item in response.data['by_type']}
        self.assertEqual(by_type['nf']['count'], 2)
        self.assertEqual(by_type['nf']['total_value'], 250.0)
        self.assertEqual(by_type['nfs']['count'], 0)
        nf_statuses = {item['status']: item['count'] for item in by_type['nf']['statuses']}
        self.assertEqual(nf_statuses, {'draft': 1, 'pending': 0, 'authorized': 1, 'canceled': 0})

    def test_summary_date_filters(self):
        TestDataFactory.create_fiscal_document(self.organization, issue=True)
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()
        response = self.client.get('/api/v1/reports/fiscal-summary/', {'date_from': tomorrow})
        self.assertEqual(response.data['total_documents'], 0)

        response = self.client.get('/api/v1/reports/fiscal-summary/', {'date_from': '10/01/2025'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
