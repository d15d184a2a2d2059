"""
Tests for notifications: helpers, polling API and the stale services command
"""
from datetime import timedelta
from io import StringIO
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.notifications.models import Notification
from repairshop.notifications.utils import (
    send_notification, send_admin_notification, send_low_stock_notification, send_payment_pending_notification,
    send_document_notification, send_system_update_notification, format_brl
)
from repairshop.services.models import ServiceOrder


class NotificationHelperTests(TestCase):

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.user = TestDataFactory.create_user(organization=self.organization)

    def test_send_notification_stamps_organization(self):
        notification = send_notification(self.user, 'system', 'Olá', 'Bem-vindo', related_id=42)
        self.assertEqual(notification.organization, self.organization)
        self.assertEqual(notification.related_id, '42')
        self.assertFalse(notification.read)

    def test_admin_notification_only_reaches_admins(self):
        second_admin = TestDataFactory.create_admin(self.organization)
        TestDataFactory.create_admin(TestDataFactory.create_organization())
        notifications = send_admin_notification(self.organization, 'service', 'Serviço', 'Atualizado')
        self.assertEqual({n.user_id for n in notifications}, {self.admin.id, second_admin.id})

    def test_low_stock_text(self):
        notification = send_low_stock_notification(self.user, 'Tela iPhone 11', 1, 7)
        self.assertEqual(notification.title, 'Estoque baixo: Tela iPhone 11')
        self.assertEqual(notification.description, 'Apenas 1 unidade restante')
        self.assertEqual(notification.type, 'inventory')
        notification = send_low_stock_notification(self.user, 'Bateria', 3, 8)
        self.assertEqual(notification.description, 'Apenas 3 unidades restantes')

    def test_payment_and_document_helpers(self):
        payment = send_payment_pending_notification(self.user, 'Maria', '150.5', 3)
        self.assertEqual(payment.description, 'R$ 150,50 - Vence hoje')
        document = send_document_notification(self.user, 'NFCe-000001/001', 'Documento emitido', 5)
        self.assertEqual(document.type, 'document')
        system = send_system_update_notification(self.user, 'Atualização', 'Nova versão')
        self.assertEqual(system.type, 'system')

    def test_format_brl(self):
        self.assertEqual(format_brl(10), 'R$ 10,00')


class NotificationAPITests(TestCase):
    """Polling API over the caller's notifications"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.other = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_only_own(self):
        send_notification(self.user, 'system', 'Minha', 'x')
        send_notification(self.other, 'system', 'Outra', 'x')
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Minha')

    def test_unread_filter_and_count(self):
        first = send_notification(self.user, 'service', 'Um', 'x')
        send_notification(self.user, 'service', 'Dois', 'x')
        Notification.objects.filter(pk=first.pk).update(read=True)

        response = self.client.get('/api/v1/notifications/', {'unread': 'true'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/notifications/unread-count/')
        self.assertEqual(response.data, {'unread': 1})

    def test_since_returns_newer_only(self):
        old = send_notification(self.user, 'system', 'Antiga', 'x')
        Notification.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(hours=2))
        send_notification(self.user, 'system', 'Nova', 'x')

        since = (timezone.now() - timedelta(hours=1)).isoformat()
        response = self.client.get('/api/v1/notifications/', {'since': since})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['title'] for item in response.data['results']], ['Nova'])

    def test_invalid_since(self):
        response = self.client.get('/api/v1/notifications/', {'since': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read_and_mark_all(self):
        first = send_notification(self.user, 'system', 'Um', 'x')
        send_notification(self.user, 'system', 'Dois', 'x')
        send_notification(self.user, 'system', 'Três', 'x')

        response = self.client.post(f'/api/v1/notifications/{first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['read'])

        response = self.client.post('/api/v1/notifications/mark-all-read/')
        self.assertEqual(response.data, {'updated': 2})

    def test_cannot_touch_other_users_notification(self):
        foreign = send_notification(self.other, 'system', 'Outra', 'x')
        response = self.client.post(f'/api/v1/notifications/{foreign.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/notifications/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Notification.objects.filter(pk=foreign.pk).exists())

    def test_delete(self):
        notification = send_notification(self.user, 'system', 'Um', 'x')
        response = self.client.delete(f'/api/v1/notifications/{notification.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class NotifyStaleServicesCommandTests(TestCase):

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.technician = TestDataFactory.create_user(organization=self.organization, role='technician')
        customer = TestDataFactory.create_customer(self.organization)
        self.device = TestDataFactory.create_device(customer)

    def _age(self, service, days):
        ServiceOrder.objects.filter(pk=service.pk).update(updated_at=timezone.now() - timedelta(days=days))

    def test_notifies_technician_or_admins(self):
        assigned = TestDataFactory.create_service(self.device, technician=self.technician)
        unassigned = TestDataFactory.create_service(self.device)
        fresh = TestDataFactory.create_service(self.device)
        finished = TestDataFactory.create_service(self.device, status='delivered')
        self._age(assigned, 5)
        self._age(unassigned, 5)
        self._age(finished, 5)

        out = StringIO()
        call_command('notify_stale_services', '--days', '3', stdout=out)

        self.assertTrue(Notification.objects.filter(user=self.technician, related_id=str(assigned.id)).exists())
        self.assertTrue(Notification.objects.filter(user=self.admin, related_id=str(unassigned.id)).exists())
        self.assertFalse(Notification.objects.filter(related_id=str(fresh.id)).exists())
        self.assertFalse(Notification.objects.filter(related_id=str(finished.id)).exists())
        self.assertIn('Sent 2 notification(s)', out.getvalue())

    def test_dry_run_creates_nothing(self):
        service = TestDataFactory.create_service(self.device)
        self._age(service, 10)
        out = StringIO()
        call_command('notify_stale_services', '--dry-run', stdout=out)
        self.assertEqual(Notification.objects.count(), 0)
        self.assertIn('Would notify', out.getvalue())
