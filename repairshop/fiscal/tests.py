"""
Tests for fiscal documents: numbering, lifecycle rules, rendering, filtering,
the demo dataset and the fiscal document API
"""
import random
from datetime import datetime, timedelta
from decimal import Decimal
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from repairshop.core.exceptions import DomainError
from repairshop.core.models import AuditLog
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.fiscal.demo import demo_documents
from repairshop.fiscal.filters import filter_documents
from repairshop.fiscal.lifecycle import (
    create_document, issue_document, cancel_document, reissue_document, check_document_status,
    can_cancel, cancel_deadline, record_event, InvalidTransition, StatusServiceError
)
from repairshop.fiscal.models import FiscalDocument, FiscalDocumentEvent
from repairshop.fiscal.numbering import (
    ACCESS_KEY_LENGTH, format_document_number, generate_access_key, next_sequence, format_access_key
)
from repairshop.fiscal.receipts import (
    render_document_html, download_filename, share_links, share_text, email_subject
)
from repairshop.fiscal.taxes import calculate_taxes
from repairshop.notifications.models import Notification


class NumberingTests(TestCase):

    def setUp(self):
        self.organization = TestDataFactory.create_organization()

    def test_format_document_number(self):
        self.assertEqual(format_document_number('nfce', 1, 42), 'NFCe-000042/001')
        self.assertEqual(format_document_number('nf', 2, 1), 'NF-000001/002')
        self.assertEqual(format_document_number('nfs', 1, 7), 'NFS-000007/001')
        with self.assertRaises(ValueError):
            format_document_number('cte', 1, 1)

    def test_access_key_is_always_44_digits(self):
        rng = random.Random(7)
        moments = [
            timezone.make_aware(datetime(2024, 1, 1, 0, 0)),
            timezone.make_aware(datetime(2030, 12, 31, 23, 59, 59)),
            timezone.now(),
        ]
        for doc_type in ('nf', 'nfce', 'nfs'):
            for series in (1, 12, 999, 12345):
                for sequence in (1, 999999999, 12345678901):
                    for when in moments:
                        key = generate_access_key(doc_type, series, sequence, when=when, rng=rng)
                        self.assertEqual(len(key), ACCESS_KEY_LENGTH)
                        self.assertTrue(key.isdigit())

    def test_access_key_layout(self):
        when = timezone.make_aware(datetime(2024, 4, 8, 10, 30))
        key = generate_access_key('nfce', 1, 42, when=when, rng=random.Random(1))
        self.assertEqual(key[:2], '35')
        self.assertEqual(key[2:6], '2404')
        self.assertEqual(key[6:20], '12345678000195')
        self.assertEqual(key[20:22], '65')
        self.assertEqual(key[22:25], '001')
        self.assertEqual(key[25:34], '000000042')
        self.assertEqual(key[-1], '0')

    def test_format_access_key(self):
        key = '3' * 44
        self.assertEqual(format_access_key(key), ' '.join(['3333'] * 11))

    def test_next_sequence_per_type(self):
        self.assertEqual(next_sequence(self.organization, 'nfce'), 1)
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce')
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce')
        self.assertEqual(next_sequence(self.organization, 'nfce'), 3)
        self.assertEqual(next_sequence(self.organization, 'nf'), 1)
        self.assertEqual(next_sequence(TestDataFactory.create_organization(), 'nfce'), 1)


class TaxTests(TestCase):

    def test_nf_taxes(self):
        taxes = calculate_taxes('nf', Decimal('100.00'))
        self.assertEqual([line['name'] for line in taxes['lines']], ['ICMS', 'IPI'])
        self.assertEqual(taxes['total'], Decimal('23.00'))
        self.assertEqual(taxes['total_with_taxes'], Decimal('123.00'))

    def test_nfce_and_nfs_taxes(self):
        self.assertEqual(calculate_taxes('nfce', Decimal('180.00'))['total'], Decimal('32.40'))
        self.assertEqual(calculate_taxes('nfs', Decimal('120.00'))['total'], Decimal('6.00'))

    def test_rounding(self):
        taxes = calculate_taxes('nfs', Decimal('0.10'))
        self.assertEqual(taxes['lines'][0]['amount'], Decimal('0.01'))


class LifecycleTests(TestCase):
    """draft -> authorized -> canceled, pending, reissue"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)

    def _authorized(self, doc_type='nfce', authorized_at=None):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type=doc_type, user=self.user)
        return issue_document(document, user=self.user, when=authorized_at)

    def test_create_assigns_number_and_key(self):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce', user=self.user)
        self.assertEqual(document.status, 'draft')
        self.assertEqual(document.number, 'NFCe-000001/001')
        self.assertEqual(len(document.access_key), 44)
        self.assertIn(document.access_key, document.qr_code)
        self.assertIsNone(document.authorization_date)

    def test_create_with_items_sums_total(self):
        document = create_document(
            self.organization, 'nf', 'Maria', user=self.user,
            items=[
                {'description': 'Tela', 'quantity': Decimal('1'), 'unit_price': Decimal('300.00')},
                {'description': 'Película', 'quantity': Decimal('2'), 'unit_price': Decimal('25.50')},
            ]
        )
        self.assertEqual(document.total_value, Decimal('351.00'))
        self.assertEqual(document.items.count(), 2)
        self.assertEqual(document.items.last().total_price, Decimal('51.00'))

    def test_create_rejects_zero_total(self):
        with self.assertRaises(DomainError):
            create_document(self.organization, 'nf', 'Maria', total_value=Decimal('0'))
        self.assertEqual(FiscalDocument.objects.count(), 0)

    def test_create_pending_document(self):
        document = create_document(self.organization, 'nf', 'Maria', total_value=Decimal('80.00'), pending=True)
        self.assertEqual(document.status, 'pending')
        self.assertEqual(len(document.access_key), 44)
        with self.assertRaises(InvalidTransition):
            issue_document(document)
        with self.assertRaises(DomainError):
            create_document(self.organization, 'nf', 'Maria', total_value=Decimal('80.00'), pending=True, issue=True)

    def test_issue_draft(self):
        document = self._authorized()
        self.assertEqual(document.status, 'authorized')
        self.assertIsNotNone(document.authorization_date)
        self.assertTrue(FiscalDocumentEvent.objects.filter(document=document, action='issued').exists())
        with self.assertRaises(InvalidTransition):
            issue_document(document)

    def test_create_and_issue_immediately(self):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type='nf', issue=True)
        self.assertEqual(document.status, 'authorized')

    def test_cancel_inside_window(self):
        authorized_at = timezone.now() - timedelta(hours=71)
        document = self._authorized('nfce', authorized_at=authorized_at)
        self.assertTrue(can_cancel(document))
        cancel_document(document, 'Erro de digitação', user=self.user)
        document.refresh_from_db()
        self.assertEqual(document.status, 'canceled')
        self.assertEqual(document.cancel_reason, 'Erro de digitação')
        self.assertIsNotNone(document.cancelation_date)

    def test_cancel_rejected_after_window(self):
        cases = [('nfce', 72), ('nf', 720), ('nfs', 720)]
        for doc_type, hours in cases:
            authorized_at = timezone.now() - timedelta(hours=hours + 1)
            document = self._authorized(doc_type, authorized_at=authorized_at)
            self.assertEqual(cancel_deadline(document), authorized_at + timedelta(hours=hours))
            self.assertFalse(can_cancel(document))
            with self.assertRaises(InvalidTransition):
                cancel_document(document, 'Tarde demais')
            document.refresh_from_db()
            self.assertEqual(document.status, 'authorized')

    def test_cancel_window_boundary(self):
        authorized_at = timezone.now()
        document = self._authorized('nfce', authorized_at=authorized_at)
        deadline = authorized_at + timedelta(hours=72)
        self.assertTrue(can_cancel(document, now=deadline))
        self.assertFalse(can_cancel(document, now=deadline + timedelta(seconds=1)))

    def test_cancel_requires_authorized_and_reason(self):
        draft = TestDataFactory.create_fiscal_document(self.organization)
        with self.assertRaises(InvalidTransition):
            cancel_document(draft, 'Motivo')
        document = self._authorized()
        with self.assertRaises(InvalidTransition):
            cancel_document(document, '   ')
        cancel_document(document, 'Motivo')
        with self.assertRaises(InvalidTransition):
            cancel_document(document, 'De novo')

    def test_reissue_creates_new_document_and_keeps_original(self):
        original = self._authorized('nf')
        original_number = original.number
        original_key = original.access_key
        original_updated = original.updated_at

        new_document = reissue_document(original, user=self.user)

        original.refresh_from_db()
        self.assertNotEqual(new_document.pk, original.pk)
        self.assertEqual(original.number, original_number)
        self.assertEqual(original.access_key, original_key)
        self.assertEqual(original.status, 'authorized')
        self.assertEqual(original.updated_at, original_updated)

        self.assertEqual(new_document.status, 'authorized')
        self.assertNotEqual(new_document.number, original_number)
        self.assertNotEqual(new_document.access_key, original_key)
        self.assertIn(original_number, new_document.description)
        self.assertEqual(new_document.reissued_from, original)
        self.assertEqual(new_document.total_value, original.total_value)
        self.assertEqual(FiscalDocument.objects.count(), 2)

    def test_reissue_pending(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        FiscalDocument.objects.filter(pk=document.pk).update(status='pending')
        document.refresh_from_db()
        new_document = reissue_document(document)
        self.assertEqual(new_document.status, 'authorized')
        document.refresh_from_db()
        self.assertEqual(document.status, 'pending')

    def test_reissue_rejected_for_draft_and_canceled(self):
        draft = TestDataFactory.create_fiscal_document(self.organization)
        with self.assertRaises(InvalidTransition):
            reissue_document(draft)
        canceled = self._authorized()
        cancel_document(canceled, 'Motivo')
        with self.assertRaises(InvalidTransition):
            reissue_document(canceled)
        self.assertEqual(FiscalDocument.objects.count(), 2)

    def test_simulated_status_check_authorizes_pending(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        FiscalDocument.objects.filter(pk=document.pk).update(status='pending')
        document.refresh_from_db()

        result = check_document_status(document, user=self.user)
        self.assertEqual(result['source'], 'simulated')
        self.assertEqual(result['previous_status'], 'pending')
        self.assertEqual(result['status'], 'authorized')
        document.refresh_from_db()
        self.assertEqual(document.status, 'authorized')
        self.assertIsNotNone(document.authorization_date)

    def test_simulated_status_check_keeps_other_statuses(self):
        document = self._authorized()
        result = check_document_status(document)
        self.assertEqual(result['status'], 'authorized')
        self.assertTrue(FiscalDocumentEvent.objects.filter(document=document, action='status_checked').exists())

    @override_settings(FISCAL_STATUS_SERVICE_URL='http://status.test/check')
    def test_remote_status_check(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        FiscalDocument.objects.filter(pk=document.pk).update(status='pending')
        document.refresh_from_db()

        remote_response = mock.Mock()
        remote_response.json.return_value = {'status': 'authorized', 'message': 'Autorizado o uso'}
        with mock.patch('repairshop.fiscal.lifecycle.requests.get', return_value=remote_response) as mocked_get:
            result = check_document_status(document)
        self.assertEqual(mocked_get.call_args.kwargs['params']['access_key'], document.access_key)
        self.assertEqual(result['source'], 'remote')
        self.assertEqual(result['message'], 'Autorizado o uso')
        self.assertEqual(document.status, 'authorized')

    @override_settings(FISCAL_STATUS_SERVICE_URL='http://status.test/check')
    def test_remote_status_failure(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        with mock.patch('repairshop.fiscal.lifecycle.requests.get', side_effect=requests.ConnectionError('down')):
            with self.assertRaises(StatusServiceError):
                check_document_status(document)
        document.refresh_from_db()
        self.assertEqual(document.status, 'draft')

    def test_delivery_events_only_for_authorized(self):
        draft = TestDataFactory.create_fiscal_document(self.organization)
        self.assertIsNone(record_event(draft, 'printed', user=self.user))
        document = self._authorized()
        event = record_event(document, 'shared_whatsapp', user=self.user)
        self.assertEqual(event.document_number, document.number)
        self.assertEqual(event.details['customer'], document.customer_name)


class ReceiptTests(TestCase):
    """HTML rendering and share helpers"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.document = TestDataFactory.create_fiscal_document(
            self.organization, doc_type='nf', customer_name='Maria Silva', total_value=Decimal('100.00'),
            description='Troca de tela', issue=True
        )

    def test_thermal_layout(self):
        html = render_document_html(self.document, layout='thermal')
        self.assertIn('80mm', html)
        self.assertIn('NOTA FISCAL ELETRÔNICA', html)
        self.assertIn('Maria Silva', html)
        self.assertIn('NOTA EMITIDA', html)
        self.assertIn('ICMS (18%):', html)
        self.assertIn('IPI (5%):', html)
        self.assertIn('R$ 123,00', html)
        self.assertIn(format_access_key(self.document.access_key), html)
        self.assertIn('www.nfe.fazenda.gov.br', html)
        self.assertIn('Obrigado pela preferência!', html)

    def test_a4_layout_embeds_barcode(self):
        html = render_document_html(self.document, layout='a4')
        self.assertIn('size: A4', html)
        self.assertIn('data:image/png;base64,', html)

    def test_unknown_layout(self):
        with self.assertRaises(ValueError):
            render_document_html(self.document, layout='pdf')

    def test_render_plain_fields(self):
        html = render_document_html(demo_documents()[2])
        self.assertIn('NOTA FISCAL DE SERVIÇO ELETRÔNICA', html)
        self.assertIn('CANCELADA', html)

    def test_draft_label(self):
        draft = TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce')
        html = render_document_html(draft)
        self.assertIn('RASCUNHO', html)
        self.assertIn('NOTA FISCAL DE CONSUMIDOR ELETRÔNICA', html)

    def test_download_filename(self):
        self.assertEqual(download_filename(self.document), f"documento-{self.document.number.replace('/', '-')}.html")
        self.assertNotIn('/', download_filename(self.document))

    def test_share_links(self):
        links = share_links(self.document, email='maria@test.com')
        self.assertTrue(links['whatsapp'].startswith('https://wa.me/?text='))
        self.assertTrue(links['sms'].startswith('sms:?&body='))
        self.assertTrue(links['email'].startswith('mailto:maria@test.com?subject='))
        self.assertIn(self.document.number, share_text(self.document))
        self.assertIn('R$ 123,00', share_text(self.document))
        self.assertEqual(email_subject(self.document), f'NOTA FISCAL ELETRÔNICA - {self.document.number}')


class FilterTests(TestCase):
    """In-memory filtering keeps order and returns a subset"""

    def setUp(self):
        self.documents = demo_documents()

    def test_no_criteria_returns_everything_in_order(self):
        self.assertEqual(filter_documents(self.documents), self.documents)

    def test_status_filter_keeps_order(self):
        result = filter_documents(self.documents, status='authorized')
        self.assertEqual([doc['number'] for doc in result], ['NF-000001/001', 'NFCe-000001/001'])

    def test_reversed_input_keeps_reversed_order(self):
        reversed_documents = list(reversed(self.documents))
        result = filter_documents(reversed_documents, status='authorized')
        self.assertEqual([doc['number'] for doc in result], ['NFCe-000001/001', 'NF-000001/001'])

    def test_date_range(self):
        result = filter_documents(self.documents, date_from='2025-01-11', date_to='2025-01-14')
        self.assertEqual([doc['type'] for doc in result], ['nfce'])

    def test_search_is_case_insensitive(self):
        result = filter_documents(self.documents, search='MARIA')
        self.assertEqual(len(result), 1)
        result = filter_documents(self.documents, search='nfs-000001')
        self.assertEqual(result[0]['type'], 'nfs')

    def test_results_are_subset(self):
        for criteria in [{'doc_type': 'nf'}, {'status': 'canceled'}, {'search': 'a'}, {'date_from': '2025-01-13'}]:
            result = filter_documents(self.documents, **criteria)
            self.assertTrue(all(doc in self.documents for doc in result))
            positions = [self.documents.index(doc) for doc in result]
            self.assertEqual(positions, sorted(positions))

    def test_invalid_date(self):
        with self.assertRaises(ValueError):
            filter_documents(self.documents, date_from='ontem')

    def test_model_instances(self):
        organization = TestDataFactory.create_organization()
        first = TestDataFactory.create_fiscal_document(organization, customer_name='Ana')
        second = TestDataFactory.create_fiscal_document(organization, customer_name='Bruno')
        self.assertEqual(filter_documents([second, first], search='ana'), [first])


class FiscalDocumentAPITests(TestCase):
    """Fiscal document endpoints"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.customer = TestDataFactory.create_customer(self.organization, name='Maria Silva', email='maria@test.com')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_organization_gets_demo_dataset(self):
        response = self.client.get('/api/v1/fiscal-documents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_demo'])
        self.assertEqual(response.data['count'], 3)
        self.assertTrue(all(doc['is_demo'] for doc in response.data['results']))
        self.assertTrue(all(len(doc['access_key']) == 44 for doc in response.data['results']))

    def test_demo_dataset_is_filtered(self):
        response = self.client.get('/api/v1/fiscal-documents/', {'status': 'authorized', 'type': 'nfce'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/fiscal-documents/', {'date_from': 'invalid'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(FISCAL_DEMO_FALLBACK=False)
    def test_demo_fallback_disabled(self):
        response = self.client.get('/api/v1/fiscal-documents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_demo'])
        self.assertEqual(response.data['count'], 0)

    def test_real_documents_replace_demo(self):
        TestDataFactory.create_fiscal_document(self.organization)
        TestDataFactory.create_fiscal_document(TestDataFactory.create_organization())
        response = self.client.get('/api/v1/fiscal-documents/')
        self.assertFalse(response.data['is_demo'])
        self.assertEqual(response.data['count'], 1)

    def test_list_filters(self):
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nf', customer_name='Ana', issue=True)
        TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce', customer_name='Bruno')
        response = self.client.get('/api/v1/fiscal-documents/', {'status': 'authorized'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/fiscal-documents/', {'search': 'brun'})
        self.assertEqual(response.data['results'][0]['customer_name'], 'Bruno')
        today = timezone.localdate().isoformat()
        response = self.client.get('/api/v1/fiscal-documents/', {'date_from': today, 'date_to': today})
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/fiscal-documents/', {'status': 'bogus'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_draft_with_items(self):
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nfce',
            'customer': self.customer.id,
            'description': 'Troca de bateria',
            'items': [
                {'description': 'Bateria', 'quantity': '1', 'unit_price': '150.00'},
                {'description': 'Mão de obra', 'quantity': '1', 'unit_price': '30.00'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['customer_name'], 'Maria Silva')
        self.assertEqual(response.data['total_value'], '180.00')
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['number'], 'NFCe-000001/001')

    def test_create_validation(self):
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nf', 'customer_name': 'Maria',
            'items': [{'description': '', 'quantity': '0', 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

        response = self.client.post('/api/v1/fiscal-documents/', {'type': 'nf', 'customer_name': 'Maria'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/fiscal-documents/', {'type': 'nf', 'total_value': '10.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_name', response.data)

    def test_create_with_foreign_customer_rejected(self):
        foreign = TestDataFactory.create_customer(TestDataFactory.create_organization())
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nf', 'customer': foreign.id, 'total_value': '10.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_and_issue(self):
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nf', 'customer_name': 'Maria', 'total_value': '200.00', 'issue': True
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'authorized')
        self.assertTrue(response.data['can_cancel'])
        self.assertEqual(response.data['taxes']['total_with_taxes'], '246.00')
        self.assertTrue(AuditLog.objects.filter(action='document_issue', object_reference=response.data['number']).exists())
        self.assertTrue(Notification.objects.filter(user=self.user, type='document').exists())

    def test_draft_update_and_delete(self):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type='nf')
        response = self.client.patch(f'/api/v1/fiscal-documents/{document.id}/',
                                     {'description': 'Atualizado', 'total_value': '55.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Atualizado')
        self.assertEqual(response.data['total_value'], '55.00')
        self.assertEqual(response.data['number'], document.number)

        response = self.client.patch(f'/api/v1/fiscal-documents/{document.id}/', {'type': 'nfs'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/fiscal-documents/{document.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(FiscalDocument.objects.filter(pk=document.pk).exists())

    def test_authorized_document_cannot_be_edited_or_deleted(self):
        document = TestDataFactory.create_fiscal_document(self.organization, issue=True)
        response = self.client.patch(f'/api/v1/fiscal-documents/{document.id}/', {'description': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/fiscal-documents/{document.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(FiscalDocument.objects.filter(pk=document.pk).exists())

    def test_draft_total_follows_items(self):
        document = TestDataFactory.create_fiscal_document(
            self.organization, doc_type='nf',
            items=[{'description': 'Tela', 'quantity': Decimal('1'), 'unit_price': Decimal('100.00')}]
        )
        url = f'/api/v1/fiscal-documents/{document.id}/'
        response = self.client.patch(url, {'total_value': '5.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('total_value', response.data)
        document.refresh_from_db()
        self.assertEqual(document.total_value, Decimal('100.00'))

        response = self.client.patch(url, {'total_value': '100.00', 'description': 'Tela nova'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.patch(url, {
            'items': [{'description': 'Tela', 'quantity': '2', 'unit_price': '60.00'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_value'], '120.00')
        self.assertEqual(response.data['items'][0]['total_price'], '120.00')

    def test_draft_update_keeps_customer_name(self):
        document = TestDataFactory.create_fiscal_document(
            self.organization, customer=self.customer, customer_name='Silva Reparos Ltda'
        )
        url = f'/api/v1/fiscal-documents/{document.id}/'
        response = self.client.patch(url, {'description': 'Troca de conector'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer_name'], 'Silva Reparos Ltda')

        other_customer = TestDataFactory.create_customer(self.organization, name='João Santos')
        response = self.client.patch(url, {'customer': other_customer.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer_name'], 'João Santos')

    def test_create_external_document_waits_for_authorization(self):
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nfce', 'customer_name': 'Maria', 'total_value': '90.00', 'external': True
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertIsNone(response.data['authorization_date'])

        response = self.client.post(f"/api/v1/fiscal-documents/{response.data['id']}/check-status/")
        self.assertEqual(response.data['previous_status'], 'pending')
        self.assertEqual(response.data['status'], 'authorized')

    def test_external_document_cannot_be_issued_on_create(self):
        response = self.client.post('/api/v1/fiscal-documents/', {
            'type': 'nfce', 'customer_name': 'Maria', 'total_value': '90.00', 'external': True, 'issue': True
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('external', response.data)
        self.assertEqual(FiscalDocument.objects.count(), 0)

    def test_demo_dataset_rejects_unknown_choices(self):
        for params in [{'status': 'bogus'}, {'type': 'cte'}]:
            response = self.client.get('/api/v1/fiscal-documents/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_issue_endpoint(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/issue/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'authorized')
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/issue/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_cancel_endpoint(self):
        document = TestDataFactory.create_fiscal_document(self.organization, issue=True)
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/cancel/',
                                    {'reason': 'Cliente desistiu'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'canceled')
        self.assertFalse(response.data['can_cancel'])

    def test_cancel_endpoint_after_window(self):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type='nfce', issue=True)
        FiscalDocument.objects.filter(pk=document.pk).update(authorization_date=timezone.now() - timedelta(hours=80))
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/cancel/',
                                    {'reason': 'Tarde'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('72h', response.data['error'])
        document.refresh_from_db()
        self.assertEqual(document.status, 'authorized')

    def test_reissue_endpoint(self):
        document = TestDataFactory.create_fiscal_document(self.organization, issue=True)
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/reissue/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotEqual(response.data['id'], document.id)
        self.assertEqual(response.data['reissued_from'], document.id)
        self.assertEqual(response.data['reissued_from_number'], document.number)
        document.refresh_from_db()
        self.assertEqual(document.status, 'authorized')

    def test_check_status_endpoint(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        FiscalDocument.objects.filter(pk=document.pk).update(status='pending')
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/check-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'authorized')
        self.assertEqual(response.data['source'], 'simulated')
        self.assertTrue(AuditLog.objects.filter(action='document_authorize').exists())

    def test_render_and_download(self):
        document = TestDataFactory.create_fiscal_document(self.organization, issue=True)
        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/render/', {'layout': 'thermal', 'print': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Chave de Acesso', response.content.decode('utf-8'))
        self.assertTrue(FiscalDocumentEvent.objects.filter(document=document, action='printed').exists())

        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response['Content-Disposition'],
            f'attachment; filename="{download_filename(document)}"'
        )
        self.assertTrue(FiscalDocumentEvent.objects.filter(document=document, action='downloaded').exists())

        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/render/', {'layout': 'pdf'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_draft_download_is_not_logged(self):
        document = TestDataFactory.create_fiscal_document(self.organization)
        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(FiscalDocumentEvent.objects.filter(document=document).exists())

    def test_share_endpoint(self):
        document = TestDataFactory.create_fiscal_document(self.organization, customer=self.customer, issue=True)
        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/share/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['email'].startswith('mailto:maria@test.com'))
        self.assertFalse(response.data['recorded'])

        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/share/', {'channel': 'whatsapp'}, format='json')
        self.assertTrue(response.data['recorded'])
        response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/events/')
        actions = [event['action'] for event in response.data['results']]
        self.assertIn('shared_whatsapp', actions)
        self.assertIn('issued', actions)

    def test_organization_event_list(self):
        document = TestDataFactory.create_fiscal_document(self.organization, issue=True)
        TestDataFactory.create_fiscal_document(TestDataFactory.create_organization(), issue=True)
        response = self.client.get('/api/v1/fiscal-documents/events/', {'action': 'issued'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['document_number'], document.number)

    def test_other_organization_document_not_found(self):
        document = TestDataFactory.create_fiscal_document(TestDataFactory.create_organization(), issue=True)
        for url in ['', 'render/', 'download/', 'share/', 'events/']:
            response = self.client.get(f'/api/v1/fiscal-documents/{document.id}/{url}')
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.post(f'/api/v1/fiscal-documents/{document.id}/cancel/', {'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        document.refresh_from_db()
        self.assertEqual(document.status, 'authorized')
