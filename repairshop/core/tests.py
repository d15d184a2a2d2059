"""
Tests for core: authentication, users, preferences, audit logs and global search
"""
from django.test import TestCase
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken
from repairshop.core.models import AuditLog, UserPreference
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.core.utils import create_audit_log, parse_ordering


class AuthTests(TestCase):
    """Registration, login and token refresh"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_tokens(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'novo_tecnico',
            'email': 'novo@test.com',
            'password': 'Reparo#2024seguro',
            'password_confirm': 'Reparo#2024seguro',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertIsNone(response.data['user']['organization'])
        self.assertTrue(UserPreference.objects.filter(user__username='novo_tecnico').exists())

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'mismatch',
            'password': 'Reparo#2024seguro',
            'password_confirm': 'outraSenha#2024',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_login_token_carries_organization(self):
        organization = TestDataFactory.create_organization()
        user = TestDataFactory.create_user(username='loginuser', organization=organization, role='technician')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'loginuser',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['organization_id'], organization.id)
        self.assertEqual(token['role'], 'technician')
        self.assertEqual(token['username'], user.username)

    def test_refresh_with_invalid_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CurrentUserTests(TestCase):
    """Profile, preferences and /me"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization(name='Paulo Cell')
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me_includes_organization_and_preferences(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['organization_detail']['name'], 'Paulo Cell')
        self.assertEqual(response.data['preferences']['theme'], 'system')
        self.assertFalse(response.data['is_admin'])

    def test_update_profile(self):
        response = self.client.patch('/api/v1/auth/me/profile/', {'first_name': 'Paulo', 'phone': '11999990000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'Paulo')
        self.assertEqual(self.user.phone, '11999990000')

    def test_profile_cannot_change_role(self):
        self.client.patch('/api/v1/auth/me/profile/', {'role': 'admin'}, format='json')
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'attendant')

    def test_update_preferences(self):
        response = self.client.patch('/api/v1/auth/me/preferences/', {'theme': 'dark', 'weekly_summary': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['theme'], 'dark')
        self.assertFalse(response.data['weekly_summary'])

    def test_invalid_theme(self):
        response = self.client.patch('/api/v1/auth/me/preferences/', {'theme': 'purple'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class UserManagementTests(TestCase):
    """Organization user management"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.member = TestDataFactory.create_user(organization=self.organization)
        self.outsider = TestDataFactory.create_user(organization=TestDataFactory.create_organization())
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_only_own_organization(self):
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = {user['id'] for user in response.data}
        self.assertEqual(ids, {self.admin.id, self.member.id})

    def test_admin_creates_user_in_organization(self):
        response = self.client.post('/api/v1/users/', {
            'username': 'tecnico2',
            'password': 'Reparo#2024seguro',
            'password_confirm': 'Reparo#2024seguro',
            'role': 'technician',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['organization'], self.organization.id)
        self.assertTrue(AuditLog.objects.filter(model_name='User', action='create').exists())

    def test_member_cannot_create_user(self):
        self.client.authenticate_user(self.member)
        response = self.client.post('/api/v1/users/', {
            'username': 'tecnico3',
            'password': 'Reparo#2024seguro',
            'password_confirm': 'Reparo#2024seguro',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_from_other_organization_not_found(self):
        response = self.client.get(f'/api/v1/users/{self.outsider.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_deletes_member(self):
        response = self.client.delete(f'/api/v1/users/{self.member.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_user_without_organization_gets_error(self):
        lonely = TestDataFactory.create_user()
        self.client.authenticate_user(lonely)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'no_organization')


class AuditLogTests(TestCase):
    """Audit log helpers and endpoints"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.member = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_uses_user_organization(self):
        log = create_audit_log(user=self.member, action='update', model_name='Customer', object_id='1')
        self.assertEqual(log.organization, self.organization)

    def test_member_sees_only_own_logs(self):
        create_audit_log(user=self.admin, action='create', model_name='Customer', object_id='1')
        create_audit_log(user=self.member, action='create', model_name='Customer', object_id='2')
        self.client.authenticate_user(self.member)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_id'], '2')

    def test_admin_filters_by_reference(self):
        create_audit_log(user=self.admin, action='document_issue', model_name='FiscalDocument',
                         object_id='1', object_reference='NFCe-000001/001')
        create_audit_log(user=self.admin, action='create', model_name='Customer', object_id='2')
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'reference': 'NFCe-000001/001'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'document_issue')

    def test_logs_of_other_organization_hidden(self):
        other_admin = TestDataFactory.create_admin(TestDataFactory.create_organization())
        log = create_audit_log(user=other_admin, action='create', model_name='Customer', object_id='9')
        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_parse_ordering(self):
        self.assertEqual(parse_ordering('-price', ['price']), '-price')
        self.assertEqual(parse_ordering('password', ['price']), '-created_at')
        self.assertEqual(parse_ordering(None, ['price'], default='name'), 'name')


class GlobalSearchTests(TestCase):
    """Global search across the organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customers'], [])
        self.assertEqual(response.data['documents'], [])

    def test_search_is_scoped(self):
        customer = TestDataFactory.create_customer(self.organization, name='Joana Pereira')
        TestDataFactory.create_device(customer, brand='Motorola', model='Moto G9')
        TestDataFactory.create_customer(TestDataFactory.create_organization(), name='Joana Outra')

        response = self.client.get('/api/v1/search/', {'q': 'Joana'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['customers']), 1)
        self.assertEqual(response.data['customers'][0]['id'], customer.id)

        response = self.client.get('/api/v1/search/', {'q': 'moto g9'})
        self.assertEqual(len(response.data['devices']), 1)

    def test_search_finds_documents_by_number(self):
        document = TestDataFactory.create_fiscal_document(self.organization, doc_type='nf')
        response = self.client.get('/api/v1/search/', {'q': document.number})
        self.assertEqual([doc['id'] for doc in response.data['documents']], [document.id])
