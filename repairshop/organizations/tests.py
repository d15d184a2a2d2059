"""
Tests for organizations and the organization scoping helpers
"""
from django.http import Http404
from django.test import TestCase
from rest_framework import status
from repairshop.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairshop.customers.models import Customer
from repairshop.organizations.models import Organization
from repairshop.organizations.scoping import (
    NoOrganizationError, get_user_organization, scoped_queryset, get_scoped_object_or_404
)


class ScopingTests(TestCase):
    """Every tenant query goes through these helpers"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.other_organization = TestDataFactory.create_organization()
        self.user = TestDataFactory.create_user(organization=self.organization)
        self.own_customer = TestDataFactory.create_customer(self.organization)
        self.foreign_customer = TestDataFactory.create_customer(self.other_organization)

    def test_user_without_organization_raises(self):
        lonely = TestDataFactory.create_user()
        with self.assertRaises(NoOrganizationError):
            get_user_organization(lonely)
        with self.assertRaises(NoOrganizationError):
            scoped_queryset(Customer, lonely)

    def test_scoped_queryset_excludes_other_organizations(self):
        self.assertEqual(list(scoped_queryset(Customer, self.user)), [self.own_customer])

    def test_scoped_object_from_other_organization_is_404(self):
        self.assertEqual(get_scoped_object_or_404(Customer, self.user, pk=self.own_customer.pk), self.own_customer)
        with self.assertRaises(Http404):
            get_scoped_object_or_404(Customer, self.user, pk=self.foreign_customer.pk)


class OrganizationAPITests(TestCase):
    """Organization endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_create_organization_makes_creator_admin(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/organizations/', {'name': 'Paulo Cell'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user.refresh_from_db()
        self.assertEqual(user.organization.name, 'Paulo Cell')
        self.assertEqual(user.role, 'admin')
        self.assertEqual(response.data['members_count'], 1)

    def test_create_organization_twice_rejected(self):
        organization = TestDataFactory.create_organization()
        user = TestDataFactory.create_user(organization=organization)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/organizations/', {'name': 'Outra'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Organization.objects.count(), 1)

    def test_blank_name_rejected(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/organizations/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_current_without_organization(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/organizations/current/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'no_organization')

    def test_only_admin_renames(self):
        organization = TestDataFactory.create_organization(name='Antigo')
        member = TestDataFactory.create_user(organization=organization)
        admin = TestDataFactory.create_admin(organization)

        self.client.authenticate_user(member)
        response = self.client.patch('/api/v1/organizations/current/', {'name': 'Novo'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(admin)
        response = self.client.patch('/api/v1/organizations/current/', {'name': 'Novo'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        organization.refresh_from_db()
        self.assertEqual(organization.name, 'Novo')


class MemberAssignmentTests(TestCase):
    """Adding existing users to an organization"""

    def setUp(self):
        self.organization = TestDataFactory.create_organization()
        self.admin = TestDataFactory.create_admin(self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_assign_free_user(self):
        user = TestDataFactory.create_user(username='freelancer')
        response = self.client.post('/api/v1/organizations/current/members/',
                                    {'username': 'freelancer', 'role': 'technician'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.organization, self.organization)
        self.assertEqual(user.role, 'technician')

    def test_unknown_user(self):
        response = self.client.post('/api/v1/organizations/current/members/', {'username': 'ghost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_user_from_other_organization_is_not_moved(self):
        other = TestDataFactory.create_user(username='taken', organization=TestDataFactory.create_organization())
        response = self.client.post('/api/v1/organizations/current/members/', {'username': 'taken'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        other.refresh_from_db()
        self.assertNotEqual(other.organization, self.organization)

    def test_list_members(self):
        TestDataFactory.create_user(organization=self.organization)
        response = self.client.get('/api/v1/organizations/current/members/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
