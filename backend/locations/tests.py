"""
Test suite for Locations module
Tests: store listing (cached), creation, updates and deactivation
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.locations.models import Store


class StoreAPITests(TestCase):
    """Test store endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(groups=['Admin'])
        self.manager = TestDataFactory.create_user(groups=['Manager'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.store = TestDataFactory.create_store(name='Makati', code='MKT01')

    def test_create_store(self):
        response = self.client.post('/api/v1/stores/', {'name': 'Cebu', 'code': ' ceb01 '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'CEB01')
        self.assertTrue(AuditLog.objects.filter(model_name='Store', action='create',
                                                object_reference='CEB01').exists())

    def test_duplicate_code_rejected(self):
        response = self.client.post('/api/v1/stores/', {'name': 'Makati 2', 'code': 'MKT01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Store.objects.filter(code='MKT01').count(), 1)

    def test_manager_cannot_create_or_modify(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/stores/', {'name': 'Cebu', 'code': 'CEB01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/', {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get(f'/api/v1/stores/{self.store.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_update_bir_identity(self):
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/', {
            'tin': '123-456-789-000', 'business_name': 'Makati Food Corp',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.store.refresh_from_db()
        self.assertEqual(self.store.tin, '123-456-789-000')

    def test_delete_deactivates(self):
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.refresh_from_db()
        self.assertFalse(self.store.is_active)

        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/stores/?include_inactive=true')
        self.assertEqual(len(response.data), 1)

    def test_list_is_cached_until_a_store_changes(self):
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(len(response.data), 1)

        Store.objects.filter(pk=self.store.pk).update(name='Renamed')
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.data[0]['name'], 'Makati')

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_store(name='Cebu')
        response = self.client.get('/api/v1/stores/')
        self.assertEqual([row['name'] for row in response.data], ['Cebu', 'Renamed'])

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
