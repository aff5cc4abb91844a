"""
Test suite for Core module
Tests: JWT auth, registration, role helpers, user and setting endpoints,
audit logging, user group setup and query caching
"""
from io import StringIO
from django.contrib.auth.models import Group
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken
from backend.core import utils
from backend.core.cache_utils import cached_query
from backend.core.models import AuditLog, Setting
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class AuthTests(TestCase):
    """Test login, refresh and registration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='cashier1', password='Counter#2025', groups=['Cashier'])

    def test_login_returns_tokens_with_groups(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'cashier1', 'password': 'Counter#2025'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['username'], 'cashier1')
        self.assertEqual(token['groups'], ['Cashier'])

    def test_login_rejects_bad_password_and_inactive_user(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'cashier1', 'password': 'wrong'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/login/', {'username': 'cashier1', 'password': 'Counter#2025'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        refresh = RefreshToken.for_user(self.user)
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'garbage'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newhire', 'email': 'newhire@test.com',
            'password': 'Kitchen#Shift7', 'password_confirm': 'Kitchen#Shift7',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['username'], 'newhire')
        self.assertIn('access', response.data)

        response = self.client.post('/api/v1/auth/register/', {
            'username': 'other', 'password': 'Kitchen#Shift7', 'password_confirm': 'Kitchen#Shift8',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)


class RoleTests(TestCase):
    """Test role helpers and the /auth/me flags"""

    def test_role_helpers(self):
        owner = TestDataFactory.create_user(groups=['Owner'])
        manager = TestDataFactory.create_user(groups=['Manager'])
        cashier = TestDataFactory.create_user(groups=['Cashier'])
        commissary = TestDataFactory.create_user(groups=['Commissary'])
        staff = TestDataFactory.create_user(is_staff=True)

        self.assertTrue(utils.is_admin_user(owner))
        self.assertTrue(utils.is_admin_user(staff))
        self.assertFalse(utils.is_admin_user(manager))
        self.assertTrue(utils.is_manager_user(manager))
        self.assertFalse(utils.is_manager_user(cashier))
        self.assertTrue(utils.is_cashier_user(cashier))
        self.assertTrue(utils.is_cashier_user(manager))
        self.assertFalse(utils.is_cashier_user(commissary))
        self.assertTrue(utils.is_commissary_user(commissary))
        self.assertFalse(utils.is_commissary_user(cashier))

    def test_me_flags(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user(groups=['Commissary']))
        data = client.get('/api/v1/auth/me/').data
        self.assertEqual(data['groups'], ['Commissary'])
        self.assertTrue(data['can_access_commissary'])
        self.assertFalse(data['can_access_pos'])
        self.assertFalse(data['can_access_reports'])

        client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        data = client.get('/api/v1/auth/me/').data
        self.assertTrue(data['is_admin'])
        self.assertTrue(data['can_access_accounting'])

        client.authenticate_user(TestDataFactory.create_user())
        data = client.get('/api/v1/auth/me/').data
        self.assertFalse(data['can_access_pos'])


class UserAndSettingAPITests(TestCase):
    """Test user management and system settings"""

    def setUp(self):
        self.staff = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)

    def test_user_management_requires_staff(self):
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.authenticate_user(TestDataFactory.create_user(groups=['Manager']))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_deactivate_user(self):
        user = TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/users/{user.id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)

    def test_settings(self):
        response = self.client.post('/api/v1/settings/', {'key': 'receipt_header', 'value': 'Welcome!'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Setting.get_value('receipt_header'), 'Welcome!')
        self.assertEqual(Setting.get_value('missing', 'fallback'), 'fallback')

        self.client.authenticate_user(TestDataFactory.create_user(groups=['Cashier']))
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(len(response.data), 1)
        response = self.client.patch(f"/api/v1/settings/{response.data[0]['id']}/", {'value': 'Hi'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(groups=['Admin'])
        self.cashier = TestDataFactory.create_user(groups=['Cashier'])

    def test_create_audit_log(self):
        log = utils.create_audit_log(action='stock_adjust', model_name='InventoryStock', object_id=7,
                                     user=self.cashier, changes={'quantity': '5'})
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.user, self.cashier)
        self.assertIsNone(utils.create_audit_log(action='update', model_name='Store'))
        self.assertEqual(utils.actor_name(None), 'system')
        self.assertEqual(utils.actor_name(self.cashier), self.cashier.username)

    def test_non_admin_sees_own_entries(self):
        utils.create_audit_log(action='create', model_name='Store', object_id=1, user=self.admin)
        utils.create_audit_log(action='transaction_void', model_name='Transaction', object_id=2,
                               user=self.cashier, object_reference='MNL01-00000002')
        client = AuthenticatedAPIClient()

        client.authenticate_user(self.cashier)
        response = client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 1)
        admin_log = AuditLog.objects.get(user=self.admin)
        response = client.get(f'/api/v1/audit-logs/{admin_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        client.authenticate_user(self.admin)
        response = client.get('/api/v1/audit-logs/?reference=MNL01-00000002')
        self.assertEqual([row['action'] for row in response.data], ['transaction_void'])
        response = client.get('/api/v1/audit-logs/?model=Store')
        self.assertEqual(len(response.data), 1)


class CommandAndCacheTests(TestCase):
    """Test the group setup command and the query cache decorator"""

    def test_create_user_groups_is_idempotent(self):
        call_command('create_user_groups', stdout=StringIO())
        call_command('create_user_groups', stdout=StringIO())
        names = set(Group.objects.values_list('name', flat=True))
        self.assertEqual(names, {'Admin', 'Owner', 'Manager', 'Cashier', 'Commissary'})
        cashier_apps = set(
            Group.objects.get(name='Cashier').permissions.values_list('content_type__app_label', flat=True)
        )
        self.assertEqual(cashier_apps, {'pos', 'catalog'})

    def test_cached_query(self):
        cache.clear()
        calls = []

        @cached_query(cache_ttl=60, key_prefix='test')
        def expensive(store_id):
            calls.append(store_id)
            return {'store': store_id}

        self.assertEqual(expensive(1), {'store': 1})
        self.assertEqual(expensive(1), {'store': 1})
        expensive(2)
        self.assertEqual(calls, [1, 2])
