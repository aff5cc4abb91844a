"""
Test suite for Compliance module
Tests: BIR config defaults and validation, store compliance status, VAT breakdown,
discount caps and the compliance endpoints
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from backend.compliance import services
from backend.compliance.models import StoreComplianceSettings
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ComplianceServiceTests(TestCase):
    """Test compliance rules"""

    def test_defaults_apply_until_overridden(self):
        store = TestDataFactory.create_store()
        config = services.get_compliance_config(store)
        self.assertEqual(config, services.DEFAULT_BIR_CONFIG)

        config = services.save_compliance_config(store, {'vat_rate': 0, 'receipt_copies': 2})
        self.assertEqual(config['vat_rate'], 0)
        config = services.save_compliance_config(store, {'receipt_copies': 3})
        self.assertEqual(config['vat_rate'], 0)
        self.assertEqual(config['receipt_copies'], 3)
        self.assertTrue(config['require_tin'])
        self.assertEqual(StoreComplianceSettings.objects.get(store=store).updated_by, 'system')

    def test_validate_config(self):
        self.assertEqual(services.validate_config({'vat_rate': 12, 'require_tin': False}), {})
        errors = services.validate_config({
            'colour': 'red',
            'require_tin': 'yes',
            'vat_rate': 120,
            'max_discount_percentage': -5,
            'auto_backup_frequency': 'monthly',
            'receipt_copies': 0,
            'custom_receipt_footer': 5,
        })
        self.assertEqual(set(errors), {
            'colour', 'require_tin', 'vat_rate', 'max_discount_percentage',
            'auto_backup_frequency', 'receipt_copies', 'custom_receipt_footer',
        })
        self.assertEqual(services.validate_config({'vat_rate': True}), {'vat_rate': 'Must be a number'})

    def test_compliance_status(self):
        compliant = TestDataFactory.create_store(compliant=True)
        self.assertEqual(services.get_compliance_status(compliant)['status'], 'compliant')

        store = TestDataFactory.create_store()
        result = services.get_compliance_status(store)
        self.assertEqual(result['status'], 'error')
        self.assertEqual(result['missing_count'], 5)

        store.tin = '123'
        store.business_name = 'Corp'
        store.permit_number = 'PTU'
        store.save()
        result = services.get_compliance_status(store)
        self.assertEqual(result['status'], 'warning')
        self.assertEqual(result['missing_fields'], ['Machine Accreditation', 'Machine Serial'])

        services.save_compliance_config(store, {
            'require_machine_accreditation': False, 'require_machine_serial': False,
        })
        self.assertEqual(services.get_compliance_status(store)['status'], 'compliant')

    def test_vat_breakdown(self):
        result = services.vat_breakdown('112.00')
        self.assertEqual(result['vat_amount'], Decimal('12.00'))
        self.assertEqual(result['vatable_sales'], Decimal('100.00'))
        result = services.vat_breakdown('99.99')
        self.assertEqual(result['vat_amount'] + result['vatable_sales'], Decimal('99.99'))
        self.assertEqual(services.vat_breakdown('50', 0)['vat_amount'], Decimal('0.00'))

    def test_validate_discount(self):
        self.assertIsNone(services.validate_discount('100.00', '20.00'))
        self.assertIsNone(services.validate_discount('99.99', '20.00'))
        self.assertIn('exceeds the maximum of 20%', services.validate_discount('100.00', '20.01'))
        self.assertEqual(services.validate_discount('100', '-1'), 'Discount cannot be negative')
        self.assertEqual(services.validate_discount('100', '101'), 'Discount cannot exceed the subtotal')
        relaxed = services.merge_with_defaults({'enforce_discount_validation': False})
        self.assertIsNone(services.validate_discount('100', '60', relaxed))


class ComplianceAPITests(TestCase):
    """Test compliance endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(groups=['Owner'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.store = TestDataFactory.create_store()

    def test_get_store_compliance(self):
        self.client.authenticate_user(TestDataFactory.create_user(groups=['Cashier']))
        response = self.client.get(f'/api/v1/stores/{self.store.id}/compliance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['config']['vat_rate'], 12.0)
        self.assertEqual(response.data['compliance']['status'], 'error')

    def test_update_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user(groups=['Manager']))
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/compliance/',
                                     {'config': {'vat_rate': 0}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_reset(self):
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/compliance/',
                                     {'config': {'max_discount_percentage': 25}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['config']['max_discount_percentage'], 25)
        self.assertEqual(StoreComplianceSettings.objects.get(store=self.store).updated_by, self.admin.username)
        self.assertTrue(AuditLog.objects.filter(action='compliance_update').exists())

        response = self.client.delete(f'/api/v1/stores/{self.store.id}/compliance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['config']['max_discount_percentage'], 20)
        self.assertFalse(StoreComplianceSettings.objects.filter(store=self.store).exists())

    def test_invalid_update(self):
        response = self.client.put(f'/api/v1/stores/{self.store.id}/compliance/',
                                   {'receipt_copies': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('receipt_copies', response.data)

    def test_overview_and_defaults(self):
        TestDataFactory.create_store(compliant=True)
        response = self.client.get('/api/v1/compliance/')
        self.assertEqual(response.data['summary'], {'compliant': 1, 'warning': 0, 'error': 1})
        response = self.client.get('/api/v1/compliance/defaults/')
        self.assertEqual(response.data['max_discount_percentage'], 20)

    def test_vat_calculator(self):
        response = self.client.post('/api/v1/compliance/vat/', {'amount': '112.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vat_amount'], '12.00')
        self.assertIsNone(response.data['discount_error'])

        services.save_compliance_config(self.store, {'max_discount_percentage': 10})
        response = self.client.post('/api/v1/compliance/vat/', {
            'amount': '100.00', 'discount_amount': '20.00', 'store': self.store.id,
        }, format='json')
        self.assertIn('exceeds the maximum', response.data['discount_error'])

        response = self.client.post('/api/v1/compliance/vat/', {'amount': 'lots'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
