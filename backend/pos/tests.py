"""
Test suite for POS module
Tests: totals and discounts, sale creation, completion against inventory, voiding and the sale endpoints
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from backend.compliance.services import save_compliance_config
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.models import InventoryMovement
from backend.pos import services
from backend.pos.models import Transaction


class ComputeTotalsTests(TestCase):
    """Test discount and VAT computation"""

    def test_no_discount(self):
        totals = services.compute_totals('112.00')
        self.assertEqual(totals['total'], Decimal('112.00'))
        self.assertEqual(totals['vat_amount'], Decimal('12.00'))
        self.assertEqual(totals['vatable_sales'], Decimal('100.00'))
        self.assertEqual(totals['vat_exempt_sales'], Decimal('0.00'))

    def test_senior_discount_defaults_to_twenty_percent(self):
        totals = services.compute_totals('200.00', 'senior')
        self.assertEqual(totals['discount_amount'], Decimal('40.00'))
        self.assertEqual(totals['vat_exempt_sales'], Decimal('40.00'))
        self.assertEqual(totals['total'], Decimal('160.00'))

    def test_rounded_twenty_percent_is_accepted(self):
        totals = services.compute_totals('99.99', 'pwd')
        self.assertEqual(totals['discount_amount'], Decimal('20.00'))

    def test_discount_above_cap_rejected(self):
        with self.assertRaises(services.TransactionError):
            services.compute_totals('100.00', 'promo', '30.00', {'enforce_discount_validation': True,
                                                                 'max_discount_percentage': 20})

    def test_vat_calculation_can_be_disabled(self):
        totals = services.compute_totals('112.00', config={'enforce_vat_calculation': False,
                                                            'enforce_discount_validation': True})
        self.assertEqual(totals['vat_amount'], Decimal('0.00'))
        self.assertEqual(totals['vatable_sales'], Decimal('112.00'))


class TransactionServiceTests(TestCase):
    """Test create, complete and void"""

    def setUp(self):
        self.user = TestDataFactory.create_user(groups=['Cashier'])
        self.store = TestDataFactory.create_store(code='MNL01')
        self.bun = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=5)
        self.patty = TestDataFactory.create_stock(self.store, item='Beef Patty', quantity=5)
        _, _, self.burger = TestDataFactory.create_deployed_recipe(
            self.store, name='Cheeseburger', price='120.00',
            ingredients=[('Burger Bun', 1, 'pieces', 5), ('Beef Patty', 1, 'pieces', 20)],
        )

    def test_create_assigns_receipt_numbers(self):
        first = services.create_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}],
                                            user=self.user, amount_tendered='200')
        second = services.create_transaction(self.store, [{'product_name': 'cheeseburger', 'quantity': 2}],
                                             user=self.user, payment_method='card')
        self.assertEqual(first.receipt_number, 'MNL01-00000001')
        self.assertEqual(second.receipt_number, 'MNL01-00000002')
        self.assertEqual(first.change_amount, Decimal('80.00'))
        self.assertEqual(second.total, Decimal('240.00'))
        self.assertEqual(first.status, 'pending')
        self.assertEqual(first.items.get().product_name, 'Cheeseburger')

    def test_create_rejects_bad_sales(self):
        with self.assertRaises(services.TransactionError):
            services.create_transaction(self.store, [])
        with self.assertRaises(services.TransactionError):
            services.create_transaction(self.store, [{'product_name': 'Pizza', 'quantity': 1}], payment_method='card')
        with self.assertRaises(services.TransactionError) as ctx:
            services.create_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}])
        self.assertIn('amount_tendered', ctx.exception.message)
        with self.assertRaises(services.TransactionError):
            services.create_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}],
                                        amount_tendered='50')
        self.assertFalse(Transaction.objects.exists())

    def test_unavailable_product_cannot_be_sold(self):
        self.burger.is_available = False
        self.burger.save()
        with self.assertRaises(services.TransactionError):
            services.create_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}],
                                        payment_method='card')

    def test_complete_deducts_inventory(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger, quantity=2, user=self.user)
        ok, payload = services.complete_transaction(sale, user=self.user)
        self.assertTrue(ok, payload)
        self.assertTrue(payload['validation']['can_complete'])
        sale.refresh_from_db()
        self.assertEqual(sale.status, 'completed')
        self.assertIsNotNone(sale.completed_at)
        self.bun.refresh_from_db()
        self.assertEqual(self.bun.stock_quantity, Decimal('3.000'))
        self.assertEqual(
            InventoryMovement.objects.filter(reference_id=str(sale.reference), movement_type='sale').count(), 2
        )
        self.assertTrue(AuditLog.objects.filter(action='transaction_complete',
                                                object_reference=sale.receipt_number).exists())

    def test_complete_with_short_stock_deducts_nothing(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger, quantity=6)
        ok, payload = services.complete_transaction(sale)
        self.assertFalse(ok)
        self.assertEqual(payload['error'], 'Transaction failed inventory validation')
        self.assertEqual(len(payload['validation']['missing_ingredients']), 2)
        sale.refresh_from_db()
        self.assertEqual(sale.status, 'pending')
        self.assertFalse(InventoryMovement.objects.exists())

    def test_complete_twice_rejected(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger)
        services.complete_transaction(sale)
        ok, payload = services.complete_transaction(sale)
        self.assertFalse(ok)
        self.assertIn('Only pending transactions', payload['error'])
        self.patty.refresh_from_db()
        self.assertEqual(self.patty.stock_quantity, Decimal('4.000'))

    def test_void_completed_sale_restores_inventory(self):
        manager = TestDataFactory.create_user(groups=['Manager'])
        sale = TestDataFactory.create_transaction(self.store, self.burger, quantity=3)
        services.complete_transaction(sale)
        ok, payload = services.void_transaction(sale, user=manager, reason='Wrong order')
        self.assertTrue(ok)
        self.assertEqual(len(payload['reversal']['restored_items']), 2)
        sale.refresh_from_db()
        self.assertEqual(sale.status, 'voided')
        self.assertEqual(sale.voided_by, manager)
        self.bun.refresh_from_db()
        self.assertEqual(self.bun.stock_quantity, Decimal('5.000'))

        ok, payload = services.void_transaction(sale, user=manager)
        self.assertFalse(ok)
        self.assertEqual(payload['error'], 'Transaction is already voided')

    def test_void_pending_sale(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger)
        ok, payload = services.void_transaction(sale, reason='Cancelled')
        self.assertTrue(ok)
        self.assertEqual(payload['reversal']['restored_items'], [])
        self.assertFalse(InventoryMovement.objects.exists())

    def test_store_discount_cap_applies(self):
        save_compliance_config(self.store, {'max_discount_percentage': 10})
        with self.assertRaises(services.TransactionError):
            services.create_transaction(
                self.store, [{'product_id': self.burger.id, 'quantity': 1}],
                discount_type='senior', discount_id_number='SC-1', payment_method='card',
            )


class TransactionAPITests(TestCase):
    """Test POS endpoints"""

    def setUp(self):
        self.cashier = TestDataFactory.create_user(groups=['Cashier'])
        self.manager = TestDataFactory.create_user(groups=['Manager'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.cashier)
        self.store = TestDataFactory.create_store()
        self.stock = TestDataFactory.create_stock(self.store, item='Iced Coffee', quantity=10)
        self.product = TestDataFactory.create_product(self.store, name='Iced Coffee', price='95.00')

    def _payload(self, **extra):
        data = {
            'store': self.store.id,
            'items': [{'product_id': self.product.id, 'quantity': '2'}],
            'payment_method': 'cash',
            'amount_tendered': '200.00',
        }
        data.update(extra)
        return data

    def test_create_pending_sale(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['total'], '190.00')
        self.assertEqual(response.data['change_amount'], '10.00')

    def test_create_and_complete(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(complete=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['transaction']['status'], 'completed')
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.stock_quantity, Decimal('8.000'))

    def test_senior_discount_requires_id(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(discount_type='senior'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('discount_id_number', response.data)

    def test_insufficient_tender_rejected(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(amount_tendered='100'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('less than the total', response.data['error'])

    def test_user_without_pos_access_cannot_sell(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/pos/transactions/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_complete_endpoint_with_short_stock(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(
            items=[{'product_id': self.product.id, 'quantity': '20'}], amount_tendered='2000',
        ), format='json')
        sale_id = response.data['id']
        response = self.client.post(f'/api/v1/pos/transactions/{sale_id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['transaction']['status'], 'pending')

    def test_void_requires_manager(self):
        sale = TestDataFactory.create_transaction(self.store, self.product)
        response = self.client.post(f'/api/v1/pos/transactions/{sale.id}/void/', {'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.manager)
        response = self.client.post(f'/api/v1/pos/transactions/{sale.id}/void/', {'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['transaction']['void_reason'], 'x')

    def test_sync_status(self):
        response = self.client.post('/api/v1/pos/transactions/', self._payload(complete=True), format='json')
        sale_id = response.data['transaction']['id']
        response = self.client.get(f'/api/v1/pos/transactions/{sale_id}/sync/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['sync']['is_valid'])

    def test_list_filters_by_status(self):
        TestDataFactory.create_transaction(self.store, self.product)
        self.client.post('/api/v1/pos/transactions/', self._payload(complete=True), format='json')
        response = self.client.get('/api/v1/pos/transactions/?status=completed')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_totals_preview(self):
        response = self.client.get('/api/v1/pos/transactions/totals/?subtotal=112&discount_type=none')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vat_amount'], '12.00')
        response = self.client.get('/api/v1/pos/transactions/totals/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/pos/transactions/totals/?subtotal=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
