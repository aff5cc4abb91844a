"""
Test suite for Reports module
Tests: Sales Summary, Top Products, Inventory Summary, Movement Summary, access and date validation
"""
from datetime import timedelta
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.pos.services import complete_transaction, void_transaction


class ReportsTests(TestCase):
    """Test report endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(groups=['Manager'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.store = TestDataFactory.create_store()
        TestDataFactory.create_stock(self.store, item='Bottled Water', quantity=50, minimum_threshold=5, cost=10)
        TestDataFactory.create_stock(self.store, item='Iced Tea', quantity=2, minimum_threshold=5, cost=20)
        TestDataFactory.create_stock(self.store, item='Soda', quantity=0)
        self.water = TestDataFactory.create_product(self.store, name='Bottled Water', price='25.00')
        self.tea = TestDataFactory.create_product(self.store, name='Iced Tea', price='40.00')
        today = timezone.localdate()
        self.range = f"date_from={(today - timedelta(days=1)).isoformat()}&date_to={(today + timedelta(days=1)).isoformat()}"

    def _sell(self, product, quantity):
        sale = TestDataFactory.create_transaction(self.store, product, quantity=quantity, user=self.user)
        ok, payload = complete_transaction(sale, user=self.user)
        self.assertTrue(ok, payload)
        return sale

    def test_sales_summary(self):
        """Test sales summary report"""
        self._sell(self.water, 4)
        self._sell(self.tea, 1)
        response = self.client.get(f'/api/v1/reports/sales-summary/?store={self.store.id}&{self.range}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['total_sales'], 140.0)
        self.assertEqual(summary['transaction_count'], 2)
        self.assertEqual(summary['items_sold'], 5.0)
        self.assertEqual(summary['average_ticket'], 70.0)
        self.assertEqual(response.data['by_payment_method'][0]['payment_method'], 'card')

    def test_sales_summary_excludes_pending_and_voided(self):
        """Pending and voided sales do not count as sales"""
        self._sell(self.water, 1)
        TestDataFactory.create_transaction(self.store, self.water, quantity=2)
        voided = self._sell(self.tea, 1)
        void_transaction(voided, user=self.user, reason='Customer left')
        cache.clear()
        response = self.client.get(f'/api/v1/reports/sales-summary/?store={self.store.id}&{self.range}')
        summary = response.data['summary']
        self.assertEqual(summary['transaction_count'], 1)
        self.assertEqual(summary['total_sales'], 25.0)
        self.assertEqual(summary['voided_count'], 1)

    def test_sales_summary_with_date_range(self):
        """Test sales summary with date range"""
        response = self.client.get('/api/v1/reports/sales-summary/?date_from=2024-01-01&date_to=2024-12-31')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], {'from': '2024-01-01', 'to': '2024-12-31'})
        self.assertEqual(response.data['summary']['transaction_count'], 0)

    def test_reversed_date_range_rejected(self):
        """date_from after date_to is a bad request"""
        response = self.client.get('/api/v1/reports/sales-summary/?date_from=2024-12-31&date_to=2024-01-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_date_rejected(self):
        response = self.client.get('/api/v1/reports/movement-summary/?date_from=yesterday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_top_products(self):
        """Test top products report"""
        self._sell(self.water, 4)
        self._sell(self.tea, 2)
        response = self.client.get(f'/api/v1/reports/top-products/?store={self.store.id}&{self.range}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [row['product_name'] for row in response.data['products']]
        self.assertEqual(names, ['Bottled Water', 'Iced Tea'])

        response = self.client.get(
            f'/api/v1/reports/top-products/?store={self.store.id}&order_by=revenue&{self.range}'
        )
        self.assertEqual(response.data['order_by'], 'revenue')
        self.assertEqual(response.data['products'][0]['product_name'], 'Bottled Water')
        self.assertEqual(response.data['products'][0]['revenue'], 100.0)

    def test_inventory_summary(self):
        """Test inventory summary report"""
        response = self.client.get(f'/api/v1/reports/inventory-summary/?store={self.store.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['total_items'], 3)
        self.assertEqual(summary['in_stock'], 1)
        self.assertEqual(summary['low_stock'], 1)
        self.assertEqual(summary['out_of_stock'], 1)
        self.assertEqual(summary['total_stock_value'], 540.0)
        self.assertEqual([row['item'] for row in response.data['low_stock_items']], ['Soda', 'Iced Tea'])

    def test_movement_summary(self):
        """Sales show up as outgoing sale movements"""
        self._sell(self.water, 3)
        response = self.client.get(f'/api/v1/reports/movement-summary/?store={self.store.id}&{self.range}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_type = {row['movement_type']: row for row in response.data['by_type']}
        self.assertEqual(by_type['sale']['count'], 1)
        self.assertEqual(by_type['sale']['total_out'], 3.0)
        self.assertEqual(response.data['most_active_items'][0]['item'], 'Bottled Water')

    def test_reports_require_manager(self):
        """Cashiers cannot view reports"""
        cashier = TestDataFactory.create_user(groups=['Cashier'])
        self.client.authenticate_user(cashier)
        for url in ('sales-summary', 'top-products', 'inventory-summary', 'movement-summary'):
            response = self.client.get(f'/api/v1/reports/{url}/')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reports_require_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/sales-summary/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
