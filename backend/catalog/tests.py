"""
Test suite for Catalog module
Tests: categories, catalog products, filtering and product availability
"""
from django.test import TestCase, override_settings
from rest_framework import status
from backend.catalog import availability
from backend.catalog.models import Category, ProductCatalog
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


@override_settings(LOW_STOCK_SERVINGS=5)
class AvailabilityTests(TestCase):
    """Test servings and status computation"""

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.bun = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=20)
        self.patty = TestDataFactory.create_stock(self.store, item='Beef Patty', quantity=7)
        _, _, self.burger = TestDataFactory.create_deployed_recipe(
            self.store, name='Double Burger',
            ingredients=[('Burger Bun', 1, 'pieces', 5), ('Beef Patty', 2, 'pieces', 20)],
        )

    def test_recipe_servings_limited_by_scarcest_ingredient(self):
        result = availability.product_availability(self.burger)
        self.assertEqual(result['source'], 'recipe')
        self.assertEqual(result['servings'], 3)
        self.assertEqual(result['status'], availability.LOW_STOCK)
        self.assertEqual(result['limiting_ingredient'], 'Beef Patty')

    def test_recipe_in_stock_and_out_of_stock(self):
        self.patty.stock_quantity = 40
        self.patty.save()
        self.assertEqual(availability.product_availability(self.burger)['status'], availability.IN_STOCK)
        self.bun.stock_quantity = 0
        self.bun.save()
        result = availability.product_availability(self.burger)
        self.assertEqual(result['status'], availability.OUT_OF_STOCK)
        self.assertEqual(result['servings'], 0)

    def test_serving_ready_quantity_takes_precedence(self):
        self.patty.serving_ready_quantity = 20
        self.patty.save()
        self.assertEqual(availability.product_availability(self.burger)['servings'], 10)

    def test_direct_product(self):
        TestDataFactory.create_stock(self.store, item='Bottled Water', quantity='12.5')
        water = TestDataFactory.create_product(self.store, name='Bottled Water')
        result = availability.product_availability(water)
        self.assertEqual(result['source'], 'direct')
        self.assertEqual(result['servings'], 12)

    def test_unmapped_product(self):
        product = TestDataFactory.create_product(self.store, name='Gift Card')
        result = availability.product_availability(product)
        self.assertIsNone(result['source'])
        self.assertEqual(result['status'], availability.UNMAPPED)

    def test_recipe_with_unmapped_ingredient(self):
        _, _, product = TestDataFactory.create_deployed_recipe(
            self.store, name='Truffle Fries', ingredients=[('Truffle Oil', 5, 'ml', 2)],
        )
        result = availability.product_availability(product)
        self.assertEqual(result['status'], availability.UNMAPPED)
        self.assertEqual(result['unmapped_ingredients'], ['Truffle Oil'])


class CatalogAPITests(TestCase):
    """Test category and product endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(groups=['Manager'])
        self.cashier = TestDataFactory.create_user(groups=['Cashier'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.store = TestDataFactory.create_store()
        self.other_store = TestDataFactory.create_store()
        self.category = TestDataFactory.create_category(self.store, name='Drinks')

    def test_create_category(self):
        response = self.client.post('/api/v1/categories/', {'store': self.store.id, 'name': 'Desserts'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_count'], 0)

    def test_category_names_unique_per_store_ignoring_case(self):
        response = self.client.post('/api/v1/categories/', {'store': self.store.id, 'name': 'drinks'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/categories/', {'store': self.other_store.id, 'name': 'Drinks'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_delete_category_keeps_products(self):
        product = TestDataFactory.create_product(self.store, category=self.category)
        response = self.client.delete(f'/api/v1/categories/{self.category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertIsNone(product.category)
        self.assertFalse(Category.objects.filter(pk=self.category.id).exists())

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', {
            'store': self.store.id, 'product_name': ' Iced Tea ', 'price': '45.00', 'category': self.category.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_name'], 'Iced Tea')
        self.assertEqual(response.data['category_name'], 'Drinks')

    def test_product_validation(self):
        response = self.client.post('/api/v1/products/', {
            'store': self.store.id, 'product_name': 'Iced Tea', 'price': '-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)
        response = self.client.post('/api/v1/products/', {
            'store': self.other_store.id, 'product_name': 'Iced Tea', 'category': self.category.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data)

    def test_cashier_cannot_change_catalog(self):
        self.client.authenticate_user(self.cashier)
        response = self.client.post('/api/v1/products/', {'store': self.store.id, 'product_name': 'X'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_price_change_is_audited(self):
        product = TestDataFactory.create_product(self.store, price='50.00')
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'price': '55.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(model_name='ProductCatalog', action='update')
        self.assertEqual(log.changes['price'], {'old': '50.00', 'new': '55.00'})

    def test_filters(self):
        TestDataFactory.create_product(self.store, name='Mango Shake', category=self.category)
        TestDataFactory.create_product(self.store, name='Chocolate Shake', is_available=False)
        TestDataFactory.create_product(self.other_store, name='Mango Float')
        response = self.client.get(f'/api/v1/products/?store={self.store.id}&search=shake mango')
        self.assertEqual([row['product_name'] for row in response.data], ['Mango Shake'])
        response = self.client.get(f'/api/v1/products/?store={self.store.id}&is_available=false')
        self.assertEqual([row['product_name'] for row in response.data], ['Chocolate Shake'])
        response = self.client.get(f'/api/v1/products/?category={self.category.id}')
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/products/?store={self.store.id}&has_recipe=true')
        self.assertEqual(response.data, [])

    def test_list_with_availability(self):
        TestDataFactory.create_stock(self.store, item='Iced Tea', quantity=2)
        TestDataFactory.create_product(self.store, name='Iced Tea')
        response = self.client.get(f'/api/v1/products/?store={self.store.id}&with_availability=true')
        self.assertEqual(response.data[0]['availability']['servings'], 2)

    def test_store_availability_endpoint(self):
        TestDataFactory.create_stock(self.store, item='Iced Tea', quantity=0)
        TestDataFactory.create_product(self.store, name='Iced Tea')
        TestDataFactory.create_product(self.store, name='Gift Card')
        response = self.client.get(f'/api/v1/stores/{self.store.id}/availability/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], {'out_of_stock': 1, 'unmapped': 1})
        response = self.client.get(f'/api/v1/stores/{self.store.id}/availability/?status=unmapped')
        self.assertEqual([row['product_name'] for row in response.data['products']], ['Gift Card'])

    def test_product_availability_endpoint(self):
        product = TestDataFactory.create_product(self.store, name='Gift Card')
        response = self.client.get(f'/api/v1/products/{product.id}/availability/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'unmapped')
        self.assertTrue(ProductCatalog.objects.filter(pk=product.id).exists())
