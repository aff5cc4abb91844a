"""
Test suite for Inventory module
Tests: audited stock updates, audit-trail integrity, sale deduction and reversal,
commissary conversions, sync monitoring and the inventory endpoints
"""
from decimal import Decimal
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from backend.catalog.availability import product_availability
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory import audit, conversion
from backend.inventory.deduction import (
    deduct_inventory_for_transaction, expected_deductions, reverse_inventory_for_transaction
)
from backend.inventory.models import (
    InventoryConversion, InventoryMovement, InventoryStock, InventoryTransaction
)
from backend.inventory.sync_monitor import InventorySyncMonitor, TransactionValidator
from backend.pos import services as pos_services


class StockAuditTests(TestCase):
    """Test update_stock_with_audit and the integrity check"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store()
        self.stock = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=10)

    def test_update_records_movement(self):
        result = audit.update_stock_with_audit(self.stock, 7, 'adjustment', notes='Count', user=self.user)
        self.assertTrue(result['success'])
        self.assertEqual(result['previous_quantity'], Decimal('10.000'))
        self.assertEqual(result['quantity_change'], Decimal('-3.000'))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.stock_quantity, Decimal('7.000'))

        movement = InventoryMovement.objects.get(inventory_stock=self.stock)
        self.assertEqual(movement.quantity_change, Decimal('-3.000'))
        self.assertEqual(movement.new_quantity, Decimal('7.000'))
        self.assertEqual(movement.created_by, self.user.username)

    def test_serving_ready_quantity_is_updated_when_in_use(self):
        stock = TestDataFactory.create_stock(self.store, item='Fries', quantity=20, serving_ready_quantity=5)
        result = audit.update_stock_with_audit(stock, 3, 'sale')
        self.assertEqual(result['field'], 'serving_ready_quantity')
        stock.refresh_from_db()
        self.assertEqual(stock.serving_ready_quantity, Decimal('3.000'))
        self.assertEqual(stock.stock_quantity, Decimal('20.000'))

    def test_missing_stock_returns_error(self):
        result = audit.update_stock_with_audit(999999, 5, 'adjustment')
        self.assertFalse(result['success'])
        self.assertEqual(result['error'], 'Inventory item not found')

    def test_system_actor_without_user(self):
        audit.update_stock_with_audit(self.stock, 12, 'restock')
        self.assertEqual(InventoryMovement.objects.get(inventory_stock=self.stock).created_by, 'system')

    def test_batch_update(self):
        other = TestDataFactory.create_stock(self.store, item='Beef Patty', quantity=4)
        result = audit.batch_update_with_audit([
            {'stock_id': self.stock.id, 'new_quantity': 15, 'movement_type': 'restock'},
            {'stock_id': other.id, 'new_quantity': 0, 'movement_type': 'damage'},
            {'stock_id': 999999, 'new_quantity': 1},
        ], reference_id='COUNT-1')
        self.assertFalse(result['success'])
        self.assertEqual(result['failed_count'], 1)
        self.assertEqual(InventoryMovement.objects.filter(reference_id='COUNT-1').count(), 2)

    def test_integrity_without_movements(self):
        result = audit.verify_audit_trail_integrity(self.stock)
        self.assertTrue(result['is_valid'])
        self.assertEqual(result['movement_count'], 0)

    def test_integrity_after_updates(self):
        audit.update_stock_with_audit(self.stock, 8, 'sale')
        audit.update_stock_with_audit(self.stock, 12, 'restock')
        result = audit.verify_audit_trail_integrity(self.stock)
        self.assertTrue(result['is_valid'], result['issues'])
        self.assertEqual(result['calculated_stock'], Decimal('12.000'))

    def test_integrity_detects_unlogged_change(self):
        audit.update_stock_with_audit(self.stock, 8, 'sale')
        InventoryStock.objects.filter(pk=self.stock.pk).update(stock_quantity=Decimal('5'))
        result = audit.verify_audit_trail_integrity(self.stock)
        self.assertFalse(result['is_valid'])
        self.assertIn('Final stock mismatch', result['issues'][0])

    def test_integrity_detects_broken_movement_chain(self):
        audit.update_stock_with_audit(self.stock, 8, 'sale')
        audit.update_stock_with_audit(self.stock, 12, 'restock')
        first = InventoryMovement.objects.filter(inventory_stock=self.stock).order_by('id').first()
        InventoryMovement.objects.filter(pk=first.pk).update(quantity_change=Decimal('-3'))
        result = audit.verify_audit_trail_integrity(self.stock)
        self.assertFalse(result['is_valid'])
        self.assertEqual(len(result['issues']), 1)
        self.assertIn('Movement inconsistency', result['issues'][0])
        self.assertIn('expected 7.000, recorded 8.000', result['issues'][0])

    def test_audit_trail_filters_by_type(self):
        audit.update_stock_with_audit(self.stock, 8, 'sale')
        audit.update_stock_with_audit(self.stock, 12, 'restock')
        trail = audit.get_audit_trail(self.stock, movement_types=['restock'])
        self.assertEqual(len(trail['movements']), 1)
        self.assertEqual(trail['movements'][0].movement_type, 'restock')


class DeductionTests(TestCase):
    """Test sale deduction and reversal"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store()
        self.bun = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=10)
        self.patty = TestDataFactory.create_stock(self.store, item='Beef Patty', quantity=10)
        _, self.recipe, self.burger = TestDataFactory.create_deployed_recipe(
            self.store, name='Cheeseburger',
            ingredients=[('Burger Bun', 1, 'pieces', 5), ('Beef Patty', 2, 'pieces', 20)],
        )
        self.water_stock = TestDataFactory.create_stock(self.store, item='Bottled Water', quantity=3)
        self.water = TestDataFactory.create_product(self.store, name='Bottled Water', price='25')

    def test_recipe_product_deducts_each_ingredient(self):
        result = deduct_inventory_for_transaction(
            self.store, [{'product_id': self.burger.id, 'quantity': 2}], 'REF-1', user=self.user,
        )
        self.assertTrue(result['success'], result['errors'])
        self.bun.refresh_from_db()
        self.patty.refresh_from_db()
        self.assertEqual(self.bun.stock_quantity, Decimal('8.000'))
        self.assertEqual(self.patty.stock_quantity, Decimal('6.000'))
        self.assertEqual(InventoryTransaction.objects.filter(reference_id='REF-1').count(), 2)

    def test_direct_product_deducts_by_name(self):
        result = deduct_inventory_for_transaction(
            self.store, [{'product_name': 'bottled water', 'quantity': 2}], 'REF-2',
        )
        self.assertTrue(result['success'])
        self.water_stock.refresh_from_db()
        self.assertEqual(self.water_stock.stock_quantity, Decimal('1.000'))

    def test_insufficient_stock_is_an_error(self):
        result = deduct_inventory_for_transaction(
            self.store, [{'product_id': self.water.id, 'quantity': 5}], 'REF-3',
        )
        self.assertFalse(result['success'])
        self.assertIn('Insufficient Bottled Water', result['errors'][0])
        self.water_stock.refresh_from_db()
        self.assertEqual(self.water_stock.stock_quantity, Decimal('3.000'))

    def test_unknown_product_is_an_error(self):
        result = deduct_inventory_for_transaction(self.store, [{'product_name': 'Pizza', 'quantity': 1}], 'REF-4')
        self.assertFalse(result['success'])

    def test_product_without_inventory_is_skipped(self):
        TestDataFactory.create_product(self.store, name='Service Charge')
        result = deduct_inventory_for_transaction(
            self.store, [{'product_name': 'Service Charge', 'quantity': 1}], 'REF-5',
        )
        self.assertTrue(result['success'])
        self.assertEqual(result['skipped_items'], ['Service Charge'])

    def test_reversal_restores_stock_once(self):
        deduct_inventory_for_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}], 'REF-6')
        first = reverse_inventory_for_transaction('REF-6')
        second = reverse_inventory_for_transaction('REF-6')
        self.assertEqual(len(first['restored_items']), 2)
        self.assertEqual(second['restored_items'], [])
        self.patty.refresh_from_db()
        self.assertEqual(self.patty.stock_quantity, Decimal('10.000'))
        self.assertEqual(
            InventoryMovement.objects.filter(reference_id='REF-6', movement_type='return').count(), 2
        )


class MixMatchDeductionTests(TestCase):
    """Test that mix-and-match add-ons are deducted only when selected"""

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.croffle = TestDataFactory.create_stock(self.store, item='Croffle', quantity=10)
        self.peanut = TestDataFactory.create_stock(self.store, item='Peanut', unit='portion', quantity=5)
        self.marshmallow = TestDataFactory.create_stock(self.store, item='Marshmallow', unit='portion', quantity=0)
        self.box = TestDataFactory.create_stock(self.store, item='Paper Box', quantity=10)
        _, _, self.overload = TestDataFactory.create_deployed_recipe(
            self.store, name='Croffle Overload', price='99.00',
            ingredients=[
                {'ingredient_name': 'Croffle', 'quantity': 1, 'unit': 'pieces', 'combo_main': True},
                {'ingredient_name': 'Peanut', 'quantity': 1, 'unit': 'portion', 'combo_add_on': True},
                {'ingredient_name': 'Marshmallow', 'quantity': 1, 'unit': 'portion', 'combo_add_on': True},
                {'ingredient_name': 'Paper Box', 'quantity': 1, 'unit': 'pieces'},
            ],
        )

    def test_only_selected_add_on_is_deducted(self):
        result = deduct_inventory_for_transaction(
            self.store, [{'product_id': self.overload.id, 'quantity': 2, 'add_ons': ['peanut']}], 'MM-1',
        )
        self.assertTrue(result['success'], result['errors'])
        self.assertEqual(sorted(d['item'] for d in result['deducted_items']), ['Croffle', 'Paper Box', 'Peanut'])
        for stock, expected in ((self.croffle, '8.000'), (self.peanut, '3.000'), (self.box, '8.000')):
            stock.refresh_from_db()
            self.assertEqual(stock.stock_quantity, Decimal(expected))
        self.assertFalse(InventoryMovement.objects.filter(inventory_stock=self.marshmallow).exists())

    def test_no_add_ons_deducts_base_and_packaging(self):
        result = deduct_inventory_for_transaction(
            self.store, [{'product_id': self.overload.id, 'quantity': 1}], 'MM-2',
        )
        self.assertTrue(result['success'], result['errors'])
        self.assertEqual(len(result['deducted_items']), 2)
        self.peanut.refresh_from_db()
        self.assertEqual(self.peanut.stock_quantity, Decimal('5.000'))

    def test_expected_deductions_follow_selection(self):
        required, unmapped, is_recipe = expected_deductions(self.overload, 1, ['Marshmallow'])
        self.assertTrue(is_recipe)
        self.assertEqual(unmapped, [])
        self.assertEqual(set(required), {self.croffle.id, self.marshmallow.id, self.box.id})

    def test_pre_validation_checks_selected_add_ons_only(self):
        validator = TransactionValidator()
        plain = validator.pre_validate_transaction(
            self.store, [{'product_id': self.overload.id, 'quantity': 1, 'add_ons': ['Peanut']}],
        )
        self.assertTrue(plain['is_valid'], plain)
        short = validator.pre_validate_transaction(
            self.store, [{'product_id': self.overload.id, 'quantity': 1, 'add_ons': ['Marshmallow']}],
        )
        self.assertFalse(short['is_valid'])
        self.assertEqual([m['ingredient_name'] for m in short['missing_ingredients']], ['Marshmallow'])

    def test_availability_ignores_add_ons(self):
        availability = product_availability(self.overload)
        self.assertEqual(availability['servings'], 10)
        self.assertEqual(availability['limiting_ingredient'], 'Croffle')

    def test_completed_sale_with_add_on_is_in_sync(self):
        sale = pos_services.create_transaction(
            self.store, [{'product_id': self.overload.id, 'quantity': 1, 'add_ons': ['Peanut']}],
            payment_method='card',
        )
        self.assertEqual(sale.items.get().add_ons, ['Peanut'])
        ok, payload = pos_services.complete_transaction(sale)
        self.assertTrue(ok, payload)
        sync = InventorySyncMonitor().validate_transaction_sync(sale)
        self.assertTrue(sync['is_valid'], sync)
        self.assertEqual(sync['warnings'], [])
        self.assertEqual(sync['expected_count'], 3)


class ConversionTests(TestCase):
    """Test commissary conversions"""

    def setUp(self):
        self.user = TestDataFactory.create_user(groups=['Commissary'])
        self.store = TestDataFactory.create_store()
        self.flour = TestDataFactory.create_commissary_item(name='Flour', unit='kg', current_stock=10)
        self.sugar = TestDataFactory.create_commissary_item(name='Sugar', unit='kg', current_stock=2)
        self.template = TestDataFactory.create_template(name='Ensaymada', yield_quantity=12, ingredients=[
            {'ingredient_name': 'Flour', 'quantity': 2, 'unit': 'kg', 'commissary_item': self.flour},
            {'ingredient_name': 'Sugar', 'quantity': 0.5, 'unit': 'kg', 'commissary_item': self.sugar},
        ])

    def test_direct_conversion(self):
        result = conversion.process_direct_conversion(
            self.store, self.flour.id, 4, 'Flour', 'g', conversion_ratio=1000, user=self.user,
        )
        self.assertTrue(result['success'], result)
        self.assertEqual(result['finished_goods_quantity'], Decimal('4000.000'))
        self.flour.refresh_from_db()
        self.assertEqual(self.flour.current_stock, Decimal('6.000'))
        stock = InventoryStock.objects.get(store=self.store, item='Flour', unit='g')
        self.assertEqual(stock.stock_quantity, Decimal('4000.000'))
        movement = InventoryMovement.objects.get(inventory_stock=stock)
        self.assertEqual(movement.movement_type, 'conversion')
        self.assertEqual(movement.reference_id, str(result['conversion_id']))
        self.assertTrue(AuditLog.objects.filter(action='conversion').exists())

    def test_direct_conversion_adds_to_existing_item(self):
        existing = TestDataFactory.create_stock(self.store, item='Flour', unit='kg', quantity=1)
        conversion.process_direct_conversion(self.store, self.flour.id, 2, 'Flour', 'kg')
        existing.refresh_from_db()
        self.assertEqual(existing.stock_quantity, Decimal('3.000'))

    def test_direct_conversion_into_serving_ready_item(self):
        croissant = TestDataFactory.create_stock(self.store, item='Croissant', unit='pieces',
                                                 quantity=20, serving_ready_quantity=6)
        audit.update_stock_with_audit(croissant, 4, 'adjustment', notes='Count')
        dough = TestDataFactory.create_commissary_item(name='Croissant Dough', unit='pieces', current_stock=10)
        result = conversion.process_direct_conversion(self.store, dough.id, 5, 'Croissant', 'pieces')
        self.assertTrue(result['success'], result)
        croissant.refresh_from_db()
        self.assertEqual(croissant.serving_ready_quantity, Decimal('9.000'))
        self.assertEqual(croissant.stock_quantity, Decimal('20.000'))
        integrity = audit.verify_audit_trail_integrity(croissant)
        self.assertTrue(integrity['is_valid'], integrity['issues'])
        self.assertEqual(integrity['calculated_stock'], Decimal('9.000'))

    def test_direct_conversion_insufficient_stock(self):
        result = conversion.process_direct_conversion(self.store, self.sugar.id, 5, 'Sugar', 'kg')
        self.assertFalse(result['success'])
        self.assertIn('Insufficient commissary stock for Sugar', result['error'])
        self.assertFalse(InventoryConversion.objects.exists())

    def test_direct_conversion_rejects_bad_input(self):
        self.assertFalse(conversion.process_direct_conversion(self.store, self.flour.id, 0, 'Flour', 'kg')['success'])
        self.assertEqual(
            conversion.process_direct_conversion(self.store, 999999, 1, 'Flour', 'kg')['error'],
            'Commissary item not found',
        )

    def test_recipe_check(self):
        check = conversion.check_commissary_stock_for_recipe(self.template, batches=3)
        self.assertEqual(check['max_quantity'], 4)
        self.assertTrue(check['can_produce'])
        self.assertFalse(conversion.check_commissary_stock_for_recipe(self.template, batches=5)['can_produce'])
        self.assertEqual(
            conversion.check_commissary_stock_for_recipe(999999)['missing_ingredients'], ['Recipe not found']
        )

    def test_recipe_production(self):
        result = conversion.process_recipe_production(self.store, self.template.id, 2, user=self.user)
        self.assertTrue(result['success'], result)
        self.assertEqual(result['finished_goods_quantity'], Decimal('24.000'))
        self.flour.refresh_from_db()
        self.sugar.refresh_from_db()
        self.assertEqual(self.flour.current_stock, Decimal('6.000'))
        self.assertEqual(self.sugar.current_stock, Decimal('1.000'))
        stock = InventoryStock.objects.get(store=self.store, item='Ensaymada (Produced)')
        self.assertEqual(stock.unit, 'pieces')
        record = InventoryConversion.objects.get(pk=result['conversion_id'])
        self.assertEqual(record.recipe_template, self.template)
        self.assertEqual(record.quantity_converted, Decimal('2.000'))

    def test_recipe_production_insufficient_stock_changes_nothing(self):
        result = conversion.process_recipe_production(self.store, self.template.id, 5)
        self.assertFalse(result['success'])
        self.assertIn('Sugar', result['error'])
        self.flour.refresh_from_db()
        self.assertEqual(self.flour.current_stock, Decimal('10.000'))

    def test_recipe_production_requires_commissary_links(self):
        template = TestDataFactory.create_template(ingredients=[('Butter', 1, 'kg', 0)])
        result = conversion.process_recipe_production(self.store, template.id, 1)
        self.assertFalse(result['success'])
        self.assertIn('Butter', result['error'])

    def test_normalize_order_units(self):
        stock = TestDataFactory.create_stock(self.store, item='Cups')
        stock.order_unit = 'pack of 50'
        stock.save()
        result = conversion.normalize_order_units()
        self.assertEqual(result['inventory_stock'], 1)
        stock.refresh_from_db()
        self.assertEqual(stock.order_quantity, Decimal('50.000'))


class SyncMonitorTests(TestCase):
    """Test pre-validation, completion validation and store health"""

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.bun = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=10, minimum_threshold=2)
        TestDataFactory.create_stock(self.store, item='Beef Patty', quantity=1)
        _, _, self.burger = TestDataFactory.create_deployed_recipe(
            self.store, name='Cheeseburger',
            ingredients=[('Burger Bun', 1, 'pieces', 5), ('Beef Patty', 1, 'pieces', 20)],
        )
        self.validator = TransactionValidator()

    def test_pre_validation_passes(self):
        result = self.validator.pre_validate_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 1}])
        self.assertTrue(result['is_valid'])

    def test_pre_validation_reports_missing_ingredients(self):
        result = self.validator.pre_validate_transaction(self.store, [{'product_id': self.burger.id, 'quantity': 3}])
        self.assertFalse(result['is_valid'])
        missing = result['missing_ingredients'][0]
        self.assertEqual(missing['ingredient_name'], 'Beef Patty')
        self.assertEqual(missing['required'], '3.000')

    def test_pre_validation_reports_unmapped_products(self):
        TestDataFactory.create_product(self.store, name='Mystery Box')
        result = self.validator.pre_validate_transaction(self.store, [
            {'product_name': 'Mystery Box', 'quantity': 1},
            {'product_name': 'Nonexistent', 'quantity': 1},
        ])
        self.assertEqual(len(result['issues']), 2)
        self.assertIn('no recipe or direct inventory mapping', result['issues'][0])
        self.assertIn('not found in catalog', result['issues'][1])

    def test_completion_validation_after_deduction(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger)
        result = self.validator.validate_transaction_completion(sale)
        self.assertFalse(result['can_complete'])
        self.assertEqual(result['sync_status'], 'invalid')
        self.assertIn('Missing deduction for Burger Bun', result['errors'][0])

        deduct_inventory_for_transaction(
            self.store, [{'product_id': self.burger.id, 'quantity': 1}], str(sale.reference),
        )
        result = self.validator.validate_transaction_completion(sale)
        self.assertTrue(result['can_complete'], result['errors'])
        self.assertEqual(result['sync_status'], 'valid')

    def test_sync_reports_mismatched_and_unexpected_movements(self):
        sale = TestDataFactory.create_transaction(self.store, self.burger)
        napkin = TestDataFactory.create_stock(self.store, item='Napkin', quantity=50)
        patty = InventoryStock.objects.get(store=self.store, item='Beef Patty')
        reference = str(sale.reference)
        audit.log_inventory_movement(self.bun, 'sale', -2, 10, 8,
                                     reference_type='transaction', reference_id=reference)
        audit.log_inventory_movement(patty, 'sale', -1, 1, 0,
                                     reference_type='transaction', reference_id=reference)
        audit.log_inventory_movement(napkin, 'sale', -1, 50, 49,
                                     reference_type='transaction', reference_id=reference)

        result = InventorySyncMonitor().validate_transaction_sync(sale)
        self.assertFalse(result['is_valid'])
        self.assertEqual(result['errors'], ['Deduction mismatch for Burger Bun: expected 1.000, recorded 2.000'])
        self.assertEqual(result['warnings'], ['Unexpected movement for Napkin: 1.000'])

    def test_completion_validation_without_transaction(self):
        result = self.validator.validate_transaction_completion(None)
        self.assertEqual(result['errors'], ['Transaction not found'])

    def test_store_health(self):
        audit.update_stock_with_audit(self.bun, 2, 'sale')
        InventoryStock.objects.filter(item='Beef Patty').update(stock_quantity=Decimal('-1'))
        health = InventorySyncMonitor().check_store_health(self.store)
        self.assertFalse(health['healthy'])
        self.assertEqual(health['checked_items'], 2)
        self.assertEqual(health['negative_stock'][0]['item'], 'Beef Patty')
        self.assertEqual(health['low_stock'][0]['item'], 'Burger Bun')

    def test_monitor_command(self):
        out = StringIO()
        call_command('monitor_inventory_sync', '--store', str(self.store.id), stdout=out)
        self.assertIn('2 items OK', out.getvalue())
        self.assertIn('0 problems', out.getvalue())

        InventoryStock.objects.filter(item='Beef Patty').update(stock_quantity=Decimal('-1'))
        with self.assertRaises(CommandError):
            call_command('monitor_inventory_sync', '--fail-on-issues', stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command('monitor_inventory_sync', '--store', '999999', stdout=StringIO())


class InventoryAPITests(TestCase):
    """Test inventory endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(groups=['Manager'])
        self.cashier = TestDataFactory.create_user(groups=['Cashier'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.store = TestDataFactory.create_store()
        self.stock = TestDataFactory.create_stock(self.store, item='Burger Bun', quantity=10, minimum_threshold=3)

    def test_list_filters_by_status(self):
        TestDataFactory.create_stock(self.store, item='Cheese', quantity=0)
        response = self.client.get(f'/api/v1/inventory/stock/?store={self.store.id}&status=out')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['item'] for row in response.data], ['Cheese'])

    def test_create_logs_opening_stock(self):
        response = self.client.post('/api/v1/inventory/stock/', {
            'store': self.store.id, 'item': 'Lettuce', 'unit': 'g', 'stock_quantity': '500',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        movement = InventoryMovement.objects.get(inventory_stock_id=response.data['id'])
        self.assertEqual(movement.notes, 'Opening stock')
        self.assertEqual(movement.new_quantity, Decimal('500.000'))

    def test_update_ignores_quantity(self):
        response = self.client.patch(f'/api/v1/inventory/stock/{self.stock.id}/', {
            'stock_quantity': '99', 'minimum_threshold': '5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.stock_quantity, Decimal('10.000'))
        self.assertEqual(self.stock.minimum_threshold, Decimal('5.000'))

    def test_adjust_stock(self):
        response = self.client.post(f'/api/v1/inventory/stock/{self.stock.id}/adjust/', {
            'quantity_change': '-4', 'movement_type': 'damage', 'notes': 'Dropped tray',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['new_quantity'], '6.000')
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(self.stock.id)).exists())

    def test_adjust_cannot_go_negative(self):
        response = self.client.post(f'/api/v1/inventory/stock/{self.stock.id}/adjust/', {
            'quantity_change': '-11',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_adjust_requires_manager(self):
        self.client.authenticate_user(self.cashier)
        response = self.client.post(f'/api/v1/inventory/stock/{self.stock.id}/adjust/', {
            'new_quantity': '1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_batch_adjust_partial_failure(self):
        response = self.client.post('/api/v1/inventory/stock/batch-adjust/', {
            'updates': [
                {'stock_id': self.stock.id, 'new_quantity': '12'},
                {'stock_id': 999999, 'new_quantity': '1'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_207_MULTI_STATUS)
        self.assertEqual(response.data['failed_count'], 1)

    def test_batch_adjust_rejects_malformed_entries(self):
        url = '/api/v1/inventory/stock/batch-adjust/'
        response = self.client.post(url, {'updates': ['not-an-object']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'updates': [
            {'stock_id': self.stock.id, 'new_quantity': '12'},
            {'stock_id': self.stock.id, 'new_quantity': '-3'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('new_quantity', response.data['updates'][1])
        response = self.client.post(url, {'updates': [{'stock_id': self.stock.id}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(InventoryMovement.objects.filter(inventory_stock=self.stock).exists())

    def test_audit_trail_and_integrity(self):
        audit.update_stock_with_audit(self.stock, 8, 'sale')
        response = self.client.get(f'/api/v1/inventory/stock/{self.stock.id}/audit-trail/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['movements']), 1)
        for limit in ('-1', '0', 'many'):
            response = self.client.get(f'/api/v1/inventory/stock/{self.stock.id}/audit-trail/?limit={limit}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(f'/api/v1/inventory/stock/{self.stock.id}/integrity/')
        self.assertTrue(response.data['is_valid'])

    def test_delete_deactivates(self):
        response = self.client.delete(f'/api/v1/inventory/stock/{self.stock.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.stock.refresh_from_db()
        self.assertFalse(self.stock.is_active)

    def test_commissary_requires_commissary_access(self):
        self.client.authenticate_user(self.cashier)
        response = self.client.post('/api/v1/commissary/items/', {'name': 'Rice', 'unit': 'kg'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/commissary/items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_direct_conversion_endpoint(self):
        rice = TestDataFactory.create_commissary_item(name='Rice', current_stock=20)
        response = self.client.post('/api/v1/conversions/direct/', {
            'store': self.store.id, 'commissary_item': rice.id, 'quantity': '5',
            'store_item_name': 'Rice', 'store_item_unit': 'kg',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['commissary_remaining'], '15.000')

        response = self.client.post('/api/v1/conversions/direct/', {
            'store': self.store.id, 'commissary_item': rice.id, 'quantity': '50',
            'store_item_name': 'Rice', 'store_item_unit': 'kg',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_pre_validate_endpoint(self):
        TestDataFactory.create_product(self.store, name='Burger Bun')
        response = self.client.post('/api/v1/inventory/pre-validate/', {
            'store': self.store.id, 'items': [{'product_name': 'Burger Bun', 'quantity': '20'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_valid'])
        self.assertEqual(response.data['missing_ingredients'][0]['available'], '10.000')

    def test_store_health_endpoint(self):
        response = self.client.get(f'/api/v1/stores/{self.store.id}/inventory-health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['healthy'])
        self.client.authenticate_user(self.cashier)
        response = self.client.get(f'/api/v1/stores/{self.store.id}/inventory-health/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
