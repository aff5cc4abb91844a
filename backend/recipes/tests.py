"""
Test suite for Recipes module
Tests: ingredient matching, CSV import/export, template CRUD, deployment to stores,
ingredient mapping and the soft clear
"""
import os
import tempfile
from decimal import Decimal
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from backend.catalog.models import Category, ProductCatalog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.recipes import csv_io, matching
from backend.recipes.deployment import clear_recipe_data, deploy_template_to_store, deploy_templates
from backend.recipes.models import Recipe, RecipeTemplate

CSV_TEXT = (
    'recipe_name,recipe_category,combo_main,combo_add_on,ingredient_name,quantity,unit,cost_per_unit,'
    'ingredient_category,suggested_price\n'
    'Classic Tiramisu,Premium,true,false,Regular Croissant,1,pieces,30,base,125\n'
    'Classic Tiramisu,Premium,false,true,Tiramisu Sauce,1.5,portion,3.5,sauce,\n'
    'Iced Americano,,false,false,Espresso Shot,2,serving,12,beverage,\n'
    'Iced Americano,,false,false,Straw,0,pieces,1,packaging,\n'
    ',Coffee,false,false,Orphan,1,pieces,1,,\n'
)


class MatchingTests(TestCase):
    """Test name/unit normalization and fuzzy matching"""

    def test_normalize(self):
        self.assertEqual(matching.normalize_unit_name(' PCS '), 'pieces')
        self.assertEqual(matching.normalize_unit_name('Kilograms'), 'kg')
        self.assertEqual(matching.normalize_ingredient_name('  Regular   Croissant '), 'croissant')

    def test_pack_quantity(self):
        self.assertEqual(matching.extract_pack_quantity('Pack of 12'), 12)
        self.assertEqual(matching.extract_pack_quantity('20 piping bag'), 20)
        self.assertEqual(matching.extract_pack_quantity('5pc'), 5)
        self.assertEqual(matching.extract_pack_quantity('box'), 1)

    def test_unit_conversion(self):
        self.assertEqual(matching.unit_conversion_factor('kg', 'g'), Decimal('1000'))
        self.assertEqual(matching.unit_conversion_factor('ml', 'liters'), Decimal('0.001'))
        self.assertIsNone(matching.unit_conversion_factor('kg', 'ml'))
        self.assertTrue(matching.units_compatible('serving', 'pieces'))

    def test_similarity(self):
        self.assertEqual(matching.levenshtein_distance('kitten', 'sitting'), 3)
        self.assertEqual(matching.similarity('', ''), 1.0)
        self.assertAlmostEqual(matching.similarity('abcd', 'abce'), 0.75)

    def test_find_ingredient_matches(self):
        store = TestDataFactory.create_store()
        croissant = TestDataFactory.create_stock(store, item='Croissant', unit='pieces')
        TestDataFactory.create_stock(store, item='Whipped Cream', unit='serving')
        results = matching.find_ingredient_matches([
            {'ingredient_name': 'Regular Croissant', 'unit': 'pcs'},
            {'ingredient_name': 'Chocolate Syrup', 'unit': 'ml'},
        ], store)
        self.assertEqual(results[0]['matched_item']['id'], croissant.id)
        self.assertTrue(results[0]['unit_match'])
        self.assertIsNone(results[1]['matched_item'])


class RecipeCSVTests(TestCase):
    """Test CSV parsing, import and export"""

    def test_parse_groups_rows_by_recipe(self):
        parsed = csv_io.parse_recipe_csv(CSV_TEXT)
        self.assertTrue(parsed.is_valid)
        recipes = {recipe['name']: recipe for recipe in parsed.recipes}
        tiramisu = recipes['Classic Tiramisu']
        self.assertEqual(len(tiramisu['ingredients']), 2)
        self.assertEqual(tiramisu['suggested_price'], Decimal('125'))
        self.assertEqual(tiramisu['total_cost'], Decimal('35.25'))
        self.assertTrue(tiramisu['ingredients'][0]['combo_main'])
        self.assertTrue(tiramisu['ingredients'][1]['combo_add_on'])

        americano = recipes['Iced Americano']
        self.assertEqual(americano['category'], 'Other')
        self.assertEqual(len(americano['ingredients']), 1)
        # 24 x 1.8 = 43.2, rounded up
        self.assertEqual(americano['suggested_price'], Decimal('44'))
        self.assertEqual(len(parsed.warnings), 2)

    def test_parse_errors(self):
        self.assertEqual(csv_io.parse_recipe_csv('').errors, ['CSV file is empty'])
        parsed = csv_io.parse_recipe_csv('recipe_name,quantity\nA,1\n')
        self.assertIn('Missing required columns', parsed.errors[0])

    def test_parse_accepts_bom_and_quoted_headers(self):
        content = '\ufeff"Recipe_Name","Ingredient_Name","Quantity","Unit"\nLatte,Milk,200,ml\n'.encode('utf-8')
        parsed = csv_io.parse_recipe_csv(content)
        self.assertTrue(parsed.is_valid, parsed.errors)
        self.assertEqual(parsed.recipes[0]['ingredients'][0]['unit'], 'ml')

    def test_import_upserts_by_name(self):
        parsed = csv_io.parse_recipe_csv(CSV_TEXT)
        summary = csv_io.import_recipe_templates(parsed.recipes)
        self.assertEqual(summary['created'], 2)
        summary = csv_io.import_recipe_templates(parsed.recipes)
        self.assertEqual(summary['updated'], 2)
        template = RecipeTemplate.objects.get(name='Classic Tiramisu')
        self.assertEqual(template.version, 2)
        self.assertEqual(template.ingredients.count(), 2)

    def test_export_round_trips_through_parse(self):
        csv_io.import_recipe_templates(csv_io.parse_recipe_csv(CSV_TEXT).recipes)
        RecipeTemplate.objects.create(name='Empty Recipe')
        content = csv_io.export_recipe_templates(RecipeTemplate.objects.all())
        lines = content.strip().split('\n')
        self.assertEqual(lines[0].split(','), csv_io.CSV_COLUMNS)
        self.assertIn('Classic Tiramisu,Premium,true,false,Regular Croissant,1,pieces,30,base,125', lines)
        self.assertIn('Empty Recipe,Other,false,false,,0,,0,,0', lines)
        reparsed = csv_io.parse_recipe_csv(content)
        self.assertEqual(len(reparsed.recipes), 3)

    def test_import_command(self):
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False) as handle:
            handle.write(CSV_TEXT)
        try:
            out = StringIO()
            call_command('import_recipe_templates', handle.name, '--dry-run', stdout=out)
            self.assertIn('Dry run', out.getvalue())
            self.assertFalse(RecipeTemplate.objects.exists())
            call_command('import_recipe_templates', handle.name, stdout=StringIO())
            self.assertEqual(RecipeTemplate.objects.count(), 2)
        finally:
            os.unlink(handle.name)
        with self.assertRaises(CommandError):
            call_command('import_recipe_templates', '/nonexistent/recipes.csv')

    def test_export_and_clear_commands(self):
        TestDataFactory.create_template(name='Turon', ingredients=[('Banana', 1, 'pieces', 8)])
        out = StringIO()
        call_command('export_recipe_templates', stdout=out)
        self.assertIn('Turon,Other,false,false,Banana,1,pieces,8,,0', out.getvalue())

        call_command('clear_recipe_data', '--confirm', stdout=StringIO())
        self.assertFalse(RecipeTemplate.objects.filter(is_active=True).exists())
        out = StringIO()
        call_command('export_recipe_templates', stdout=out)
        self.assertNotIn('Turon', out.getvalue())
        out = StringIO()
        call_command('export_recipe_templates', '--include-inactive', stdout=out)
        self.assertIn('Turon', out.getvalue())


class DeploymentTests(TestCase):
    """Test deploying templates to stores"""

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.flour = TestDataFactory.create_stock(self.store, item='Flour', unit='g')
        self.template = TestDataFactory.create_template(name='Pandesal', suggested_price=60, ingredients=[
            ('Flour', '0.5', 'kg', 40),
            ('Unicorn Dust', 1, 'pieces', 0),
        ])

    def test_deploy_maps_ingredients_and_creates_product(self):
        outcome = deploy_template_to_store(self.template, self.store)
        self.assertEqual(outcome['status'], 'deployed')
        self.assertEqual(outcome['unmapped_ingredients'], ['Unicorn Dust'])

        recipe = Recipe.objects.get(pk=outcome['recipe_id'])
        flour_line = recipe.ingredients.get(ingredient_name='Flour')
        self.assertEqual(flour_line.inventory_stock, self.flour)
        self.assertEqual(flour_line.conversion_factor, Decimal('1000'))
        self.assertEqual(flour_line.stock_quantity_required(2), Decimal('1000'))

        product = ProductCatalog.objects.get(pk=outcome['product_id'])
        self.assertEqual(product.recipe, recipe)
        self.assertEqual(product.price, Decimal('60.00'))
        self.assertEqual(product.category.name, 'Other')

    def test_redeploy_is_skipped(self):
        deploy_template_to_store(self.template, self.store)
        outcome = deploy_template_to_store(self.template, self.store)
        self.assertEqual(outcome['status'], 'skipped')

    def test_existing_product_is_linked(self):
        product = TestDataFactory.create_product(self.store, name='Pandesal', price='5.00')
        outcome = deploy_template_to_store(self.template, self.store)
        self.assertEqual(outcome['product_id'], product.id)
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal('5.00'))
        self.assertIsNotNone(product.recipe)

    def test_existing_product_and_category_matched_ignoring_case(self):
        category = TestDataFactory.create_category(self.store, name='premium')
        product = TestDataFactory.create_product(self.store, name='pandesal', price='5.00')
        template = TestDataFactory.create_template(name='Ensaymada', category_name='Premium')
        self.template.category_name = 'PREMIUM'
        self.template.save()

        deploy_template_to_store(self.template, self.store)
        outcome = deploy_template_to_store(template, self.store)
        self.assertEqual(Category.objects.filter(store=self.store, name__iexact='premium').count(), 1)
        self.assertEqual(ProductCatalog.objects.get(pk=outcome['product_id']).category, category)
        self.assertEqual(ProductCatalog.objects.filter(store=self.store, product_name__iexact='pandesal').count(), 1)
        product.refresh_from_db()
        self.assertIsNotNone(product.recipe)

    def test_deploy_carries_combo_flags(self):
        template = TestDataFactory.create_template(name='Croffle Overload', ingredients=[
            {'ingredient_name': 'Croffle', 'quantity': 1, 'unit': 'pieces', 'combo_main': True},
            {'ingredient_name': 'Peanut', 'quantity': 1, 'unit': 'portion', 'combo_add_on': True},
        ])
        outcome = deploy_template_to_store(template, self.store)
        recipe = Recipe.objects.get(pk=outcome['recipe_id'])
        base = recipe.ingredients.get(ingredient_name='Croffle')
        add_on = recipe.ingredients.get(ingredient_name='Peanut')
        self.assertTrue(base.combo_main)
        self.assertFalse(base.combo_add_on)
        self.assertTrue(add_on.combo_add_on)

    def test_deploy_all(self):
        TestDataFactory.create_store()
        result = deploy_templates()
        self.assertTrue(result['success'])
        self.assertEqual(result['deployed'], 2)
        result = deploy_templates()
        self.assertEqual(result['skipped'], 2)

    def test_clear_then_redeploy(self):
        deploy_template_to_store(self.template, self.store)
        result = clear_recipe_data()
        self.assertEqual(result['recipes_deactivated'], 1)
        self.assertEqual(result['products_unlinked'], 1)
        self.template.is_active = True
        self.template.save()
        outcome = deploy_template_to_store(self.template, self.store)
        self.assertEqual(outcome['status'], 'deployed')
        self.assertEqual(Recipe.objects.filter(template=self.template, store=self.store).count(), 1)


class RecipeAPITests(TestCase):
    """Test recipe endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(groups=['Manager'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.store = TestDataFactory.create_store()

    def _template_payload(self, name='Halo-Halo'):
        return {
            'name': name,
            'category_name': 'Desserts',
            'ingredients': [
                {'ingredient_name': 'Shaved Ice', 'quantity': '1', 'unit': 'serving', 'cost_per_unit': '5'},
                {'ingredient_name': 'Ube Jam', 'quantity': '2', 'unit': 'scoop', 'cost_per_unit': '12.5'},
            ],
        }

    def test_create_template_computes_cost(self):
        response = self.client.post('/api/v1/recipe-templates/', self._template_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_cost'], '30.00')
        self.assertEqual(response.data['ingredient_count'], 2)
        response = self.client.post('/api/v1/recipe-templates/', self._template_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_replacing_ingredients_bumps_version(self):
        response = self.client.post('/api/v1/recipe-templates/', self._template_payload(), format='json')
        template_id = response.data['id']
        response = self.client.patch(f'/api/v1/recipe-templates/{template_id}/', {
            'ingredients': [{'ingredient_name': 'Shaved Ice', 'quantity': '2', 'unit': 'serving',
                             'cost_per_unit': '5'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['version'], 2)
        self.assertEqual(response.data['total_cost'], '10.00')

    def test_cashier_cannot_create_template(self):
        self.client.authenticate_user(TestDataFactory.create_user(groups=['Cashier']))
        response = self.client.post('/api/v1/recipe-templates/', self._template_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_import_dry_run_and_save(self):
        response = self.client.post('/api/v1/recipe-templates/import/?dry_run=true', {'csv': CSV_TEXT},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['recipes']), 2)
        self.assertFalse(RecipeTemplate.objects.exists())

        response = self.client.post('/api/v1/recipe-templates/import/', {'csv': CSV_TEXT}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 2)

        response = self.client.post('/api/v1/recipe-templates/import/', {'csv': 'bad,header\n1,2\n'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_and_example(self):
        TestDataFactory.create_template(name='Turon', ingredients=[('Banana', 1, 'pieces', 8)])
        response = self.client.get('/api/v1/recipe-templates/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('Turon', response.content.decode())
        response = self.client.get('/api/v1/recipe-templates/example-csv/')
        self.assertIn('Classic Tiramisu', response.content.decode())

    def test_deploy_endpoint(self):
        template = TestDataFactory.create_template(name='Turon', ingredients=[('Banana', 1, 'pieces', 8)])
        response = self.client.post('/api/v1/recipe-templates/deploy/', {
            'template_ids': [template.id], 'store_ids': [self.store.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deployed'], 1)

    def test_ingredient_matches_endpoint(self):
        TestDataFactory.create_stock(self.store, item='Banana', unit='pieces')
        template = TestDataFactory.create_template(name='Turon', ingredients=[('Banana', 1, 'pcs', 8)])
        response = self.client.get(f'/api/v1/recipe-templates/{template.id}/matches/?store={self.store.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['unmatched_count'], 0)
        response = self.client.get(f'/api/v1/recipe-templates/{template.id}/matches/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_ingredient_mapping(self):
        _, recipe, _ = TestDataFactory.create_deployed_recipe(
            self.store, name='Turon', ingredients=[('Plantain', 1, 'pieces', 8)],
        )
        stock = TestDataFactory.create_stock(self.store, item='Saba Banana', unit='pieces')
        ingredient = recipe.ingredients.get()
        response = self.client.get(f'/api/v1/recipes/?store={self.store.id}&unmapped=true')
        self.assertEqual(len(response.data), 1)

        response = self.client.patch(f'/api/v1/recipes/{recipe.id}/ingredients/{ingredient.id}/',
                                     {'inventory_stock': stock.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_mapped'])

        other_stock = TestDataFactory.create_stock(TestDataFactory.create_store(), item='Saba Banana')
        response = self.client.patch(f'/api/v1/recipes/{recipe.id}/ingredients/{ingredient.id}/',
                                     {'inventory_stock': other_stock.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_clear_requires_admin_and_confirmation(self):
        response = self.client.post('/api/v1/recipes/clear/', {'confirm': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.post('/api/v1/recipes/clear/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/recipes/clear/', {'confirm': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
