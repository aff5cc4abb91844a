"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.locations.models import Store
from backend.catalog.models import Category, ProductCatalog
from backend.inventory.models import InventoryStock, CommissaryItem
from backend.recipes.models import RecipeTemplate, RecipeTemplateIngredient
from backend.recipes.deployment import deploy_template_to_store
from backend.accounting.models import ChartOfAccount
from backend.pos.services import create_transaction
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False,
                    is_superuser=False, groups=None):
        """Create a test user, optionally in the named groups"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        for name in groups or []:
            group, _ = Group.objects.get_or_create(name=name)
            user.groups.add(group)
        return user

    @staticmethod
    def create_store(name=None, code=None, compliant=False):
        """Create a test store; compliant fills every BIR identity field"""
        if not name:
            name = f'Store_{TestDataFactory.random_string(6)}'
        if not code:
            code = f'ST{TestDataFactory.random_string(6).upper()}'
        fields = {}
        if compliant:
            fields = {
                'tin': '123-456-789-000',
                'business_name': f'{name} Food Corp',
                'machine_accreditation_number': 'ACC-0001',
                'machine_serial_number': 'SN-0001',
                'permit_number': 'PTU-0001',
            }
        return Store.objects.create(
            name=name,
            code=code,
            address=f'Test Address {name}',
            phone='1234567890',
            **fields
        )

    @staticmethod
    def create_category(store, name=None):
        """Create a test menu category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(store=store, name=name, description=f'Test category {name}')

    @staticmethod
    def create_product(store, name=None, price=None, category=None, recipe=None, is_available=True):
        """Create a test catalog product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return ProductCatalog.objects.create(
            store=store,
            product_name=name,
            price=Decimal('100.00') if price is None else Decimal(str(price)),
            category=category,
            recipe=recipe,
            is_available=is_available
        )

    @staticmethod
    def create_stock(store, item=None, unit='pieces', quantity=0, minimum_threshold=0,
                     serving_ready_quantity=None, cost=0):
        """Create a test inventory stock item"""
        if not item:
            item = f'Item_{TestDataFactory.random_string(6)}'
        return InventoryStock.objects.create(
            store=store,
            item=item,
            unit=unit,
            stock_quantity=Decimal(str(quantity)),
            serving_ready_quantity=None if serving_ready_quantity is None else Decimal(str(serving_ready_quantity)),
            minimum_threshold=Decimal(str(minimum_threshold)),
            cost=Decimal(str(cost))
        )

    @staticmethod
    def create_commissary_item(name=None, unit='kg', current_stock=0, unit_cost=0, minimum_threshold=0):
        """Create a test commissary item"""
        if not name:
            name = f'Commissary_{TestDataFactory.random_string(6)}'
        return CommissaryItem.objects.create(
            name=name,
            unit=unit,
            current_stock=Decimal(str(current_stock)),
            unit_cost=Decimal(str(unit_cost)),
            minimum_threshold=Decimal(str(minimum_threshold))
        )

    @staticmethod
    def create_template(name=None, ingredients=None, yield_quantity=1, category_name='Other',
                        suggested_price=0):
        """
        Create a recipe template. ingredients is a list of
        (name, quantity, unit, cost_per_unit) or dicts of template ingredient fields.
        """
        if not name:
            name = f'Recipe_{TestDataFactory.random_string(6)}'
        template = RecipeTemplate.objects.create(
            name=name,
            category_name=category_name,
            yield_quantity=Decimal(str(yield_quantity)),
            suggested_price=Decimal(str(suggested_price))
        )
        for ingredient in ingredients or []:
            if isinstance(ingredient, dict):
                fields = dict(ingredient)
            else:
                ingredient_name, quantity, unit, cost = ingredient
                fields = {'ingredient_name': ingredient_name, 'quantity': quantity,
                          'unit': unit, 'cost_per_unit': cost}
            fields['quantity'] = Decimal(str(fields['quantity']))
            fields['cost_per_unit'] = Decimal(str(fields.get('cost_per_unit', 0)))
            RecipeTemplateIngredient.objects.create(template=template, **fields)
        template.recalculate_cost()
        return template

    @staticmethod
    def create_deployed_recipe(store, name=None, ingredients=None, price='150.00'):
        """Deploy a new template to the store; returns (template, recipe, product)"""
        template = TestDataFactory.create_template(name=name, ingredients=ingredients, suggested_price=price)
        outcome = deploy_template_to_store(template, store)
        product = ProductCatalog.objects.get(pk=outcome['product_id'])
        return template, product.recipe, product

    @staticmethod
    def create_account(account_code=None, account_type='asset', account_name=None):
        """Create a chart of accounts entry"""
        if not account_code:
            account_code = str(random.randint(1000, 9999))
        return ChartOfAccount.objects.create(
            account_code=account_code,
            account_name=account_name or f'Account {account_code}',
            account_type=account_type
        )

    @staticmethod
    def create_transaction(store, product, quantity=1, user=None, **kwargs):
        """Create a pending sale of one product (card payment unless overridden)"""
        kwargs.setdefault('payment_method', 'card')
        return create_transaction(
            store,
            [{'product_id': product.id, 'quantity': quantity}],
            user=user,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
