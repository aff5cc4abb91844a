"""
Recipe template CSV import/export.

Column contract (in order):
recipe_name, recipe_category, combo_main, combo_add_on, ingredient_name,
quantity, unit, cost_per_unit, ingredient_category, suggested_price
"""
import csv
import io
import logging
import math
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction

from .models import RecipeTemplate, RecipeTemplateIngredient

logger = logging.getLogger('backend.recipes')

CSV_COLUMNS = [
    'recipe_name', 'recipe_category', 'combo_main', 'combo_add_on', 'ingredient_name',
    'quantity', 'unit', 'cost_per_unit', 'ingredient_category', 'suggested_price',
]
REQUIRED_COLUMNS = ['recipe_name', 'ingredient_name', 'quantity', 'unit']
TRUE_VALUES = ('true', 'yes', 'y', '1')
DEFAULT_CATEGORY = 'Other'

EXAMPLE_ROWS = [
    ['Classic Tiramisu', 'Premium', 'true', 'false', 'Regular Croissant', '1', 'pieces', '30', 'base', '125'],
    ['Classic Tiramisu', 'Premium', 'false', 'false', 'Whipped Cream', '1', 'serving', '8', 'topping', '125'],
    ['Classic Tiramisu', 'Premium', 'false', 'true', 'Tiramisu Sauce', '1', 'portion', '3.5', 'sauce', '125'],
    ['Iced Americano', 'Coffee', 'false', 'false', 'Espresso Shot', '2', 'serving', '12', 'beverage', '90'],
    ['Iced Americano', 'Coffee', 'false', 'false', 'Cup 16oz', '1', 'pieces', '4', 'packaging', '90'],
]


class CSVParseResult:
    def __init__(self):
        self.recipes = []
        self.warnings = []
        self.errors = []

    @property
    def is_valid(self):
        return not self.errors

    def as_dict(self):
        return {
            'recipes': [
                {**recipe,
                 'suggested_price': str(recipe['suggested_price']),
                 'total_cost': str(recipe['total_cost']),
                 'ingredients': [
                     {**i, 'quantity': str(i['quantity']), 'cost_per_unit': str(i['cost_per_unit'])}
                     for i in recipe['ingredients']
                 ]}
                for recipe in self.recipes
            ],
            'warnings': self.warnings,
            'errors': self.errors,
        }


def parse_bool(value):
    return str(value or '').strip().lower() in TRUE_VALUES


def parse_decimal(value):
    """Unparsable or non-finite numbers become 0"""
    try:
        number = Decimal(str(value or '').strip().replace(',', ''))
    except InvalidOperation:
        return Decimal('0')
    if not number.is_finite():
        return Decimal('0')
    return number


def format_decimal(value):
    value = Decimal(value or 0)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal('1')))
    return format(value.normalize(), 'f')


def _clean_header(cell):
    return cell.strip().strip('"').strip("'").strip().lower()


def default_suggested_price(total_cost):
    markup = Decimal(str(getattr(settings, 'RECIPE_PRICE_MARKUP', '1.8')))
    return Decimal(math.ceil(total_cost * markup))


def parse_recipe_csv(content):
    """Parse CSV text (or bytes) into grouped recipe dicts"""
    result = CSVParseResult()
    if isinstance(content, bytes):
        content = content.decode('utf-8-sig')
    content = content.lstrip('\ufeff')

    rows = [row for row in csv.reader(io.StringIO(content)) if any(cell.strip() for cell in row)]
    if not rows:
        result.errors.append('CSV file is empty')
        return result

    header = [_clean_header(cell) for cell in rows[0]]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        result.errors.append(f"Missing required columns: {', '.join(missing)}")
        return result
    index = {column: header.index(column) for column in CSV_COLUMNS if column in header}

    grouped = {}
    for line_number, row in enumerate(rows[1:], start=2):
        record = {
            column: (row[position].strip() if position < len(row) else '')
            for column, position in index.items()
        }
        name = record.get('recipe_name', '')
        if not name:
            result.warnings.append(f"Row {line_number}: missing recipe_name, row skipped")
            continue

        recipe = grouped.get(name)
        if recipe is None:
            recipe = grouped[name] = {
                'name': name,
                'category': '',
                'suggested_price': Decimal('0'),
                'ingredients': [],
            }
        if not recipe['category'] and record.get('recipe_category'):
            recipe['category'] = record['recipe_category']
        price = parse_decimal(record.get('suggested_price'))
        if recipe['suggested_price'] == 0 and price > 0:
            recipe['suggested_price'] = price

        ingredient_name = record.get('ingredient_name', '')
        quantity = parse_decimal(record.get('quantity'))
        if not ingredient_name:
            continue
        if quantity <= 0:
            result.warnings.append(
                f"Row {line_number}: '{ingredient_name}' in '{name}' has no quantity, ingredient skipped"
            )
            continue
        recipe['ingredients'].append({
            'ingredient_name': ingredient_name,
            'quantity': quantity,
            'unit': record.get('unit', '') or 'pieces',
            'cost_per_unit': parse_decimal(record.get('cost_per_unit')),
            'ingredient_category': record.get('ingredient_category', ''),
            'combo_main': parse_bool(record.get('combo_main')),
            'combo_add_on': parse_bool(record.get('combo_add_on')),
        })

    for recipe in grouped.values():
        recipe['category'] = recipe['category'] or DEFAULT_CATEGORY
        recipe['total_cost'] = sum(
            (i['quantity'] * i['cost_per_unit'] for i in recipe['ingredients']), Decimal('0')
        ).quantize(Decimal('0.01'))
        if recipe['suggested_price'] == 0:
            recipe['suggested_price'] = default_suggested_price(recipe['total_cost'])
        result.recipes.append(recipe)

    if not result.recipes:
        result.errors.append('No recipes found in CSV')
    logger.info(f"Parsed {len(result.recipes)} recipes ({len(result.warnings)} warnings)")
    return result


def _write_ingredients(template, ingredients):
    RecipeTemplateIngredient.objects.bulk_create([
        RecipeTemplateIngredient(template=template, **ingredient) for ingredient in ingredients
    ])


def import_recipe_templates(recipes, user=None):
    """
    Upsert parsed recipes by template name. An existing active template
    gets its ingredients replaced and its version bumped.
    """
    summary = {'created': 0, 'updated': 0, 'errors': [], 'template_ids': []}
    created_by = user if user is not None and user.is_authenticated else None

    for recipe in recipes:
        try:
            with transaction.atomic():
                template = RecipeTemplate.objects.filter(name=recipe['name'], is_active=True).first()
                if template is None:
                    template = RecipeTemplate.objects.create(
                        name=recipe['name'],
                        category_name=recipe['category'],
                        suggested_price=recipe['suggested_price'],
                        total_cost=recipe['total_cost'],
                        created_by=created_by,
                    )
                    summary['created'] += 1
                else:
                    template.ingredients.all().delete()
                    template.category_name = recipe['category']
                    template.suggested_price = recipe['suggested_price']
                    template.total_cost = recipe['total_cost']
                    template.version += 1
                    template.save()
                    summary['updated'] += 1
                _write_ingredients(template, recipe['ingredients'])
                summary['template_ids'].append(template.id)
        except Exception as e:
            logger.error(f"Failed to import recipe '{recipe['name']}': {str(e)}", exc_info=True)
            summary['errors'].append(f"{recipe['name']}: {str(e)}")

    logger.info(
        f"Recipe import finished: {summary['created']} created, {summary['updated']} updated, "
        f"{len(summary['errors'])} errors"
    )
    return summary


def export_recipe_templates(templates):
    """One row per ingredient; a template without ingredients still gets one row"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(CSV_COLUMNS)
    for template in templates.prefetch_related('ingredients'):
        price = format_decimal(template.suggested_price)
        ingredients = list(template.ingredients.all())
        if not ingredients:
            writer.writerow([template.name, template.category_name, 'false', 'false',
                             '', '0', '', '0', '', price])
            continue
        for ingredient in ingredients:
            writer.writerow([
                template.name,
                template.category_name,
                'true' if ingredient.combo_main else 'false',
                'true' if ingredient.combo_add_on else 'false',
                ingredient.ingredient_name,
                format_decimal(ingredient.quantity),
                ingredient.unit,
                format_decimal(ingredient.cost_per_unit),
                ingredient.ingredient_category,
                price,
            ])
    return buffer.getvalue()


def example_csv():
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(CSV_COLUMNS)
    writer.writerows(EXAMPLE_ROWS)
    return buffer.getvalue()
