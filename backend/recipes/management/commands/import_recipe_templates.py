"""
Import recipe templates from a CSV file
Usage: python manage.py import_recipe_templates path/to/recipes.csv [--dry-run]
"""
import os
from django.core.management.base import BaseCommand, CommandError
from backend.core.utils import create_audit_log
from backend.recipes.csv_io import import_recipe_templates, parse_recipe_csv


class Command(BaseCommand):
    help = 'Import (upsert by name) recipe templates from a CSV file'

    def add_arguments(self, parser):
        parser.add_argument('csv_file', type=str, help='Path to the CSV file')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Parse and report without saving',
        )

    def handle(self, *args, **options):
        csv_file = options['csv_file']
        if not os.path.exists(csv_file):
            raise CommandError(f"CSV file not found at {csv_file}")

        with open(csv_file, 'rb') as handle:
            parsed = parse_recipe_csv(handle.read())

        for warning in parsed.warnings:
            self.stdout.write(self.style.WARNING(f"  ! {warning}"))
        if not parsed.is_valid:
            raise CommandError('; '.join(parsed.errors))

        self.stdout.write(f"Parsed {len(parsed.recipes)} recipes")
        if options['dry_run']:
            for recipe in parsed.recipes:
                self.stdout.write(
                    f"  - {recipe['name']} [{recipe['category']}] "
                    f"{len(recipe['ingredients'])} ingredients, price {recipe['suggested_price']}"
                )
            self.stdout.write(self.style.SUCCESS('Dry run: nothing saved'))
            return

        summary = import_recipe_templates(parsed.recipes)
        for error in summary['errors']:
            self.stdout.write(self.style.ERROR(f"  ✗ {error}"))
        create_audit_log(action='recipe_import', model_name='RecipeTemplate', object_id='bulk',
                         object_name=os.path.basename(csv_file),
                         changes={'created': summary['created'], 'updated': summary['updated']})
        self.stdout.write(self.style.SUCCESS(
            f"✓ {summary['created']} created, {summary['updated']} updated, {len(summary['errors'])} errors"
        ))
