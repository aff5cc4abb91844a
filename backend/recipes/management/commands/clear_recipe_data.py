"""
Soft-clear recipe data: unlink catalog products and deactivate recipes and templates
Usage: python manage.py clear_recipe_data [--confirm]
"""
from django.core.management.base import BaseCommand
from backend.recipes.deployment import clear_recipe_data


class Command(BaseCommand):
    help = 'Unlink catalog products from recipes and deactivate all recipes and templates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--confirm',
            action='store_true',
            help='Skip confirmation prompt',
        )

    def handle(self, *args, **options):
        if not options['confirm']:
            self.stdout.write(self.style.WARNING('⚠️  WARNING: This will deactivate ALL recipes and recipe templates'))
            confirm = input('Type "YES" to confirm: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        result = clear_recipe_data()
        self.stdout.write(f"  - Products unlinked: {result['products_unlinked']}")
        self.stdout.write(f"  - Recipes deactivated: {result['recipes_deactivated']}")
        self.stdout.write(f"  - Templates deactivated: {result['templates_deactivated']}")
        self.stdout.write(self.style.SUCCESS('✓ Recipe data cleared'))
