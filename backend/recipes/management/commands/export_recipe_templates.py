"""
Export recipe templates to CSV
Usage: python manage.py export_recipe_templates [--output recipes.csv] [--include-inactive]
"""
from django.core.management.base import BaseCommand
from backend.recipes.csv_io import export_recipe_templates
from backend.recipes.models import RecipeTemplate


class Command(BaseCommand):
    help = 'Export recipe templates to CSV (stdout by default)'

    def add_arguments(self, parser):
        parser.add_argument('--output', type=str, help='File to write instead of stdout')
        parser.add_argument('--include-inactive', action='store_true', help='Also export deactivated templates')

    def handle(self, *args, **options):
        templates = RecipeTemplate.objects.all()
        if not options['include_inactive']:
            templates = templates.filter(is_active=True)
        content = export_recipe_templates(templates)

        if not options['output']:
            self.stdout.write(content, ending='')
            return
        with open(options['output'], 'w', newline='', encoding='utf-8') as handle:
            handle.write(content)
        self.stdout.write(self.style.SUCCESS(f"✓ Exported {templates.count()} templates to {options['output']}"))
