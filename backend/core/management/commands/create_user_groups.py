from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group, Permission


# app labels each operational group may touch (view/add/change)
OPERATIONAL_GROUPS = {
    'Manager': {
        'description': 'Store manager - recipes, catalog, inventory, POS and reports',
        'apps': ['recipes', 'catalog', 'inventory', 'pos', 'locations', 'compliance'],
        'actions': ['view', 'add', 'change'],
    },
    'Cashier': {
        'description': 'Counter staff - POS transactions and catalog lookups',
        'apps': ['pos', 'catalog'],
        'actions': ['view', 'add'],
    },
    'Commissary': {
        'description': 'Central kitchen staff - commissary stock and conversions',
        'apps': ['inventory', 'recipes'],
        'actions': ['view', 'add', 'change'],
    },
}


class Command(BaseCommand):
    help = 'Create Django user groups for RBAC: Admin, Owner, Manager, Cashier, Commissary'

    def handle(self, *args, **options):
        created_count = 0

        for name in ['Admin', 'Owner'] + list(OPERATIONAL_GROUPS):
            group, created = Group.objects.get_or_create(name=name)
            if created:
                self.stdout.write(self.style.SUCCESS(f'✓ Created group: {name}'))
                created_count += 1
            else:
                self.stdout.write(f'  Group already exists: {name}')

            if name == 'Admin':
                group.permissions.set(Permission.objects.all())
                self.stdout.write('  Added all permissions to Admin group')
            elif name == 'Owner':
                # Everything except Django admin and user management
                group.permissions.set(
                    Permission.objects.exclude(content_type__app_label='admin').exclude(
                        content_type__app_label='core',
                        codename__in=['add_user', 'change_user', 'delete_user'],
                    )
                )
                self.stdout.write('  Added module permissions to Owner group')
            else:
                config = OPERATIONAL_GROUPS[name]
                permissions = Permission.objects.filter(content_type__app_label__in=config['apps'])
                permissions = [
                    p for p in permissions
                    if p.codename.split('_', 1)[0] in config['actions']
                ]
                group.permissions.set(permissions)
                self.stdout.write(f'  {config["description"]}: {len(permissions)} permissions')

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {created_count} groups created'
        ))
