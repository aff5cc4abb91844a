"""
Check inventory health per store and validate recent sales against their movements.
Usage: python manage.py monitor_inventory_sync [--store ID] [--hours 24]
Suitable for cron; exits non-zero when problems are found with --fail-on-issues.
"""
from datetime import timedelta
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from backend.locations.models import Store
from backend.pos.models import Transaction
from backend.inventory.sync_monitor import InventorySyncMonitor


class Command(BaseCommand):
    help = 'Report audit-trail integrity, negative stock and out-of-sync sales per store'

    def add_arguments(self, parser):
        parser.add_argument('--store', type=int, help='Only check this store id')
        parser.add_argument('--hours', type=int, default=24, help='Validate completed sales from the last N hours')
        parser.add_argument('--fail-on-issues', action='store_true', help='Raise an error when issues are found')

    def handle(self, *args, **options):
        stores = Store.objects.filter(is_active=True)
        if options['store']:
            stores = stores.filter(pk=options['store'])
            if not stores.exists():
                raise CommandError(f"Store {options['store']} not found")

        monitor = InventorySyncMonitor()
        since = timezone.now() - timedelta(hours=options['hours'])
        problems = 0

        for store in stores:
            health = monitor.check_store_health(store)
            label = f"{store.name} ({store.code})"
            if health['healthy']:
                self.stdout.write(self.style.SUCCESS(f"✓ {label}: {health['checked_items']} items OK"))
            else:
                problems += 1
                self.stdout.write(self.style.ERROR(f"✗ {label}"))
                for issue in health['integrity_issues']:
                    self.stdout.write(f"  - {issue['item']}: {'; '.join(issue['issues'])}")
                for item in health['negative_stock']:
                    self.stdout.write(f"  - {item['item']} is negative ({item['quantity']})")
            if health['low_stock']:
                self.stdout.write(self.style.WARNING(f"  {len(health['low_stock'])} items at or below threshold"))

            sales = Transaction.objects.filter(store=store, status='completed', completed_at__gte=since)
            for sale in sales:
                sync = monitor.validate_transaction_sync(sale)
                if not sync['is_valid']:
                    problems += 1
                    self.stdout.write(self.style.ERROR(f"  Receipt {sale.receipt_number}: {'; '.join(sync['errors'])}"))

        if problems and options['fail_on_issues']:
            raise CommandError(f"{problems} inventory sync problems found")
        self.stdout.write(f"Checked {stores.count()} stores, {problems} problems")
