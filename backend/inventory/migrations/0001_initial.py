# Generated manually
from decimal import Decimal
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item', models.CharField(max_length=200)),
                ('unit', models.CharField(max_length=50)),
                ('item_category', models.CharField(blank=True, max_length=100)),
                ('stock_quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('serving_ready_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('minimum_threshold', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('order_unit', models.CharField(blank=True, max_length=100)),
                ('order_quantity', models.DecimalField(decimal_places=3, default=Decimal('1.000'), max_digits=12)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_stock', to='locations.store')),
            ],
            options={
                'db_table': 'inventory_stock',
                'ordering': ['item'],
                'indexes': [models.Index(fields=['store', 'is_active'], name='idx_inv_stock_store_active')],
                'constraints': [models.UniqueConstraint(fields=('store', 'item', 'unit'), name='unique_inventory_stock_item_unit')],
            },
        ),
        migrations.CreateModel(
            name='CommissaryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('category', models.CharField(choices=[('raw_materials', 'Raw Materials'), ('packaging_materials', 'Packaging Materials'), ('supplies', 'Supplies'), ('finished_goods', 'Finished Goods')], default='raw_materials', max_length=30)),
                ('unit', models.CharField(max_length=50)),
                ('current_stock', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('minimum_threshold', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('unit_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=12)),
                ('order_unit', models.CharField(blank=True, max_length=100)),
                ('order_quantity', models.DecimalField(decimal_places=3, default=Decimal('1.000'), max_digits=12)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'commissary_inventory',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='InventoryMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_type', models.CharField(choices=[('sale', 'Sale'), ('return', 'Return'), ('adjustment', 'Adjustment'), ('transfer_in', 'Transfer In'), ('transfer_out', 'Transfer Out'), ('restock', 'Restock'), ('damage', 'Damage'), ('expire', 'Expired'), ('recipe_usage', 'Recipe Usage'), ('conversion', 'Conversion')], max_length=20)),
                ('quantity_change', models.DecimalField(decimal_places=3, max_digits=12)),
                ('previous_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('new_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('reference_type', models.CharField(choices=[('transaction', 'Transaction'), ('purchase_order', 'Purchase Order'), ('grn', 'Goods Received Note'), ('manual', 'Manual'), ('transfer', 'Transfer'), ('recipe', 'Recipe'), ('conversion', 'Conversion')], default='manual', max_length=20)),
                ('reference_id', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_by', models.CharField(default='system', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('inventory_stock', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to='inventory.inventorystock')),
            ],
            options={
                'db_table': 'inventory_movements',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['inventory_stock', 'created_at'], name='idx_inv_move_stock_created'),
                    models.Index(fields=['reference_type', 'reference_id'], name='idx_inv_move_reference'),
                    models.Index(fields=['movement_type'], name='idx_inv_move_type'),
                ],
            },
        ),
    ]
