# Generated manually
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
        ('locations', '0001_initial'),
        ('catalog', '0001_initial'),
        ('recipes', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_type', models.CharField(choices=[('sale', 'Sale'), ('return', 'Return'), ('adjustment', 'Adjustment'), ('transfer', 'Transfer'), ('recipe_usage', 'Recipe Usage'), ('conversion', 'Conversion'), ('restock', 'Restock')], max_length=20)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('previous_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('new_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('reference_id', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_by', models.CharField(default='system', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('inventory_stock', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='product_transactions', to='inventory.inventorystock')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_transactions', to='catalog.productcatalog')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_transactions', to='locations.store')),
            ],
            options={
                'db_table': 'inventory_transactions',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='InventoryConversion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_converted', models.DecimalField(decimal_places=3, max_digits=12)),
                ('finished_goods_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('converted_by', models.CharField(default='system', max_length=150)),
                ('notes', models.TextField(blank=True)),
                ('conversion_date', models.DateTimeField(auto_now_add=True)),
                ('commissary_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='conversions', to='inventory.commissaryitem')),
                ('inventory_stock', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='conversions', to='inventory.inventorystock')),
                ('recipe_template', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='conversions', to='recipes.recipetemplate')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_conversions', to='locations.store')),
            ],
            options={
                'db_table': 'inventory_conversions',
                'ordering': ['-conversion_date', '-id'],
            },
        ),
    ]
