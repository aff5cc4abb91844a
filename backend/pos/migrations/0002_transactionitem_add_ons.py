# Generated manually
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('pos', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='transactionitem',
            name='add_ons',
            field=models.JSONField(blank=True, default=list),
        ),
    ]
