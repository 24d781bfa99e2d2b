# Generated manually for sequences app

from django.core.validators import MinValueValidator
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='NumberSequence',
            fields=[
                ('entity', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('current', models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'number_sequences',
                'ordering': ['entity'],
            },
        ),
    ]
