from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Prospect',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_name', models.CharField(help_text='Company name (required)', max_length=200)),
                ('contact_name', models.CharField(blank=True, help_text='Person we talk to', max_length=200)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('current_phase', models.CharField(choices=[('Prospección', 'Prospección'), ('Lead', 'Lead'), ('Cotización', 'Cotización'), ('Negociación', 'Negociación'), ('Ganada', 'Ganada'), ('Perdida', 'Perdida'), ('En Producción', 'En Producción'), ('Facturada', 'Facturada'), ('Post Venta', 'Post Venta')], db_index=True, default='Prospección', max_length=20)),
                ('estimated_value', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True)),
            ],
            options={
                'verbose_name': 'Prospect',
                'verbose_name_plural': 'Prospects',
                'db_table': 'prospects',
                'ordering': ['-updated_at'],
                'indexes': [models.Index(fields=['company_name'], name='prospect_company_name_idx')],
            },
        ),
    ]
