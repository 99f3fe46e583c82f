import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('catalog', '0001_initial'),
        ('purchasing', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ProductStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('cost', models.DecimalField(decimal_places=2, max_digits=14)),
                ('selling_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('hso_price', models.DecimalField(blank=True, decimal_places=2, help_text='Wholesale price', max_digits=14, null=True)),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('remaining_quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('missing', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('purchase_date', models.DateField()),
                ('remarks', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='product_stocks', to='core.company')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='product_stocks', to=settings.AUTH_USER_MODEL)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stocks', to='catalog.product')),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stocks', to='purchasing.purchaseorder')),
            ],
            options={
                'db_table': 'product_stocks',
                'ordering': ['-id'],
                'indexes': [
                    models.Index(fields=['product', 'purchase_date'], name='idx_stock_product_date'),
                    models.Index(fields=['company', 'remaining_quantity'], name='idx_stock_company_remaining'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(remaining_quantity__gte=0), name='chk_stock_remaining_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockRemoval',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('reason', models.CharField(choices=[('damage', 'Damage'), ('missing', 'Missing'), ('expired', 'Expired'), ('transfer', 'Transfer')], max_length=20)),
                ('remarks', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_removals', to=settings.AUTH_USER_MODEL)),
                ('product_stock', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='removals', to='inventory.productstock')),
            ],
            options={
                'db_table': 'stock_removals',
                'ordering': ['-created_at'],
            },
        ),
    ]
