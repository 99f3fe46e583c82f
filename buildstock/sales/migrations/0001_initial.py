import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('inventory', '0001_initial'),
        ('parties', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SalesOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('so_number', models.CharField(max_length=20)),
                ('po_number', models.CharField(blank=True, help_text="Customer's purchase order reference", max_length=100)),
                ('date', models.DateField()),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('reserved', 'Reserved'), ('completed', 'Completed')], default='reserved', max_length=20)),
                ('order_type', models.CharField(choices=[('regular', 'Regular'), ('rmc', 'Ready-Mix Concrete'), ('other_charges', 'Other Charges')], default='regular', max_length=20)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Unpaid'), ('partial', 'Partial'), ('paid', 'Paid')], default='unpaid', max_length=10)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('delivery_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('other_charges', models.CharField(blank=True, max_length=255)),
                ('other_charges_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('quantity_cu_m', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('price_per_cu_m', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('modified', models.BooleanField(default=False)),
                ('remarks', models.TextField(blank=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sales_orders', to='core.company')),
                ('completed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='completed_sales_orders', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_orders', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales_orders', to='parties.customer')),
            ],
            options={
                'db_table': 'sales_orders',
                'ordering': ['-id'],
                'constraints': [
                    models.UniqueConstraint(fields=('company', 'so_number'), name='uniq_so_company_number'),
                ],
                'indexes': [
                    models.Index(fields=['company', 'status'], name='idx_so_company_status'),
                    models.Index(fields=['company', 'date'], name='idx_so_company_date'),
                    models.Index(fields=['customer', 'status'], name='idx_so_customer_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SalesOrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=14)),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total', models.DecimalField(decimal_places=2, max_digits=14)),
                ('original_quantity', models.DecimalField(decimal_places=2, max_digits=12)),
                ('logs', models.JSONField(blank=True, default=list)),
                ('product_stock', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales_order_items', to='inventory.productstock')),
                ('sales_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='sales.salesorder')),
            ],
            options={
                'db_table': 'sales_order_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='SalesOrderPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('type', models.CharField(choices=[('Cash', 'Cash'), ('Cheque', 'Cheque'), ('PDC', 'Post-dated Cheque'), ('Bank Transfer', 'Bank Transfer'), ('Online', 'Online')], default='Cash', max_length=20)),
                ('bank', models.CharField(blank=True, max_length=255)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_order_payments', to=settings.AUTH_USER_MODEL)),
                ('sales_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='sales.salesorder')),
            ],
            options={
                'db_table': 'sales_order_payments',
                'ordering': ['-date', '-id'],
                'indexes': [
                    models.Index(fields=['type', 'due_date'], name='idx_so_payment_type_due'),
                ],
            },
        ),
    ]
