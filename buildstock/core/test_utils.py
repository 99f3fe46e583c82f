"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from buildstock.core.models import Company
from buildstock.catalog.models import Category, Product
from buildstock.parties.models import Customer, Supplier
from buildstock.purchasing.models import PurchaseOrder, PurchaseOrderItem
from buildstock.inventory.models import ProductStock
from buildstock.sales.models import SalesOrder, SalesOrderItem
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_company(name=None):
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        return Company.objects.create(name=name)

    @staticmethod
    def create_user(company=None, type='admin', username=None, email=None, password='testpass123'):
        """Create a test user belonging to a company"""
        if company is None:
            company = TestDataFactory.create_company()
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            company=company,
            type=type,
            name=username,
        )

    @staticmethod
    def create_category(company, name=None):
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(company=company, name=name)

    @staticmethod
    def create_product(company, name=None, category=None, unit='bags'):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category(company)
        return Product.objects.create(
            company=company,
            name=name,
            unit=unit,
            category=category,
        )

    @staticmethod
    def create_customer(company, name=None):
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        return Customer.objects.create(
            company=company,
            name=name,
            contact_number=f'09{random.randint(100000000, 999999999)}',
        )

    @staticmethod
    def create_supplier(company, name=None):
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            company=company,
            name=name,
            contact_number=f'09{random.randint(100000000, 999999999)}',
        )

    @staticmethod
    def create_stock(product, quantity=None, cost=None, selling_price=None, purchase_date=None, remaining=None):
        """Create a stock batch; remaining defaults to the full quantity"""
        if quantity is None:
            quantity = Decimal('100')
        if cost is None:
            cost = Decimal('200.00')
        if selling_price is None:
            selling_price = Decimal('250.00')
        if not purchase_date:
            purchase_date = timezone.now().date()
        return ProductStock.objects.create(
            company=product.company,
            product=product,
            cost=cost,
            selling_price=selling_price,
            quantity=quantity,
            remaining_quantity=quantity if remaining is None else remaining,
            purchase_date=purchase_date,
        )

    @staticmethod
    def create_purchase_order(user, supplier=None, items=None, status='draft', po_number=None):
        """
        Create a purchase order with items.

        items is a list of (product, quantity, cost) tuples.
        """
        company = user.company
        if not supplier:
            supplier = TestDataFactory.create_supplier(company)
        if not po_number:
            po_number = f'PO-{TestDataFactory.random_string(6).upper()}'
        po = PurchaseOrder.objects.create(
            company=company,
            supplier=supplier,
            po_number=po_number,
            date=timezone.now().date(),
            status=status,
            created_by=user,
        )
        total = Decimal('0.00')
        for product, quantity, cost in items or []:
            quantity = Decimal(str(quantity))
            cost = Decimal(str(cost))
            PurchaseOrderItem.objects.create(
                purchase_order=po,
                product=product,
                quantity=quantity,
                cost=cost,
                price=cost,
                to_deliver=quantity,
            )
            total += quantity * cost
        po.total_amount = total
        po.save(update_fields=['total_amount'])
        return po

    @staticmethod
    def create_sales_order(user, customer=None, items=None, status='reserved', so_number=None, date=None,
                           delivery_fee=None, order_type='regular'):
        """
        Create a sales order with items.

        items is a list of (stock, quantity, unit_price) tuples.
        """
        company = user.company
        if not customer:
            customer = TestDataFactory.create_customer(company)
        if not so_number:
            # Leading 9 keeps factory numbers out of the yearly series
            so_number = f'9{random.randint(1000000, 9999999)}'
        so = SalesOrder.objects.create(
            company=company,
            customer=customer,
            so_number=so_number,
            date=date or timezone.now().date(),
            status=status,
            order_type=order_type,
            delivery_fee=delivery_fee or Decimal('0.00'),
            created_by=user,
        )
        total = Decimal('0.00')
        for stock, quantity, unit_price in items or []:
            quantity = Decimal(str(quantity))
            unit_price = Decimal(str(unit_price))
            line_total = quantity * unit_price
            SalesOrderItem.objects.create(
                sales_order=so,
                product_stock=stock,
                quantity=quantity,
                unit_price=unit_price,
                total=line_total,
                original_quantity=quantity,
            )
            total += line_total
        so.total_amount = total
        so.save(update_fields=['total_amount'])
        return so


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
