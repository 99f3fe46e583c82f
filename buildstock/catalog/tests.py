"""
Test suite for the catalog: categories, products and current quantity
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from buildstock.catalog.models import Category, Product
from buildstock.core.models import AuditLog
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductModelTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.product = TestDataFactory.create_product(self.company, name='Portland Cement')

    def test_str(self):
        self.assertEqual(str(self.product), 'Portland Cement')

    def test_current_quantity_sums_remaining(self):
        TestDataFactory.create_stock(self.product, quantity=Decimal('50'), remaining=Decimal('20'))
        TestDataFactory.create_stock(self.product, quantity=Decimal('30'))
        self.assertEqual(self.product.get_current_quantity(), Decimal('50'))
        annotated = Product.objects.with_current_quantity().get(pk=self.product.pk)
        self.assertEqual(annotated.current_quantity, Decimal('50'))

    def test_current_quantity_without_stock(self):
        self.assertEqual(self.product.get_current_quantity(), Decimal('0'))
        annotated = Product.objects.with_current_quantity().get(pk=self.product.pk)
        self.assertEqual(annotated.current_quantity, Decimal('0'))


class CategoryAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_create_category(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Aggregates'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Category.objects.get(pk=response.data['id']).company, self.company)

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_category(self.company, name='Aggregates')
        response = self.client.post('/api/v1/categories/', {'name': 'aggregates'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_same_name_in_other_company_allowed(self):
        TestDataFactory.create_category(TestDataFactory.create_company(), name='Aggregates')
        response = self.client.post('/api/v1/categories/', {'name': 'Aggregates'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_list_includes_product_count(self):
        category = TestDataFactory.create_category(self.company)
        TestDataFactory.create_product(self.company, category=category)
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['product_count'], 1)

    def test_cannot_delete_category_with_products(self):
        category = TestDataFactory.create_category(self.company)
        TestDataFactory.create_product(self.company, category=category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_user_can_read_but_not_write(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        self.assertEqual(client.get('/api/v1/categories/').status_code, status.HTTP_200_OK)
        response = client.post('/api/v1/categories/', {'name': 'Steel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ProductAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(self.company)

    def test_create_product_logs_audit(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Deformed Bar 10mm',
            'unit': 'pcs',
            'category': self.category.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['current_quantity'], '0')
        self.assertTrue(AuditLog.objects.filter(
            model_name='Product', product_id=response.data['id'], action='create'
        ).exists())

    def test_cannot_use_other_company_category(self):
        foreign = TestDataFactory.create_category(TestDataFactory.create_company())
        response = self.client.post('/api/v1/products/', {
            'name': 'Sand',
            'unit': 'cu.m',
            'category': foreign.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data)

    def test_search_matches_every_word(self):
        TestDataFactory.create_product(self.company, name='Deformed Bar 10mm', category=self.category)
        TestDataFactory.create_product(self.company, name='Deformed Bar 12mm', category=self.category)
        TestDataFactory.create_product(self.company, name='Plain Bar 10mm', category=self.category)
        response = self.client.get('/api/v1/products/', {'search': 'deformed 10mm'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Deformed Bar 10mm')

    def test_low_stock_filter(self):
        low = TestDataFactory.create_product(self.company, name='Low', category=self.category)
        full = TestDataFactory.create_product(self.company, name='Full', category=self.category)
        TestDataFactory.create_stock(low, quantity=Decimal('5'))
        TestDataFactory.create_stock(full, quantity=Decimal('500'))
        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})
        names = [row['name'] for row in response.data['results']]
        self.assertEqual(names, ['Low'])

    def test_pagination_envelope(self):
        for i in range(3):
            TestDataFactory.create_product(self.company, category=self.category)
        response = self.client.get('/api/v1/products/', {'page_size': 2})
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)
        self.assertIsNone(response.data['previous'])
        self.assertEqual(len(response.data['results']), 2)

    def test_other_company_product_not_found(self):
        foreign = TestDataFactory.create_product(TestDataFactory.create_company())
        response = self.client.get(f'/api/v1/products/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cannot_delete_product_with_stock(self):
        product = TestDataFactory.create_product(self.company, category=self.category)
        TestDataFactory.create_stock(product)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_delete_product_on_purchase_order(self):
        product = TestDataFactory.create_product(self.company, category=self.category)
        TestDataFactory.create_purchase_order(self.admin, items=[(product, 5, '100.00')], status='draft')
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())

    def test_delete_unused_product(self):
        product = TestDataFactory.create_product(self.company, category=self.category)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_product_stocks_in_stock_only(self):
        product = TestDataFactory.create_product(self.company, category=self.category)
        TestDataFactory.create_stock(product, quantity=Decimal('10'), remaining=Decimal('0'))
        live = TestDataFactory.create_stock(product, quantity=Decimal('10'))
        response = self.client.get(f'/api/v1/products/{product.id}/stocks/', {'in_stock': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [live.id])

    def test_product_sales(self):
        product = TestDataFactory.create_product(self.company, category=self.category)
        stock = TestDataFactory.create_stock(product)
        TestDataFactory.create_sales_order(self.admin, items=[(stock, 3, '250.00')])
        response = self.client.get(f'/api/v1/products/{product.id}/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
