"""
Test suite for stock batches: manual entry, removals, missing items and price changes
"""
import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from buildstock.core.exceptions import BusinessRuleError, InsufficientStockError
from buildstock.core.models import AuditLog
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.inventory import services
from buildstock.inventory.models import ProductStock, StockRemoval


class StockServiceTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.product = TestDataFactory.create_product(self.company)
        self.stock = TestDataFactory.create_stock(self.product, quantity=Decimal('20'))

    def test_decrement_remaining(self):
        self.assertTrue(services.decrement_remaining(self.stock.id, Decimal('15')))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('5'))

    def test_decrement_refuses_to_go_negative(self):
        self.assertFalse(services.decrement_remaining(self.stock.id, Decimal('21')))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('20'))

    def test_create_stock_starts_full(self):
        stock = services.create_stock(self.company, self.user, {
            'product': self.product,
            'cost': Decimal('180.00'),
            'selling_price': Decimal('230.00'),
            'quantity': Decimal('40'),
        })
        self.assertEqual(stock.remaining_quantity, Decimal('40'))
        self.assertTrue(AuditLog.objects.filter(product_stock_id=stock.id, action='stock_add').exists())

    def test_remove_stock(self):
        removal = services.remove_stock(self.stock, Decimal('4'), 'damage', user=self.user)
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('16'))
        self.assertEqual(self.stock.quantity, Decimal('20'))
        self.assertEqual(removal.reason, 'damage')
        log = AuditLog.objects.get(product_stock_id=self.stock.id, action='stock_remove')
        self.assertEqual(log.message, 'removed 4 (damage)')

    def test_remove_more_than_remaining(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            services.remove_stock(self.stock, Decimal('25'), 'damage', user=self.user)
        self.assertEqual(ctx.exception.stock_ids, [self.stock.id])
        self.assertEqual(StockRemoval.objects.count(), 0)
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('20'))

    def test_remove_zero_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.remove_stock(self.stock, Decimal('0'), 'damage')

    def test_report_missing(self):
        services.report_missing(self.stock, Decimal('3'))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, Decimal('17'))
        self.assertEqual(self.stock.remaining_quantity, Decimal('17'))
        self.assertEqual(self.stock.missing, Decimal('3'))
        log = AuditLog.objects.get(product_stock_id=self.stock.id, action='stock_missing')
        self.assertEqual(log.message, 'Added missing item(3)')

    def test_report_missing_more_than_remaining(self):
        with self.assertRaises(InsufficientStockError):
            services.report_missing(self.stock, Decimal('30'))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.missing, Decimal('0'))

    def test_selling_price_change_logged(self):
        services.update_selling_price(self.stock, Decimal('275.00'))
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.selling_price, Decimal('275.00'))
        log = AuditLog.objects.get(product_stock_id=self.stock.id, action='price_change')
        self.assertEqual(log.message, 'Updated selling price from 250.00 to 275.00')

    def test_unchanged_price_not_logged(self):
        services.update_selling_price(self.stock, Decimal('250.00'))
        self.assertFalse(AuditLog.objects.filter(action='price_change').exists())


class StockAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.product = TestDataFactory.create_product(self.company)

    def test_create_stock(self):
        response = self.client.post('/api/v1/stocks/', {
            'product': self.product.id,
            'cost': '200.00',
            'selling_price': '260.00',
            'quantity': '50',
            'purchase_date': '2025-03-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['remaining_quantity']), Decimal('50'))

    def test_create_stock_replayed_with_same_key(self):
        data = {'product': self.product.id, 'cost': '200.00', 'quantity': '10'}
        key = str(uuid.uuid4())
        first = self.client.post('/api/v1/stocks/', data, format='json', HTTP_IDEMPOTENCY_KEY=key)
        second = self.client.post('/api/v1/stocks/', data, format='json', HTTP_IDEMPOTENCY_KEY=key)
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['id'], second.data['id'])
        self.assertEqual(ProductStock.objects.filter(product=self.product).count(), 1)

    def test_user_cannot_create_stock(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        response = client.post('/api/v1/stocks/', {
            'product': self.product.id, 'cost': '1.00', 'quantity': '1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_in_stock_filter(self):
        TestDataFactory.create_stock(self.product, quantity=Decimal('5'), remaining=Decimal('0'))
        TestDataFactory.create_stock(self.product, quantity=Decimal('5'))
        response = self.client.get('/api/v1/stocks/', {'in_stock': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_remove_endpoint_conflict(self):
        stock = TestDataFactory.create_stock(self.product, quantity=Decimal('5'))
        response = self.client.post(f'/api/v1/stocks/{stock.id}/remove/', {
            'quantity': '6', 'reason': 'damage'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)
        self.assertEqual(response.data['stock_ids'], [stock.id])

    def test_remove_endpoint(self):
        stock = TestDataFactory.create_stock(self.product, quantity=Decimal('5'))
        response = self.client.post(f'/api/v1/stocks/{stock.id}/remove/', {
            'quantity': '2', 'reason': 'expired', 'remarks': 'rained on'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['stock']['remaining_quantity']), Decimal('3'))
        response = self.client.get(f'/api/v1/stocks/{stock.id}/removals/')
        self.assertEqual(response.data['count'], 1)

    def test_missing_endpoint(self):
        stock = TestDataFactory.create_stock(self.product, quantity=Decimal('5'))
        response = self.client.post(f'/api/v1/stocks/{stock.id}/missing/', {'quantity': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['missing']), Decimal('1'))

    def test_price_endpoint(self):
        stock = TestDataFactory.create_stock(self.product)
        response = self.client.post(f'/api/v1/stocks/{stock.id}/price/', {'selling_price': '300.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['selling_price']), Decimal('300.00'))

    def test_cannot_delete_used_stock(self):
        stock = TestDataFactory.create_stock(self.product, quantity=Decimal('5'), remaining=Decimal('4'))
        response = self.client.delete(f'/api/v1/stocks/{stock.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_unused_stock(self):
        stock = TestDataFactory.create_stock(self.product)
        response = self.client.delete(f'/api/v1/stocks/{stock.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_other_company_stock_not_found(self):
        foreign = TestDataFactory.create_stock(TestDataFactory.create_product(TestDataFactory.create_company()))
        response = self.client.get(f'/api/v1/stocks/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
