"""
Test suite for sales orders
Tests: numbering, reservation checks, all-or-nothing completion, quantity
modification, RMC orders, other charges and payments
"""
import datetime
import uuid
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from buildstock.core import payments
from buildstock.core.exceptions import BusinessRuleError, InsufficientStockError, InvalidTransitionError
from buildstock.core.models import AuditLog
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.inventory.models import ProductStock
from buildstock.sales import services
from buildstock.sales.models import SalesOrder


class SalesCalculationTests(TestCase):

    def test_item_total_subtracts_discount(self):
        self.assertEqual(services.calculate_item_total('250.00', '4', '50.00'), Decimal('950.00'))

    def test_order_total(self):
        total = services.calculate_total([
            {'unit_price': '100.00', 'quantity': '2'},
            {'unit_price': '12.50', 'quantity': '3', 'discount': '2.50'},
        ])
        self.assertEqual(total, Decimal('235.00'))

    def test_rmc_materials_for_twenty_cubic_meters(self):
        materials = services.derive_rmc_materials(Decimal('20'))
        self.assertEqual(materials['cement_bags'], Decimal('200'))
        self.assertEqual(materials['gravel_cu_m'], Decimal('3'))
        self.assertEqual(materials['sand_cu_m'], Decimal('2'))

    def test_rmc_cement_rounds_up_to_whole_bags(self):
        materials = services.derive_rmc_materials(Decimal('0.25'))
        self.assertEqual(materials['cement_bags'], Decimal('3'))

    def test_rmc_overrides_replace_derived_values(self):
        materials = services.derive_rmc_materials(Decimal('20'), {
            'cement_bags': Decimal('180'),
            'gravel_cu_m': None,
            'sand_cu_m': Decimal('2.5'),
        })
        self.assertEqual(materials['cement_bags'], Decimal('180'))
        self.assertEqual(materials['gravel_cu_m'], Decimal('3'))
        self.assertEqual(materials['sand_cu_m'], Decimal('2.5'))


class SalesOrderNumberTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.company = self.user.company

    def test_first_number_of_year(self):
        self.assertEqual(services.generate_so_number(self.company, datetime.date(2025, 1, 5)), '25001')

    def test_continues_highest_series(self):
        TestDataFactory.create_sales_order(self.user, so_number='25001')
        TestDataFactory.create_sales_order(self.user, so_number='25007')
        TestDataFactory.create_sales_order(self.user, so_number='24099')
        self.assertEqual(services.generate_so_number(self.company, datetime.date(2025, 6, 1)), '25008')
        self.assertEqual(services.generate_so_number(self.company, datetime.date(2024, 6, 1)), '24100')

    def test_series_is_per_company(self):
        other = TestDataFactory.create_user()
        TestDataFactory.create_sales_order(other, so_number='25010')
        self.assertEqual(services.generate_so_number(self.company, datetime.date(2025, 6, 1)), '25001')


class SalesOrderServiceTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.customer = TestDataFactory.create_customer(self.company)
        self.cement = TestDataFactory.create_product(self.company, name='Cement')
        self.sand = TestDataFactory.create_product(self.company, name='Sand', unit='cu.m')
        self.cement_stock = TestDataFactory.create_stock(self.cement, quantity=Decimal('10'), selling_price=Decimal('250.00'))
        self.sand_stock = TestDataFactory.create_stock(self.sand, quantity=Decimal('5'), selling_price=Decimal('1200.00'))

    def _create(self, items=None, **data):
        items = items or [
            {'product_stock': self.cement_stock, 'quantity': Decimal('4'), 'unit_price': Decimal('250.00')},
            {'product_stock': self.sand_stock, 'quantity': Decimal('2'), 'unit_price': Decimal('1200.00')},
        ]
        header = {'customer': self.customer, 'date': datetime.date(2025, 3, 10)}
        header.update(data)
        return services.create_sales_order(self.company, self.user, header, items)

    def test_create_reserves_without_deducting(self):
        so = self._create()
        self.assertEqual(so.status, 'reserved')
        self.assertEqual(so.order_type, 'regular')
        self.assertEqual(so.so_number, '25001')
        self.assertEqual(so.total_amount, Decimal('3400.00'))
        self.cement_stock.refresh_from_db()
        self.assertEqual(self.cement_stock.remaining_quantity, Decimal('10'))
        for item in so.items.all():
            self.assertEqual(item.original_quantity, item.quantity)

    def test_create_as_draft(self):
        so = self._create(status='draft')
        self.assertEqual(so.status, 'draft')

    def test_create_more_than_remaining_rejected(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            self._create(items=[
                {'product_stock': self.cement_stock, 'quantity': Decimal('11'), 'unit_price': Decimal('250.00')},
            ])
        self.assertEqual(ctx.exception.stock_ids, [self.cement_stock.id])
        self.assertEqual(SalesOrder.objects.count(), 0)

    def test_same_batch_twice_rejected(self):
        with self.assertRaises(BusinessRuleError):
            self._create(items=[
                {'product_stock': self.cement_stock, 'quantity': Decimal('1'), 'unit_price': Decimal('250.00')},
                {'product_stock': self.cement_stock, 'quantity': Decimal('2'), 'unit_price': Decimal('250.00')},
            ])

    def test_explicit_number_must_be_unused(self):
        self._create(so_number='25050')
        with self.assertRaises(BusinessRuleError):
            self._create(so_number='25050')

    def test_complete_deducts_every_batch(self):
        so = services.complete_sales_order(self._create(), user=self.user)
        self.assertEqual(so.status, 'completed')
        self.assertEqual(so.completed_by, self.user)
        self.cement_stock.refresh_from_db()
        self.sand_stock.refresh_from_db()
        self.assertEqual(self.cement_stock.remaining_quantity, Decimal('6'))
        self.assertEqual(self.sand_stock.remaining_quantity, Decimal('3'))
        self.assertTrue(AuditLog.objects.filter(
            sales_order_id=so.id, action='complete', message='completed this sales order'
        ).exists())

    def test_complete_is_all_or_nothing(self):
        so = self._create()
        # Another sale drained the sand batch after this order was reserved
        ProductStock.objects.filter(pk=self.sand_stock.pk).update(remaining_quantity=Decimal('1'))

        with self.assertRaises(InsufficientStockError) as ctx:
            services.complete_sales_order(so, user=self.user)
        self.assertEqual(ctx.exception.stock_ids, [self.sand_stock.id])

        so.refresh_from_db()
        self.cement_stock.refresh_from_db()
        self.sand_stock.refresh_from_db()
        self.assertEqual(so.status, 'reserved')
        self.assertEqual(self.cement_stock.remaining_quantity, Decimal('10'))
        self.assertEqual(self.sand_stock.remaining_quantity, Decimal('1'))

    def test_complete_twice_rejected(self):
        so = services.complete_sales_order(self._create())
        with self.assertRaises(InvalidTransitionError):
            services.complete_sales_order(so)
        self.cement_stock.refresh_from_db()
        self.assertEqual(self.cement_stock.remaining_quantity, Decimal('6'))

    def test_completed_order_cannot_be_edited_or_deleted(self):
        so = services.complete_sales_order(self._create())
        with self.assertRaises(InvalidTransitionError):
            services.update_sales_order(so, {'remarks': 'late'})
        with self.assertRaises(InvalidTransitionError):
            services.delete_sales_order(so)

    def test_update_replaces_items(self):
        so = self._create()
        so = services.update_sales_order(so, {'remarks': 'changed'}, [
            {'product_stock': self.cement_stock, 'quantity': Decimal('1'), 'unit_price': Decimal('260.00')},
        ])
        self.assertEqual(so.items.count(), 1)
        self.assertEqual(so.total_amount, Decimal('260.00'))

    def test_modify_clamps_and_logs(self):
        so = self._create()
        cement_item = so.items.get(product_stock=self.cement_stock)
        sand_item = so.items.get(product_stock=self.sand_stock)

        so = services.modify_sales_order(so, {
            cement_item.id: Decimal('10'),   # above original: clamped to 4, unchanged
            sand_item.id: Decimal('1'),
        }, user=self.user)

        cement_item.refresh_from_db()
        sand_item.refresh_from_db()
        self.assertEqual(cement_item.quantity, Decimal('4'))
        self.assertEqual(cement_item.logs, [])
        self.assertEqual(sand_item.quantity, Decimal('1'))
        self.assertEqual(sand_item.original_quantity, Decimal('2'))
        self.assertEqual(sand_item.total, Decimal('1200.00'))
        self.assertEqual(len(sand_item.logs), 1)
        self.assertEqual(Decimal(sand_item.logs[0]['previous_quantity']), Decimal('2'))
        self.assertEqual(Decimal(sand_item.logs[0]['new_quantity']), Decimal('1'))
        self.assertEqual(sand_item.logs[0]['modified_by'], self.user.display_name)
        self.assertTrue(so.modified)
        self.assertEqual(so.total_amount, Decimal('2200.00'))

    def test_modify_negative_becomes_zero(self):
        so = self._create()
        item = so.items.get(product_stock=self.sand_stock)
        services.modify_sales_order(so, {item.id: Decimal('-3')})
        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal('0'))

    def test_modified_order_completes_with_new_quantities(self):
        so = self._create()
        item = so.items.get(product_stock=self.sand_stock)
        so = services.modify_sales_order(so, {item.id: Decimal('1')})
        services.complete_sales_order(so)
        self.sand_stock.refresh_from_db()
        self.assertEqual(self.sand_stock.remaining_quantity, Decimal('4'))

    def test_modify_down_to_paid_amount_marks_order_paid(self):
        so = self._create()
        _, so = payments.add_payment(so, {'date': timezone.localdate(), 'amount': Decimal('2200.00')})
        self.assertEqual(so.payment_status, 'partial')

        item = so.items.get(product_stock=self.sand_stock)
        so = services.modify_sales_order(so, {item.id: Decimal('1')})
        self.assertEqual(so.total_amount, Decimal('2200.00'))
        self.assertEqual(so.payment_status, 'paid')
        so.refresh_from_db()
        self.assertEqual(so.payment_status, 'paid')

    def test_update_recomputes_payment_status(self):
        so = self._create()
        _, so = payments.add_payment(so, {'date': timezone.localdate(), 'amount': Decimal('1000.00')})
        so = services.update_sales_order(so, {}, [
            {'product_stock': self.cement_stock, 'quantity': Decimal('4'), 'unit_price': Decimal('250.00')},
        ])
        self.assertEqual(so.payment_status, 'paid')

        so = services.update_sales_order(so, {'delivery_fee': Decimal('50.00')})
        so.refresh_from_db()
        self.assertEqual(so.payment_status, 'partial')

    def test_modify_unknown_item_rejected(self):
        so = self._create()
        with self.assertRaises(BusinessRuleError):
            services.modify_sales_order(so, {999999: Decimal('1')})

    def test_payments_include_delivery_fee(self):
        so = self._create(delivery_fee=Decimal('100.00'))
        today = timezone.localdate()
        first, so = payments.add_payment(so, {'date': today, 'amount': Decimal('3400.00'), 'type': 'Cash'})
        self.assertEqual(so.payment_status, 'partial')
        second, so = payments.add_payment(so, {'date': today, 'amount': Decimal('100.00'), 'type': 'Bank Transfer'})
        self.assertEqual(so.payment_status, 'paid')
        so = payments.delete_payment(first)
        self.assertEqual(so.payment_status, 'partial')
        so = payments.delete_payment(second)
        self.assertEqual(so.payment_status, 'unpaid')

    def test_other_charges_order(self):
        so = services.create_other_charges_order(self.company, self.user, {
            'customer': self.customer,
            'date': datetime.date(2025, 3, 10),
            'other_charges': 'Boom truck rental',
            'other_charges_amount': Decimal('3500'),
        })
        self.assertEqual(so.order_type, 'other_charges')
        self.assertEqual(so.total_amount, Decimal('3500.00'))
        self.assertEqual(so.items.count(), 0)


class RmcOrderServiceTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.customer = TestDataFactory.create_customer(self.company)
        self.cement = TestDataFactory.create_product(self.company, name='Cement')
        self.gravel = TestDataFactory.create_product(self.company, name='Gravel 3/4', unit='cu.m')
        self.sand = TestDataFactory.create_product(self.company, name='Washed Sand', unit='cu.m')
        self.old_cement = TestDataFactory.create_stock(
            self.cement, quantity=Decimal('300'), purchase_date=datetime.date(2025, 1, 1)
        )
        self.new_cement = TestDataFactory.create_stock(
            self.cement, quantity=Decimal('300'), purchase_date=datetime.date(2025, 2, 1)
        )
        self.gravel_stock = TestDataFactory.create_stock(self.gravel, quantity=Decimal('10'))
        self.sand_stock = TestDataFactory.create_stock(self.sand, quantity=Decimal('10'))

    def _data(self, **overrides):
        data = {
            'customer': self.customer,
            'date': datetime.date(2025, 3, 10),
            'quantity_cu_m': Decimal('20'),
            'price_per_cu_m': Decimal('4500.00'),
            'cement_product': self.cement,
            'gravel_product': self.gravel,
            'sand_product': self.sand,
        }
        data.update(overrides)
        return data

    def test_first_in_stock_is_oldest_with_remaining(self):
        self.assertEqual(services.first_in_stock(self.cement), self.old_cement)
        ProductStock.objects.filter(pk=self.old_cement.pk).update(remaining_quantity=0)
        self.assertEqual(services.first_in_stock(self.cement), self.new_cement)

    def test_create_rmc_order(self):
        so = services.create_rmc_order(self.company, self.user, self._data())
        self.assertEqual(so.order_type, 'rmc')
        self.assertEqual(so.status, 'reserved')
        self.assertEqual(so.total_amount, Decimal('90000.00'))
        quantities = {item.product_stock_id: item.quantity for item in so.items.all()}
        self.assertEqual(quantities, {
            self.old_cement.id: Decimal('200'),
            self.gravel_stock.id: Decimal('3'),
            self.sand_stock.id: Decimal('2'),
        })
        for item in so.items.all():
            self.assertEqual(item.unit_price, Decimal('0.00'))
        self.assertTrue(AuditLog.objects.filter(
            sales_order_id=so.id, message='created RMC order for 20 cu.m'
        ).exists())

    def test_zero_override_skips_material(self):
        so = services.create_rmc_order(self.company, self.user, self._data(sand_cu_m=Decimal('0')))
        self.assertEqual(so.items.count(), 2)
        self.assertFalse(so.items.filter(product_stock=self.sand_stock).exists())

    def test_only_first_batch_is_used(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            services.create_rmc_order(self.company, self.user, self._data(quantity_cu_m=Decimal('40')))
        self.assertEqual(ctx.exception.stock_ids, [self.old_cement.id])
        self.assertEqual(SalesOrder.objects.count(), 0)

    def test_modify_rmc_keeps_volume_total(self):
        so = services.create_rmc_order(self.company, self.user, self._data())
        item = so.items.get(product_stock=self.old_cement)
        so = services.modify_sales_order(so, {item.id: Decimal('150')})
        so.refresh_from_db()
        self.assertTrue(so.modified)
        self.assertEqual(so.total_amount, Decimal('90000.00'))
        self.assertEqual(so.payment_status, 'unpaid')

    def test_one_batch_cannot_supply_two_materials(self):
        aggregate = TestDataFactory.create_product(self.company, name='All-in Aggregate', unit='cu.m')
        TestDataFactory.create_stock(aggregate, quantity=Decimal('150'))
        data = self._data(
            cement_product=aggregate, gravel_product=aggregate, sand_product=aggregate,
            cement_bags=Decimal('100'), gravel_cu_m=Decimal('100'), sand_cu_m=Decimal('100'),
        )
        with self.assertRaises(BusinessRuleError) as ctx:
            services.create_rmc_order(self.company, self.user, data)
        self.assertNotIsInstance(ctx.exception, InsufficientStockError)
        self.assertEqual(SalesOrder.objects.count(), 0)

    def test_out_of_stock_material(self):
        ProductStock.objects.filter(product=self.gravel).update(remaining_quantity=0)
        with self.assertRaises(InsufficientStockError):
            services.create_rmc_order(self.company, self.user, self._data())

    def test_completing_rmc_deducts_materials(self):
        so = services.create_rmc_order(self.company, self.user, self._data())
        services.complete_sales_order(so)
        self.old_cement.refresh_from_db()
        self.gravel_stock.refresh_from_db()
        self.assertEqual(self.old_cement.remaining_quantity, Decimal('100'))
        self.assertEqual(self.gravel_stock.remaining_quantity, Decimal('7'))


class SalesOrderAPITests(TestCase):
    """Test sales order API endpoints"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.staff)
        self.customer = TestDataFactory.create_customer(self.company)
        self.product = TestDataFactory.create_product(self.company)
        self.stock = TestDataFactory.create_stock(self.product, quantity=Decimal('10'))

    def _payload(self, **overrides):
        data = {
            'customer': self.customer.id,
            'date': '2025-04-02',
            'items': [{'product_stock': self.stock.id, 'quantity': '3', 'unit_price': '250.00'}],
        }
        data.update(overrides)
        return data

    def test_create_sales_order(self):
        response = self.client.post('/api/v1/sales-orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['so_number'], '25001')
        self.assertEqual(response.data['status'], 'reserved')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('750.00'))
        self.assertEqual(response.data['items'][0]['product'], self.product.id)

    def test_create_more_than_remaining_conflicts(self):
        payload = self._payload(items=[{'product_stock': self.stock.id, 'quantity': '11', 'unit_price': '250.00'}])
        response = self.client.post('/api/v1/sales-orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['stock_ids'], [self.stock.id])

    def test_bad_so_number_rejected(self):
        response = self.client.post('/api/v1/sales-orders/', self._payload(so_number='SO-1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('so_number', response.data)

    def test_other_company_stock_rejected(self):
        foreign = TestDataFactory.create_stock(TestDataFactory.create_product(TestDataFactory.create_company()))
        payload = self._payload(items=[{'product_stock': foreign.id, 'quantity': '1', 'unit_price': '1.00'}])
        response = self.client.post('/api/v1/sales-orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_next_number(self):
        TestDataFactory.create_sales_order(self.admin, so_number='25004')
        response = self.client.get('/api/v1/sales-orders/next-number/', {'date': '2025-07-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['so_number'], '25005')

    def test_complete_endpoint(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer, items=[(self.stock, 4, '250.00')])
        response = self.client.post(f'/api/v1/sales-orders/{so.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('6'))

        response = self.client.post(f'/api/v1/sales-orders/{so.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_double_submitted_complete_applies_once(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer, items=[(self.stock, 4, '250.00')])
        key = str(uuid.uuid4())
        first = self.client.post(f'/api/v1/sales-orders/{so.id}/complete/', HTTP_IDEMPOTENCY_KEY=key)
        second = self.client.post(f'/api/v1/sales-orders/{so.id}/complete/', HTTP_IDEMPOTENCY_KEY=key)
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second['Idempotent-Replay'], 'true')
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.remaining_quantity, Decimal('6'))

    def test_modify_endpoint(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer, items=[(self.stock, 4, '250.00')])
        item = so.items.get()
        response = self.client.post(f'/api/v1/sales-orders/{so.id}/modify/', {
            'items': [{'id': item.id, 'quantity': '2'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['modified'])
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('500.00'))
        self.assertEqual(len(response.data['items'][0]['logs']), 1)

    def test_update_endpoint(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer, items=[(self.stock, 4, '250.00')])
        response = self.client.patch(f'/api/v1/sales-orders/{so.id}/', {'remarks': 'deliver at gate 2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['remarks'], 'deliver at gate 2')
        self.assertEqual(len(response.data['items']), 1)

    def test_other_charges_endpoint(self):
        response = self.client.post('/api/v1/sales-orders/other-charges/', {
            'customer': self.customer.id,
            'date': '2025-04-02',
            'other_charges': 'Hauling',
            'other_charges_amount': '1500.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_type'], 'other_charges')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('1500.00'))

    def test_rmc_preview_and_create(self):
        cement = TestDataFactory.create_product(self.company, name='Cement')
        gravel = TestDataFactory.create_product(self.company, name='Gravel', unit='cu.m')
        sand = TestDataFactory.create_product(self.company, name='Sand', unit='cu.m')
        TestDataFactory.create_stock(cement, quantity=Decimal('500'))
        TestDataFactory.create_stock(gravel, quantity=Decimal('10'))
        TestDataFactory.create_stock(sand, quantity=Decimal('10'))
        payload = {
            'quantity_cu_m': '20',
            'cement_product': cement.id,
            'gravel_product': gravel.id,
            'sand_product': sand.id,
        }

        response = self.client.post('/api/v1/sales-orders/rmc/preview/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['materials']['cement_bags']), Decimal('200'))
        self.assertEqual(len(response.data['items']), 3)
        self.assertEqual(SalesOrder.objects.count(), 0)

        payload.update({'customer': self.customer.id, 'date': '2025-04-02', 'price_per_cu_m': '4500.00'})
        response = self.client.post('/api/v1/sales-orders/rmc/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_type'], 'rmc')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('90000.00'))
        self.assertEqual(len(response.data['items']), 3)

    def test_payments_endpoints(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer, items=[(self.stock, 2, '250.00')])
        response = self.client.post(f'/api/v1/sales-orders/{so.id}/payments/', {
            'date': '2025-04-02', 'amount': '500.00', 'type': 'PDC', 'bank': 'BDO', 'due_date': '2025-05-02'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['payment_status'], 'paid')
        payment_id = response.data['payment']['id']

        response = self.client.post(f'/api/v1/sales-orders/{so.id}/payments/', {
            'date': '2025-04-02', 'amount': '1.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/sales-orders/{so.id}/payments/{payment_id}/received/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['type'], 'Cheque')

    def test_non_admin_cannot_delete(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer)
        response = self.client.delete(f'/api/v1/sales-orders/{so.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_deletes_open_order(self):
        so = TestDataFactory.create_sales_order(self.admin, customer=self.customer)
        client = AuthenticatedAPIClient().authenticate_user(self.admin)
        response = client.delete(f'/api/v1/sales-orders/{so.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_list_filter_by_order_type(self):
        TestDataFactory.create_sales_order(self.admin, customer=self.customer)
        TestDataFactory.create_sales_order(self.admin, customer=self.customer, order_type='rmc')
        response = self.client.get('/api/v1/sales-orders/', {'order_type': 'rmc'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
