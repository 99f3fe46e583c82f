"""
Test suite for purchase orders
Tests: totals, approval, full and partial delivery, payments and edge cases
"""
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from buildstock.core import payments
from buildstock.core.exceptions import BusinessRuleError, InvalidTransitionError
from buildstock.core.models import AuditLog
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.inventory.models import ProductStock
from buildstock.purchasing import services
from buildstock.purchasing.models import PurchaseOrder


class PurchaseOrderServiceTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.supplier = TestDataFactory.create_supplier(self.company)
        self.cement = TestDataFactory.create_product(self.company, name='Cement')
        self.sand = TestDataFactory.create_product(self.company, name='Sand')

    def _create(self, items=None):
        items = items or [
            {'product': self.cement, 'quantity': Decimal('3'), 'cost': Decimal('10.00'), 'price': Decimal('12.00')},
            {'product': self.sand, 'quantity': Decimal('2'), 'cost': Decimal('15.00'), 'price': Decimal('18.00')},
        ]
        return services.create_purchase_order(self.company, self.user, {
            'supplier': self.supplier,
            'po_number': 'PO-1001',
            'date': timezone.localdate(),
        }, items)

    def test_calculate_total(self):
        total = services.calculate_total([
            {'cost': '10.00', 'quantity': '3'},
            {'cost': '15.00', 'quantity': '2'},
        ])
        self.assertEqual(total, Decimal('60.00'))

    def test_create_is_draft_with_total(self):
        po = self._create()
        self.assertEqual(po.status, 'draft')
        self.assertEqual(po.payment_status, 'unpaid')
        self.assertEqual(po.total_amount, Decimal('60.00'))
        for item in po.items.all():
            self.assertEqual(item.delivered, Decimal('0'))
            self.assertEqual(item.to_deliver, item.quantity)
        log = AuditLog.objects.get(purchase_order_id=po.id, action='create')
        self.assertEqual(log.message, 'added this purchase order')

    def test_create_without_items_rejected(self):
        with self.assertRaises(BusinessRuleError):
            self._create(items=[])

    def test_update_replaces_items(self):
        po = self._create()
        po = services.update_purchase_order(po, {'remarks': 'rush'}, [
            {'product': self.cement, 'quantity': Decimal('1'), 'cost': Decimal('5.00')},
        ])
        self.assertEqual(po.items.count(), 1)
        self.assertEqual(po.total_amount, Decimal('5.00'))
        self.assertEqual(po.remarks, 'rush')

    def test_update_items_recomputes_payment_status(self):
        po = self._create()
        _, po = payments.add_payment(po, {'date': timezone.localdate(), 'amount': Decimal('30.00')})
        self.assertEqual(po.payment_status, 'partial')
        po = services.update_purchase_order(po, {}, [
            {'product': self.cement, 'quantity': Decimal('1'), 'cost': Decimal('5.00')},
        ])
        po.refresh_from_db()
        self.assertEqual(po.payment_status, 'paid')

    def test_approved_order_cannot_be_edited_or_deleted(self):
        po = services.approve_purchase_order(self._create(), user=self.user)
        with self.assertRaises(InvalidTransitionError):
            services.update_purchase_order(po, {'remarks': 'late edit'})
        with self.assertRaises(InvalidTransitionError):
            services.delete_purchase_order(po)

    def test_approve(self):
        po = services.approve_purchase_order(self._create(), user=self.user)
        self.assertEqual(po.status, 'approved')
        self.assertEqual(po.approved_by, self.user)
        self.assertIsNotNone(po.approved_at)
        with self.assertRaises(InvalidTransitionError):
            services.approve_purchase_order(po)

    def test_draft_cannot_be_delivered(self):
        with self.assertRaises(InvalidTransitionError):
            services.deliver_purchase_order(self._create())

    def test_full_delivery_creates_one_batch_per_item(self):
        po = services.approve_purchase_order(self._create())
        po, stocks = services.deliver_purchase_order(po, user=self.user)
        self.assertEqual(po.status, 'delivered')
        self.assertIsNotNone(po.delivered_at)
        self.assertEqual(len(stocks), 2)
        for item in po.items.all():
            self.assertEqual(item.delivered, item.quantity)
            self.assertEqual(item.to_deliver, Decimal('0'))
            stock = ProductStock.objects.get(purchase_order=po, product=item.product)
            self.assertEqual(stock.quantity, item.quantity)
            self.assertEqual(stock.remaining_quantity, item.quantity)
            self.assertEqual(stock.cost, item.cost)
            self.assertEqual(stock.selling_price, item.price)
            self.assertEqual(stock.purchase_date, timezone.localdate())

    def test_partial_delivery_clamps_to_outstanding(self):
        po = services.approve_purchase_order(self._create())
        cement_item = po.items.get(product=self.cement)
        sand_item = po.items.get(product=self.sand)

        po, stocks = services.partial_deliver_purchase_order(po, {cement_item.id: Decimal('1')})
        self.assertEqual(po.status, 'partially_delivered')
        self.assertEqual(len(stocks), 1)
        cement_item.refresh_from_db()
        self.assertEqual(cement_item.delivered, Decimal('1'))
        self.assertEqual(cement_item.to_deliver, Decimal('2'))

        # More than outstanding is clamped; zero is ignored
        po, stocks = services.partial_deliver_purchase_order(po, {
            cement_item.id: Decimal('10'),
            sand_item.id: Decimal('0'),
        })
        cement_item.refresh_from_db()
        self.assertEqual(cement_item.delivered, Decimal('3'))
        self.assertEqual(cement_item.to_deliver, Decimal('0'))
        self.assertEqual(stocks[0].quantity, Decimal('2'))
        self.assertEqual(po.status, 'partially_delivered')

        po, stocks = services.partial_deliver_purchase_order(po, {sand_item.id: Decimal('2')})
        self.assertEqual(po.status, 'delivered')
        self.assertEqual(ProductStock.objects.filter(purchase_order=po).count(), 3)

    def test_delivery_after_partial_only_takes_remainder(self):
        po = services.approve_purchase_order(self._create())
        cement_item = po.items.get(product=self.cement)
        po, _ = services.partial_deliver_purchase_order(po, {cement_item.id: Decimal('3')})
        po, stocks = services.deliver_purchase_order(po)
        self.assertEqual(len(stocks), 1)
        self.assertEqual(stocks[0].product, self.sand)
        self.assertEqual(po.status, 'delivered')

    def test_partial_delivery_with_nothing_rejected(self):
        po = services.approve_purchase_order(self._create())
        item = po.items.first()
        with self.assertRaises(BusinessRuleError):
            services.partial_deliver_purchase_order(po, {item.id: Decimal('0')})
        self.assertEqual(ProductStock.objects.count(), 0)

    def test_partial_delivery_unknown_item_rejected(self):
        po = services.approve_purchase_order(self._create())
        with self.assertRaises(BusinessRuleError):
            services.partial_deliver_purchase_order(po, {999999: Decimal('1')})

    def test_payment_status_follows_payments(self):
        po = self._create()
        today = timezone.localdate()
        first, po = payments.add_payment(po, {'date': today, 'amount': Decimal('20.00'), 'type': 'Cash'}, user=self.user)
        self.assertEqual(po.payment_status, 'partial')
        second, po = payments.add_payment(po, {'date': today, 'amount': Decimal('40.00'), 'type': 'Cash'}, user=self.user)
        self.assertEqual(po.payment_status, 'paid')

        with self.assertRaises(BusinessRuleError):
            payments.add_payment(po, {'date': today, 'amount': Decimal('1.00')})

        po = payments.delete_payment(second, user=self.user)
        self.assertEqual(po.payment_status, 'partial')
        po = payments.delete_payment(first, user=self.user)
        self.assertEqual(po.payment_status, 'unpaid')
        self.assertTrue(AuditLog.objects.filter(
            purchase_order_id=po.id, action='payment_add', message='received payment (Cash)'
        ).exists())

    def test_mark_pdc_received(self):
        po = self._create()
        payment, _ = payments.add_payment(po, {
            'date': timezone.localdate(), 'amount': Decimal('10.00'), 'type': 'PDC',
            'due_date': timezone.localdate(),
        })
        payment = payments.mark_pdc_received(payment)
        self.assertEqual(payment.type, 'Cheque')
        with self.assertRaises(BusinessRuleError):
            payments.mark_pdc_received(payment)


class PurchaseOrderAPITests(TestCase):
    """Test purchase order API endpoints"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.staff)
        self.supplier = TestDataFactory.create_supplier(self.company)
        self.product = TestDataFactory.create_product(self.company)

    def _payload(self, **overrides):
        data = {
            'supplier': self.supplier.id,
            'po_number': 'PO-2001',
            'date': timezone.localdate().isoformat(),
            'items': [
                {'product': self.product.id, 'quantity': '3', 'cost': '10.00', 'price': '12.00'},
                {'product': self.product.id, 'quantity': '2', 'cost': '15.00'},
            ],
        }
        data.update(overrides)
        return data

    def test_create_purchase_order(self):
        response = self.client.post('/api/v1/purchase-orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('60.00'))
        self.assertEqual(len(response.data['items']), 2)

    def test_create_without_items(self):
        response = self.client.post('/api/v1/purchase-orders/', self._payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_duplicate_po_number(self):
        TestDataFactory.create_purchase_order(self.admin, po_number='PO-2001')
        response = self.client.post('/api/v1/purchase-orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('po_number', response.data)

    def test_cannot_use_other_company_supplier(self):
        foreign = TestDataFactory.create_supplier(TestDataFactory.create_company())
        response = self.client.post('/api/v1/purchase-orders/', self._payload(supplier=foreign.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filter_by_status(self):
        TestDataFactory.create_purchase_order(self.admin, status='draft')
        TestDataFactory.create_purchase_order(self.admin, status='approved')
        response = self.client.get('/api/v1/purchase-orders/', {'status': 'approved'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_approve_and_deliver(self):
        po = TestDataFactory.create_purchase_order(self.admin, items=[(self.product, 5, '100.00')])
        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')

        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/deliver/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'delivered')
        self.assertEqual(len(response.data['stocks']), 1)
        self.assertEqual(self.product.get_current_quantity(), Decimal('5'))

    def test_deliver_draft_conflicts(self):
        po = TestDataFactory.create_purchase_order(self.admin, items=[(self.product, 5, '100.00')])
        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/deliver/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)

    def test_partial_deliver_endpoint(self):
        po = TestDataFactory.create_purchase_order(self.admin, items=[(self.product, 5, '100.00')], status='approved')
        item = po.items.get()
        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/partial-deliver/', {
            'items': [{'id': item.id, 'quantity': '2'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'partially_delivered')
        self.assertEqual(Decimal(response.data['stocks'][0]['quantity']), Decimal('2'))

    def test_payments_endpoints(self):
        po = TestDataFactory.create_purchase_order(self.admin, items=[(self.product, 1, '100.00')])
        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/payments/', {
            'date': timezone.localdate().isoformat(), 'amount': '40.00', 'type': 'Cash'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['payment_status'], 'partial')
        payment_id = response.data['payment']['id']

        response = self.client.get(f'/api/v1/purchase-orders/{po.id}/payments/')
        self.assertEqual(len(response.data), 1)

        # Only admins delete payments
        response = self.client.delete(f'/api/v1/purchase-orders/{po.id}/payments/{payment_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        admin_client = AuthenticatedAPIClient().authenticate_user(self.admin)
        response = admin_client.delete(f'/api/v1/purchase-orders/{po.id}/payments/{payment_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'unpaid')

    def test_pdc_requires_due_date(self):
        po = TestDataFactory.create_purchase_order(self.admin, items=[(self.product, 1, '100.00')])
        response = self.client.post(f'/api/v1/purchase-orders/{po.id}/payments/', {
            'date': timezone.localdate().isoformat(), 'amount': '40.00', 'type': 'PDC'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_non_admin_cannot_delete(self):
        po = TestDataFactory.create_purchase_order(self.admin)
        response = self.client.delete(f'/api/v1/purchase-orders/{po.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(PurchaseOrder.objects.filter(pk=po.pk).exists())

    def test_other_company_order_not_found(self):
        po = TestDataFactory.create_purchase_order(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/purchase-orders/{po.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
