"""
Test suite for reports: dashboard figures, caching, weekly sales,
outstanding payments, the sales report and post-dated cheques
"""
import datetime
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from buildstock.core import payments
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.reports.views import build_dashboard, weekly_sales_series
from buildstock.sales import services as sales_services


class DashboardTests(TestCase):

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.company, name='Top Builder')
        self.cement = TestDataFactory.create_product(self.company, name='Cement')
        self.stock = TestDataFactory.create_stock(
            self.cement, quantity=Decimal('20'), cost=Decimal('200.00'), selling_price=Decimal('250.00')
        )

    def test_stock_values(self):
        data = build_dashboard(self.company.id)
        self.assertEqual(data['stock_cost_value'], 4000.0)
        self.assertEqual(data['stock_price_value'], 5000.0)

    def test_sales_exclude_drafts(self):
        today = timezone.localdate()
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 2, '250.00')], date=today)
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 5, '250.00')],
                                           status='draft', date=today)
        data = build_dashboard(self.company.id)
        self.assertEqual(data['todays_sales'], 500.0)
        self.assertEqual(data['total_sales'], 500.0)
        self.assertEqual(data['total_sales_orders'], 1)
        self.assertEqual(data['best_selling_products'][0]['product_name'], 'Cement')
        self.assertEqual(data['best_selling_products'][0]['quantity_sold'], 2.0)
        self.assertEqual(data['top_customers'][0]['customer_name'], 'Top Builder')

    def test_date_range_limits_sales(self):
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '100.00')],
                                           date=datetime.date(2025, 1, 15))
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '300.00')],
                                           date=datetime.date(2025, 2, 15))
        data = build_dashboard(self.company.id, datetime.date(2025, 2, 1), datetime.date(2025, 2, 28))
        self.assertEqual(data['total_sales'], 300.0)
        self.assertEqual(data['total_sales_orders'], 1)

    def test_purchases_exclude_drafts(self):
        TestDataFactory.create_purchase_order(self.user, items=[(self.cement, 10, '100.00')], status='draft')
        TestDataFactory.create_purchase_order(self.user, items=[(self.cement, 2, '100.00')], status='approved')
        data = build_dashboard(self.company.id)
        self.assertEqual(data['total_purchases'], 200.0)

    def test_outstanding_payments(self):
        so = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 4, '250.00')],
                                                delivery_fee=Decimal('50.00'))
        payments.add_payment(so, {'date': timezone.localdate(), 'amount': Decimal('300.00'), 'type': 'Cash'})
        data = build_dashboard(self.company.id)
        self.assertEqual(data['outstanding_payments'], 750.0)

    def test_low_stock_products(self):
        sand = TestDataFactory.create_product(self.company, name='Sand')
        TestDataFactory.create_stock(sand, quantity=Decimal('3'))
        data = build_dashboard(self.company.id)
        names = [row['name'] for row in data['low_stock_products']]
        self.assertEqual(names, ['Sand'])
        self.assertEqual(data['low_stock_products'][0]['current_quantity'], 3.0)

    def test_other_company_not_counted(self):
        other_user = TestDataFactory.create_user()
        other_stock = TestDataFactory.create_stock(TestDataFactory.create_product(other_user.company))
        TestDataFactory.create_sales_order(other_user, items=[(other_stock, 1, '999.00')])
        data = build_dashboard(self.company.id)
        self.assertEqual(data['total_sales'], 0.0)

    def test_dashboard_endpoint_refreshes_after_completion(self):
        so = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 4, '250.00')])
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock_cost_value'], 4000.0)

        sales_services.complete_sales_order(so, user=self.user)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['stock_cost_value'], 3200.0)

    def test_dashboard_requires_authentication(self):
        client = AuthenticatedAPIClient()
        response = client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class WeeklySalesTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.stock = TestDataFactory.create_stock(TestDataFactory.create_product(self.user.company))

    def test_series_covers_two_months_with_zero_weeks(self):
        today = datetime.date(2025, 3, 12)  # Wednesday
        TestDataFactory.create_sales_order(self.user, items=[(self.stock, 2, '250.00')], date=datetime.date(2025, 3, 11))
        TestDataFactory.create_sales_order(self.user, items=[(self.stock, 1, '100.00')], date=datetime.date(2025, 1, 14))
        TestDataFactory.create_sales_order(self.user, items=[(self.stock, 1, '700.00')], date=datetime.date(2025, 1, 1))

        series = weekly_sales_series(self.user.company_id, today=today)
        self.assertEqual(len(series), 9)
        self.assertEqual(series[0]['week_start'], '2025-01-13')
        self.assertEqual(series[0]['total'], 100.0)
        self.assertEqual(series[-1]['week_start'], '2025-03-10')
        self.assertEqual(series[-1]['total'], 500.0)
        self.assertEqual(series[-1]['orders'], 1)
        self.assertEqual(series[4]['total'], 0.0)

    def test_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/reports/weekly-sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 9)


class OutstandingAndSalesReportTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(self.company)
        self.stock = TestDataFactory.create_stock(TestDataFactory.create_product(self.company))

    def test_outstanding_lists_unpaid_and_partial(self):
        partial = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 2, '250.00')])
        payments.add_payment(partial, {'date': timezone.localdate(), 'amount': Decimal('200.00')})
        unpaid = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '250.00')])
        paid = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '250.00')])
        payments.add_payment(paid, {'date': timezone.localdate(), 'amount': Decimal('250.00')})
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '250.00')], status='draft')

        response = self.client.get('/api/v1/reports/outstanding/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        balances = {row['id']: Decimal(row['balance']) for row in response.data['results']}
        self.assertEqual(balances, {partial.id: Decimal('300.00'), unpaid.id: Decimal('250.00')})

    def test_sales_report_completed_only_with_totals(self):
        done = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 2, '250.00')])
        sales_services.complete_sales_order(done)
        payments.add_payment(done, {'date': timezone.localdate(), 'amount': Decimal('100.00')})
        TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 1, '250.00')])

        response = self.client.get('/api/v1/reports/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['totals'], {
            'total_amount': 500.0,
            'total_paid': 100.0,
            'balance': 400.0,
        })

    def test_pdc_report_sorted_by_due_date(self):
        so = TestDataFactory.create_sales_order(self.user, customer=self.customer, items=[(self.stock, 2, '250.00')])
        po = TestDataFactory.create_purchase_order(self.user, items=[(self.stock.product, 1, '300.00')])
        payments.add_payment(so, {
            'date': datetime.date(2025, 3, 1), 'amount': Decimal('100.00'), 'type': 'PDC',
            'due_date': datetime.date(2025, 4, 30),
        })
        payments.add_payment(po, {
            'date': datetime.date(2025, 3, 1), 'amount': Decimal('100.00'), 'type': 'PDC',
            'due_date': datetime.date(2025, 4, 1),
        })
        payments.add_payment(so, {'date': datetime.date(2025, 3, 1), 'amount': Decimal('50.00'), 'type': 'Cash'})

        response = self.client.get('/api/v1/reports/pdc/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([row['kind'] for row in response.data['results']], ['purchase', 'sales'])
        self.assertEqual(response.data['results'][0]['order_number'], po.po_number)
