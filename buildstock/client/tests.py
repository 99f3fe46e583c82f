"""
Test suite for the API client and list screen state
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from buildstock.client import ApiClient, ApiError, ListScreen, ListStore, Page, SubmissionInProgress
from buildstock.core.test_utils import TestDataFactory


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload
        self.text = '' if payload is None else str(payload)

    def json(self):
        if self.payload is None:
            raise ValueError('No JSON')
        return self.payload


class FakeSession:
    """Records requests and answers from a queue"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append({'method': method, 'url': url, 'json': json, 'params': params, 'headers': headers})
        return self.responses.pop(0)


class APIClientSession:
    """Lets ApiClient drive the Django test client instead of the network"""

    def __init__(self):
        self.client = APIClient()

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        extra = {}
        for name, value in (headers or {}).items():
            extra['HTTP_' + name.upper().replace('-', '_')] = value
        handler = getattr(self.client, method.lower())
        if method == 'GET':
            return handler(url, data=params, **extra)
        return handler(url, data=json, format='json', **extra)


def _page(rows, page=1, total_pages=1, count=None):
    return {
        'results': rows,
        'count': len(rows) if count is None else count,
        'next': page + 1 if page < total_pages else None,
        'previous': page - 1 if page > 1 else None,
        'page': page,
        'page_size': 15,
        'total_pages': total_pages,
    }


class ApiClientTests(SimpleTestCase):

    def test_urls_and_auth_header(self):
        session = FakeSession(
            FakeResponse(200, {'access': 'a-token', 'refresh': 'r-token', 'user': {'id': 1}}),
            FakeResponse(200, {'id': 3, 'name': 'Cement'}),
        )
        client = ApiClient('http://localhost/api/v1/', session=session)
        client.login('clerk', 'pw')
        client.retrieve('products', 3)

        self.assertEqual(session.calls[0]['url'], 'http://localhost/api/v1/auth/login/')
        self.assertEqual(session.calls[1]['url'], 'http://localhost/api/v1/products/3/')
        self.assertEqual(session.calls[1]['headers']['Authorization'], 'Bearer a-token')

    def test_create_sends_idempotency_key(self):
        session = FakeSession(FakeResponse(201, {'id': 1}))
        client = ApiClient('http://localhost/api/v1', session=session)
        client.create('customers', {'name': 'Acme'})
        self.assertIn('Idempotency-Key', session.calls[0]['headers'])

    def test_list_drops_empty_filters(self):
        session = FakeSession(FakeResponse(200, _page([{'id': 1}], total_pages=2, count=20)))
        client = ApiClient('http://localhost/api/v1', session=session)
        page = client.list('products', page=1, page_size=10, search='bar', category=None)
        self.assertEqual(session.calls[0]['params'], {'search': 'bar', 'page': 1, 'page_size': 10})
        self.assertEqual(page.count, 20)
        self.assertTrue(page.has_next)
        self.assertFalse(page.has_previous)

    def test_error_payload_becomes_api_error(self):
        session = FakeSession(FakeResponse(409, {'error': 'Insufficient stock.', 'stock_ids': [4]}))
        client = ApiClient('http://localhost/api/v1', session=session)
        with self.assertRaises(ApiError) as ctx:
            client.action('sales-orders', 9, 'complete')
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.message, 'Insufficient stock.')
        self.assertEqual(ctx.exception.payload['stock_ids'], [4])

    def test_delete_returns_none(self):
        session = FakeSession(FakeResponse(204))
        client = ApiClient('http://localhost/api/v1', session=session)
        self.assertIsNone(client.delete('customers', 2))
        self.assertEqual(session.calls[0]['method'], 'DELETE')


class ListStoreTests(SimpleTestCase):

    def test_replace_merge_remove(self):
        store = ListStore([{'id': 1, 'name': 'a'}, {'id': 2, 'name': 'b'}])
        self.assertEqual(len(store), 2)
        self.assertTrue(store.merge({'id': 2, 'name': 'B'}))
        self.assertEqual(store.get(2)['name'], 'B')
        self.assertFalse(store.merge({'id': 3, 'name': 'c'}))
        self.assertTrue(store.remove(1))
        self.assertFalse(store.remove(1))
        self.assertEqual([row['id'] for row in store], [2])
        self.assertEqual(store.total_count, 1)

    def test_stores_are_independent(self):
        first, second = ListStore(), ListStore()
        first.append({'id': 1})
        self.assertEqual(len(second), 0)


class FakeListClient:
    """Serves pages from a dict and can run a hook before answering"""

    def __init__(self, pages):
        self.pages = pages
        self.before_answer = None
        self.created = []

    def list(self, resource, page=1, page_size=None, **filters):
        hook, self.before_answer = self.before_answer, None
        if hook:
            hook()
        key = filters.get('name', '')
        rows, total_pages = self.pages[(key, page)]
        return Page.from_payload(_page(rows, page=page, total_pages=total_pages))

    def create(self, resource, data):
        self.created.append(data)
        return {'id': 100 + len(self.created), **data}


class ListScreenTests(SimpleTestCase):

    def setUp(self):
        self.client = FakeListClient({
            ('', 1): ([{'id': 1}, {'id': 2}], 2),
            ('', 2): ([{'id': 3}], 2),
            ('cem', 1): ([{'id': 7, 'name': 'cement'}], 1),
        })
        self.screen = ListScreen(self.client, 'products')

    def test_paging(self):
        self.assertTrue(self.screen.load())
        self.assertEqual([row['id'] for row in self.screen.store], [1, 2])
        self.assertFalse(self.screen.previous_page())
        self.assertTrue(self.screen.next_page())
        self.assertEqual([row['id'] for row in self.screen.store], [3])
        self.assertFalse(self.screen.next_page())
        self.assertEqual(self.screen.page, 2)

    def test_filter_change_resets_page(self):
        self.screen.load()
        self.screen.next_page()
        self.screen.set_filters(name='cem')
        self.assertEqual(self.screen.page, 1)
        self.assertEqual([row['id'] for row in self.screen.store], [7])

    def test_stale_response_is_dropped(self):
        # A filter change starts while the first page is still in flight
        self.client.before_answer = lambda: self.screen.set_filters(name='cem')
        self.assertFalse(self.screen.load())
        self.assertEqual([row['id'] for row in self.screen.store], [7])

    def test_save_appends_created_row(self):
        self.screen.load()
        row = self.screen.save({'name': 'gravel'})
        self.assertEqual(self.screen.store.get(row['id'])['name'], 'gravel')

    def test_second_submission_while_busy_rejected(self):
        def create_twice(resource, data):
            self.screen.save({'name': 'again'})

        self.client.create = create_twice
        with self.assertRaises(SubmissionInProgress):
            self.screen.save({'name': 'first'})
        self.assertFalse(self.screen.guard.busy)


class ClientAgainstAPITests(TestCase):
    """Drive the real endpoints through ApiClient"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, password='secret-pass-1')
        self.client = ApiClient('/api/v1', session=APIClientSession())
        self.client.login(self.user.username, 'secret-pass-1')

    def test_customer_screen_round_trip(self):
        screen = ListScreen(self.client, 'customers', page_size=2)
        for name in ('Alpha', 'Beta', 'Gamma'):
            screen.save({'name': name})
        screen.load()
        self.assertEqual(screen.total_pages, 2)
        self.assertEqual(screen.store.total_count, 3)

        first = screen.store.items[0]
        updated = screen.save({'address': 'Makati'}, pk=first['id'])
        self.assertEqual(screen.store.get(first['id'])['address'], 'Makati')
        self.assertEqual(updated['name'], first['name'])

        screen.set_filters(name='gam')
        self.assertEqual([row['name'] for row in screen.store], ['Gamma'])

    def test_sales_order_flow(self):
        product = TestDataFactory.create_product(self.company)
        stock = TestDataFactory.create_stock(product, quantity=Decimal('5'))
        customer = TestDataFactory.create_customer(self.company)
        so = self.client.create('sales-orders', {
            'customer': customer.id,
            'date': '2025-05-05',
            'items': [{'product_stock': stock.id, 'quantity': '5', 'unit_price': '100.00'}],
        })
        completed = self.client.action('sales-orders', so['id'], 'complete')
        self.assertEqual(completed['status'], 'completed')

        with self.assertRaises(ApiError) as ctx:
            self.client.action('sales-orders', so['id'], 'complete')
        self.assertEqual(ctx.exception.status_code, 409)
