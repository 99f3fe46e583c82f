"""
Test suite for core: auth, users, company settings, audit logs,
payment status rules and the idempotency guard
"""
import uuid
from decimal import Decimal

from django.test import TestCase, RequestFactory
from django.core.cache import cache
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.test import force_authenticate

from buildstock.core.idempotency import idempotent
from buildstock.core.models import AuditLog, CompanySettings, User
from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.core.utils import compute_payment_status, create_audit_log, round_money, format_quantity


class PaymentStatusTests(TestCase):
    """Test the shared payment status rule"""

    def test_nothing_paid_is_unpaid(self):
        self.assertEqual(compute_payment_status(Decimal('100.00'), Decimal('0')), 'unpaid')
        self.assertEqual(compute_payment_status(Decimal('100.00'), None), 'unpaid')

    def test_partial_payment(self):
        self.assertEqual(compute_payment_status(Decimal('100.00'), Decimal('40.00')), 'partial')

    def test_full_and_over_payment(self):
        self.assertEqual(compute_payment_status(Decimal('100.00'), Decimal('100.00')), 'paid')
        self.assertEqual(compute_payment_status(Decimal('100.00'), Decimal('150.00')), 'paid')

    def test_round_money_half_up(self):
        self.assertEqual(round_money(Decimal('10.005')), Decimal('10.01'))
        self.assertEqual(round_money('3'), Decimal('3.00'))

    def test_format_quantity(self):
        self.assertEqual(format_quantity(Decimal('3.00')), '3')
        self.assertEqual(format_quantity(Decimal('2.50')), '2.5')


class AuditLogTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)

    def test_create_audit_log_uses_user_company(self):
        log = create_audit_log(
            user=self.user, action='create', model_name='Product', object_id=5,
            message='added this product', product_id=5
        )
        self.assertIsNotNone(log)
        self.assertEqual(log.company, self.company)
        self.assertEqual(log.user_name, self.user.display_name)
        self.assertEqual(log.object_id, '5')

    def test_missing_fields_skip_log(self):
        self.assertIsNone(create_audit_log(user=self.user, action='create'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_list_is_company_scoped(self):
        other = TestDataFactory.create_user()
        create_audit_log(user=self.user, action='create', model_name='Product', object_id=1)
        create_audit_log(user=other, action='create', model_name='Product', object_id=2)

        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_id'], '1')

    def test_audit_log_filter_by_model(self):
        create_audit_log(user=self.user, action='create', model_name='Product', object_id=1)
        create_audit_log(user=self.user, action='create', model_name='Customer', object_id=1)
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/audit-logs/', {'model': 'Customer'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)


class AuthAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company, password='secret-pass-1')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': self.user.username,
            'password': 'secret-pass-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['id'], self.user.id)
        self.assertEqual(response.data['user']['company'], self.company.id)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': self.user.username,
            'password': 'nope',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], self.user.username)

    def test_user_without_company_is_forbidden(self):
        loose = User.objects.create_user(username='loose', password='testpass123')
        self.client.authenticate_user(loose)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UserAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_list_users_scoped_to_company(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_create_user_returns_temporary_password(self):
        response = self.client.post('/api/v1/users/', {
            'email': 'new.clerk@test.com',
            'name': 'New Clerk',
            'type': 'user',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('temporary_password', response.data)
        user = User.objects.get(pk=response.data['id'])
        self.assertEqual(user.company, self.company)
        self.assertEqual(user.username, 'new.clerk@test.com')
        self.assertTrue(user.check_password(response.data['temporary_password']))

    def test_duplicate_email_rejected(self):
        response = self.client.post('/api/v1/users/', {
            'email': self.staff.email,
            'name': 'Copy',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_non_admin_cannot_manage_users(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        response = client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_delete_other_user(self):
        response = self.client.delete(f'/api/v1/users/{self.staff.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_cannot_see_other_company_user(self):
        other = TestDataFactory.create_user()
        response = self.client.get(f'/api/v1/users/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CompanySettingsAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')

    def test_get_creates_default_row(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        response = client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(CompanySettings.objects.filter(company=self.company).exists())

    def test_admin_updates_settings(self):
        client = AuthenticatedAPIClient().authenticate_user(self.admin)
        response = client.patch('/api/v1/settings/', {'billing_company': 'Acme Hardware'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CompanySettings.for_company(self.company).billing_company, 'Acme Hardware')

    def test_user_cannot_update_settings(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        response = client.patch('/api/v1/settings/', {'billing_company': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@api_view(['POST'])
@permission_classes([AllowAny])
@idempotent
def _counting_view(request):
    _counting_view.calls += 1
    return Response({'call': _counting_view.calls}, status=status.HTTP_201_CREATED)


_counting_view.calls = 0


class IdempotencyTests(TestCase):
    """Test the Idempotency-Key guard on write endpoints"""

    def setUp(self):
        cache.clear()
        _counting_view.calls = 0
        self.factory = RequestFactory()
        self.user = TestDataFactory.create_user()

    def _post(self, key=None):
        extra = {'HTTP_IDEMPOTENCY_KEY': key} if key else {}
        request = self.factory.post('/api/v1/things/', {}, content_type='application/json', **extra)
        force_authenticate(request, user=self.user)
        return _counting_view(request)

    def test_replays_stored_response(self):
        key = str(uuid.uuid4())
        first = self._post(key)
        second = self._post(key)
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.data, {'call': 1})
        self.assertEqual(second['Idempotent-Replay'], 'true')
        self.assertEqual(_counting_view.calls, 1)

    def test_in_flight_key_conflicts(self):
        key = str(uuid.uuid4())
        cache.set(f"idempotency:{self.user.pk}:/api/v1/things/:{key}", 'in-flight', 60)
        response = self._post(key)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(_counting_view.calls, 0)

    def test_different_keys_both_run(self):
        self._post(str(uuid.uuid4()))
        self._post(str(uuid.uuid4()))
        self.assertEqual(_counting_view.calls, 2)

    def test_without_key_not_guarded(self):
        self._post()
        self._post()
        self.assertEqual(_counting_view.calls, 2)
