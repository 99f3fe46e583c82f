"""
Test suite for customers and suppliers
"""
from django.test import TestCase
from rest_framework import status

from buildstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from buildstock.parties.models import Customer, Supplier


class CustomerAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.staff = TestDataFactory.create_user(company=self.company, type='user')
        self.client = AuthenticatedAPIClient().authenticate_user(self.staff)

    def test_create_customer(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Juan Builders',
            'contact_number': '09171234567',
            'address': 'Quezon City',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Customer.objects.get(pk=response.data['id']).company, self.company)

    def test_name_required(self):
        response = self.client.post('/api/v1/customers/', {'contact_number': '123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_list_filter_by_name(self):
        TestDataFactory.create_customer(self.company, name='Alpha Construction')
        TestDataFactory.create_customer(self.company, name='Beta Homes')
        TestDataFactory.create_customer(TestDataFactory.create_company(), name='Alpha Elsewhere')
        response = self.client.get('/api/v1/customers/', {'name': 'alpha'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_update_customer(self):
        customer = TestDataFactory.create_customer(self.company)
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'address': 'Pasig'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertEqual(customer.address, 'Pasig')

    def test_user_cannot_delete(self):
        customer = TestDataFactory.create_customer(self.company)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_delete_customer_with_orders(self):
        customer = TestDataFactory.create_customer(self.company)
        TestDataFactory.create_sales_order(self.admin, customer=customer)
        client = AuthenticatedAPIClient().authenticate_user(self.admin)
        response = client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_deletes_unused_customer(self):
        customer = TestDataFactory.create_customer(self.company)
        client = AuthenticatedAPIClient().authenticate_user(self.admin)
        response = client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Customer.objects.filter(pk=customer.pk).exists())

    def test_customer_orders(self):
        customer = TestDataFactory.create_customer(self.company)
        TestDataFactory.create_sales_order(self.admin, customer=customer, status='reserved')
        TestDataFactory.create_sales_order(self.admin, customer=customer, status='completed')
        response = self.client.get(f'/api/v1/customers/{customer.id}/orders/', {'status': 'completed'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)


class SupplierAPITests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.admin = TestDataFactory.create_user(company=self.company, type='admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_create_and_list_supplier(self):
        response = self.client.post('/api/v1/suppliers/', {'name': 'Holcim'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual(response.data['count'], 1)

    def test_cannot_delete_supplier_with_orders(self):
        supplier = TestDataFactory.create_supplier(self.company)
        TestDataFactory.create_purchase_order(self.admin, supplier=supplier)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Supplier.objects.filter(pk=supplier.pk).exists())

    def test_other_company_supplier_not_found(self):
        supplier = TestDataFactory.create_supplier(TestDataFactory.create_company())
        response = self.client.get(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
