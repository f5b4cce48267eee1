"""
Test suite for the catalog module
Tests: product/category CRUD, validation, filters and low stock reporting
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from bizpos.catalog.models import Product
from bizpos.core.models import AuditLog
from bizpos.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductModelTests(TestCase):
    """Test Product model helpers"""

    def test_is_low_stock(self):
        """A product at or below its minimum level is low on stock"""
        product = TestDataFactory.create_product(stock_quantity=Decimal('5.000'), min_stock_level=Decimal('5.000'))
        self.assertTrue(product.is_low_stock)
        product.stock_quantity = Decimal('6.000')
        self.assertFalse(product.is_low_stock)

    def test_stock_value(self):
        """Stock is valued at cost price"""
        product = TestDataFactory.create_product(stock_quantity=Decimal('10.000'))
        self.assertEqual(product.get_stock_value(), Decimal('600.00000'))

    def test_low_stock_queryset(self):
        TestDataFactory.create_product(name='Low', stock_quantity=Decimal('1.000'))
        TestDataFactory.create_product(name='Plenty', stock_quantity=Decimal('80.000'))
        self.assertEqual(list(Product.objects.low_stock().values_list('name', flat=True)), ['Low'])


class CategoryAPITests(TestCase):
    """Test category endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_category(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Beverages'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_count'], 0)

    def test_category_product_count(self):
        category = TestDataFactory.create_category(name='Snacks')
        TestDataFactory.create_product(category=category)
        response = self.client.get(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product_count'], 1)

    def test_delete_category_keeps_products(self):
        """Deleting a category leaves its products uncategorised"""
        category = TestDataFactory.create_category()
        product = TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertIsNone(product.category)


class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_category(name='Dairy')

    def test_create_product(self):
        """Creating a product returns it and writes an audit entry"""
        data = {
            'name': '  Fresh Milk 500ml ',
            'category': self.category.id,
            'sku': 'MILK-500',
            'unit_of_measure': 'ml',
            'selling_price': '1.50',
            'cost_price': '1.00',
            'stock_quantity': '40',
            'min_stock_level': '10',
        }
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Fresh Milk 500ml')
        self.assertEqual(response.data['category_name'], 'Dairy')
        self.assertFalse(response.data['is_low_stock'])
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_create_product_defaults(self):
        """Unit defaults to piece and max stock level to 100"""
        response = self.client.post('/api/v1/products/', {'name': 'Soap'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['unit_of_measure'], 'piece')
        self.assertEqual(Decimal(response.data['max_stock_level']), Decimal('100'))
        self.assertIsNone(response.data['sku'])

    def test_create_product_requires_name(self):
        response = self.client.post('/api/v1/products/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/products/', {'name': 'Bread', 'selling_price': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('selling_price', response.data)

    def test_min_above_max_rejected(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Rice', 'min_stock_level': '50', 'max_stock_level': '20',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('min_stock_level', response.data)

    def test_invalid_unit_rejected(self):
        response = self.client.post('/api/v1/products/', {'name': 'Rice', 'unit_of_measure': 'bushel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        """Search, category and low stock filters narrow the list"""
        TestDataFactory.create_product(name='Cheddar Cheese', category=self.category, stock_quantity=Decimal('2.000'))
        TestDataFactory.create_product(name='Apple Juice', stock_quantity=Decimal('30.000'))

        response = self.client.get('/api/v1/products/', {'search': 'cheddar'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data['results']], ['Cheddar Cheese'])

        response = self.client.get('/api/v1/products/', {'category': self.category.id})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Cheddar Cheese'])

    def test_list_pagination(self):
        for i in range(3):
            TestDataFactory.create_product(name=f'Item {i}')
        response = self.client.get('/api/v1/products/', {'limit': 2})
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['next'], 2)
        self.assertEqual(response.data['total_pages'], 2)

        response = self.client.get('/api/v1/products/', {'limit': 0})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page_size'], 1)
        self.assertEqual(response.data['total_pages'], 3)

    def test_update_product(self):
        """Patching records the changed fields in the audit log"""
        product = TestDataFactory.create_product(name='Tea')
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'selling_price': '120.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='update', object_id=str(product.id))
        self.assertEqual(log.changes['selling_price'], {'old': '100.00', 'new': '120.00'})

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(id=product.id).exists())

    def test_low_stock_endpoint(self):
        TestDataFactory.create_product(name='Sugar', stock_quantity=Decimal('0.000'))
        TestDataFactory.create_product(name='Salt', stock_quantity=Decimal('90.000'))
        response = self.client.get('/api/v1/products/low-stock/')
        self.assertEqual([p['name'] for p in response.data], ['Sugar'])

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
