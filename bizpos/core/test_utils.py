"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from bizpos.catalog.models import Category, Product
from bizpos.core.local_store import get_store
from decimal import Decimal
import random
import string
import uuid

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='user', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_admin(**kwargs):
        """Create a user with the admin business role"""
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_category(name=None, description=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test description for {name}'
        )

    @staticmethod
    def create_product(name=None, sku=None, category=None, selling_price=None, stock_quantity=None, min_stock_level=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8).upper()}'
        return Product.objects.create(
            name=name,
            sku=sku,
            category=category,
            selling_price=selling_price if selling_price is not None else Decimal('100.00'),
            cost_price=Decimal('60.00'),
            stock_quantity=stock_quantity if stock_quantity is not None else Decimal('50.000'),
            min_stock_level=min_stock_level if min_stock_level is not None else Decimal('5.000'),
        )

    @staticmethod
    def make_grn_item(description=None, delivered=10, unit_cost=100, **overrides):
        """A GRN line item dict as kept in the record store"""
        item = {
            'id': str(uuid.uuid4()),
            'description': description or f'Item {TestDataFactory.random_string(5)}',
            'quantity': delivered,
            'delivered': delivered,
            'soldout': 0,
            'rejected_out': 0,
            'rejection_in': 0,
            'damaged': 0,
            'complimentary': 0,
            'available': delivered,
            'unit': 'pcs',
            'unit_cost': unit_cost,
            'total': delivered * unit_cost,
        }
        item.update(overrides)
        return item

    @staticmethod
    def make_grn_record(grn_number=None, items=None, supplier_name='Acme Supplies', po_number='PO-001',
                        receiving_costs=None, total=None, **data_overrides):
        """A complete saved GRN record dict"""
        grn_number = grn_number or f'GRN-{TestDataFactory.random_string(6).upper()}'
        items = items if items is not None else [TestDataFactory.make_grn_item()]
        now = timezone.now().isoformat()
        data = {
            'grn_number': grn_number,
            'date': '2024-01-15',
            'time': '10:30',
            'supplier_name': supplier_name,
            'supplier_id': 'SUP-1',
            'supplier_phone': '0700000000',
            'supplier_email': 'supplier@test.com',
            'supplier_address': 'Industrial Area',
            'business_name': 'Test Business',
            'business_address': 'Main Street',
            'business_phone': '0711111111',
            'business_email': 'shop@test.com',
            'po_number': po_number,
            'delivery_note_number': 'DN-1',
            'vehicle_number': 'KAA 123A',
            'driver_name': 'Driver',
            'received_by': 'Receiver',
            'items': items,
            'quality_check_notes': '',
            'discrepancies': '',
            'prepared_by': 'Clerk',
            'prepared_date': '2024-01-15T08:00:00Z',
            'checked_by': '',
            'checked_date': '',
            'approved_by': '',
            'approved_date': '',
            'received_date': '2024-01-15',
            'status': 'completed',
            'receiving_costs': receiving_costs or [],
        }
        data.update(data_overrides)
        record = {
            'id': str(uuid.uuid4()),
            'name': f'GRN-{grn_number}',
            'data': data,
            'created_at': now,
            'updated_at': now,
        }
        if total is not None:
            record['total'] = total
        return record

    @staticmethod
    def create_customer_settlement(user=None, customer_name=None, reference_number=None, amount=Decimal('500.00')):
        """Create a hosted customer settlement row"""
        from bizpos.parties.models import SavedCustomerSettlement

        return SavedCustomerSettlement.objects.create(
            id=str(int(timezone.now().timestamp() * 1000)) + TestDataFactory.random_string(3),
            user=user,
            customer_name=customer_name or f'Customer {TestDataFactory.random_string(5)}',
            reference_number=reference_number or f'REF-{TestDataFactory.random_string(6).upper()}',
            settlement_amount=amount,
            amount_paid=amount,
            date=timezone.now().date(),
            time=timezone.now().strftime('%H:%M:%S'),
        )


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


class LocalStoreTestCase(TestCase):
    """TestCase that starts every test with an empty local record store"""

    def setUp(self):
        super().setUp()
        get_store().clear()
        self.addCleanup(get_store().clear)
