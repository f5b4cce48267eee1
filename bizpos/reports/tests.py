"""
Comprehensive test suite for Reports module
Tests: Dashboard summary, GRN inventory
"""
from django.test import SimpleTestCase
from rest_framework import status

from bizpos.core.test_utils import AuthenticatedAPIClient, LocalStoreTestCase, TestDataFactory
from bizpos.parties.customer_settlements import save_customer_settlement
from bizpos.parties.supplier_settlements import save_supplier_settlement
from bizpos.pos.invoices import save_invoice
from bizpos.purchasing.grn_store import save_grn
from bizpos.reports.summary import build_dashboard_summary, grn_inventory


class GRNInventoryTests(SimpleTestCase):
    """Test per-item stock aggregation"""

    def test_aggregates_by_description(self):
        grns = [
            TestDataFactory.make_grn_record(items=[
                TestDataFactory.make_grn_item(description='Sugar 1kg', delivered=10, unit_cost=2, soldout=4, available=6),
                TestDataFactory.make_grn_item(description='  ', delivered=5),
            ]),
            TestDataFactory.make_grn_record(items=[
                TestDataFactory.make_grn_item(description='sugar 1KG', delivered=20, unit_cost=3),
                TestDataFactory.make_grn_item(description='Apples', delivered=1, unit_cost=1),
            ]),
            TestDataFactory.make_grn_record(status='cancelled', items=[
                TestDataFactory.make_grn_item(description='Sugar 1kg', delivered=100, unit_cost=1),
            ]),
        ]
        lines = grn_inventory(grns)
        self.assertEqual([line['description'] for line in lines], ['Apples', 'Sugar 1kg'])
        sugar = lines[1]
        self.assertEqual(sugar['delivered'], 30.0)
        self.assertEqual(sugar['soldout'], 4.0)
        self.assertEqual(sugar['available'], 26.0)
        self.assertEqual(sugar['value'], 72.0)
        self.assertEqual(sugar['grn_count'], 2)

    def test_empty(self):
        self.assertEqual(grn_inventory([]), [])


class DashboardSummaryTests(LocalStoreTestCase):
    """Test dashboard figures across every store"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        save_grn(TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Widget', delivered=10, unit_cost=100),
        ]), self.user)
        save_grn(TestDataFactory.make_grn_record(status='cancelled', items=[
            TestDataFactory.make_grn_item(description='Gadget', delivered=2, unit_cost=50),
        ]), self.user)
        save_invoice({'customer': 'A', 'total': 50, 'status': 'completed'}, self.user)
        save_invoice({'customer': 'B', 'total': 20, 'status': 'refunded'}, self.user)
        save_customer_settlement({'customer_name': 'Jane', 'reference_number': 'R-1', 'settlement_amount': 250}, self.user)
        save_supplier_settlement({'supplier_name': 'Acme', 'reference_number': 'P-1', 'settlement_amount': 90}, self.user)
        TestDataFactory.create_product(stock_quantity=50)
        TestDataFactory.create_product(stock_quantity=1)

    def test_summary(self):
        summary = build_dashboard_summary(self.user)

        self.assertEqual(summary['grns']['count'], 2)
        self.assertEqual(summary['grns']['total_value'], 1000.0)
        self.assertEqual(summary['grns']['by_status'], {'completed': 1, 'cancelled': 1})

        self.assertEqual(summary['invoices']['count'], 2)
        self.assertEqual(summary['invoices']['total'], 50.0)
        self.assertEqual(summary['invoices']['by_status'], {'completed': 1, 'refunded': 1})
        self.assertEqual(summary['deliveries'], {'count': 0, 'total': 0.0, 'by_status': {}})

        self.assertEqual(summary['customer_settlements']['count'], 1)
        self.assertEqual(summary['customer_settlements']['total'], 250.0)
        self.assertEqual(summary['supplier_settlements']['total'], 90.0)

        self.assertEqual(summary['products'], {'count': 2, 'low_stock': 1})
        # cancelled GRNs hold no stock
        self.assertEqual(summary['inventory_value'], 1000.0)

    def test_cancelled_grns_have_no_value(self):
        other = TestDataFactory.create_user()
        save_grn(TestDataFactory.make_grn_record(status='cancelled', items=[
            TestDataFactory.make_grn_item(delivered=3, unit_cost=10),
        ]), other)
        summary = build_dashboard_summary(other)
        self.assertEqual(summary['grns']['count'], 1)
        self.assertEqual(summary['grns']['total_value'], 0.0)

    def test_other_users_see_nothing(self):
        summary = build_dashboard_summary(TestDataFactory.create_user())
        self.assertEqual(summary['grns']['count'], 0)
        self.assertEqual(summary['invoices']['count'], 0)
        self.assertEqual(summary['inventory_value'], 0.0)


class ReportsAPITests(LocalStoreTestCase):
    """Test report endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_dashboard(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsInstance(response.data, dict)
        self.assertEqual(response.data['grns']['count'], 0)

    def test_grn_inventory_in_stock_filter(self):
        save_grn(TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Milk', delivered=5, unit_cost=1),
            TestDataFactory.make_grn_item(description='Eggs', delivered=5, unit_cost=1, soldout=5, available=0),
        ]), self.user)

        response = self.client.get('/api/v1/reports/grn-inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/reports/grn-inventory/', {'in_stock': 'true'})
        self.assertEqual([line['description'] for line in response.data['results']], ['Milk'])

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
