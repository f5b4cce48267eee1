"""
Comprehensive test suite for POS module
Tests: Document numbering, Invoices, Delivery notes, Sales orders, GRN stock consumption
"""
from datetime import date
from unittest import mock

from rest_framework import status

from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.local_store import owner_for, read_records, read_value, write_value
from bizpos.core.models import AuditLog
from bizpos.core.test_utils import AuthenticatedAPIClient, LocalStoreTestCase, TestDataFactory
from bizpos.purchasing.exceptions import GRNStorageError
from bizpos.purchasing.grn_store import get_grn_by_id, save_grn
from bizpos.pos.deliveries import SAVED_DELIVERIES_KEY, get_delivery_by_id, save_delivery
from bizpos.pos.invoices import (
    SAVED_INVOICES_KEY, delete_invoice, get_invoice_by_id, get_saved_invoices, save_invoice, update_invoice,
)
from bizpos.pos.numbering import LAST_DELIVERY_NOTE_KEY, next_delivery_note_number, next_document_number
from bizpos.pos.sales_orders import get_saved_sales_orders, save_sales_order


class NumberingTests(LocalStoreTestCase):
    """Test document number generation"""

    def test_delivery_note_sequence(self):
        """Numbers count up within a day and restart the next day"""
        day = date(2024, 5, 2)
        self.assertEqual(next_delivery_note_number('42', today=day), 'DN-20240502-001')
        self.assertEqual(next_delivery_note_number('42', today=day), 'DN-20240502-002')
        self.assertEqual(read_value(LAST_DELIVERY_NOTE_KEY, '42'), '20240502-002')
        self.assertEqual(next_delivery_note_number('42', today=date(2024, 5, 3)), 'DN-20240503-001')

    def test_delivery_note_sequence_per_owner(self):
        day = date(2024, 5, 2)
        next_delivery_note_number('1', today=day)
        self.assertEqual(next_delivery_note_number('2', today=day), 'DN-20240502-001')

    def test_delivery_note_ignores_garbage(self):
        write_value(LAST_DELIVERY_NOTE_KEY, 'not-a-number', '42')
        self.assertEqual(next_delivery_note_number('42', today=date(2024, 5, 2)), 'DN-20240502-001')

    def test_document_number(self):
        """Only numbers issued today with the same prefix count"""
        day = date(2024, 5, 2)
        existing = ['INV-20240502-001', 'INV-20240502-007', 'INV-20240501-050', 'SO-20240502-090', None]
        self.assertEqual(next_document_number('INV', existing, today=day), 'INV-20240502-008')
        self.assertEqual(next_document_number('SO', [], today=day), 'SO-20240502-001')


class InvoiceStoreTests(LocalStoreTestCase):
    """Test invoice persistence and stock consumption"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.grn = TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Soap Bar', delivered=50, unit_cost=2),
        ])
        save_grn(self.grn, self.user)

    def _soap(self):
        return get_grn_by_id(self.grn['id'], self.user)['data']['items'][0]

    def test_save_fills_defaults(self):
        invoice = save_invoice({
            'customer': 'Walk-in',
            'total': 12.0,
            'items_list': [{'description': 'Soap Bar', 'quantity': 6, 'unit_price': 2}],
        }, self.user)
        self.assertTrue(invoice['id'])
        self.assertRegex(invoice['invoice_number'], r'^INV-\d{8}-001$')
        self.assertTrue(invoice['date'])
        self.assertEqual(invoice['items'], 1)
        self.assertEqual(len(read_records(SAVED_INVOICES_KEY, owner_for(self.user))), 1)

    def test_save_consumes_grn_stock(self):
        save_invoice({'customer': 'A', 'total': 10, 'items_list': [{'description': 'soap bar', 'quantity': 5}]}, self.user)
        soap = self._soap()
        self.assertEqual(soap['soldout'], 5.0)
        self.assertEqual(soap['available'], 45.0)

    def test_save_without_consumption(self):
        save_invoice(
            {'customer': 'A', 'total': 10, 'items_list': [{'description': 'Soap Bar', 'quantity': 5}]},
            self.user, consume_stock=False,
        )
        self.assertEqual(self._soap()['soldout'], 0)

    def test_consumption_failure_keeps_invoice(self):
        with mock.patch('bizpos.pos.invoices.update_grn_quantities_from_invoice',
                        side_effect=GRNStorageError('Failed to update GRN')):
            invoice = save_invoice({'customer': 'A', 'total': 1, 'items_list': [{'description': 'Soap Bar', 'quantity': 1}]}, self.user)
        self.assertEqual(get_invoice_by_id(invoice['id'], self.user)['customer'], 'A')

    def test_numbers_follow_existing(self):
        first = save_invoice({'customer': 'A', 'total': 1}, self.user)
        second = save_invoice({'customer': 'B', 'total': 1}, self.user)
        self.assertEqual(int(second['invoice_number'][-3:]), int(first['invoice_number'][-3:]) + 1)
        self.assertNotEqual(first['id'], second['id'])

    def test_duplicate_id_is_rejected(self):
        save_invoice({'id': 'inv-1', 'customer': 'A', 'total': 1}, self.user)
        with self.assertRaisesMessage(DuplicateRecordError, 'Invoice inv-1 already exists'):
            save_invoice({'id': 'inv-1', 'customer': 'B', 'total': 2}, self.user)
        self.assertEqual([i['customer'] for i in get_saved_invoices(self.user)], ['A'])

    def test_update_and_delete(self):
        invoice = save_invoice({'customer': 'A', 'total': 1}, self.user)
        invoice['status'] = 'refunded'
        self.assertTrue(update_invoice(invoice, self.user))
        self.assertEqual(get_invoice_by_id(invoice['id'], self.user)['status'], 'refunded')
        self.assertFalse(update_invoice({'id': 'missing'}, self.user))
        self.assertTrue(delete_invoice(invoice['id'], self.user))
        self.assertEqual(get_saved_invoices(self.user), [])

    def test_anonymous_invoices_are_separate(self):
        save_invoice({'customer': 'Anon', 'total': 1})
        self.assertEqual(len(get_saved_invoices()), 1)
        self.assertEqual(get_saved_invoices(self.user), [])

    def test_write_failure(self):
        with mock.patch('bizpos.core.records.write_records', side_effect=OSError('disk full')):
            with self.assertRaisesMessage(RecordStoreError, 'Failed to save invoice'):
                save_invoice({'customer': 'A', 'total': 1}, self.user)


class DeliveryStoreTests(LocalStoreTestCase):
    """Test delivery note persistence"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()

    def test_save_numbers_and_consumes(self):
        grn = TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Cement 50kg', delivered=100, unit_cost=7),
        ])
        save_grn(grn, self.user)

        delivery = save_delivery({
            'customer': 'Site A',
            'total': 140,
            'items_list': [{'description': 'Cement 50kg', 'quantity': 20}],
        }, self.user)
        self.assertRegex(delivery['delivery_note_number'], r'^DN-\d{8}-001$')
        self.assertEqual(get_delivery_by_id(delivery['id'], self.user)['items'], 1)
        self.assertEqual(get_grn_by_id(grn['id'], self.user)['data']['items'][0]['available'], 80.0)

    def test_given_number_is_kept(self):
        delivery = save_delivery({'customer': 'Site B', 'total': 0, 'delivery_note_number': 'DN-MANUAL'}, self.user)
        self.assertEqual(delivery['delivery_note_number'], 'DN-MANUAL')
        self.assertIsNone(read_value(LAST_DELIVERY_NOTE_KEY, owner_for(self.user)))
        self.assertEqual(len(read_records(SAVED_DELIVERIES_KEY, owner_for(self.user))), 1)


class SalesOrderStoreTests(LocalStoreTestCase):

    def test_save_sales_order(self):
        order = save_sales_order({'customer': {'name': 'Jane'}, 'items': [], 'total': 0})
        self.assertRegex(order['order_number'], r'^SO-\d{8}-001$')
        self.assertEqual(get_saved_sales_orders(), [order])


class POSAPITests(LocalStoreTestCase):
    """Test invoice, delivery and sales order endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_invoice(self):
        grn = TestDataFactory.make_grn_record(items=[TestDataFactory.make_grn_item(description='Bread', delivered=30, unit_cost=1)])
        save_grn(grn, self.user)

        response = self.client.post('/api/v1/invoices/', {
            'customer': 'Walk-in',
            'total': 9.0,
            'payment_method': 'M-Pesa',
            'items_list': [{'description': 'Bread', 'quantity': 3, 'unit_price': 3, 'total': 9}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['items'], 1)
        self.assertTrue(AuditLog.objects.filter(action='invoice_create', object_id=response.data['id']).exists())
        self.assertEqual(get_grn_by_id(grn['id'], self.user)['data']['items'][0]['soldout'], 3.0)

    def test_create_invoice_duplicate_id(self):
        payload = {'id': 'inv-fixed', 'customer': 'Alice', 'total': 5}
        self.assertEqual(self.client.post('/api/v1/invoices/', payload, format='json').status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/invoices/', {**payload, 'customer': 'Bob'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(self.client.get('/api/v1/invoices/inv-fixed/').data['customer'], 'Alice')

    def test_create_invoice_validation(self):
        response = self.client.post('/api/v1/invoices/', {'total': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer', response.data)

        response = self.client.post('/api/v1/invoices/', {'customer': 'A', 'total': 5, 'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_filter_invoices(self):
        self.client.post('/api/v1/invoices/', {'customer': 'Alice', 'total': 5}, format='json')
        self.client.post('/api/v1/invoices/', {'customer': 'Bob', 'total': 6, 'status': 'pending'}, format='json')

        response = self.client.get('/api/v1/invoices/')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/invoices/', {'status': 'pending'})
        self.assertEqual([i['customer'] for i in response.data], ['Bob'])
        response = self.client.get('/api/v1/invoices/', {'search': 'ali'})
        self.assertEqual([i['customer'] for i in response.data], ['Alice'])

    def test_invoice_detail(self):
        created = self.client.post('/api/v1/invoices/', {'customer': 'Alice', 'total': 5}, format='json').data
        url = f"/api/v1/invoices/{created['id']}/"

        response = self.client.patch(url, {'status': 'refunded'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'refunded')
        self.assertEqual(response.data['invoice_number'], created['invoice_number'])
        self.assertEqual(response.data['id'], created['id'])

        self.assertEqual(self.client.get(url).data['status'], 'refunded')
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_invoices_are_private(self):
        created = self.client.post('/api/v1/invoices/', {'customer': 'Alice', 'total': 5}, format='json').data
        other = AuthenticatedAPIClient()
        other.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(other.get(f"/api/v1/invoices/{created['id']}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_delivery_endpoints(self):
        response = self.client.post('/api/v1/deliveries/', {
            'customer': 'Site A', 'total': 0, 'vehicle': 'KBB 001B', 'driver': 'Sam',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertTrue(response.data['delivery_note_number'].endswith('-001'))

        response = self.client.post('/api/v1/deliveries/next-number/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['delivery_note_number'].endswith('-002'))

        url = f"/api/v1/deliveries/{self.client.get('/api/v1/deliveries/').data[0]['id']}/"
        response = self.client.patch(url, {'status': 'delivered'}, format='json')
        self.assertEqual(response.data['status'], 'delivered')
        self.assertEqual(response.data['vehicle'], 'KBB 001B')

    def test_sales_order_totals(self):
        """Line and order totals are computed when left out"""
        response = self.client.post('/api/v1/sales-orders/', {
            'customer': {'name': 'Jane', 'phone': '0722000000'},
            'items': [
                {'name': 'Chair', 'quantity': 4, 'unit_price': 25},
                {'name': 'Table', 'quantity': 1, 'unit_price': 150, 'total_price': 140},
            ],
            'discount': 10,
            'tax': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['total_price'], 100)
        self.assertEqual(response.data['subtotal'], 240)
        self.assertEqual(response.data['total'], 235)
        self.assertEqual(response.data['status'], 'pending')

        url = f"/api/v1/sales-orders/{response.data['id']}/"
        response = self.client.patch(url, {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_number'], self.client.get(url).data['order_number'])

        response = self.client.get('/api/v1/sales-orders/', {'status': 'completed'})
        self.assertEqual(len(response.data), 1)

    def test_sales_order_requires_customer(self):
        response = self.client.post('/api/v1/sales-orders/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        self.client.logout()
        self.assertEqual(self.client.get('/api/v1/invoices/').status_code, status.HTTP_401_UNAUTHORIZED)
