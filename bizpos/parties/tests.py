"""
Comprehensive test suite for Parties module
Tests: Customer settlements (local + hosted), Supplier settlements, Scoping, API endpoints
"""
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import ValidationError

from bizpos.core.exceptions import DuplicateRecordError
from bizpos.core.local_store import ANONYMOUS_OWNER, owner_for, read_records, write_records
from bizpos.core.models import AuditLog
from bizpos.core.test_utils import AuthenticatedAPIClient, LocalStoreTestCase, TestDataFactory
from bizpos.parties.customer_settlements import (
    SAVED_SETTLEMENTS_KEY, delete_customer_settlement, get_customer_settlement_by_id,
    get_saved_customer_settlement_by_id, get_saved_settlements, save_customer_settlement,
    update_customer_settlement,
)
from bizpos.parties.models import SavedCustomerSettlement
from bizpos.parties.supplier_settlements import (
    delete_supplier_settlement, get_saved_supplier_settlements, get_supplier_settlement_by_id,
    save_supplier_settlement, update_supplier_settlement,
)


class CustomerSettlementStoreTests(LocalStoreTestCase):
    """Test customer settlement persistence"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()

    def _settlement(self, **overrides):
        settlement = {
            'customer_name': 'Jane Doe',
            'reference_number': 'RCPT-001',
            'settlement_amount': 250.0,
            'previous_balance': 1000.0,
            'amount_paid': 250.0,
            'new_balance': 750.0,
        }
        settlement.update(overrides)
        return settlement

    def test_name_and_reference_required(self):
        with self.assertRaises(ValidationError):
            save_customer_settlement(self._settlement(customer_name=''), self.user)
        with self.assertRaises(ValidationError):
            save_customer_settlement(self._settlement(reference_number=None), self.user)
        self.assertEqual(SavedCustomerSettlement.objects.count(), 0)

    def test_save_writes_both_copies(self):
        saved = save_customer_settlement(self._settlement(), self.user)
        row = SavedCustomerSettlement.objects.get(id=saved['id'])
        self.assertEqual(row.user, self.user)
        self.assertEqual(row.new_balance, Decimal('750.00'))
        self.assertEqual(row.payment_method, 'Cash')
        self.assertEqual(row.cashier_name, 'System')
        self.assertTrue(row.time)
        self.assertEqual(len(read_records(SAVED_SETTLEMENTS_KEY, owner_for(self.user))), 1)

    def test_anonymous_rows_have_no_user(self):
        saved = save_customer_settlement(self._settlement())
        self.assertIsNone(SavedCustomerSettlement.objects.get(id=saved['id']).user)
        self.assertEqual(len(read_records(SAVED_SETTLEMENTS_KEY, ANONYMOUS_OWNER)), 1)
        self.assertEqual([s['id'] for s in get_saved_settlements()], [saved['id']])
        self.assertEqual(get_saved_settlements(self.user), [])

    def test_list_merges_and_deduplicates(self):
        """Local copies come first; database rows with the same id are skipped"""
        row = TestDataFactory.create_customer_settlement(user=self.user, customer_name='Hosted Only')
        shared = TestDataFactory.create_customer_settlement(user=self.user, customer_name='Shared (db)')
        write_records(SAVED_SETTLEMENTS_KEY, [
            {'id': shared.id, 'customer_name': 'Shared (local)', 'reference_number': shared.reference_number},
            {'id': 'broken', 'customer_name': 'Missing reference'},
        ], owner_for(self.user))

        settlements = get_saved_settlements(self.user)
        self.assertEqual([s['customer_name'] for s in settlements], ['Shared (local)', 'Hosted Only'])
        self.assertEqual(settlements[1]['id'], row.id)
        self.assertEqual(settlements[1]['settlement_amount'], 500.0)

    def test_duplicate_id_is_rejected(self):
        """An id already used by any settlement row is refused without writing"""
        saved = save_customer_settlement(self._settlement(customer_name='First'), self.user)
        with self.assertRaises(DuplicateRecordError):
            save_customer_settlement(self._settlement(id=saved['id'], customer_name='Second'), self.user)

        row = TestDataFactory.create_customer_settlement(user=TestDataFactory.create_user())
        with self.assertRaises(DuplicateRecordError):
            save_customer_settlement(self._settlement(id=row.id))

        self.assertEqual(SavedCustomerSettlement.objects.count(), 2)
        self.assertEqual(SavedCustomerSettlement.objects.get(id=saved['id']).customer_name, 'First')
        self.assertEqual(len(read_records(SAVED_SETTLEMENTS_KEY, owner_for(self.user))), 1)
        self.assertEqual(read_records(SAVED_SETTLEMENTS_KEY, ANONYMOUS_OWNER), [])

    def test_admin_sees_every_row(self):
        admin = TestDataFactory.create_admin()
        TestDataFactory.create_customer_settlement(user=self.user)
        TestDataFactory.create_customer_settlement(user=None)
        other = TestDataFactory.create_user()

        self.assertEqual(len(get_saved_settlements(admin)), 2)
        self.assertEqual(len(get_saved_settlements(self.user)), 1)
        self.assertEqual(len(get_saved_settlements(other)), 0)
        self.assertEqual(len(get_saved_settlements()), 1)

    def test_database_read_failure_returns_local(self):
        write_records(SAVED_SETTLEMENTS_KEY, [
            {'id': 'local-1', 'customer_name': 'Jane', 'reference_number': 'R-1'},
        ], owner_for(self.user))
        with mock.patch('bizpos.parties.customer_settlements.scoped_settlements',
                        side_effect=DatabaseError('connection lost')):
            settlements = get_saved_settlements(self.user)
        self.assertEqual([s['id'] for s in settlements], ['local-1'])

    def test_database_write_failure_keeps_local(self):
        with mock.patch.object(SavedCustomerSettlement.objects, 'create', side_effect=DatabaseError('read only')):
            saved = save_customer_settlement(self._settlement(), self.user)
        self.assertEqual(SavedCustomerSettlement.objects.count(), 0)
        self.assertEqual(get_customer_settlement_by_id(saved['id'], self.user)['customer_name'], 'Jane Doe')

    def test_update_and_delete(self):
        saved = save_customer_settlement(self._settlement(), self.user)
        saved['status'] = 'cancelled'
        update_customer_settlement(saved, self.user)
        self.assertEqual(SavedCustomerSettlement.objects.get(id=saved['id']).status, 'cancelled')
        self.assertEqual(get_customer_settlement_by_id(saved['id'], self.user)['status'], 'cancelled')

        self.assertTrue(delete_customer_settlement(saved['id'], self.user))
        self.assertFalse(SavedCustomerSettlement.objects.filter(id=saved['id']).exists())
        self.assertIsNone(get_customer_settlement_by_id(saved['id'], self.user))

    def test_users_cannot_delete_other_rows(self):
        row = TestDataFactory.create_customer_settlement(user=TestDataFactory.create_user())
        self.assertFalse(delete_customer_settlement(row.id, self.user))
        self.assertTrue(SavedCustomerSettlement.objects.filter(id=row.id).exists())

    def test_saved_lookup_requires_session(self):
        row = TestDataFactory.create_customer_settlement(user=self.user, reference_number='REF-XYZ')
        self.assertEqual(get_saved_customer_settlement_by_id(row.id, self.user)['reference_number'], 'REF-XYZ')
        self.assertIsNone(get_saved_customer_settlement_by_id(row.id))
        self.assertIsNone(get_saved_customer_settlement_by_id('missing', self.user))


class SupplierSettlementStoreTests(LocalStoreTestCase):
    """Test supplier settlements kept in the local store"""

    def test_crud(self):
        saved = save_supplier_settlement({'supplier_name': 'Acme', 'reference_number': 'PAY-1', 'settlement_amount': 90})
        self.assertTrue(saved['id'])
        self.assertTrue(saved['date'])
        self.assertTrue(saved['time'])
        self.assertEqual(get_saved_supplier_settlements(), [saved])

        saved['status'] = 'cancelled'
        self.assertTrue(update_supplier_settlement(saved))
        self.assertEqual(get_supplier_settlement_by_id(saved['id'])['status'], 'cancelled')
        self.assertTrue(delete_supplier_settlement(saved['id']))
        self.assertIsNone(get_supplier_settlement_by_id(saved['id']))

    def test_given_date_is_kept(self):
        saved = save_supplier_settlement({'supplier_name': 'Acme', 'date': '2024-02-29', 'time': '09:15'})
        self.assertEqual((saved['date'], saved['time']), ('2024-02-29', '09:15'))


class SettlementAPITests(LocalStoreTestCase):
    """Test settlement endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_settlement(self):
        """Amount paid defaults to the settlement amount and the new balance follows"""
        response = self.client.post('/api/v1/customer-settlements/', {
            'customer_name': 'Jane Doe',
            'reference_number': 'RCPT-9',
            'settlement_amount': 300,
            'previous_balance': 1000,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount_paid'], 300)
        self.assertEqual(response.data['new_balance'], 700)
        self.assertEqual(SavedCustomerSettlement.objects.get(id=response.data['id']).user, self.user)
        self.assertTrue(AuditLog.objects.filter(action='settlement_create', object_reference='RCPT-9').exists())

    def test_create_customer_settlement_duplicate_id(self):
        payload = {'id': 'set-fixed', 'customer_name': 'Jane', 'reference_number': 'R-1', 'settlement_amount': 5}
        response = self.client.post('/api/v1/customer-settlements/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/customer-settlements/', {**payload, 'customer_name': 'Otieno'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(SavedCustomerSettlement.objects.get(id='set-fixed').customer_name, 'Jane')

    def test_create_customer_settlement_validation(self):
        response = self.client.post('/api/v1/customer-settlements/', {'customer_name': 'Jane', 'settlement_amount': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reference_number', response.data)

    def test_list_search_and_detail(self):
        self.client.post('/api/v1/customer-settlements/', {'customer_name': 'Jane', 'reference_number': 'R-1', 'settlement_amount': 5}, format='json')
        created = self.client.post('/api/v1/customer-settlements/', {
            'customer_name': 'Otieno', 'reference_number': 'R-2', 'settlement_amount': 8,
        }, format='json').data

        response = self.client.get('/api/v1/customer-settlements/', {'search': 'otieno'})
        self.assertEqual([s['id'] for s in response.data], [created['id']])

        url = f"/api/v1/customer-settlements/{created['id']}/"
        response = self.client.patch(url, {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(SavedCustomerSettlement.objects.get(id=created['id']).status, 'cancelled')

        response = self.client.get(f"{url}saved/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(f"{url}saved/").status_code, status.HTTP_404_NOT_FOUND)

    def test_supplier_settlements(self):
        response = self.client.post('/api/v1/supplier-settlements/', {
            'supplier_name': 'Acme Supplies',
            'reference_number': 'PAY-7',
            'settlement_amount': 1200,
            'po_number': 'PO-55',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['processed_by'], 'System')
        created = response.data

        response = self.client.get('/api/v1/supplier-settlements/', {'search': 'po-55'})
        self.assertEqual(len(response.data), 1)

        url = f"/api/v1/supplier-settlements/{created['id']}/"
        response = self.client.put(url, {
            'supplier_name': 'Acme Supplies', 'reference_number': 'PAY-7', 'settlement_amount': 1100,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['settlement_amount'], 1100)
        self.assertEqual(response.data['date'], created['date'])
        self.assertEqual(response.data['time'], created['time'])

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get('/api/v1/supplier-settlements/').data, [])
