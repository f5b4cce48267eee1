"""
Comprehensive test suite for Purchasing module
Tests: GRN arithmetic, local/database GRN persistence, stock consumption, API endpoints and total repair
"""
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase
from rest_framework import status

from bizpos.core.exceptions import DuplicateRecordError
from bizpos.core.local_store import ANONYMOUS_OWNER, owner_for, read_records, write_records
from bizpos.core.models import AuditLog
from bizpos.core.test_utils import AuthenticatedAPIClient, LocalStoreTestCase, TestDataFactory
from bizpos.purchasing.calculations import (
    base_unit_cost, calculate_available, calculate_grn_amount, calculate_grn_total, calculate_line_total,
    distribute_receiving_costs, ensure_total,
)
from bizpos.purchasing.consumption import (
    update_grn_quantities_from_delivery_note, update_grn_quantities_from_invoice,
    update_grn_quantities_on_consumption,
)
from bizpos.purchasing.exceptions import GRNStorageError
from bizpos.purchasing.grn_store import (
    SAVED_GRNS_KEY, delete_grn, get_grn_by_id, get_saved_grns, save_grn,
    update_existing_grn_totals, update_grn,
)
from bizpos.purchasing.models import SavedGRN


class GRNCalculationTests(SimpleTestCase):
    """Test GRN arithmetic on plain item dicts"""

    def test_available(self):
        """available = delivered - soldout - rejected_out + rejection_in - damaged - complimentary"""
        item = {'delivered': 100, 'soldout': 30, 'rejected_out': 5, 'rejection_in': 2, 'damaged': 3, 'complimentary': 1}
        self.assertEqual(calculate_available(item), 63.0)

    def test_available_missing_fields(self):
        """Missing quantities count as zero"""
        self.assertEqual(calculate_available({'delivered': 12}), 12.0)
        self.assertEqual(calculate_available({}), 0.0)

    def test_line_total(self):
        self.assertEqual(calculate_line_total({'delivered': 3, 'unit_cost': 2.5}), 7.5)

    def test_grn_total_prefers_receiving_cost_total(self):
        """Items with a total_with_receiving_cost use it; others fall back to total"""
        items = [
            {'total': 100, 'total_with_receiving_cost': 110},
            {'total': 50},
            {},
        ]
        self.assertEqual(calculate_grn_total(items), 160.0)

    def test_grn_total_has_no_float_drift(self):
        self.assertEqual(calculate_grn_total([{'total': 0.1}, {'total': 0.2}]), 0.3)

    def test_grn_total_of_nothing(self):
        self.assertEqual(calculate_grn_total(None), 0.0)

    def test_grn_amount(self):
        """Item totals plus receiving costs"""
        items = [{'total': 100}, {'total': 50}]
        costs = [{'description': 'Transport', 'amount': 20}, {'description': 'Offloading', 'amount': 5}]
        self.assertEqual(calculate_grn_amount(items, costs), 175.0)

    def test_distribute_receiving_costs(self):
        """Costs are spread per delivered unit and added to the unit cost"""
        items = [
            {'description': 'A', 'delivered': 10, 'unit_cost': 5},
            {'description': 'B', 'delivered': 30, 'unit_cost': 2},
        ]
        result = distribute_receiving_costs(items, [{'amount': 40}])
        self.assertEqual(result[0]['receiving_cost_per_unit'], 1.0)
        self.assertEqual(result[0]['unit_cost'], 6.0)
        self.assertEqual(result[0]['total_with_receiving_cost'], 60.0)
        self.assertEqual(result[1]['unit_cost'], 3.0)
        self.assertEqual(result[1]['total_with_receiving_cost'], 90.0)
        # inputs untouched
        self.assertEqual(items[0]['unit_cost'], 5)

    def test_distribute_uses_original_unit_cost(self):
        """Redistributing starts from the original unit cost, not the loaded one"""
        first = distribute_receiving_costs([{'delivered': 10, 'unit_cost': 5}], [{'amount': 10}])
        second = distribute_receiving_costs(first, [{'amount': 20}])
        self.assertEqual(second[0]['unit_cost'], 7.0)
        self.assertEqual(second[0]['original_unit_cost'], 5.0)

    def test_base_unit_cost_without_original(self):
        """Items loaded before original_unit_cost existed subtract their per-unit share"""
        self.assertEqual(base_unit_cost({'unit_cost': 12, 'receiving_cost_per_unit': 2}), Decimal('10'))
        self.assertEqual(base_unit_cost({'unit_cost': 12}), Decimal('12'))
        self.assertEqual(base_unit_cost({'unit_cost': 12, 'original_unit_cost': 9}), Decimal('9'))

    def test_redistribute_loaded_item_without_original(self):
        items = [{'delivered': 10, 'unit_cost': 12, 'receiving_cost_per_unit': 2}]
        result = distribute_receiving_costs(items, [{'amount': 30}])
        self.assertEqual(result[0]['original_unit_cost'], 10.0)
        self.assertEqual(result[0]['unit_cost'], 13.0)
        self.assertEqual(result[0]['total_with_receiving_cost'], 130.0)

    def test_distribute_with_nothing_delivered(self):
        """With no delivered units nothing is spread"""
        result = distribute_receiving_costs([{'delivered': 0, 'unit_cost': 5}], [{'amount': 40}])
        self.assertEqual(result[0]['receiving_cost_per_unit'], 0.0)
        self.assertEqual(result[0]['total_with_receiving_cost'], 0.0)
        self.assertEqual(result[0]['unit_cost'], 5)

    def test_ensure_total(self):
        """A missing total is filled from the items; an existing one is kept"""
        record = {'data': {'items': [{'total': 40}]}}
        self.assertEqual(ensure_total(record)['total'], 40.0)
        self.assertEqual(ensure_total({'total': 0, 'data': {'items': [{'total': 40}]}})['total'], 0)


class GRNStoreAnonymousTests(LocalStoreTestCase):
    """GRN persistence for callers without a session: local store only"""

    def test_save_and_list(self):
        grn = TestDataFactory.make_grn_record(grn_number='GRN-001')
        save_grn(grn)
        saved = get_saved_grns()
        self.assertEqual([g['data']['grn_number'] for g in saved], ['GRN-001'])
        self.assertEqual(SavedGRN.objects.count(), 0)

    def test_save_assigns_missing_id(self):
        grn = TestDataFactory.make_grn_record()
        del grn['id']
        saved = save_grn(grn)
        self.assertTrue(saved['id'])

    def test_duplicate_id_is_rejected(self):
        """Saving a second GRN under an existing id leaves the first untouched"""
        grn = TestDataFactory.make_grn_record(supplier_name='First')
        save_grn(grn)
        second = TestDataFactory.make_grn_record(supplier_name='Second')
        second['id'] = grn['id']
        with self.assertRaises(DuplicateRecordError):
            save_grn(second)
        saved = get_saved_grns()
        self.assertEqual(len(saved), 1)
        self.assertEqual(saved[0]['data']['supplier_name'], 'First')

    def test_list_fills_missing_totals(self):
        """Local records without a total get one computed from their items"""
        grn = TestDataFactory.make_grn_record(items=[TestDataFactory.make_grn_item(delivered=4, unit_cost=25)])
        save_grn(grn)
        self.assertEqual(get_saved_grns()[0]['total'], 100.0)

    def test_update_and_delete(self):
        grn = TestDataFactory.make_grn_record()
        save_grn(grn)
        grn['data']['status'] = 'cancelled'
        update_grn(grn)
        self.assertEqual(get_grn_by_id(grn['id'])['data']['status'], 'cancelled')
        self.assertTrue(delete_grn(grn['id']))
        self.assertEqual(get_saved_grns(), [])

    def test_local_write_failure(self):
        """A local store failure is reported as GRNStorageError"""
        with mock.patch('bizpos.purchasing.grn_store.write_records', side_effect=OSError('disk full')):
            with self.assertRaises(GRNStorageError) as ctx:
                save_grn(TestDataFactory.make_grn_record())
        self.assertIn('Failed to save GRN', str(ctx.exception))

        with mock.patch('bizpos.purchasing.grn_store.write_records', side_effect=OSError('disk full')):
            with self.assertRaisesMessage(GRNStorageError, 'Failed to delete GRN'):
                delete_grn('anything')

    def test_unexpected_read_error_returns_empty(self):
        with mock.patch('bizpos.purchasing.grn_store.read_records', side_effect=RuntimeError('boom')):
            self.assertEqual(get_saved_grns(), [])


class GRNStoreAuthenticatedTests(LocalStoreTestCase):
    """GRN persistence for signed-in users: local store plus saved_grns rows"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()

    def test_save_writes_both_copies(self):
        """The row shares the local id and carries the computed total"""
        items = [
            TestDataFactory.make_grn_item(delivered=10, unit_cost=5),
            TestDataFactory.make_grn_item(delivered=2, unit_cost=50, total_with_receiving_cost=120),
        ]
        grn = TestDataFactory.make_grn_record(grn_number='GRN-100', items=items)
        save_grn(grn, self.user)

        row = SavedGRN.objects.get(id=grn['id'])
        self.assertEqual(row.user, self.user)
        self.assertEqual(row.total_amount, Decimal('170.00'))
        self.assertEqual(row.prepared_date.isoformat(), '2024-01-15')
        self.assertEqual(row.checked_date, None)
        self.assertEqual(len(read_records(SAVED_GRNS_KEY, owner_for(self.user))), 1)

    def test_list_reads_database_rows(self):
        """Rows come back newest first in the local record shape"""
        older = TestDataFactory.make_grn_record(grn_number='GRN-OLD')
        older['created_at'] = '2024-01-01T08:00:00+00:00'
        newer = TestDataFactory.make_grn_record(grn_number='GRN-NEW', received_date='')
        newer['created_at'] = '2024-02-01T08:00:00+00:00'
        save_grn(older, self.user)
        save_grn(newer, self.user)

        saved = get_saved_grns(self.user)
        self.assertEqual([g['data']['grn_number'] for g in saved], ['GRN-NEW', 'GRN-OLD'])
        # without a received date the date falls back to the creation date
        self.assertEqual(saved[0]['data']['date'], '2024-02-01')
        self.assertEqual(saved[0]['data']['time'], '')
        self.assertEqual(saved[1]['data']['date'], '2024-01-15')

    def test_duplicate_id_is_rejected_across_users(self):
        """GRN ids are unique across every user's rows"""
        grn = TestDataFactory.make_grn_record(supplier_name='First')
        save_grn(grn, self.other)
        copy = TestDataFactory.make_grn_record(supplier_name='Second')
        copy['id'] = grn['id']
        with self.assertRaises(DuplicateRecordError):
            save_grn(copy, self.user)

        row = SavedGRN.objects.get(id=grn['id'])
        self.assertEqual(row.user, self.other)
        self.assertEqual(row.supplier_name, 'First')
        self.assertEqual(read_records(SAVED_GRNS_KEY, owner_for(self.user)), [])

    def test_update_totals_include_receiving_costs(self):
        """The record total adds receiving costs; the row's total_amount covers the items"""
        grn = TestDataFactory.make_grn_record(
            items=[TestDataFactory.make_grn_item(delivered=1, unit_cost=10)],
            receiving_costs=[{'description': 'Transport', 'amount': 5}],
        )
        grn['updated_at'] = '2024-01-01T00:00:00+00:00'
        save_grn(grn, self.user)
        updated = update_grn(grn, self.user)

        self.assertEqual(updated['total'], 15.0)
        self.assertNotEqual(updated['updated_at'], '2024-01-01T00:00:00+00:00')
        row = SavedGRN.objects.get(id=grn['id'])
        self.assertEqual(row.total_amount, Decimal('10.00'))
        self.assertGreater(row.updated_at.year, 2024)
        self.assertEqual(get_grn_by_id(grn['id'], self.user)['total'], 15.0)

    def test_rows_are_scoped_to_user(self):
        save_grn(TestDataFactory.make_grn_record(), self.other)
        self.assertEqual(get_saved_grns(self.user), [])

    def test_database_read_failure_falls_back_to_local(self):
        grn = TestDataFactory.make_grn_record(grn_number='GRN-LOCAL')
        write_records(SAVED_GRNS_KEY, [grn], owner_for(self.user))
        with mock.patch.object(SavedGRN.objects, 'filter', side_effect=DatabaseError('connection lost')):
            saved = get_saved_grns(self.user)
        self.assertEqual([g['data']['grn_number'] for g in saved], ['GRN-LOCAL'])
        self.assertEqual(saved[0]['total'], 1000.0)

    def test_failed_insert_retries_minimal_row(self):
        """When the full insert fails a row with just the required columns is written"""
        grn = TestDataFactory.make_grn_record(grn_number='GRN-MIN', po_number='PO-9')
        real_create = SavedGRN.objects.create
        calls = []

        def flaky_create(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise DatabaseError('column "items" does not exist')
            return real_create(**kwargs)

        with mock.patch.object(SavedGRN.objects, 'create', side_effect=flaky_create):
            save_grn(grn, self.user)

        row = SavedGRN.objects.get(id=grn['id'])
        self.assertEqual(row.grn_number, 'GRN-MIN')
        self.assertEqual(row.po_number, 'PO-9')
        self.assertEqual(row.items, [])
        self.assertEqual(set(calls[1]), {'id', 'user', 'grn_number', 'supplier_name', 'po_number', 'status'})

    def test_failed_inserts_keep_local_copy(self):
        """Database failures never lose the local record"""
        grn = TestDataFactory.make_grn_record()
        with mock.patch.object(SavedGRN.objects, 'create', side_effect=DatabaseError('read only')):
            save_grn(grn, self.user)
        self.assertEqual(SavedGRN.objects.count(), 0)
        self.assertEqual(len(read_records(SAVED_GRNS_KEY, owner_for(self.user))), 1)

    def test_update_rewrites_row(self):
        grn = TestDataFactory.make_grn_record(items=[TestDataFactory.make_grn_item(delivered=1, unit_cost=10)])
        save_grn(grn, self.user)
        grn['data']['items'].append(TestDataFactory.make_grn_item(delivered=2, unit_cost=20))
        grn['data']['supplier_name'] = 'New Supplier'
        updated = update_grn(grn, self.user)

        self.assertEqual(updated['total'], 50.0)
        row = SavedGRN.objects.get(id=grn['id'])
        self.assertEqual(row.total_amount, Decimal('50.00'))
        self.assertEqual(row.supplier_name, 'New Supplier')
        self.assertEqual(len(row.items), 2)

    def test_update_database_error_is_logged(self):
        grn = TestDataFactory.make_grn_record()
        save_grn(grn, self.user)
        grn['data']['status'] = 'pending'
        with mock.patch.object(SavedGRN.objects, 'filter', side_effect=DatabaseError('timeout')):
            update_grn(grn, self.user)
        local = read_records(SAVED_GRNS_KEY, owner_for(self.user))
        self.assertEqual(local[0]['data']['status'], 'pending')

    def test_delete_only_touches_own_rows(self):
        mine = TestDataFactory.make_grn_record()
        theirs = TestDataFactory.make_grn_record()
        save_grn(mine, self.user)
        save_grn(theirs, self.other)

        delete_grn(theirs['id'], self.user)
        self.assertTrue(SavedGRN.objects.filter(id=theirs['id']).exists())

        delete_grn(mine['id'], self.user)
        self.assertFalse(SavedGRN.objects.filter(id=mine['id']).exists())


class GRNTotalRepairTests(LocalStoreTestCase):
    """Test recomputation of totals saved as zero or left out"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user(username='repair_user')

    def test_repairs_local_and_database(self):
        zero = TestDataFactory.make_grn_record(total=0)
        empty = TestDataFactory.make_grn_record(items=[], total=0)
        fine = TestDataFactory.make_grn_record(total=1000.0)
        write_records(SAVED_GRNS_KEY, [zero, empty, fine], owner_for(self.user))

        SavedGRN.objects.create(id='row-1', user=self.user, grn_number='GRN-R1',
                                items=[{'total': 30}, {'total': 12.5}], total_amount=0)
        SavedGRN.objects.create(id='row-2', user=self.user, grn_number='GRN-R2',
                                items=[{'total': 10}], total_amount=Decimal('10.00'))

        result = update_existing_grn_totals(self.user)
        self.assertEqual(result, {'local_updated': 1, 'database_updated': 1})

        local = {g['id']: g for g in read_records(SAVED_GRNS_KEY, owner_for(self.user))}
        self.assertEqual(local[zero['id']]['total'], 1000.0)
        self.assertEqual(local[empty['id']]['total'], 0)
        self.assertEqual(SavedGRN.objects.get(id='row-1').total_amount, Decimal('42.50'))

    def test_management_command(self):
        write_records(SAVED_GRNS_KEY, [TestDataFactory.make_grn_record(total=0)], ANONYMOUS_OWNER)
        out = StringIO()
        call_command('update_grn_totals', stdout=out)
        self.assertIn('Updated 1 local GRNs and 0 database GRNs', out.getvalue())


class GRNConsumptionTests(LocalStoreTestCase):
    """Test soldout/available updates when stock is sold"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.grn = TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Maize Flour 2kg', delivered=20, damaged=2),
            TestDataFactory.make_grn_item(description='Cooking Oil 1L', delivered=10),
        ])
        save_grn(self.grn, self.user)

    def _item(self, description):
        grn = get_grn_by_id(self.grn['id'], self.user)
        return next(i for i in grn['data']['items'] if i['description'] == description)

    def test_consumption_matches_description_loosely(self):
        """Matching ignores case and surrounding whitespace"""
        matched = update_grn_quantities_on_consumption(
            [{'description': '  maize flour 2KG ', 'quantity': 5}], self.user
        )
        self.assertEqual(matched, 1)
        item = self._item('Maize Flour 2kg')
        self.assertEqual(item['soldout'], 5.0)
        self.assertEqual(item['available'], 13.0)
        self.assertTrue(AuditLog.objects.filter(action='stock_consume', object_id=self.grn['id']).exists())

    def test_consumption_touches_updated_at(self):
        SavedGRN.objects.filter(id=self.grn['id']).update(updated_at='2024-01-01T00:00:00+00:00')
        before = get_grn_by_id(self.grn['id'], self.user)['updated_at']

        update_grn_quantities_on_consumption([{'description': 'Cooking Oil 1L', 'quantity': 1}], self.user)
        after = get_grn_by_id(self.grn['id'], self.user)['updated_at']
        self.assertTrue(before.startswith('2024-01-01'))
        self.assertGreater(after, before)

    def test_available_never_negative(self):
        update_grn_quantities_on_consumption([{'description': 'Cooking Oil 1L', 'quantity': 15}], self.user)
        item = self._item('Cooking Oil 1L')
        self.assertEqual(item['soldout'], 15.0)
        self.assertEqual(item['available'], 0.0)

    def test_repeated_items_accumulate(self):
        update_grn_quantities_on_consumption([
            {'description': 'Cooking Oil 1L', 'quantity': 2},
            {'description': 'Cooking Oil 1L', 'quantity': 3},
        ], self.user)
        self.assertEqual(self._item('Cooking Oil 1L')['soldout'], 5.0)

    def test_only_first_matching_grn_is_drawn_down(self):
        second = TestDataFactory.make_grn_record(items=[
            TestDataFactory.make_grn_item(description='Cooking Oil 1L', delivered=10),
        ])
        second['created_at'] = '2000-01-01T00:00:00+00:00'
        save_grn(second, self.user)

        update_grn_quantities_on_consumption([{'description': 'Cooking Oil 1L', 'quantity': 4}], self.user)
        untouched = get_grn_by_id(second['id'], self.user)['data']['items'][0]
        self.assertEqual(untouched['soldout'], 0)
        self.assertEqual(self._item('Cooking Oil 1L')['soldout'], 4.0)

    def test_unknown_item_is_skipped(self):
        matched = update_grn_quantities_on_consumption([{'description': 'Sugar', 'quantity': 1}], self.user)
        self.assertEqual(matched, 0)

    def test_invoice_and_delivery_lines(self):
        """Invoice and delivery note lines use description (or name) and quantity"""
        update_grn_quantities_from_invoice([{'description': 'Cooking Oil 1L', 'quantity': 1, 'unit_price': 3}], self.user)
        update_grn_quantities_from_delivery_note([{'name': 'Cooking Oil 1L', 'quantity': 2}], self.user)
        self.assertEqual(self._item('Cooking Oil 1L')['soldout'], 3.0)


class GRNAPITests(LocalStoreTestCase):
    """Test GRN API endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _payload(self, **data_overrides):
        data = {
            'grn_number': 'GRN-API-1',
            'supplier_name': 'Acme Supplies',
            'po_number': 'PO-77',
            'received_date': '2024-03-01',
            'items': [
                {'description': 'Rice 5kg', 'quantity': 10, 'delivered': 10, 'unit_cost': 8},
                {'description': 'Beans 1kg', 'quantity': 5, 'delivered': 4, 'damaged': 1, 'unit_cost': 3},
            ],
            'receiving_costs': [{'description': 'Transport', 'amount': 14}],
        }
        data.update(data_overrides)
        return {'data': data}

    def test_create_grn(self):
        """Creating a GRN derives available and totals and stores both copies"""
        response = self.client.post('/api/v1/grns/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'GRN-GRN-API-1')
        # items 80 + 12, plus 14 transport
        self.assertEqual(response.data['total'], 106.0)
        beans = response.data['data']['items'][1]
        self.assertEqual(beans['available'], 3.0)
        self.assertEqual(beans['total'], 12.0)
        self.assertEqual(response.data['data']['status'], 'completed')
        self.assertTrue(SavedGRN.objects.filter(id=response.data['id'], user=self.user).exists())
        self.assertTrue(AuditLog.objects.filter(action='grn_create', object_reference='PO-77').exists())

    def test_create_grn_validation(self):
        response = self.client.post('/api/v1/grns/', {'data': {'grn_number': '', 'supplier_name': 'X'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/grns/', self._payload(status='lost'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_grn_total_adds_receiving_costs(self):
        payload = self._payload(
            items=[{'description': 'Rice 5kg', 'delivered': 10, 'unit_cost': 8}],
            receiving_costs=[{'description': 'Transport', 'amount': 14}],
        )
        created = self.client.post('/api/v1/grns/', payload, format='json').data
        self.assertEqual(created['total'], 94.0)
        self.assertEqual(self.client.get(f"/api/v1/grns/{created['id']}/").data['total'], 94.0)
        self.assertEqual(SavedGRN.objects.get(id=created['id']).total_amount, Decimal('80.00'))

    def test_create_grn_requires_items(self):
        response = self.client.post('/api/v1/grns/', self._payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['data']['items'], ['Please add at least one item'])

        payload = self._payload()
        del payload['data']['items']
        response = self.client.post('/api/v1/grns/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(SavedGRN.objects.count(), 0)

    def test_patch_items_need_descriptions(self):
        grn_id = self.client.post('/api/v1/grns/', self._payload(), format='json').data['id']
        response = self.client.patch(f'/api/v1/grns/{grn_id}/', {
            'data': {'items': [{'delivered': 3, 'unit_cost': 2}]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/grns/{grn_id}/', {
            'data': {'items': [{'description': 'Rice 5kg', 'delivered': 3}, {'delivered': 1}]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(SavedGRN.objects.get(id=grn_id).items), 2)

    def test_duplicate_id_conflict(self):
        """A second POST with a used id is refused and the first GRN survives"""
        first = self._payload(supplier_name='First')
        first['id'] = 'grn-fixed-id'
        self.assertEqual(self.client.post('/api/v1/grns/', first, format='json').status_code, status.HTTP_201_CREATED)

        second = self._payload(supplier_name='Second')
        second['id'] = 'grn-fixed-id'
        response = self.client.post('/api/v1/grns/', second, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        self.assertEqual(SavedGRN.objects.filter(id='grn-fixed-id').count(), 1)
        self.assertEqual(len(read_records(SAVED_GRNS_KEY, owner_for(self.user))), 1)
        self.assertEqual(self.client.get('/api/v1/grns/grn-fixed-id/').data['data']['supplier_name'], 'First')

    def test_list_grns_with_zero_limit(self):
        self.client.post('/api/v1/grns/', self._payload(), format='json')
        response = self.client.get('/api/v1/grns/', {'limit': 0})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page_size'], 1)
        self.assertEqual(len(response.data['results']), 1)

    def test_apply_receiving_costs(self):
        """Costs are spread over the stored items and rate edits are kept"""
        created = self.client.post('/api/v1/grns/', self._payload(), format='json').data
        rice_id = created['data']['items'][0]['id']
        url = f"/api/v1/grns/{created['id']}/apply-receiving-costs/"

        response = self.client.post(url, {'rates': {rice_id: 12.5}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rice, beans = response.data['data']['items']
        # 14 over 14 delivered units
        self.assertEqual(rice['receiving_cost_per_unit'], 1.0)
        self.assertEqual(rice['unit_cost'], 9.0)
        self.assertEqual(rice['original_unit_cost'], 8.0)
        self.assertEqual(rice['rate'], 12.5)
        self.assertEqual(beans['total_with_receiving_cost'], 16.0)
        self.assertEqual(beans['available'], 3.0)
        self.assertEqual(response.data['total'], 106.0)

        row = SavedGRN.objects.get(id=created['id'])
        self.assertEqual(row.items[0]['unit_cost'], 9.0)
        self.assertEqual(row.total_amount, Decimal('106.00'))
        self.assertEqual(AuditLog.objects.filter(action='grn_update', object_id=created['id']).count(), 1)

        # applying again with new costs starts from the original unit cost
        response = self.client.post(url, {'receiving_costs': [{'description': 'Porter', 'amount': 28}]}, format='json')
        rice = response.data['data']['items'][0]
        self.assertEqual(rice['unit_cost'], 10.0)
        self.assertEqual(rice['rate'], 12.5)
        self.assertEqual(response.data['total'], 120.0)

    def test_apply_receiving_costs_unknown_grn(self):
        response = self.client.post('/api/v1/grns/missing/apply-receiving-costs/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_grns(self):
        self.client.post('/api/v1/grns/', self._payload(), format='json')
        self.client.post('/api/v1/grns/', self._payload(grn_number='GRN-API-2', status='pending'), format='json')

        response = self.client.get('/api/v1/grns/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/grns/', {'status': 'pending'})
        self.assertEqual([g['data']['grn_number'] for g in response.data['results']], ['GRN-API-2'])

        response = self.client.get('/api/v1/grns/', {'search': 'api-1'})
        self.assertEqual(response.data['count'], 1)

    def test_retrieve_update_delete(self):
        grn_id = self.client.post('/api/v1/grns/', self._payload(), format='json').data['id']

        response = self.client.get(f'/api/v1/grns/{grn_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.patch(f'/api/v1/grns/{grn_id}/', {'data': {'status': 'cancelled'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')
        self.assertEqual(len(response.data['data']['items']), 2)
        self.assertEqual(SavedGRN.objects.get(id=grn_id).status, 'cancelled')
        self.assertTrue(AuditLog.objects.filter(action='grn_update', object_id=grn_id).exists())

        response = self.client.delete(f'/api/v1/grns/{grn_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f'/api/v1/grns/{grn_id}/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(SavedGRN.objects.filter(id=grn_id).exists())

    def test_put_replaces_data(self):
        grn_id = self.client.post('/api/v1/grns/', self._payload(), format='json').data['id']
        payload = self._payload(items=[{'description': 'Salt', 'delivered': 2, 'unit_cost': 1}])
        response = self.client.put(f'/api/v1/grns/{grn_id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 16.0)
        self.assertEqual(SavedGRN.objects.get(id=grn_id).total_amount, Decimal('2.00'))

    def test_unknown_grn(self):
        response = self.client.get('/api/v1/grns/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_edit_item_quantities(self):
        """Editing soldout recomputes available"""
        created = self.client.post('/api/v1/grns/', self._payload(), format='json').data
        item_id = created['data']['items'][0]['id']
        response = self.client.patch(f'/api/v1/grns/{created["id"]}/items/{item_id}/', {'soldout': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item = response.data['data']['items'][0]
        self.assertEqual(item['soldout'], 4)
        self.assertEqual(item['available'], 6.0)

        response = self.client.patch(f'/api/v1/grns/{created["id"]}/items/unknown/', {'soldout': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.patch(f'/api/v1/grns/{created["id"]}/items/{item_id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_distribute_costs_preview(self):
        response = self.client.post('/api/v1/grns/distribute-costs/', {
            'items': [{'description': 'Rice', 'delivered': 10, 'unit_cost': 8}],
            'receiving_costs': [{'description': 'Transport', 'amount': 20}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['unit_cost'], 10.0)
        self.assertEqual(response.data['total'], 100.0)
        self.assertEqual(response.data['grn_amount'], 100.0)
        self.assertEqual(response.data['receiving_costs_total'], 20.0)

    def test_recompute_totals_endpoint(self):
        SavedGRN.objects.create(id='row-x', user=self.user, grn_number='GRN-X', items=[{'total': 7}], total_amount=0)
        response = self.client.post('/api/v1/grns/recompute-totals/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['database_updated'], 1)

    def test_storage_error_returns_500(self):
        with mock.patch('bizpos.purchasing.grn_store.write_records', side_effect=OSError('disk full')):
            response = self.client.post('/api/v1/grns/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn('Failed to save GRN', response.data['error'])
