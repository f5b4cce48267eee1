"""
Test suite for the core module
Tests: local record store, generic record helpers, auth error messages, auth endpoints and audit logs
"""
import json
from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIClient

from bizpos.core.auth_errors import (
    ALREADY_REGISTERED_MESSAGE, EMAIL_NOT_CONFIRMED_MESSAGE, GENERIC_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE, SESSION_EXPIRED_MESSAGE, handle_auth_error, is_session_invalid,
)
from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.local_store import (
    ANONYMOUS_OWNER, clear_records, get_store, make_store_key, owner_for,
    read_records, read_value, write_records, write_value,
)
from bizpos.core.models import AuditLog
from bizpos.core.records import (
    append_record, find_record, list_records, remove_record, replace_record, timestamp_id,
)
from bizpos.core.test_utils import AuthenticatedAPIClient, LocalStoreTestCase, TestDataFactory
from bizpos.core.utils import create_audit_log


class LocalStoreTests(LocalStoreTestCase):
    """Test the per-owner JSON record store"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()

    def test_store_key_format(self):
        """Keys are owner-prefixed; no owner means the anonymous store"""
        self.assertEqual(make_store_key('savedGRNs', '7'), '7:savedGRNs')
        self.assertEqual(make_store_key('savedGRNs'), f'{ANONYMOUS_OWNER}:savedGRNs')

    def test_owner_for(self):
        """Authenticated users own their pk; anonymous callers share one store"""
        self.assertEqual(owner_for(self.user), str(self.user.pk))
        self.assertEqual(owner_for(None), ANONYMOUS_OWNER)

    def test_missing_collection_is_empty(self):
        """Reading a collection never written returns an empty list"""
        self.assertEqual(read_records('savedInvoices', 'nobody'), [])

    def test_write_then_read(self):
        """Records survive a write/read cycle; decimals are stored as strings"""
        write_records('savedInvoices', [{'id': '1', 'total': Decimal('12.50')}], '1')
        self.assertEqual(read_records('savedInvoices', '1'), [{'id': '1', 'total': '12.50'}])

    def test_owners_are_isolated(self):
        """One owner's records are invisible to another"""
        write_records('savedInvoices', [{'id': '1'}], 'alice')
        self.assertEqual(read_records('savedInvoices', 'bob'), [])

    def test_corrupt_entry_reads_as_empty(self):
        """Unparseable JSON is logged and treated as no records"""
        get_store().set(make_store_key('savedInvoices', '1'), '{not json', timeout=None)
        self.assertEqual(read_records('savedInvoices', '1'), [])

    def test_non_list_entry_reads_as_empty(self):
        """A JSON object instead of a list is ignored"""
        get_store().set(make_store_key('savedInvoices', '1'), json.dumps({'id': '1'}), timeout=None)
        self.assertEqual(read_records('savedInvoices', '1'), [])

    def test_scalar_values(self):
        """Scalar keys hold plain values"""
        write_value('lastDeliveryNoteNumber', '20240115-003', '1')
        self.assertEqual(read_value('lastDeliveryNoteNumber', '1'), '20240115-003')

    def test_clear_records(self):
        """Clearing a collection removes it"""
        write_records('savedInvoices', [{'id': '1'}], '1')
        clear_records('savedInvoices', '1')
        self.assertEqual(read_records('savedInvoices', '1'), [])


class RecordHelperTests(LocalStoreTestCase):
    """Test the generic save/list/update/delete helpers"""

    def test_append_and_list(self):
        """Appended records come back in insertion order"""
        append_record('savedInvoices', {'id': '1'}, 'u')
        append_record('savedInvoices', {'id': '2'}, 'u')
        self.assertEqual([r['id'] for r in list_records('savedInvoices', 'u')], ['1', '2'])

    def test_append_rejects_existing_id(self):
        """A second record with the same id is refused and the first is kept"""
        append_record('savedInvoices', {'id': '1', 'customer': 'Old'}, 'u', label='invoice')
        with self.assertRaisesMessage(DuplicateRecordError, 'Invoice 1 already exists'):
            append_record('savedInvoices', {'id': 1, 'customer': 'New'}, 'u', label='invoice')
        self.assertEqual(list_records('savedInvoices', 'u'), [{'id': '1', 'customer': 'Old'}])

    def test_replace_record(self):
        """Replacing swaps the record with the same id"""
        append_record('savedInvoices', {'id': '1', 'customer': 'Old'}, 'u')
        self.assertTrue(replace_record('savedInvoices', {'id': '1', 'customer': 'New'}, 'u'))
        self.assertEqual(find_record('savedInvoices', '1', 'u')['customer'], 'New')

    def test_replace_unknown_record(self):
        """Replacing an unknown id changes nothing and reports no match"""
        append_record('savedInvoices', {'id': '1'}, 'u')
        self.assertFalse(replace_record('savedInvoices', {'id': '9'}, 'u'))
        self.assertEqual(len(list_records('savedInvoices', 'u')), 1)

    def test_remove_record(self):
        """Removing drops only the matching id"""
        append_record('savedInvoices', {'id': '1'}, 'u')
        append_record('savedInvoices', {'id': '2'}, 'u')
        self.assertTrue(remove_record('savedInvoices', '1', 'u'))
        self.assertFalse(remove_record('savedInvoices', '1', 'u'))
        self.assertEqual([r['id'] for r in list_records('savedInvoices', 'u')], ['2'])

    def test_ids_compare_as_strings(self):
        """Numeric and string ids refer to the same record"""
        append_record('savedInvoices', {'id': 42}, 'u')
        self.assertIsNotNone(find_record('savedInvoices', '42', 'u'))

    def test_find_missing(self):
        """Unknown ids are not found"""
        self.assertIsNone(find_record('savedInvoices', 'nope', 'u'))

    def test_write_failure_raises(self):
        """A failing write surfaces as RecordStoreError with a readable message"""
        with mock.patch('bizpos.core.records.write_records', side_effect=OSError('disk full')):
            with self.assertRaises(RecordStoreError) as ctx:
                append_record('savedInvoices', {'id': '1'}, 'u', label='invoice')
        self.assertEqual(str(ctx.exception), 'Failed to save invoice')

    def test_read_failure_degrades(self):
        """A failing read returns an empty list"""
        with mock.patch('bizpos.core.records.read_records', side_effect=OSError('unavailable')):
            self.assertEqual(list_records('savedInvoices', 'u'), [])

    def test_timestamp_ids_are_unique(self):
        """Timestamp ids increase even when issued in the same millisecond"""
        ids = [int(timestamp_id()) for _ in range(5)]
        self.assertEqual(ids, sorted(set(ids)))


class AuthErrorHandlerTests(SimpleTestCase):
    """Test mapping of auth failures to display messages"""

    def test_refresh_token_not_found(self):
        self.assertEqual(handle_auth_error(Exception('Refresh Token Not Found')), SESSION_EXPIRED_MESSAGE)

    def test_invalid_credentials(self):
        self.assertEqual(handle_auth_error(Exception('Invalid login credentials')), INVALID_CREDENTIALS_MESSAGE)
        error = AuthenticationFailed('No active account found with the given credentials')
        self.assertEqual(handle_auth_error(error), INVALID_CREDENTIALS_MESSAGE)

    def test_email_not_confirmed(self):
        self.assertEqual(handle_auth_error(Exception('Email not confirmed')), EMAIL_NOT_CONFIRMED_MESSAGE)

    def test_already_registered(self):
        self.assertEqual(handle_auth_error(Exception('User already registered')), ALREADY_REGISTERED_MESSAGE)
        self.assertEqual(handle_auth_error(Exception('user with this email already exists.')), ALREADY_REGISTERED_MESSAGE)

    def test_unknown_error_passes_through(self):
        self.assertEqual(handle_auth_error(Exception('Network unreachable')), 'Network unreachable')

    def test_empty_error_is_generic(self):
        self.assertEqual(handle_auth_error(Exception('')), GENERIC_MESSAGE)

    def test_session_invalid(self):
        self.assertTrue(is_session_invalid(Exception('Refresh Token Not Found')))
        self.assertTrue(is_session_invalid(Exception('Invalid Refresh Token: revoked')))
        self.assertTrue(is_session_invalid(Exception('Token is invalid or expired.')))
        self.assertFalse(is_session_invalid(Exception('Invalid login credentials')))


class AuthAPITests(TestCase):
    """Test registration, login, refresh and current user endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.password = 'Sturdy-Pass-2024'
        self.user = TestDataFactory.create_user(username='cashier', email='cashier@test.com', password=self.password)

    def test_register(self):
        """Registration returns the user with a token pair"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newuser',
            'email': 'newuser@test.com',
            'password': self.password,
            'password_confirm': self.password,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'user')

    def test_register_existing_email(self):
        """Registering an existing email gets the already-registered message"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'someoneelse',
            'email': 'cashier@test.com',
            'password': self.password,
            'password_confirm': self.password,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], ALREADY_REGISTERED_MESSAGE)

    def test_register_password_mismatch(self):
        """Mismatched passwords are rejected"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newuser',
            'email': 'newuser@test.com',
            'password': self.password,
            'password_confirm': 'Different-Pass-2024',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_login(self):
        """Valid credentials return a token pair"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier', 'password': self.password,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_login_wrong_password(self):
        """Bad credentials return the friendly invalid-credentials message"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier', 'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], INVALID_CREDENTIALS_MESSAGE)

    def test_refresh_with_garbage_token(self):
        """An unusable refresh token asks the client to log in again"""
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertTrue(response.data['session_invalid'])

    def test_refresh(self):
        """A valid refresh token yields a new access token"""
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'cashier', 'password': self.password,
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me(self):
        """The current user endpoint reports the admin flag"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'cashier')
        self.assertFalse(response.data['is_admin'])

        admin = TestDataFactory.create_admin()
        client.authenticate_user(admin)
        self.assertTrue(client.get('/api/v1/auth/me/').data['is_admin'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuditLogTests(TestCase):
    """Test audit log creation and visibility"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log(self):
        """An entry is written for the given user"""
        log = create_audit_log(user=self.user, action='grn_create', model_name='SavedGRN',
                               object_id='abc', object_name='GRN-1', changes={'total': '10.00'})
        self.assertIsNotNone(log)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes, {'total': '10.00'})

    def test_create_audit_log_stores_decimals_as_strings(self):
        log = create_audit_log(user=self.user, action='grn_update', model_name='SavedGRN', object_id='abc',
                               changes={'total': {'old': Decimal('1.50'), 'new': Decimal('2.00')},
                                        'received': date(2024, 1, 15)})
        self.assertEqual(log.changes, {'total': {'old': '1.50', 'new': '2.00'}, 'received': '2024-01-15'})

    def test_create_audit_log_missing_fields(self):
        """Entries without action, model or object id are skipped"""
        self.assertIsNone(create_audit_log(user=self.user, action='grn_create', model_name='SavedGRN'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_scope(self):
        """Users see their own entries; admins see everyone's"""
        create_audit_log(user=self.user, action='create', model_name='Product', object_id='1')
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id='2')

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entry['object_id'] for entry in response.data], ['1'])

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)

    def test_audit_log_filters(self):
        """Entries filter by action"""
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id='1')
        create_audit_log(user=self.admin, action='grn_delete', model_name='SavedGRN', object_id='2')
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'grn_delete'})
        self.assertEqual([entry['object_id'] for entry in response.data], ['2'])

        response = self.client.get('/api/v1/audit-logs/', {'limit': 0})
        self.assertEqual(len(response.data), 1)
