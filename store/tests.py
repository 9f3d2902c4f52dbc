"""
Tests for the record store: collections, schemas, parsing and the
management commands that move collections in and out.
"""
import json
import os
import re
import tempfile
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, SimpleTestCase, override_settings

from core.test_utils import TestDataFactory
from .backends import MemoryBackend, get_backend
from .exceptions import ParseError, PersistenceError, StoreError, ValidationFailed
from .models import StoredCollection
from .parsing import parse_number, parse_date, parse_list, parse_travel_dates
from .repository import DataStore, generate_id
from .schemas import CAR_POLICY, CLIENT, SCHEMA_VERSION, TRAVEL_POLICY, camel_to_snake
from .serialization import deserialize, serialize
from .services import get_store


class FailingBackend(MemoryBackend):
    """Reads work, every write fails"""

    def write(self, key, raw, version=SCHEMA_VERSION):
        raise OSError("disk full")


def car_policy_data(**overrides):
    data = {
        'policy_no': 'CAR-001',
        'client_name': 'Ahmed Khan',
        'registration_no': 'LEA-1234',
        'premium': '45000',
        'sum_assured': '2500000',
        'expiry_date': '2030-01-01',
    }
    data.update(overrides)
    return data


class ParsingTests(SimpleTestCase):
    """Test conversion of form and JSON input"""

    def test_parse_number_accepts_numeric_text(self):
        self.assertEqual(parse_number('45000'), 45000)
        self.assertEqual(parse_number('45,000'), 45000)
        self.assertEqual(parse_number('PKR 1,250.50'), 1250.5)
        self.assertEqual(parse_number(12.0), 12)

    def test_parse_number_rejects_garbage(self):
        for value in ('abc', '', '12abc', True, float('nan'), None):
            with self.assertRaises(ParseError):
                parse_number(value)

    def test_parse_date(self):
        self.assertEqual(parse_date('2024-03-05T10:00:00Z'), '2024-03-05')
        with self.assertRaises(ParseError):
            parse_date('05/03/2024')

    def test_parse_list_splits_text(self):
        self.assertEqual(parse_list('Fire, Burglary,,Marine '), ['Fire', 'Burglary', 'Marine'])

    def test_travel_dates_return_before_departure(self):
        with self.assertRaises(ParseError):
            parse_travel_dates({'departure': '2024-05-10', 'return': '2024-05-01'})

    def test_camel_to_snake(self):
        self.assertEqual(camel_to_snake('policyNo'), 'policy_no')
        self.assertEqual(camel_to_snake('sumAssured'), 'sum_assured')


class SchemaTests(SimpleTestCase):
    """Test schema validation"""

    def test_numeric_text_is_coerced(self):
        cleaned = CAR_POLICY.validate(car_policy_data())
        self.assertEqual(cleaned['premium'], 45000)
        self.assertEqual(cleaned['status'], 'Active')
        self.assertEqual(cleaned['coverage_type'], 'Comprehensive')

    def test_invalid_number_fails(self):
        with self.assertRaises(ValidationFailed) as ctx:
            CAR_POLICY.validate(car_policy_data(premium='abc'))
        self.assertIn('premium', ctx.exception.errors)
        self.assertIn('premium', ctx.exception.summary())

    def test_missing_required_fields_are_all_reported(self):
        with self.assertRaises(ValidationFailed) as ctx:
            CLIENT.validate({'email': 'a@b.com'})
        self.assertEqual(set(ctx.exception.errors), {'name', 'cnic'})

    def test_store_assigned_fields_cannot_be_set(self):
        with self.assertRaises(ValidationFailed) as ctx:
            CLIENT.validate({'id': 'x', 'name': 'A', 'cnic': '1'})
        self.assertIn('id', ctx.exception.errors)

    def test_unknown_choice_fails(self):
        with self.assertRaises(ValidationFailed):
            CAR_POLICY.validate(car_policy_data(status='Sleeping'))

    def test_partial_validation_checks_only_given_fields(self):
        self.assertEqual(CAR_POLICY.validate({'status': 'Expired'}, partial=True), {'status': 'Expired'})

    def test_stored_record_is_coerced_and_keeps_id(self):
        record = dict(car_policy_data(), id='9', created_at='2024-01-05', legacy_flag=True)
        cleaned = CAR_POLICY.clean_stored(record)
        self.assertEqual(cleaned['id'], '9')
        self.assertEqual(cleaned['created_at'], '2024-01-05')
        self.assertEqual(cleaned['premium'], 45000)
        self.assertNotIn('legacy_flag', cleaned)

    def test_invalid_stored_record_fails(self):
        with self.assertRaises(ValidationFailed) as ctx:
            CAR_POLICY.clean_stored(dict(car_policy_data(premium='abc'), id='9', created_at='yesterday'))
        self.assertEqual(set(ctx.exception.errors), {'premium', 'created_at'})


class SerializationTests(SimpleTestCase):
    """Test collection documents"""

    def test_legacy_array_is_upgraded(self):
        raw = json.dumps([{'id': '7', 'policyNo': 'CAR-7', 'clientName': 'Ali', 'premium': None}])
        records = deserialize(raw, CAR_POLICY)
        self.assertEqual(records[0]['policy_no'], 'CAR-7')
        self.assertEqual(records[0]['client_name'], 'Ali')
        self.assertEqual(records[0]['premium'], 0)
        self.assertEqual(records[0]['status'], 'Active')

    def test_newer_version_is_refused(self):
        with self.assertRaises(StoreError):
            deserialize(json.dumps({'version': SCHEMA_VERSION + 1, 'records': []}))

    def test_non_finite_numbers_are_refused(self):
        with self.assertRaises(StoreError):
            serialize([{'premium': float('inf')}])

    def test_versioned_document_reads_back_unchanged(self):
        records = [
            {'id': '1718000000000_abcdefghi', 'policy_no': 'TRV-1', 'client_name': 'Zoë Qureshi',
             'destination': 'İstanbul', 'travel_dates': {'departure': '2024-05-01', 'return': '2024-05-10'},
             'premium': 12500.5, 'sum_assured': 3000000, 'status': 'Active', 'created_at': '2024-04-20'},
            {'id': '1718000000001_jklmnopqr', 'policy_no': 'CORP-1', 'company_name': 'کراچی Traders',
             'coverage': ['Fire', 'Burglary', 'Marine'], 'premium': 0, 'sum_assured': 10000000},
            {'id': '1718000000002_stuvwxyz0', 'user_id': 'user-3', 'details': {'plan': 'Basic', 'employees': 40},
             'activation_date': '', 'request_date': '2024-04-20T10:15:00+00:00'},
        ]
        raw = serialize(records)
        self.assertEqual(json.loads(raw)['version'], SCHEMA_VERSION)
        self.assertEqual(deserialize(raw), records)
        self.assertEqual(deserialize(raw, TRAVEL_POLICY), records)


class CollectionTests(SimpleTestCase):
    """Test collection operations against the in-memory backend"""

    def setUp(self):
        self.store = DataStore(MemoryBackend(), seed=False)

    def test_generated_ids(self):
        self.assertRegex(generate_id(), r'^\d{13}_[a-z0-9]{9}$')

    def test_added_records_get_unique_ids(self):
        ids = set()
        for number in range(50):
            record, created = self.store.quote_leads.add({
                'name': 'Lead', 'email': f'lead{number}@test.com', 'phone': '1', 'insurance_type': 'car-insurance',
            })
            self.assertTrue(created)
            ids.add(record['id'])
        self.assertEqual(len(ids), 50)

    def test_add_then_read_back(self):
        record, created = self.store.car_policies.add(car_policy_data())
        self.assertTrue(created)
        self.assertTrue(re.match(r'^\d{4}-\d{2}-\d{2}$', record['created_at']))
        self.assertEqual(self.store.car_policies.get(record['id']), record)
        self.assertEqual(self.store.car_policies.count(), 1)

    def test_duplicate_natural_key_is_not_added(self):
        first, created = self.store.car_policies.add(car_policy_data())
        second, created_again = self.store.car_policies.add(car_policy_data(client_name='Someone Else'))
        self.assertFalse(created_again)
        self.assertEqual(second['id'], first['id'])
        self.assertEqual(self.store.car_policies.count(), 1)

    def test_user_service_duplicate_guard(self):
        service = {'user_id': 'user-1', 'service_type': 'car-tracker', 'service_name': 'Car Tracker - Basic'}
        record, created = self.store.user_services.add(service)
        again, created_again = self.store.user_services.add(dict(service, status='active'))
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(again['status'], 'requested')
        self.assertEqual(len(self.store.get_user_services('user-1')), 1)
        self.assertIn('T', record['request_date'])

    def test_update_merges_changes(self):
        record, created = self.store.car_policies.add(car_policy_data())
        updated = self.store.car_policies.update(record['id'], {'status': 'Expired', 'premium': '50,000'})
        self.assertEqual(updated['status'], 'Expired')
        self.assertEqual(updated['premium'], 50000)
        self.assertEqual(updated['registration_no'], 'LEA-1234')
        self.assertEqual(updated['created_at'], record['created_at'])

    def test_update_unknown_id_returns_none(self):
        self.assertIsNone(self.store.car_policies.update('missing', {'status': 'Expired'}))

    def test_update_cannot_take_another_records_natural_key(self):
        self.store.car_policies.add(car_policy_data())
        other, created = self.store.car_policies.add(car_policy_data(policy_no='CAR-002'))
        with self.assertRaises(ValidationFailed):
            self.store.car_policies.update(other['id'], {'policy_no': 'car-001'})

    def test_delete(self):
        record, created = self.store.clients.add({'name': 'Ahmed Khan', 'cnic': '42101-1234567-8'})
        self.assertTrue(self.store.clients.delete(record['id']))
        self.assertIsNone(self.store.clients.get(record['id']))

    def test_delete_missing_id_writes_nothing(self):
        self.assertFalse(self.store.clients.delete('missing'))
        self.assertEqual(self.store.backend.keys(), [])

    def test_delete_missing_id_leaves_records_untouched(self):
        self.store.clients.add({'name': 'Ahmed Khan', 'cnic': '42101-1234567-8'})
        self.store.clients.add({'name': 'Fatima Ali', 'cnic': '42201-2345678-9'})
        before = self.store.clients.all()
        raw_before = self.store.backend.read(CLIENT.key)

        self.assertFalse(self.store.clients.delete('missing'))
        self.assertEqual(self.store.clients.all(), before)
        self.assertEqual(self.store.backend.read(CLIENT.key), raw_before)

    def test_closed_lead_does_not_block_a_new_request(self):
        lead = {'name': 'Ahmed', 'email': 'ahmed@test.com', 'phone': '1', 'insurance_type': 'car-insurance'}
        first, created = self.store.quote_leads.add(lead)
        self.store.quote_leads.update(first['id'], {'status': 'closed'})

        second, created_again = self.store.quote_leads.add(dict(lead, message='Asking again'))
        self.assertTrue(created_again)
        self.assertNotEqual(second['id'], first['id'])
        self.assertEqual(second['status'], 'new')
        self.assertEqual(self.store.quote_leads.count(), 2)

    def test_open_lead_still_blocks_a_repeat(self):
        lead = {'name': 'Ahmed', 'email': 'ahmed@test.com', 'phone': '1', 'insurance_type': 'car-insurance'}
        first, created = self.store.quote_leads.add(lead)
        self.store.quote_leads.update(first['id'], {'status': 'quoted'})
        again, created_again = self.store.quote_leads.add(dict(lead, email='AHMED@test.com'))
        self.assertFalse(created_again)
        self.assertEqual(again['id'], first['id'])

    def test_replace_all_refuses_invalid_records(self):
        self.store.car_policies.add(car_policy_data())
        with self.assertRaises(ValidationFailed):
            self.store.car_policies.replace_all([car_policy_data(policy_no='CAR-002', premium='abc')])
        self.assertEqual([r['policy_no'] for r in self.store.car_policies.all()], ['CAR-001'])

    def test_import_records_merges_by_natural_key(self):
        self.store.car_policies.add(car_policy_data(policy_no='CAR-9'))
        imported, duplicates, rejected = self.store.car_policies.import_records([
            dict(car_policy_data(policy_no='car-9'), id='a'),
            dict(car_policy_data(policy_no='CAR-10', premium='45,000'), id='b'),
            dict(car_policy_data(policy_no='CAR-11', expiry_date='soon'), id='c'),
        ])
        self.assertEqual([r['id'] for r in imported], ['b'])
        self.assertEqual([r['id'] for r in duplicates], ['a'])
        self.assertEqual([record['id'] for record, error in rejected], ['c'])
        self.assertEqual([r['policy_no'] for r in self.store.car_policies.all()], ['CAR-9', 'CAR-10'])
        self.assertEqual(self.store.car_policies.get('b')['premium'], 45000)

    def test_filter(self):
        self.store.quote_leads.add({'name': 'A', 'email': 'a@test.com', 'phone': '1', 'insurance_type': 'car-insurance'})
        lead, created = self.store.quote_leads.add({
            'name': 'B', 'email': 'b@test.com', 'phone': '2', 'insurance_type': 'life-insurance', 'status': 'quoted',
        })
        self.assertEqual(self.store.quote_leads.filter(status='quoted'), [lead])

    def test_corrupt_data_falls_back_to_default(self):
        self.store.backend.write(CLIENT.key, '{not json')
        with self.assertLogs('store.repository', level='ERROR'):
            self.assertEqual(self.store.clients.all(), [])

    def test_write_failure_raises(self):
        store = DataStore(FailingBackend(), seed=False)
        with self.assertLogs('store.repository', level='ERROR'):
            with self.assertRaises(PersistenceError):
                store.clients.add({'name': 'Ahmed Khan', 'cnic': '42101-1234567-8'})
        self.assertEqual(store.clients.all(), [])

    def test_seed_data_is_served_until_written(self):
        store = DataStore(MemoryBackend(), seed=True)
        self.assertEqual(store.clients.count(), 5)
        store.clients.add({'name': 'New Client', 'cnic': '42101-0000000-1'})
        self.assertEqual(store.clients.count(), 6)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            get_backend('redis')


@override_settings(STORE_BACKEND='database', STORE_SEED_DEMO_DATA=False)
class DatabaseBackendTests(TestCase):
    """Test the StoredCollection-backed store"""

    def test_records_are_persisted_as_versioned_documents(self):
        client = TestDataFactory.create_client(name='Ahmed Khan')
        row = StoredCollection.objects.get(key=CLIENT.key)
        document = json.loads(row.payload)
        self.assertEqual(document['version'], SCHEMA_VERSION)
        self.assertEqual(document['records'][0]['id'], client['id'])
        self.assertEqual(row.schema_version, SCHEMA_VERSION)

    def test_store_follows_settings(self):
        self.assertEqual(get_store().backend.name, 'database')
        with self.settings(STORE_BACKEND='memory'):
            self.assertEqual(get_store().backend.name, 'memory')
        self.assertEqual(get_store().backend.name, 'database')


@override_settings(STORE_BACKEND='database', STORE_SEED_DEMO_DATA=False)
class StoreCommandTests(TestCase):
    """Test export_store and import_local_storage"""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        for name in os.listdir(self.tmpdir):
            os.remove(os.path.join(self.tmpdir, name))
        os.rmdir(self.tmpdir)

    def write_dump(self, dump):
        path = os.path.join(self.tmpdir, 'dump.json')
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(dump, fh)
        return path

    def test_export(self):
        TestDataFactory.create_client(name='Ahmed Khan')
        out = StringIO()
        call_command('export_store', stdout=out)
        export = json.loads(out.getvalue())
        self.assertEqual(export[CLIENT.key]['records'][0]['name'], 'Ahmed Khan')

    def test_import_local_storage(self):
        legacy = [{'id': '9', 'policyNo': 'CAR-9', 'clientName': 'Ali', 'registrationNo': 'X-1',
                   'premium': 1000, 'sumAssured': 5000, 'expiryDate': '2030-01-01'}]
        path = self.write_dump({CAR_POLICY.key: json.dumps(legacy), 'someone_else': '[]'})
        out = StringIO()
        call_command('import_local_storage', path, stdout=out)

        records = get_store().car_policies.all()
        self.assertEqual(records[0]['policy_no'], 'CAR-9')
        self.assertIn('[SKIPPED] Unknown key: someone_else', out.getvalue())

    def test_import_keeps_existing_records(self):
        TestDataFactory.create_client(name='Ahmed Khan')
        path = self.write_dump({CLIENT.key: [{'id': 'c2', 'name': 'Fatima Ali', 'cnic': '42201-2345678-9'}]})
        out = StringIO()
        call_command('import_local_storage', path, stdout=out)
        self.assertEqual(get_store().clients.count(), 2)
        self.assertIn(f'[IMPORTED] {CLIENT.key}: 1 records', out.getvalue())

    def test_import_skips_stored_policy_numbers_and_coerces_values(self):
        TestDataFactory.create_car_policy(policy_no='CAR-9')
        legacy = [
            {'id': '9', 'policyNo': 'CAR-9', 'clientName': 'Ali', 'registrationNo': 'X-1',
             'premium': '45000', 'sumAssured': '5000', 'expiryDate': '2030-01-01'},
            {'id': '10', 'policyNo': 'CAR-10', 'clientName': 'Sana', 'registrationNo': 'X-2',
             'premium': '45000', 'sumAssured': '5000', 'expiryDate': '2030-01-01'},
        ]
        path = self.write_dump({CAR_POLICY.key: json.dumps(legacy)})
        out = StringIO()
        call_command('import_local_storage', path, stdout=out)

        records = get_store().car_policies.all()
        self.assertEqual([r['policy_no'] for r in records], ['CAR-9', 'CAR-10'])
        self.assertEqual([type(r['premium']) for r in records], [int, int])
        self.assertIn(f'[SKIPPED] {CAR_POLICY.key} record 9: already stored', out.getvalue())
        self.assertIn(f'[IMPORTED] {CAR_POLICY.key}: 1 records', out.getvalue())

    def test_import_reports_invalid_records(self):
        legacy = [{'id': '11', 'policyNo': 'CAR-11', 'clientName': 'Ali', 'registrationNo': 'X-1',
                   'premium': 'abc', 'sumAssured': 5000, 'expiryDate': '2030-01-01'}]
        path = self.write_dump({CAR_POLICY.key: legacy})
        out = StringIO()
        call_command('import_local_storage', path, stdout=out)

        self.assertEqual(get_store().car_policies.all(), [])
        self.assertIn(f'[ERROR] {CAR_POLICY.key} record 11: premium:', out.getvalue())
