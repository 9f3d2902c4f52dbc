"""
Tests for the product line screens
"""
from datetime import timedelta

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from core.test_utils import TestDataFactory
from store.services import get_store
from .forms import CarPolicyForm, CorporatePolicyForm, TravelPolicyForm
from .lines import PRODUCT_LINES, field_value, get_line


def in_days(days):
    return (timezone.localdate() + timedelta(days=days)).isoformat()


def car_form_data(**overrides):
    data = {
        'policy_no': 'CAR-100',
        'client_name': 'Test User',
        'vehicle_make': 'Honda',
        'vehicle_model': 'Civic',
        'registration_no': 'LEB-4321',
        'coverage_type': 'Comprehensive',
        'premium': '45000',
        'sum_assured': '3000000',
        'expiry_date': '2030-06-30',
        'status': 'Active',
    }
    data.update(overrides)
    return data


class ProductLineTests(TestCase):

    def test_every_line_has_a_form_and_collection(self):
        store = get_store()
        for line in PRODUCT_LINES.values():
            self.assertIsNotNone(store.collection(line.collection))
            self.assertTrue(line.form_class.base_fields)

    def test_field_value_follows_dotted_paths(self):
        record = {'travel_dates': {'departure': '2024-01-01', 'return': '2024-01-10'}}
        self.assertEqual(field_value(record, 'travel_dates.return'), '2024-01-10')
        self.assertEqual(field_value(record, 'travel_dates.return.day'), '')
        self.assertEqual(field_value(record, 'missing'), '')

    def test_travel_form_builds_nested_dates(self):
        form = TravelPolicyForm({
            'policy_no': 'TRV-1', 'client_name': 'Test User', 'destination': 'Dubai', 'trip_type': 'Single Trip',
            'departure_date': '2024-07-01', 'return_date': '2024-07-10', 'premium': '8000',
            'sum_assured': '100000', 'status': 'Active',
        })
        self.assertTrue(form.is_valid(), form.errors)
        record = form.to_record()
        self.assertEqual(record['travel_dates'], {'departure': '2024-07-01', 'return': '2024-07-10'})
        self.assertNotIn('departure_date', record)

    def test_travel_form_rejects_return_before_departure(self):
        form = TravelPolicyForm({
            'policy_no': 'TRV-1', 'client_name': 'Test User', 'destination': 'Dubai', 'trip_type': 'Single Trip',
            'departure_date': '2024-07-10', 'return_date': '2024-07-01', 'premium': '8000',
            'sum_assured': '100000', 'status': 'Active',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('return_date', form.errors)

    def test_corporate_coverage_round_trip(self):
        initial = CorporatePolicyForm.initial_from({'coverage': ['Fire', 'Burglary']})
        self.assertEqual(initial['coverage'], 'Fire, Burglary')

    def test_money_fields_reject_text(self):
        form = CarPolicyForm(car_form_data(premium='abc'))
        self.assertFalse(form.is_valid())
        self.assertIn('premium', form.errors)


@override_settings(STORE_SEED_DEMO_DATA=False)
class PolicyViewTests(TestCase):
    """Test listing, adding, editing and deleting policies"""

    def setUp(self):
        self.agent = TestDataFactory.create_agent()
        self.client.force_login(self.agent)
        self.list_url = reverse('policy:line_list', args=['car-insurance'])

    def test_list(self):
        policy = TestDataFactory.create_car_policy()
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, policy['policy_no'])
        self.assertEqual(response.context['stats']['total'], 1)

    def test_unknown_line(self):
        response = self.client.get(reverse('policy:line_list', args=['boat-insurance']))
        self.assertEqual(response.status_code, 404)

    def test_search(self):
        TestDataFactory.create_car_policy(vehicle_make='Suzuki')
        TestDataFactory.create_car_policy(vehicle_make='Toyota')
        response = self.client.get(self.list_url, {'search': 'suzuki'})
        self.assertEqual(len(response.context['rows']), 1)

    def test_expiry_filters(self):
        TestDataFactory.create_car_policy(expiry_date=in_days(10))
        TestDataFactory.create_car_policy(expiry_date=in_days(-3))
        TestDataFactory.create_car_policy(expiry_date=in_days(200))

        expiring = self.client.get(self.list_url, {'status': 'expiring'}).context['rows']
        expired = self.client.get(self.list_url, {'status': 'expired'}).context['rows']
        self.assertEqual([row['expiry_state'] for row in expiring], ['expiring'])
        self.assertEqual([row['expiry_state'] for row in expired], ['expired'])

    def test_sort_by_premium(self):
        TestDataFactory.create_car_policy(premium=9000)
        TestDataFactory.create_car_policy(premium=120000)
        TestDataFactory.create_car_policy(premium=45000)
        rows = self.client.get(self.list_url, {'sort': 'premium', 'order': 'desc'}).context['rows']
        self.assertEqual([row['record']['premium'] for row in rows], [120000, 45000, 9000])

    def test_create(self):
        response = self.client.post(reverse('policy:line_create', args=['car-insurance']), car_form_data())
        self.assertRedirects(response, self.list_url, fetch_redirect_response=False)
        record = get_store().car_policies.all()[0]
        self.assertEqual(record['premium'], 45000)
        self.assertEqual(record['ncd_percentage'], 0)

    def test_create_duplicate_policy_number(self):
        TestDataFactory.create_car_policy(policy_no='CAR-100')
        self.client.post(reverse('policy:line_create', args=['car-insurance']), car_form_data())
        self.assertEqual(get_store().car_policies.count(), 1)

    def test_create_invalid(self):
        response = self.client.post(reverse('policy:line_create', args=['car-insurance']),
                                    car_form_data(premium='abc'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_store().car_policies.count(), 0)

    def test_create_general_policy_copies_client_name(self):
        client = TestDataFactory.create_client(name='Fatima Ali')
        self.client.post(reverse('policy:line_create', args=['policies']), {
            'policy_no': 'IGI-LIFE-9',
            'client_id': client['id'],
            'policy_type': 'Life',
            'premium': '50000',
            'sum_assured': '1000000',
            'start_date': '2024-01-01',
            'maturity_date': '2044-01-01',
            'status': 'Active',
        })
        policy = get_store().policies.all()[0]
        self.assertEqual(policy['client_name'], 'Fatima Ali')

    def test_maturity_must_follow_start(self):
        client = TestDataFactory.create_client()
        response = self.client.post(reverse('policy:line_create', args=['policies']), {
            'policy_no': 'IGI-LIFE-9',
            'client_id': client['id'],
            'policy_type': 'Life',
            'premium': '50000',
            'sum_assured': '1000000',
            'start_date': '2024-01-01',
            'maturity_date': '2024-01-01',
            'status': 'Active',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_store().policies.count(), 0)

    def test_update(self):
        policy = TestDataFactory.create_car_policy(policy_no='CAR-100')
        url = reverse('policy:line_update', args=['car-insurance', policy['id']])
        response = self.client.post(url, car_form_data(status='Claim Pending'))
        self.assertRedirects(response, reverse('policy:line_detail', args=['car-insurance', policy['id']]),
                             fetch_redirect_response=False)
        self.assertEqual(get_store().car_policies.get(policy['id'])['status'], 'Claim Pending')

    def test_update_unknown_record(self):
        response = self.client.get(reverse('policy:line_update', args=['car-insurance', 'missing']))
        self.assertEqual(response.status_code, 404)

    def test_detail(self):
        policy = TestDataFactory.create_car_policy(expiry_date=in_days(12))
        response = self.client.get(reverse('policy:line_detail', args=['car-insurance', policy['id']]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['days_left'], 12)
        self.assertEqual(response.context['expiry_state'], 'expiring')

    def test_agents_cannot_delete(self):
        policy = TestDataFactory.create_car_policy()
        response = self.client.post(reverse('policy:line_delete', args=['car-insurance', policy['id']]))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(get_store().car_policies.count(), 1)

    def test_admin_delete(self):
        policy = TestDataFactory.create_car_policy()
        self.client.force_login(TestDataFactory.create_admin())
        response = self.client.post(reverse('policy:line_delete', args=['car-insurance', policy['id']]))
        self.assertRedirects(response, self.list_url, fetch_redirect_response=False)
        self.assertEqual(get_store().car_policies.count(), 0)


@override_settings(STORE_SEED_DEMO_DATA=False)
class ClientPolicyAccessTests(TestCase):
    """Clients only see the policies held in their own name"""

    def setUp(self):
        self.user = TestDataFactory.create_user(first_name='Ahmed', last_name='Khan')
        self.client.force_login(self.user)
        self.own = TestDataFactory.create_car_policy(client_name='Ahmed Khan')
        self.other = TestDataFactory.create_car_policy(client_name='Fatima Ali')

    def test_list_is_scoped(self):
        response = self.client.get(reverse('policy:line_list', args=['car-insurance']))
        self.assertContains(response, self.own['policy_no'])
        self.assertNotContains(response, self.other['policy_no'])

    def test_other_clients_policy_is_not_found(self):
        response = self.client.get(reverse('policy:line_detail', args=['car-insurance', self.other['id']]))
        self.assertEqual(response.status_code, 404)

    def test_clients_cannot_add(self):
        response = self.client.get(reverse('policy:line_create', args=['car-insurance']))
        self.assertEqual(response.status_code, 403)

    def test_clients_cannot_open_general_policies(self):
        response = self.client.get(reverse('policy:line_list', args=['policies']))
        self.assertEqual(response.status_code, 403)

    def test_my_policies_spans_lines(self):
        TestDataFactory.add_record(
            'corporate_policies', policy_no='CORP-1', company_name='Ahmed Khan', premium=1, sum_assured=1,
            expiry_date=in_days(5),
        )
        response = self.client.get(reverse('policy:my_policies'))
        numbers = [item['record']['policy_no'] for item in response.context['policies']]
        self.assertEqual(numbers, ['CORP-1', self.own['policy_no']])
        self.assertEqual(response.context['expiring_count'], 1)
