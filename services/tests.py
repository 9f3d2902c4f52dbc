import re

from django.test import TestCase, override_settings
from django.urls import reverse

from core.test_utils import TestDataFactory
from store.services import get_store
from .catalog import LIFE_COVERAGE_PLANS, TRACKING_PLANS, generate_policy_number, price_label


class CatalogTests(TestCase):

    def test_policy_number_format(self):
        self.assertEqual(generate_policy_number('car-tracker', timestamp=1718000000), 'IGI-CAR-TRACKER-1718000000000')
        self.assertRegex(generate_policy_number('life-insurance'), r'^IGI-LIFE-INSURANCE-\d{13}$')

    def test_price_labels(self):
        self.assertEqual(price_label(TRACKING_PLANS['standard']), 'PKR 4,500/month')
        self.assertEqual(price_label(LIFE_COVERAGE_PLANS['basic'], per_employee=True), 'PKR 500/employee/month')


@override_settings(STORE_SEED_DEMO_DATA=False)
class ServiceRequestTests(TestCase):
    """Test the car tracker and employee life request screens"""

    def setUp(self):
        self.user = TestDataFactory.create_user(first_name='Ahmed', last_name='Khan')
        self.client.force_login(self.user)

    def test_car_tracker_request(self):
        response = self.client.post(reverse('services:car_tracker'), {
            'vehicle_make': 'Toyota',
            'vehicle_model': 'Corolla',
            'vehicle_year': '2022',
            'registration_no': 'LEA-1234',
            'current_location': 'Lahore',
            'tracking_plan': 'standard',
            'contact_number': '+92 300 1234567',
        })
        self.assertRedirects(response, reverse('services:my_services'), fetch_redirect_response=False)

        lead = get_store().quote_leads.all()[0]
        self.assertEqual(lead['insurance_type'], 'car-tracker')
        self.assertIn('Plan: Standard Tracking - PKR 4,500/month', lead['message'])
        self.assertIn('Special Requirements: None', lead['message'])

        service = get_store().get_user_services(self.user.service_owner_id)[0]
        self.assertEqual(service['service_name'], 'Car Tracker - Standard Tracking')
        self.assertEqual(service['status'], 'requested')
        self.assertEqual(service['details']['vehicle'], 'Toyota Corolla (2022)')

    def test_car_tracker_requests_from_accounts_without_email(self):
        request = {
            'vehicle_make': 'Honda',
            'vehicle_model': 'City',
            'vehicle_year': '2021',
            'registration_no': 'LEB-4321',
            'current_location': 'Karachi',
            'tracking_plan': 'basic',
            'contact_number': '+92 300 7654321',
        }
        for first_name in ('One', 'Two'):
            user = TestDataFactory.create_user(first_name=first_name, last_name='User', email='')
            self.client.force_login(user)
            self.client.post(reverse('services:car_tracker'), request)

        leads = get_store().quote_leads.all()
        self.assertEqual([lead['name'] for lead in leads], ['One User', 'Two User'])
        self.assertEqual(len({lead['email'] for lead in leads}), 2)
        self.assertTrue(leads[0]['email'].endswith('@users.igilife.local'))

    def test_employee_life_request(self):
        self.client.post(reverse('services:employee_life'), {
            'company_name': 'Khan Traders',
            'business_type': 'Retail',
            'number_of_employees': '40',
            'contact_person': 'Ahmed Khan',
            'designation': 'HR Manager',
            'contact_number': '+92 300 1234567',
            'email': 'hr@khantraders.pk',
            'coverage_plan': 'premium',
        })
        lead = get_store().quote_leads.all()[0]
        self.assertEqual(lead['email'], 'hr@khantraders.pk')
        self.assertIn('Coverage Amount: PKR 2,000,000', lead['message'])
        service = get_store().get_user_services(self.user.service_owner_id)[0]
        self.assertEqual(service['details']['employees'], 40)

    def test_invalid_request(self):
        response = self.client.post(reverse('services:car_tracker'), {'tracking_plan': 'gold'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_store().quote_leads.count(), 0)

    def test_plans_are_listed(self):
        response = self.client.get(reverse('services:employee_life'))
        self.assertEqual([plan['key'] for plan in response.context['plans']], ['basic', 'standard', 'premium'])
        self.assertEqual(response.context['plans'][0]['price'], 'PKR 500/employee/month')

    def test_my_services(self):
        TestDataFactory.add_record('user_services', user_id=self.user.service_owner_id, service_type='car-tracker',
                                   service_name='Car Tracker - Basic Tracking')
        TestDataFactory.add_record('user_services', user_id='user-999', service_type='car-tracker',
                                   service_name='Car Tracker - Basic Tracking')
        response = self.client.get(reverse('services:my_services'))
        self.assertEqual(len(response.context['services']), 1)
        self.assertEqual(response.context['requested_count'], 1)

    def test_my_services_include_services_provided_to_client_record(self):
        client = TestDataFactory.create_client(email=self.user.email)
        TestDataFactory.add_record('user_services', user_id=client['id'], service_type='life-insurance',
                                   service_name='Family Life Cover', status='active')
        response = self.client.get(reverse('services:my_services'))
        self.assertEqual(response.context['active_count'], 1)


@override_settings(STORE_SEED_DEMO_DATA=False)
class ServiceProvisionTests(TestCase):
    """Test agents providing services"""

    def setUp(self):
        self.agent = TestDataFactory.create_agent(first_name='Sara', last_name='Agent')
        self.client.force_login(self.agent)
        self.url = reverse('services:service_provision')
        self.customer = TestDataFactory.create_client(name='Fatima Ali')

    def provide(self, **overrides):
        data = {
            'provide_service': '1',
            'client_id': self.customer['id'],
            'service_type': 'life-insurance',
            'service_name': 'Family Life Cover',
            'premium': '12000',
            'start_date': '2024-01-01',
            'expiry_date': '2025-01-01',
        }
        data.update(overrides)
        return self.client.post(self.url, data)

    def test_provide_service(self):
        response = self.provide()
        self.assertRedirects(response, self.url, fetch_redirect_response=False)

        service = get_store().get_user_services(self.customer['id'])[0]
        self.assertEqual(service['status'], 'active')
        self.assertTrue(re.match(r'^IGI-LIFE-INSURANCE-\d{13}$', service['policy_no']))
        self.assertEqual(service['details']['premium'], 12000)
        self.assertEqual(service['details']['provided_by'], 'Sara Agent')
        self.assertTrue(service['activation_date'])

    def test_agent_policy_number_is_kept(self):
        self.provide(policy_no='LIFE-777')
        self.assertEqual(get_store().get_user_services(self.customer['id'])[0]['policy_no'], 'LIFE-777')

    def test_provide_same_service_twice(self):
        self.provide()
        self.provide()
        self.assertEqual(get_store().user_services.count(), 1)

    def test_expiry_before_start(self):
        response = self.provide(expiry_date='2023-01-01')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_store().user_services.count(), 0)

    def test_update_status(self):
        service = TestDataFactory.add_record('user_services', user_id='user-1', service_type='car-tracker',
                                             service_name='Car Tracker - Basic Tracking')
        self.client.post(self.url, {'update_status': '1', 'service_id': service['id'], 'status': 'active'})
        updated = get_store().user_services.get(service['id'])
        self.assertEqual(updated['status'], 'active')
        self.assertTrue(updated['activation_date'])

    def test_list_shows_recipient_names(self):
        self.provide()
        response = self.client.get(self.url)
        self.assertEqual(response.context['services'][0][1], 'Fatima Ali')

    def test_clients_are_refused(self):
        self.client.force_login(TestDataFactory.create_user())
        self.assertEqual(self.client.get(self.url).status_code, 403)
