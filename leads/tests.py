from django.contrib.messages import get_messages
from django.test import TestCase, override_settings
from django.urls import reverse

from core.test_utils import TestDataFactory
from store.services import get_store
from .forms import get_insurance_label
from .intake import record_quote_request
from .views import conversion_rate


def quote_data(**overrides):
    data = {
        'name': 'Bilal Ahmed',
        'email': 'bilal@example.com',
        'phone': '+92 300 1112233',
        'insurance_type': 'car-insurance',
        'message': 'Quote for a 2022 Corolla',
    }
    data.update(overrides)
    return data


class LeadHelperTests(TestCase):

    def test_insurance_labels(self):
        self.assertEqual(get_insurance_label('car-tracker'), 'Car Tracker Service')
        self.assertEqual(get_insurance_label('employee-health'), 'Employee Health')
        self.assertEqual(get_insurance_label('boat'), 'boat')

    def test_conversion_rate(self):
        leads = [{'status': 'converted'}, {'status': 'new'}, {'status': 'quoted'}]
        self.assertEqual(conversion_rate(leads), 33)
        self.assertEqual(conversion_rate([]), 0)


@override_settings(STORE_SEED_DEMO_DATA=False)
class QuoteRequestTests(TestCase):
    """Test the public quote form"""

    def setUp(self):
        self.url = reverse('leads:quote_request')

    def test_anonymous_quote_creates_lead_only(self):
        response = self.client.post(self.url, quote_data())
        self.assertRedirects(response, self.url, fetch_redirect_response=False)

        lead = get_store().quote_leads.all()[0]
        self.assertEqual(lead['status'], 'new')
        self.assertEqual(lead['insurance_type'], 'car-insurance')
        self.assertEqual(get_store().user_services.count(), 0)

    def test_signed_in_quote_also_requests_service(self):
        user = TestDataFactory.create_user()
        self.client.force_login(user)
        self.client.post(self.url, quote_data(insurance_type='life-insurance'))

        services = get_store().get_user_services(user.service_owner_id)
        self.assertEqual(len(services), 1)
        self.assertEqual(services[0]['status'], 'requested')
        self.assertEqual(services[0]['service_name'], 'Life Insurance')
        self.assertEqual(services[0]['details']['quote_type'], 'general')

    def test_same_request_twice(self):
        self.client.post(self.url, quote_data())
        self.client.post(self.url, quote_data(email='BILAL@example.com'))
        self.assertEqual(get_store().quote_leads.count(), 1)

    def test_new_request_after_lead_was_closed(self):
        self.client.post(self.url, quote_data())
        first = get_store().quote_leads.all()[0]
        get_store().quote_leads.update(first['id'], {'status': 'closed'})

        response = self.client.post(self.url, quote_data(message='Back with a new car'))
        sent = [str(message) for message in get_messages(response.wsgi_request)]
        self.assertTrue(sent[0].startswith('Quote Request Submitted!'))

        leads = get_store().quote_leads.all()
        self.assertEqual([lead['status'] for lead in leads], ['closed', 'new'])
        self.assertEqual(leads[1]['message'], 'Back with a new car')

    def test_invalid_form(self):
        response = self.client.post(self.url, quote_data(email='not-an-email', insurance_type=''))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(set(response.context['form'].errors), {'email', 'insurance_type'})

    def test_form_is_prefilled_for_signed_in_users(self):
        user = TestDataFactory.create_user(first_name='Ahmed', last_name='Khan')
        self.client.force_login(user)
        response = self.client.get(self.url, {'type': 'travel-insurance'})
        self.assertEqual(response.context['form'].initial['name'], 'Ahmed Khan')
        self.assertEqual(response.context['form'].initial['insurance_type'], 'travel-insurance')

    def test_record_quote_request_returns_lead(self):
        lead, created = record_quote_request(get_store(), None, quote_data(), 'car-insurance', 'Car Insurance')
        self.assertTrue(created)
        self.assertEqual(lead['name'], 'Bilal Ahmed')


@override_settings(STORE_SEED_DEMO_DATA=False)
class LeadsManagementTests(TestCase):
    """Test the leads screen"""

    def setUp(self):
        self.agent = TestDataFactory.create_agent(username='agent1')
        self.client.force_login(self.agent)
        self.url = reverse('leads:leads_management')

    def test_list(self):
        TestDataFactory.create_lead(status='converted')
        TestDataFactory.create_lead(insurance_type='bike-insurance')
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['total_leads'], 2)
        self.assertEqual(response.context['status_counts']['converted'], 1)
        self.assertEqual(response.context['conversion_rate'], 50)

    def test_filter_by_status(self):
        TestDataFactory.create_lead(status='quoted')
        TestDataFactory.create_lead()
        response = self.client.get(self.url, {'status': 'quoted'})
        self.assertEqual(len(response.context['leads']), 1)

    def test_search_by_insurance_label(self):
        TestDataFactory.create_lead(insurance_type='travel-insurance')
        TestDataFactory.create_lead()
        response = self.client.get(self.url, {'search': 'travel'})
        self.assertEqual([label for lead, label in response.context['leads']], ['Travel Insurance'])

    def test_update_status(self):
        lead = TestDataFactory.create_lead()
        self.client.post(self.url, {'update_status': '1', 'lead_id': lead['id'], 'status': 'contacted'})
        self.assertEqual(get_store().quote_leads.get(lead['id'])['status'], 'contacted')

    def test_invalid_status_is_refused(self):
        lead = TestDataFactory.create_lead()
        self.client.post(self.url, {'update_status': '1', 'lead_id': lead['id'], 'status': 'won'})
        self.assertEqual(get_store().quote_leads.get(lead['id'])['status'], 'new')

    def test_assign_agent(self):
        lead = TestDataFactory.create_lead()
        self.client.post(self.url, {'assign_agent': '1', 'lead_id': lead['id'], 'assigned_agent': 'agent1'})
        self.assertEqual(get_store().quote_leads.get(lead['id'])['assigned_agent'], 'agent1')

    def test_delete_and_bulk_delete(self):
        first = TestDataFactory.create_lead()
        second = TestDataFactory.create_lead()
        third = TestDataFactory.create_lead()
        self.client.post(self.url, {'delete_lead': '1', 'lead_id': first['id']})
        self.client.post(self.url, {'bulk_delete': '1', 'lead_ids': [second['id'], third['id'], 'missing']})
        self.assertEqual(get_store().quote_leads.count(), 0)

    def test_lead_detail_json(self):
        lead = TestDataFactory.create_lead(insurance_type='car-tracker')
        response = self.client.get(reverse('leads:lead_detail', args=[lead['id']]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['insurance_label'], 'Car Tracker Service')

    def test_lead_detail_missing(self):
        response = self.client.get(reverse('leads:lead_detail', args=['missing']))
        self.assertEqual(response.status_code, 404)

    def test_lead_detail_requires_login(self):
        lead = TestDataFactory.create_lead()
        self.client.logout()
        response = self.client.get(reverse('leads:lead_detail', args=[lead['id']]))
        self.assertEqual(response.status_code, 401)

    def test_clients_are_refused(self):
        lead = TestDataFactory.create_lead()
        self.client.force_login(TestDataFactory.create_user())
        self.assertEqual(self.client.get(self.url).status_code, 403)
        self.assertEqual(self.client.get(reverse('leads:lead_detail', args=[lead['id']])).status_code, 403)
