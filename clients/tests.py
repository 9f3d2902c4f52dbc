from django.test import TestCase, override_settings
from django.urls import reverse

from core.test_utils import TestDataFactory
from store.services import get_store
from .views import count_policies


def client_form_data(**overrides):
    data = {
        'add_client': '1',
        'name': 'Ahmed Khan',
        'cnic': '42101-1234567-8',
        'contact': '+92-300-1234567',
        'email': 'ahmed.khan@example.com',
        'address': 'F-8, Islamabad',
        'agent_id': 'AGT001',
    }
    data.update(overrides)
    return data


@override_settings(STORE_SEED_DEMO_DATA=False)
class ClientViewTests(TestCase):
    """Test the clients screen"""

    def setUp(self):
        self.client.force_login(TestDataFactory.create_agent())
        self.url = reverse('clients:client_list')

    def test_list_with_policy_counts(self):
        client = TestDataFactory.create_client(name='Ahmed Khan')
        TestDataFactory.create_policy(client_id=client['id'], client_name='Ahmed Khan')
        TestDataFactory.create_car_policy(client_name='ahmed khan')

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['clients'], [(client, 2)])

    def test_search(self):
        TestDataFactory.create_client(name='Ahmed Khan', cnic='42101-1111111-1')
        TestDataFactory.create_client(name='Fatima Ali', cnic='42201-2222222-2')
        response = self.client.get(self.url, {'search': '42201'})
        self.assertEqual([client['name'] for client, count in response.context['clients']], ['Fatima Ali'])

    def test_add(self):
        response = self.client.post(self.url, client_form_data())
        self.assertRedirects(response, self.url, fetch_redirect_response=False)
        self.assertEqual(get_store().clients.all()[0]['cnic'], '42101-1234567-8')

    def test_add_duplicate_cnic(self):
        TestDataFactory.create_client(cnic='42101-1234567-8')
        self.client.post(self.url, client_form_data(name='Someone Else'))
        self.assertEqual(get_store().clients.count(), 1)

    def test_add_invalid_cnic(self):
        response = self.client.post(self.url, client_form_data(cnic='12-34'))
        self.assertEqual(response.status_code, 200)
        self.assertIn('cnic', response.context['form'].errors)
        self.assertEqual(get_store().clients.count(), 0)

    def test_delete(self):
        client = TestDataFactory.create_client()
        self.client.post(self.url, {'delete_client': '1', 'client_id': client['id']})
        self.assertEqual(get_store().clients.count(), 0)

    def test_delete_missing_client(self):
        response = self.client.post(self.url, {'delete_client': '1', 'client_id': 'missing'})
        self.assertRedirects(response, self.url, fetch_redirect_response=False)

    def test_update(self):
        client = TestDataFactory.create_client(name='Ahmed Khan', cnic='42101-1234567-8')
        url = reverse('clients:client_update', args=[client['id']])
        data = client_form_data(contact='+92-301-0000000')
        del data['add_client']
        self.client.post(url, data)
        updated = get_store().clients.get(client['id'])
        self.assertEqual(updated['contact'], '+92-301-0000000')
        self.assertEqual(updated['created_at'], client['created_at'])

    def test_update_unknown_client(self):
        response = self.client.get(reverse('clients:client_update', args=['missing']))
        self.assertEqual(response.status_code, 404)

    def test_clients_are_refused(self):
        self.client.force_login(TestDataFactory.create_user())
        self.assertEqual(self.client.get(self.url).status_code, 403)


@override_settings(STORE_SEED_DEMO_DATA=True)
class CountPoliciesTests(TestCase):

    def test_seed_clients_and_policies(self):
        store = get_store()
        counts = count_policies(store, store.clients.all())
        # Ahmed Khan holds two of the sample policies
        self.assertEqual(counts['1'], 2)
        self.assertEqual(sum(counts.values()), 6)
