"""
Tests for accounts: roles, sign-in, user management and the sidebar
"""
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, RequestFactory, override_settings
from django.urls import reverse

from core.test_utils import TestDataFactory
from .context_processors import role_navigation
from .roles import can_access_service, get_role, has_permission, is_client

User = get_user_model()


class RoleTests(TestCase):
    """Test role permissions and service access"""

    def test_agent_permissions(self):
        agent = TestDataFactory.create_agent()
        self.assertTrue(has_permission(agent, 'can_create_policies'))
        self.assertFalse(has_permission(agent, 'can_delete_policies'))
        self.assertFalse(can_access_service(agent, 'user-management'))
        self.assertTrue(can_access_service(agent, 'leads-management'))

    def test_client_permissions(self):
        client = TestDataFactory.create_user()
        self.assertTrue(is_client(client))
        self.assertFalse(has_permission(client, 'can_view_reports'))
        self.assertTrue(can_access_service(client, 'my-policies'))
        self.assertFalse(can_access_service(client, 'clients'))

    def test_superuser_acts_as_admin(self):
        user = TestDataFactory.create_user(role='client', is_superuser=True)
        self.assertEqual(get_role(user), 'admin')
        self.assertTrue(has_permission(user, 'can_manage_users'))

    def test_unknown_permission(self):
        with self.assertRaises(ValueError):
            has_permission(TestDataFactory.create_admin(), 'can_fly')

    def test_service_owner_id(self):
        user = TestDataFactory.create_user()
        self.assertEqual(user.service_owner_id, f'user-{user.pk}')


class LoginTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_agent(username='agent1')

    def test_login_redirects_to_dashboard(self):
        response = self.client.post(reverse('users:login'), {'username': 'agent1', 'password': 'testpass123'})
        self.assertRedirects(response, reverse('admin_panel:dashboard'), fetch_redirect_response=False)

    def test_bad_password(self):
        response = self.client.post(reverse('users:login'), {'username': 'agent1', 'password': 'wrong'})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.wsgi_request.user.is_authenticated)

    def test_anonymous_users_are_sent_to_login(self):
        response = self.client.get(reverse('admin_panel:dashboard'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('users:login'), response.url)


@override_settings(STORE_SEED_DEMO_DATA=False)
class UserManagementTests(TestCase):
    """Test the user management screen"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(username='boss')
        self.client.force_login(self.admin)
        self.url = reverse('users:user_management')

    def test_list(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'boss')

    def test_agents_are_refused(self):
        self.client.force_login(TestDataFactory.create_agent())
        self.assertEqual(self.client.get(self.url).status_code, 403)

    def test_create_user(self):
        response = self.client.post(self.url, {
            'create_user': '1',
            'username': 'newagent',
            'first_name': 'New',
            'last_name': 'Agent',
            'email': 'newagent@igilife.com',
            'role': 'agent',
            'password1': 'Str0ng-Passw0rd!',
            'password2': 'Str0ng-Passw0rd!',
        })
        self.assertRedirects(response, self.url, fetch_redirect_response=False)
        self.assertEqual(User.objects.get(username='newagent').role, 'agent')

    def test_duplicate_email_is_rejected(self):
        TestDataFactory.create_user(email='taken@igilife.com')
        response = self.client.post(self.url, {
            'create_user': '1',
            'username': 'another',
            'first_name': 'Another',
            'email': 'TAKEN@igilife.com',
            'role': 'client',
            'password1': 'Str0ng-Passw0rd!',
            'password2': 'Str0ng-Passw0rd!',
        })
        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.filter(username='another').exists())

    def test_delete_user(self):
        victim = TestDataFactory.create_user()
        self.client.post(self.url, {'delete_user': '1', 'user_id': victim.pk})
        self.assertFalse(User.objects.filter(pk=victim.pk).exists())

    def test_cannot_delete_self(self):
        self.client.post(self.url, {'delete_user': '1', 'user_id': self.admin.pk})
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())


@override_settings(STORE_SEED_DEMO_DATA=False)
class ProfileTests(TestCase):

    def test_update_profile(self):
        user = TestDataFactory.create_user()
        self.client.force_login(user)
        response = self.client.post(reverse('users:profile'), {
            'first_name': 'Ahmed',
            'last_name': 'Khan',
            'email': 'ahmed@test.com',
            'phone': '+92 300 0000000',
        })
        self.assertRedirects(response, reverse('users:profile'), fetch_redirect_response=False)
        user.refresh_from_db()
        self.assertEqual(user.get_full_name(), 'Ahmed Khan')


class NavigationTests(TestCase):
    """Test the role-filtered sidebar"""

    def setUp(self):
        self.factory = RequestFactory()

    def nav_ids(self, user):
        request = self.factory.get('/')
        request.user = user
        return [item['id'] for item in role_navigation(request)['nav_items']]

    def test_client_navigation(self):
        ids = self.nav_ids(TestDataFactory.create_user())
        self.assertIn('my-policies', ids)
        self.assertNotIn('clients', ids)
        self.assertNotIn('reports', ids)

    def test_admin_navigation(self):
        ids = self.nav_ids(TestDataFactory.create_admin())
        self.assertIn('user-management', ids)
        self.assertIn('reports', ids)
        self.assertNotIn('my-policies', ids)


class DemoUsersCommandTests(TestCase):

    def test_creates_three_accounts_once(self):
        call_command('create_demo_users', stdout=StringIO())
        call_command('create_demo_users', stdout=StringIO())
        self.assertEqual(User.objects.count(), 3)
        self.assertTrue(User.objects.get(email='agent@igilife.com').check_password('password123'))
        self.assertEqual(User.objects.get(username='admin').role, 'admin')
