"""
Tests for the dashboard, notifications, reports and chart endpoints
"""
import csv
import io
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from core.test_utils import TestDataFactory
from store.services import get_store
from . import reports
from .notifications import build_notifications


def in_days(days):
    return (timezone.localdate() + timedelta(days=days)).isoformat()


@override_settings(STORE_SEED_DEMO_DATA=False)
class ReportFigureTests(TestCase):
    """Test the figures behind the dashboard and reports"""

    def setUp(self):
        TestDataFactory.create_car_policy(premium=45000, sum_assured=2500000, expiry_date=in_days(10))
        TestDataFactory.create_car_policy(premium=5000, sum_assured=500000, status='Expired', expiry_date=in_days(-5))
        TestDataFactory.create_policy(premium=50000, sum_assured=1000000)

    def test_portfolio_summary(self):
        rows = {row['slug']: row for row in reports.portfolio_summary(get_store())}
        self.assertEqual(len(rows), 7)
        self.assertEqual(rows['car-insurance']['count'], 2)
        self.assertEqual(rows['car-insurance']['active'], 1)
        self.assertEqual(rows['car-insurance']['premium'], 50000)
        self.assertEqual(rows['car-insurance']['expiring'], 1)
        self.assertEqual(rows['bike-insurance']['count'], 0)

        totals = reports.portfolio_totals(rows.values())
        self.assertEqual(totals['policies'], 3)
        self.assertEqual(totals['sum_assured'], 4000000)

    def test_expiring_policies(self):
        rows = reports.expiring_policies(get_store())
        self.assertEqual([row['days_left'] for row in rows], [10])
        with_expired = reports.expiring_policies(get_store(), include_expired=True)
        self.assertEqual([row['days_left'] for row in with_expired], [-5, 10])

    def test_leads_pipeline(self):
        TestDataFactory.create_lead(status='converted')
        TestDataFactory.create_lead(insurance_type='life-insurance')
        TestDataFactory.create_lead(insurance_type='life-insurance', status='quoted')

        pipeline = reports.leads_pipeline(get_store())
        self.assertEqual(pipeline['total'], 3)
        self.assertEqual(list(pipeline['by_status']), ['new', 'contacted', 'quoted', 'converted', 'closed'])
        self.assertEqual(pipeline['by_type'][0], ('Life Insurance', 2))
        self.assertEqual(pipeline['conversion_rate'], 33)

        past = timezone.localdate() - timedelta(days=60)
        empty = reports.leads_pipeline(get_store(), past, past)
        self.assertEqual(empty['total'], 0)
        self.assertEqual(empty['conversion_rate'], 0)

    def test_charts(self):
        chart = reports.premium_chart(get_store())
        self.assertEqual(len(chart['labels']), len(chart['data']))
        self.assertIn(50000, chart['data'])


@override_settings(STORE_SEED_DEMO_DATA=False)
class NotificationTests(TestCase):

    def setUp(self):
        self.now = timezone.now()

    def test_expired_and_expiring(self):
        expired = TestDataFactory.create_car_policy(expiry_date=in_days(-2))
        expiring = TestDataFactory.create_car_policy(expiry_date=in_days(7))
        TestDataFactory.create_car_policy(expiry_date=in_days(-2), status='Expired')

        notifications = {n['id']: n for n in build_notifications(get_store(), now=self.now)}
        self.assertEqual(notifications[f"exp-{expired['id']}"]['type'], 'error')
        self.assertEqual(notifications[f"warn-{expiring['id']}"]['message'],
                         f"Policy {expiring['policy_no']} expires in 7 days")
        self.assertEqual(notifications['premium-reminder']['message'],
                         "2 policies require premium collection this month")
        self.assertEqual(len([n for n in notifications.values() if n['type'] == 'error']), 1)

    def test_no_policies(self):
        self.assertEqual(build_notifications(get_store(), now=self.now), [])

    def test_time_ago(self):
        TestDataFactory.create_car_policy()
        later = datetime.now(dt_timezone.utc) + timedelta(days=3)
        notifications = build_notifications(get_store(), now=later)
        self.assertEqual(notifications[0]['time_ago'], 'Just now')
        self.assertTrue(notifications[-1]['time_ago'].endswith('ago'))

    def test_endpoint_and_dismiss(self):
        policy = TestDataFactory.create_car_policy(expiry_date=in_days(7))
        self.client.force_login(TestDataFactory.create_agent())
        url = reverse('admin_panel:notifications')

        payload = self.client.get(url).json()
        self.assertEqual(payload['unread'], len(payload['notifications']))
        self.assertIn(f"warn-{policy['id']}", [n['id'] for n in payload['notifications']])

        self.client.post(url, {'id': f"warn-{policy['id']}"})
        payload = self.client.get(url).json()
        self.assertNotIn(f"warn-{policy['id']}", [n['id'] for n in payload['notifications']])

        self.assertEqual(self.client.post(url, {}).status_code, 400)

    def test_clients_only_hear_about_their_policies(self):
        user = TestDataFactory.create_user(first_name='Ahmed', last_name='Khan')
        TestDataFactory.create_car_policy(client_name='Fatima Ali', expiry_date=in_days(7))
        self.client.force_login(user)
        payload = self.client.get(reverse('admin_panel:notifications')).json()
        self.assertEqual(payload['notifications'], [])


@override_settings(STORE_SEED_DEMO_DATA=False)
class DashboardTests(TestCase):

    def test_agency_dashboard(self):
        TestDataFactory.create_car_policy(expiry_date=in_days(3))
        TestDataFactory.create_lead()
        self.client.force_login(TestDataFactory.create_agent())
        response = self.client.get(reverse('admin_panel:dashboard'))
        self.assertTemplateUsed(response, 'admin_panel/dashboard.html')
        self.assertEqual(response.context['total_policies'], 1)
        self.assertEqual(response.context['expiring_soon'], 1)
        self.assertEqual(response.context['new_leads'], 1)

    def test_client_dashboard(self):
        user = TestDataFactory.create_user(first_name='Ahmed', last_name='Khan')
        TestDataFactory.create_car_policy(client_name='Ahmed Khan', expiry_date=in_days(3))
        TestDataFactory.create_car_policy(client_name='Fatima Ali')
        TestDataFactory.add_record('user_services', user_id=user.service_owner_id, service_type='car-tracker',
                                   service_name='Car Tracker - Basic Tracking')
        self.client.force_login(user)

        response = self.client.get(reverse('admin_panel:dashboard'))
        self.assertTemplateUsed(response, 'admin_panel/client_dashboard.html')
        self.assertEqual(response.context['my_policies_count'], 1)
        self.assertEqual(response.context['pending_requests'], 1)
        self.assertEqual(len(response.context['expiring_policies']), 1)

    def test_home_redirects_to_dashboard(self):
        response = self.client.get('/')
        self.assertRedirects(response, reverse('admin_panel:dashboard'), fetch_redirect_response=False)


@override_settings(STORE_SEED_DEMO_DATA=False)
class ReportDownloadTests(TestCase):
    """Test the PDF and CSV report downloads"""

    def setUp(self):
        TestDataFactory.create_car_policy(policy_no='CAR-REPORT-1', expiry_date=in_days(5))
        TestDataFactory.create_lead(status='converted')
        self.client.force_login(TestDataFactory.create_agent())

    def test_reports_dashboard(self):
        response = self.client.get(reverse('admin_panel:reports_dashboard'), {'start_date': 'yesterday'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['end_date'], timezone.localdate())
        self.assertEqual(response.context['pipeline']['total'], 1)

    def test_portfolio_csv(self):
        response = self.client.get(reverse('admin_panel:portfolio_report'), {'format': 'csv'})
        self.assertEqual(response['Content-Type'], 'text/csv')
        rows = list(csv.reader(io.StringIO(response.content.decode())))
        self.assertEqual(rows[0][0], 'Product Line')
        self.assertEqual(rows[-1][:2], ['Total', '1'])

    def test_expiring_csv(self):
        response = self.client.get(reverse('admin_panel:expiring_policies_report'), {'format': 'csv'})
        self.assertIn('CAR-REPORT-1', response.content.decode())

    def test_pdf_reports(self):
        for name in ('portfolio_report', 'leads_pipeline_report', 'expiring_policies_report'):
            response = self.client.get(reverse(f'admin_panel:{name}'))
            self.assertEqual(response['Content-Type'], 'application/pdf')
            self.assertTrue(response.content.startswith(b'%PDF'))

    def test_leads_pipeline_csv(self):
        response = self.client.get(reverse('admin_panel:leads_pipeline_report'), {'format': 'csv'})
        self.assertIn('Conversion Rate,,100%', response.content.decode())

    def test_chart_data(self):
        url = reverse('admin_panel:get_chart_data')
        self.assertEqual(len(self.client.get(url, {'type': 'premium'}).json()['labels']), 7)
        self.assertEqual(self.client.get(url, {'type': 'leads'}).json()['data'], [0, 0, 0, 1, 0])
        self.assertEqual(self.client.get(url, {'type': 'pie'}).status_code, 400)

    def test_clients_cannot_download_reports(self):
        self.client.force_login(TestDataFactory.create_user())
        self.assertEqual(self.client.get(reverse('admin_panel:portfolio_report')).status_code, 403)
        self.assertEqual(self.client.get(reverse('admin_panel:reports_dashboard')).status_code, 403)
