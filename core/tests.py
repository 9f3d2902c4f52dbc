from datetime import date, datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from core import utils
from core.templatetags import agency_tags


class ExpiryTests(SimpleTestCase):
    """A date falls in exactly one of expired / expiring / active"""

    today = date(2024, 6, 1)

    def state_in(self, days):
        return utils.expiry_state(self.today + timedelta(days=days), today=self.today)

    def test_day_partition(self):
        self.assertEqual(self.state_in(-1), utils.EXPIRED)
        self.assertEqual(self.state_in(0), utils.ACTIVE)
        self.assertEqual(self.state_in(1), utils.EXPIRING)
        self.assertEqual(self.state_in(30), utils.EXPIRING)
        self.assertEqual(self.state_in(31), utils.ACTIVE)

    def test_helpers_agree_with_state(self):
        for days in (-1, 0, 30, 31):
            value = (self.today + timedelta(days=days)).isoformat()
            self.assertEqual(utils.is_expired(value, today=self.today), days < 0)
            self.assertEqual(utils.is_expiring_soon(value, today=self.today), 0 < days <= 30)

    def test_days_until(self):
        self.assertEqual(utils.get_days_until('2024-06-11', today=self.today), 10)
        self.assertEqual(utils.get_days_until('2024-05-31T23:00:00', today=self.today), -1)

    def test_unreadable_date(self):
        with self.assertRaises(ValueError):
            utils.get_days_until('not a date', today=self.today)


class FormattingTests(SimpleTestCase):

    def test_format_currency(self):
        self.assertEqual(utils.format_currency(45000), 'PKR 45,000')
        self.assertEqual(utils.format_currency('1,250,000'), 'PKR 1,250,000')
        with self.assertRaises(ValueError):
            utils.format_currency('abc')

    def test_format_date(self):
        self.assertEqual(utils.format_date('2024-01-15'), '15 Jan 2024')
        self.assertEqual(utils.format_date(''), '')

    def test_time_ago(self):
        now = datetime(2024, 6, 1, 12, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(utils.get_time_ago(now - timedelta(seconds=30), now=now), 'Just now')
        self.assertEqual(utils.get_time_ago(now - timedelta(minutes=1), now=now), '1 minute ago')
        self.assertEqual(utils.get_time_ago(now - timedelta(hours=2), now=now), '2 hours ago')
        self.assertEqual(utils.get_time_ago('2024-05-31T12:00:00Z', now=now), '1 day ago')


class TemplateTagTests(SimpleTestCase):

    def test_currency_filter(self):
        self.assertEqual(agency_tags.currency(2500000), 'PKR 2,500,000')
        with self.assertLogs('core.templatetags.agency_tags', level='WARNING'):
            self.assertEqual(agency_tags.currency('abc'), '-')

    def test_humanize_key(self):
        self.assertEqual(agency_tags.humanize_key('car-insurance'), 'Car Insurance')
        self.assertEqual(agency_tags.humanize_key('in_progress'), 'In Progress')

    def test_get_item(self):
        self.assertEqual(agency_tags.get_item({'a': 1}, 'a'), 1)
        self.assertEqual(agency_tags.get_item(None, 'a'), '')

    def test_date_filters_tolerate_bad_values(self):
        self.assertEqual(agency_tags.display_date('soon'), 'soon')
        self.assertEqual(agency_tags.expiry_state(''), '')
        self.assertEqual(agency_tags.days_until('soon'), '')
