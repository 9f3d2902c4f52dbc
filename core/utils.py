# core/utils.py
"""
Date arithmetic and display helpers shared by every screen.

Expiry is decided in one place: `expiry_state()` puts any date in exactly one
of three buckets, and the `is_*` helpers are defined on the same day count.
"""
import math
from datetime import date, datetime

from django.utils import timezone

from store.parsing import parse_number

EXPIRING_SOON_DAYS = 30

EXPIRED = 'expired'
EXPIRING = 'expiring'
ACTIVE = 'active'

TIME_AGO_INTERVALS = (
    ('year', 31536000),
    ('month', 2592000),
    ('day', 86400),
    ('hour', 3600),
    ('minute', 60),
)


def to_date(value):
    """Accepts a date, a datetime or an ISO string; returns a date"""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")


def to_datetime(value):
    """Accepts a datetime, a date or an ISO string; returns an aware datetime"""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        value = datetime.fromisoformat(text)
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)

    if not isinstance(value, datetime):
        raise ValueError(f"Not a date/time: {value!r}")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def get_days_until(value, today=None):
    """Whole calendar days from today until `value` (negative once it has passed)"""
    today = today or timezone.localdate()
    return (to_date(value) - today).days


def is_expiring_soon(value, threshold=EXPIRING_SOON_DAYS, today=None):
    days_until = get_days_until(value, today=today)
    return 0 < days_until <= threshold


def is_expired(value, today=None):
    return get_days_until(value, today=today) < 0


def expiry_state(value, threshold=EXPIRING_SOON_DAYS, today=None):
    days_until = get_days_until(value, today=today)
    if days_until < 0:
        return EXPIRED
    if 0 < days_until <= threshold:
        return EXPIRING
    return ACTIVE


def get_time_ago(value, now=None):
    now = now or timezone.now()
    diff_in_seconds = math.floor((now - to_datetime(value)).total_seconds())

    for label, seconds in TIME_AGO_INTERVALS:
        count = diff_in_seconds // seconds
        if count >= 1:
            return f"{count} {label}{'s' if count > 1 else ''} ago"

    return 'Just now'


def format_date(value):
    if not value:
        return ''
    return to_date(value).strftime('%d %b %Y')


def format_datetime(value):
    if not value:
        return ''
    return timezone.localtime(to_datetime(value)).strftime('%d %b %Y, %I:%M %p')


def format_currency(amount):
    """PKR without decimals, e.g. 'PKR 45,000'. Non-numeric input raises ValueError."""
    number = parse_number(amount)
    return f"PKR {number:,.0f}"
