# admin_panel/notifications.py
import logging

from django.utils import timezone

from core.utils import get_days_until, get_time_ago, is_expired, is_expiring_soon
from policy.lines import field_value

from .reports import iter_policies

logger = logging.getLogger(__name__)


def build_notifications(store, records_filter=None, now=None):
    """
    Expiry alerts for every policy in view, a premium collection reminder and
    the most recently added policy.
    """
    now = now or timezone.now()
    stamp = now.isoformat()
    notifications = []
    active_count = 0
    newest = None

    for line, record in iter_policies(store, records_filter):
        if record.get('status') == 'Active':
            active_count += 1
        if record.get('created_at') and (newest is None or record['created_at'] > newest[1]['created_at']):
            newest = (line, record)

        expiry = field_value(record, line.expiry_field)
        if not expiry:
            continue
        try:
            expired = is_expired(expiry)
            expiring = is_expiring_soon(expiry)
        except ValueError:
            logger.warning("Skipping %s %s: unreadable expiry date %r", line.label, record.get('id'), expiry)
            continue

        holder = record.get(line.client_field, '')
        if expired and record.get('status') == 'Active':
            notifications.append({
                'id': f"exp-{record['id']}",
                'type': 'error',
                'title': 'Policy Expired',
                'message': f"Policy {record.get('policy_no')} for {holder} has expired",
                'timestamp': stamp,
                'policy_id': record['id'],
                'line': line.slug,
                'client_name': holder,
            })
        elif expiring:
            notifications.append({
                'id': f"warn-{record['id']}",
                'type': 'warning',
                'title': 'Policy Expiring Soon',
                'message': f"Policy {record.get('policy_no')} expires in {get_days_until(expiry)} days",
                'timestamp': stamp,
                'policy_id': record['id'],
                'line': line.slug,
                'client_name': holder,
            })

    if active_count:
        notifications.append({
            'id': 'premium-reminder',
            'type': 'info',
            'title': 'Premium Collection Reminder',
            'message': f"{active_count} policies require premium collection this month",
            'timestamp': stamp,
        })

    if newest is not None:
        line, record = newest
        notifications.append({
            'id': f"new-{record['id']}",
            'type': 'success',
            'title': 'New Policy Added',
            'message': f"{record.get('policy_no')} has been successfully created",
            'timestamp': record['created_at'],
            'policy_id': record['id'],
            'line': line.slug,
        })

    for notification in notifications:
        try:
            notification['time_ago'] = get_time_ago(notification['timestamp'], now=now)
        except ValueError:
            notification['time_ago'] = ''
    return notifications
