# admin_panel/reports.py
"""
Figures behind the dashboard, the reports screen and the chart endpoints.
Every function takes the record store and returns plain Python data.
"""
import logging
from collections import Counter, OrderedDict

from core.utils import EXPIRING_SOON_DAYS, get_days_until, is_expiring_soon, to_date
from leads.forms import get_insurance_label
from policy.lines import PRODUCT_LINES, field_value
from store.exceptions import ParseError
from store.parsing import parse_number
from store.schemas import LEAD_STATUSES

logger = logging.getLogger(__name__)


def _number(value):
    try:
        return parse_number(value)
    except ParseError:
        logger.warning("Ignoring unparseable amount %r in report", value)
        return 0


def _days_left(value):
    if not value:
        return None
    try:
        return get_days_until(value)
    except ValueError:
        return None


def _in_range(value, start_date, end_date):
    if not value:
        return False
    try:
        day = to_date(value)
    except ValueError:
        return False
    return (start_date is None or day >= start_date) and (end_date is None or day <= end_date)


def holder_name(line, record):
    return record.get(line.client_field, '')


def iter_policies(store, records_filter=None):
    """(line, record) for every policy record of every product line"""
    for line in PRODUCT_LINES.values():
        for record in store.collection(line.collection).all():
            if records_filter is None or records_filter(line, record):
                yield line, record


def portfolio_summary(store, records_filter=None):
    """One row per product line"""
    rows = []
    for line in PRODUCT_LINES.values():
        records = [
            record for record in store.collection(line.collection).all()
            if records_filter is None or records_filter(line, record)
        ]
        expiring = 0
        for record in records:
            days = _days_left(field_value(record, line.expiry_field))
            if days is not None and 0 < days <= EXPIRING_SOON_DAYS:
                expiring += 1
        rows.append({
            'slug': line.slug,
            'label': line.label,
            'count': len(records),
            'active': sum(1 for record in records if record.get('status') == 'Active'),
            'premium': sum(_number(record.get('premium', 0)) for record in records),
            'sum_assured': sum(_number(record.get('sum_assured', 0)) for record in records),
            'expiring': expiring,
        })
    return rows


def portfolio_totals(rows):
    return {
        'policies': sum(row['count'] for row in rows),
        'active': sum(row['active'] for row in rows),
        'premium': sum(row['premium'] for row in rows),
        'sum_assured': sum(row['sum_assured'] for row in rows),
        'expiring': sum(row['expiring'] for row in rows),
    }


def leads_pipeline(store, start_date=None, end_date=None):
    leads = store.quote_leads.all()
    if start_date or end_date:
        leads = [lead for lead in leads if _in_range(lead.get('created_at'), start_date, end_date)]

    by_status = OrderedDict((status, 0) for status in LEAD_STATUSES)
    by_status.update(Counter(lead.get('status', 'new') for lead in leads))
    by_type = Counter(get_insurance_label(lead.get('insurance_type', '')) for lead in leads)

    total = len(leads)
    converted = by_status.get('converted', 0)
    return {
        'total': total,
        'by_status': by_status,
        'by_type': sorted(by_type.items(), key=lambda item: item[1], reverse=True),
        'conversion_rate': round(converted / total * 100) if total else 0,
    }


def expiring_policies(store, threshold=EXPIRING_SOON_DAYS, records_filter=None, include_expired=False):
    """Policies expiring within `threshold` days, soonest first"""
    rows = []
    for line, record in iter_policies(store, records_filter):
        expiry = field_value(record, line.expiry_field)
        days = _days_left(expiry)
        if days is None:
            continue
        if is_expiring_soon(expiry, threshold) or (include_expired and days < 0):
            rows.append({
                'line': line,
                'record': record,
                'policy_no': record.get('policy_no', ''),
                'holder': holder_name(line, record),
                'expiry_date': expiry,
                'days_left': days,
                'premium': _number(record.get('premium', 0)),
            })
    rows.sort(key=lambda row: row['days_left'])
    return rows


def recent_leads(store, limit=5):
    leads = sorted(store.quote_leads.all(), key=lambda lead: lead.get('created_at', ''), reverse=True)
    return [dict(lead, insurance_label=get_insurance_label(lead.get('insurance_type', ''))) for lead in leads[:limit]]


def premium_chart(store):
    rows = portfolio_summary(store)
    return {'labels': [row['label'] for row in rows], 'data': [row['premium'] for row in rows]}


def leads_chart(store):
    pipeline = leads_pipeline(store)
    return {
        'labels': [status.title() for status in pipeline['by_status']],
        'data': list(pipeline['by_status'].values()),
    }
