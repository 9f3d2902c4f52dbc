import logging

from django import template

from core import utils

logger = logging.getLogger(__name__)

register = template.Library()


@register.filter
def currency(value):
    """{{ policy.premium|currency }} -> PKR 45,000"""
    try:
        return utils.format_currency(value)
    except ValueError:
        logger.warning("Cannot format %r as currency", value)
        return '-'


@register.filter
def display_date(value):
    try:
        return utils.format_date(value)
    except ValueError:
        return value


@register.filter
def time_ago(value):
    if not value:
        return ''
    try:
        return utils.get_time_ago(value)
    except ValueError:
        return value


@register.filter
def days_until(value):
    if not value:
        return ''
    try:
        return utils.get_days_until(value)
    except ValueError:
        return ''


@register.filter
def expiry_state(value):
    if not value:
        return ''
    try:
        return utils.expiry_state(value)
    except ValueError:
        return ''


@register.filter
def get_item(mapping, key):
    """Dictionary lookup with a variable key: {{ record|get_item:column }}"""
    if isinstance(mapping, dict):
        return mapping.get(key, '')
    return ''


@register.filter
def humanize_key(value):
    """'car-insurance' / 'in_progress' -> 'Car Insurance' / 'In Progress'"""
    return str(value).replace('-', ' ').replace('_', ' ').title()
