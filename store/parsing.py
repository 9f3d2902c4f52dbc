# store/parsing.py
import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .exceptions import ParseError

# Thousands separators and surrounding currency noise we tolerate in numeric text
NUMBER_NOISE = re.compile(r'[,\s]|^PKR|^Rs\.?', re.IGNORECASE)
NUMBER_PATTERN = re.compile(r'^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$')


def parse_number(value):
    """
    Convert form/JSON input to a number.
    Handles:
    - ints, floats and Decimals
    - strings with thousands separators ("45,000") or a PKR prefix
    Integral values come back as int, everything else as float.
    Raises ParseError for blanks, garbage ("abc") and non-finite values.
    """
    if isinstance(value, bool):
        raise ParseError("expected a number, got a boolean")

    if isinstance(value, int):
        return value

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ParseError(f"'{value}' is not a finite number")
        value = float(value)

    if isinstance(value, str):
        cleaned = NUMBER_NOISE.sub('', value.strip())
        if not cleaned or not NUMBER_PATTERN.match(cleaned):
            raise ParseError(f"'{value}' is not a number")
        try:
            value = float(Decimal(cleaned))
        except InvalidOperation:
            raise ParseError(f"'{value}' is not a number")

    if not isinstance(value, float):
        raise ParseError(f"expected a number, got {type(value).__name__}")

    if not math.isfinite(value):
        raise ParseError(f"'{value}' is not a finite number")

    if value.is_integer():
        return int(value)
    return value


def parse_int(value):
    number = parse_number(value)
    if not isinstance(number, int):
        raise ParseError(f"'{value}' is not a whole number")
    return number


def parse_date(value):
    """Return the ISO (YYYY-MM-DD) form of a date, datetime or ISO string"""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10]).isoformat()
        except ValueError:
            raise ParseError(f"'{value}' is not a date (expected YYYY-MM-DD)")
    raise ParseError(f"expected a date, got {type(value).__name__}")


def parse_datetime(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).isoformat()
    if isinstance(value, str):
        text = value.strip()
        # JavaScript's toISOString() ends with "Z"
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text).isoformat()
        except ValueError:
            raise ParseError(f"'{value}' is not an ISO date/time")
    raise ParseError(f"expected a date/time, got {type(value).__name__}")


def parse_list(value):
    """Lists pass through (as strings); "a, b,,c" becomes ['a', 'b', 'c']"""
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    raise ParseError(f"expected a list, got {type(value).__name__}")


def parse_dict(value):
    if isinstance(value, dict):
        return dict(value)
    raise ParseError(f"expected an object, got {type(value).__name__}")


def parse_travel_dates(value):
    """{'departure': ..., 'return': ...}; the return may not precede departure"""
    value = parse_dict(value)
    missing = [name for name in ('departure', 'return') if not value.get(name)]
    if missing:
        raise ParseError(f"missing {' and '.join(missing)} date")
    departure = parse_date(value['departure'])
    return_date = parse_date(value['return'])
    if return_date < departure:
        raise ParseError("return date is before departure")
    return {'departure': departure, 'return': return_date}


def parse_str(value):
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        raise ParseError(f"expected text, got {type(value).__name__}")
    return str(value).strip()
