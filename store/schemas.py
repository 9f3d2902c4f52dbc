# store/schemas.py
"""
Record shapes for every collection in the store.

A schema lists its fields with a kind, whether the field is required and,
for `choice` fields, the allowed values. `validate()` coerces incoming data
(usually strings from a form or camelCase JSON from the browser build) into
the stored representation and collects every field error before raising.
"""
import logging
import re

from . import parsing
from .exceptions import ParseError, ValidationFailed

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

KEY_PREFIX = 'igilife_'

STR = 'str'
NUMBER = 'number'
INT = 'int'
DATE = 'date'
DATETIME = 'datetime'
LIST = 'list'
DICT = 'dict'
CHOICE = 'choice'

PARSERS = {
    STR: parsing.parse_str,
    NUMBER: parsing.parse_number,
    INT: parsing.parse_int,
    DATE: parsing.parse_date,
    DATETIME: parsing.parse_datetime,
    LIST: parsing.parse_list,
    DICT: parsing.parse_dict,
}

EMPTY_DEFAULTS = {
    STR: '',
    NUMBER: 0,
    INT: 0,
    DATE: '',
    DATETIME: '',
    LIST: list,
    DICT: dict,
}


class Field:
    def __init__(self, name, kind=STR, required=False, choices=None, default=None, parser=None):
        self.name = name
        self.kind = CHOICE if choices else kind
        self.required = required
        self.choices = tuple(choices) if choices else ()
        self._default = default
        self.parser = parser

    def default(self):
        if self._default is not None:
            return self._default() if callable(self._default) else self._default
        if self.kind == CHOICE:
            return self.choices[0]
        value = EMPTY_DEFAULTS[self.kind]
        return value() if callable(value) else value

    def coerce(self, value):
        if self.kind == CHOICE:
            value = parsing.parse_str(value)
            if value not in self.choices:
                raise ParseError(f"'{value}' is not one of: {', '.join(self.choices)}")
            return value
        if self.parser is not None:
            return self.parser(value)
        return PARSERS[self.kind](value)

    def __repr__(self):
        return f"<Field {self.name} ({self.kind})>"


def is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip()) or value == [] or value == {}


class EntitySchema:
    """Describes one entity type and the key its collection is stored under"""

    def __init__(self, name, key, fields, natural_key=(), created_field='created_at',
                 created_kind=DATE, label=None, duplicate_filter=None):
        self.name = name
        self.key = key
        self.fields = {field.name: field for field in fields}
        self.natural_key = tuple(natural_key)
        self.created_field = created_field
        self.created_kind = created_kind
        self.label = label or name.replace('_', ' ').title()
        # existing record -> whether it still blocks a new one with the same natural key
        self.duplicate_filter = duplicate_filter

    @property
    def protected_fields(self):
        return ('id', self.created_field)

    def field_names(self):
        return list(self.fields)

    def validate(self, data, partial=False):
        """
        Return a cleaned copy of `data`.
        With partial=False every required field must be present and
        non-blank and missing optional fields get their defaults; with
        partial=True only the supplied fields are checked.
        """
        errors = {}
        cleaned = {}

        for name in data:
            if name in self.protected_fields:
                errors[name] = "is assigned by the store and cannot be set"
            elif name not in self.fields:
                errors[name] = "unknown field"

        for name, field in self.fields.items():
            if name not in data:
                if partial:
                    continue
                if field.required:
                    errors[name] = "this field is required"
                else:
                    cleaned[name] = field.default()
                continue

            value = data[name]
            if is_blank(value):
                if field.required:
                    errors[name] = "this field is required"
                else:
                    cleaned[name] = field.default()
                continue

            try:
                cleaned[name] = field.coerce(value)
            except ParseError as e:
                errors[name] = str(e)

        if errors:
            raise ValidationFailed(errors)
        return cleaned

    def natural_key_of(self, record):
        """Natural-key values, or None when any of them is blank"""
        if not self.natural_key:
            return None
        values = tuple(record.get(name) for name in self.natural_key)
        if any(is_blank(value) for value in values):
            return None
        return tuple(str(value).strip().lower() for value in values)

    def blocks_duplicates(self, record):
        if self.duplicate_filter is None:
            return True
        return self.duplicate_filter(record)

    def clean_stored(self, record):
        """
        Validate a record that already carries its id and creation stamp,
        e.g. one read from an export or a browser dump. Both are kept when
        present; keys the schema does not know are dropped.
        """
        data = {name: value for name, value in record.items() if name in self.fields}
        errors = {}
        try:
            cleaned = self.validate(data)
        except ValidationFailed as e:
            errors.update(e.errors)
            cleaned = {}

        stamp = record.get(self.created_field)
        if not is_blank(stamp):
            try:
                cleaned[self.created_field] = PARSERS[self.created_kind](stamp)
            except ParseError as e:
                errors[self.created_field] = str(e)

        if errors:
            raise ValidationFailed(errors)

        dropped = sorted(set(record) - set(self.fields) - set(self.protected_fields))
        if dropped:
            logger.warning("Record %s in %s: dropped unknown fields %s", record.get('id'), self.key, ', '.join(dropped))

        if not is_blank(record.get('id')):
            cleaned['id'] = str(record['id'])
        return cleaned

    def upgrade(self, record):
        """
        Bring a record written by an older schema up to date: camelCase keys
        become snake_case, nested travel dates are normalised and missing
        fields receive defaults. Unknown keys are kept untouched.
        """
        upgraded = {}
        for name, value in record.items():
            upgraded[camel_to_snake(name)] = value

        for name, field in self.fields.items():
            if name not in upgraded:
                upgraded[name] = field.default()
            elif upgraded[name] is None:
                # JSON.stringify() wrote NaN as null
                if field.kind in (NUMBER, INT):
                    logger.warning(
                        "Record %s in %s had an unparseable %s; reset to %s",
                        upgraded.get('id'), self.key, name, field.default()
                    )
                upgraded[name] = field.default()

        return upgraded

    def __repr__(self):
        return f"<EntitySchema {self.name} ({self.key})>"


CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')


def camel_to_snake(name):
    return CAMEL_BOUNDARY.sub(r'_\1', name).lower()


# ------------------------------------------------------------------
# Choices
# ------------------------------------------------------------------

POLICY_TYPES = ('Life', 'Health', 'Savings')
POLICY_STATUSES = ('Active', 'Expired')
MOTOR_COVERAGE_TYPES = ('Comprehensive', 'Third Party', 'Third Party Plus')
MOTOR_STATUSES = ('Active', 'Expired', 'Claim Pending')
LIFE_STATUSES = ('Active', 'Matured', 'Lapsed', 'Surrendered')
TRIP_TYPES = ('Single Trip', 'Multi Trip', 'Annual')
TRAVEL_STATUSES = ('Active', 'Expired', 'Claim Filed', 'Completed')
EMPLOYEE_HEALTH_STATUSES = ('Active', 'Expired', 'Suspended', 'Claim Processing')
CORPORATE_STATUSES = ('Active', 'Expired', 'Under Review', 'Claim Processing', 'Suspended')
LEAD_STATUSES = ('new', 'contacted', 'quoted', 'converted', 'closed')
OPEN_LEAD_STATUSES = ('new', 'contacted', 'quoted')
SERVICE_STATUSES = ('requested', 'in_progress', 'active', 'completed', 'cancelled')


def _policy_money_fields():
    return [
        Field('premium', NUMBER, required=True),
        Field('sum_assured', NUMBER, required=True),
    ]


CLIENT = EntitySchema(
    'clients', KEY_PREFIX + 'clients',
    [
        Field('name', required=True),
        Field('cnic', required=True),
        Field('contact'),
        Field('email'),
        Field('address'),
        Field('agent_id'),
    ],
    natural_key=('cnic',),
    label='Client',
)

POLICY = EntitySchema(
    'policies', KEY_PREFIX + 'policies',
    [
        Field('policy_no', required=True),
        Field('client_id', required=True),
        Field('client_name'),
        Field('policy_type', choices=POLICY_TYPES, required=True),
        *_policy_money_fields(),
        Field('start_date', DATE, required=True),
        Field('maturity_date', DATE, required=True),
        Field('status', choices=POLICY_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Policy',
)

CAR_POLICY = EntitySchema(
    'car_policies', KEY_PREFIX + 'car_policies',
    [
        Field('policy_no', required=True),
        Field('client_name', required=True),
        Field('registration_no', required=True),
        Field('vehicle_make'),
        Field('vehicle_model'),
        Field('vehicle_year'),
        Field('engine_capacity'),
        Field('coverage_type', choices=MOTOR_COVERAGE_TYPES),
        Field('ncd_percentage', NUMBER),
        *_policy_money_fields(),
        Field('start_date', DATE),
        Field('expiry_date', DATE, required=True),
        Field('status', choices=MOTOR_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Car Insurance Policy',
)

BIKE_POLICY = EntitySchema(
    'bike_policies', KEY_PREFIX + 'bike_policies',
    [
        Field('policy_no', required=True),
        Field('client_name', required=True),
        Field('registration_no', required=True),
        Field('bike_make'),
        Field('bike_model'),
        Field('bike_year'),
        Field('engine_capacity'),
        Field('coverage_type', choices=MOTOR_COVERAGE_TYPES),
        *_policy_money_fields(),
        Field('start_date', DATE),
        Field('expiry_date', DATE, required=True),
        Field('status', choices=MOTOR_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Bike Insurance Policy',
)

LIFE_POLICY = EntitySchema(
    'life_policies', KEY_PREFIX + 'life_policies',
    [
        Field('policy_no', required=True),
        Field('client_name', required=True),
        Field('plan_type'),
        Field('term'),
        *_policy_money_fields(),
        Field('start_date', DATE),
        Field('maturity_date', DATE, required=True),
        Field('status', choices=LIFE_STATUSES),
        Field('beneficiary_name'),
        Field('beneficiary_relation'),
    ],
    natural_key=('policy_no',),
    label='Life Insurance Policy',
)

TRAVEL_POLICY = EntitySchema(
    'travel_policies', KEY_PREFIX + 'travel_policies',
    [
        Field('policy_no', required=True),
        Field('client_name', required=True),
        Field('destination', required=True),
        Field('trip_type', choices=TRIP_TYPES),
        Field('coverage'),
        Field('travel_dates', DICT, required=True, parser=parsing.parse_travel_dates),
        *_policy_money_fields(),
        Field('status', choices=TRAVEL_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Travel Insurance Policy',
)

EMPLOYEE_HEALTH_POLICY = EntitySchema(
    'employee_health_policies', KEY_PREFIX + 'employee_health_policies',
    [
        Field('policy_no', required=True),
        Field('company_name', required=True),
        Field('plan_type'),
        Field('employees', INT),
        Field('coverage'),
        *_policy_money_fields(),
        Field('start_date', DATE),
        Field('expiry_date', DATE, required=True),
        Field('status', choices=EMPLOYEE_HEALTH_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Employee Health Policy',
)

CORPORATE_POLICY = EntitySchema(
    'corporate_policies', KEY_PREFIX + 'corporate_policies',
    [
        Field('policy_no', required=True),
        Field('company_name', required=True),
        Field('business_type'),
        Field('coverage', LIST),
        *_policy_money_fields(),
        Field('start_date', DATE),
        Field('expiry_date', DATE, required=True),
        Field('status', choices=CORPORATE_STATUSES),
    ],
    natural_key=('policy_no',),
    label='Corporate Insurance Policy',
)

QUOTE_LEAD = EntitySchema(
    'quote_leads', KEY_PREFIX + 'quote_leads',
    [
        Field('name', required=True),
        Field('email', required=True),
        Field('phone', required=True),
        Field('insurance_type', required=True),
        Field('message'),
        Field('status', choices=LEAD_STATUSES),
        Field('assigned_agent'),
    ],
    natural_key=('email', 'insurance_type'),
    label='Quote Lead',
    # a converted or closed lead leaves the customer free to ask again
    duplicate_filter=lambda lead: lead.get('status', 'new') in OPEN_LEAD_STATUSES,
)

USER_SERVICE = EntitySchema(
    'user_services', KEY_PREFIX + 'user_services',
    [
        Field('user_id', required=True),
        Field('service_type', required=True),
        Field('service_name', required=True),
        Field('status', choices=SERVICE_STATUSES),
        Field('activation_date', DATETIME),
        Field('details', DICT),
        Field('policy_no'),
    ],
    natural_key=('user_id', 'service_type', 'service_name'),
    created_field='request_date',
    created_kind=DATETIME,
    label='User Service',
)

SCHEMAS = {
    schema.name: schema
    for schema in (
        CLIENT,
        POLICY,
        CAR_POLICY,
        BIKE_POLICY,
        LIFE_POLICY,
        TRAVEL_POLICY,
        EMPLOYEE_HEALTH_POLICY,
        CORPORATE_POLICY,
        QUOTE_LEAD,
        USER_SERVICE,
    )
}

SCHEMAS_BY_KEY = {schema.key: schema for schema in SCHEMAS.values()}

POLICY_COLLECTIONS = (
    'policies',
    'car_policies',
    'bike_policies',
    'life_policies',
    'travel_policies',
    'employee_health_policies',
    'corporate_policies',
)
