# policy/lines.py
"""
The product lines managed from the policy screens.

Each line names its store collection, its form and how its table is searched,
filtered, sorted and displayed. The generic views in policy/views.py work for
any line registered here.
"""
from django.http import Http404

from . import forms

TEXT = 'text'
MONEY = 'money'
DATE = 'date'

NUMERIC_FIELDS = ('premium', 'sum_assured', 'employees', 'ncd_percentage')


class ProductLine:
    def __init__(self, slug, label, collection, form_class, search_fields, columns,
                 filter_field=None, expiry_field='expiry_date', client_field='client_name',
                 sort_fields=('policy_no', 'premium', 'sum_assured'), icon='bi-shield-check'):
        self.slug = slug
        self.label = label
        self.collection = collection
        self.form_class = form_class
        self.search_fields = tuple(search_fields)
        self.columns = tuple(columns)
        self.filter_field = filter_field
        self.expiry_field = expiry_field
        self.client_field = client_field
        self.sort_fields = tuple(sort_fields)
        self.icon = icon

    @property
    def service_id(self):
        return self.slug

    def __repr__(self):
        return f"<ProductLine {self.slug}>"


PRODUCT_LINES = {}


def register(line):
    PRODUCT_LINES[line.slug] = line
    return line


def get_line(slug):
    try:
        return PRODUCT_LINES[slug]
    except KeyError:
        raise Http404(f"No product line '{slug}'")


def line_for_collection(collection):
    for line in PRODUCT_LINES.values():
        if line.collection == collection:
            return line
    raise KeyError(collection)


register(ProductLine(
    'policies', 'Policies', 'policies', forms.PolicyForm,
    search_fields=('policy_no', 'client_name', 'policy_type'),
    filter_field='policy_type',
    expiry_field='maturity_date',
    sort_fields=('policy_no', 'client_name', 'sum_assured', 'premium', 'maturity_date', 'created_at'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('client_name', 'Client', TEXT),
        ('policy_type', 'Type', TEXT),
        ('sum_assured', 'Sum Assured', MONEY),
        ('premium', 'Premium', MONEY),
        ('maturity_date', 'Maturity', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-file-earmark-text',
))

register(ProductLine(
    'car-insurance', 'Car Insurance', 'car_policies', forms.CarPolicyForm,
    search_fields=('policy_no', 'client_name', 'vehicle_make', 'registration_no'),
    filter_field='coverage_type',
    sort_fields=('policy_no', 'client_name', 'premium', 'sum_assured', 'expiry_date'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('client_name', 'Client', TEXT),
        ('vehicle_make', 'Make', TEXT),
        ('vehicle_model', 'Model', TEXT),
        ('registration_no', 'Registration', TEXT),
        ('coverage_type', 'Coverage', TEXT),
        ('premium', 'Premium', MONEY),
        ('expiry_date', 'Expiry', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-car-front',
))

register(ProductLine(
    'bike-insurance', 'Bike Insurance', 'bike_policies', forms.BikePolicyForm,
    search_fields=('policy_no', 'client_name', 'bike_make', 'registration_no'),
    filter_field='coverage_type',
    sort_fields=('policy_no', 'client_name', 'premium', 'sum_assured', 'expiry_date'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('client_name', 'Client', TEXT),
        ('bike_make', 'Make', TEXT),
        ('bike_model', 'Model', TEXT),
        ('registration_no', 'Registration', TEXT),
        ('coverage_type', 'Coverage', TEXT),
        ('premium', 'Premium', MONEY),
        ('expiry_date', 'Expiry', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-bicycle',
))

register(ProductLine(
    'life-insurance', 'Life Insurance', 'life_policies', forms.LifePolicyForm,
    search_fields=('policy_no', 'client_name', 'plan_type'),
    expiry_field='maturity_date',
    sort_fields=('policy_no', 'client_name', 'premium', 'sum_assured', 'maturity_date'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('client_name', 'Client', TEXT),
        ('plan_type', 'Plan', TEXT),
        ('term', 'Term', TEXT),
        ('sum_assured', 'Sum Assured', MONEY),
        ('premium', 'Premium', MONEY),
        ('maturity_date', 'Maturity', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-heart-pulse',
))

register(ProductLine(
    'travel-insurance', 'Travel Insurance', 'travel_policies', forms.TravelPolicyForm,
    search_fields=('policy_no', 'client_name', 'destination'),
    filter_field='trip_type',
    # Travel cover ends on the return date
    expiry_field='travel_dates.return',
    sort_fields=('policy_no', 'client_name', 'destination', 'premium', 'sum_assured'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('client_name', 'Client', TEXT),
        ('destination', 'Destination', TEXT),
        ('trip_type', 'Trip', TEXT),
        ('travel_dates.departure', 'Departure', DATE),
        ('travel_dates.return', 'Return', DATE),
        ('premium', 'Premium', MONEY),
        ('status', 'Status', TEXT),
    ),
    icon='bi-airplane',
))

register(ProductLine(
    'employee-health', 'Employee Health', 'employee_health_policies', forms.EmployeeHealthPolicyForm,
    search_fields=('policy_no', 'company_name', 'plan_type'),
    filter_field='plan_type',
    client_field='company_name',
    sort_fields=('policy_no', 'company_name', 'employees', 'premium', 'sum_assured', 'expiry_date'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('company_name', 'Company', TEXT),
        ('plan_type', 'Plan', TEXT),
        ('employees', 'Employees', TEXT),
        ('premium', 'Premium', MONEY),
        ('sum_assured', 'Sum Assured', MONEY),
        ('expiry_date', 'Expiry', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-people',
))

register(ProductLine(
    'corporate-insurance', 'Corporate Insurance', 'corporate_policies', forms.CorporatePolicyForm,
    search_fields=('policy_no', 'company_name', 'business_type'),
    filter_field='business_type',
    client_field='company_name',
    sort_fields=('policy_no', 'company_name', 'premium', 'sum_assured', 'expiry_date'),
    columns=(
        ('policy_no', 'Policy No', TEXT),
        ('company_name', 'Company', TEXT),
        ('business_type', 'Business', TEXT),
        ('premium', 'Premium', MONEY),
        ('sum_assured', 'Sum Assured', MONEY),
        ('expiry_date', 'Expiry', DATE),
        ('status', 'Status', TEXT),
    ),
    icon='bi-building',
))


def field_value(record, path):
    """record value for 'name' or a nested 'travel_dates.return' path"""
    value = record
    for part in path.split('.'):
        if not isinstance(value, dict):
            return ''
        value = value.get(part, '')
    return value
