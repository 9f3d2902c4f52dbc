from datetime import date
from decimal import Decimal

from django import forms

from store import schemas


def choice_list(values, empty_label=None):
    choices = [(value, value) for value in values]
    if empty_label:
        choices.insert(0, ('', empty_label))
    return choices


def plain_number(value):
    """Decimal('45000.00') -> 45000, Decimal('12.5') -> 12.5"""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def apply_store_errors(form, error):
    """Show a store ValidationFailed on the form it came from"""
    for field, message in error.errors.items():
        if field in form.fields:
            form.add_error(field, message)
        else:
            form.add_error(None, f"{field.replace('_', ' ').capitalize()}: {message}")


class StyledForm(forms.Form):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name, field in self.fields.items():
            if isinstance(field.widget, (forms.RadioSelect, forms.CheckboxInput)):
                continue
            css = 'form-select' if isinstance(field.widget, forms.Select) else 'form-control'
            field.widget.attrs.setdefault('class', css)


class RecordForm(StyledForm):
    """
    A form for one store record. `to_record()` returns the cleaned data in the
    stored representation; `initial_from()` does the reverse for edit screens.
    """

    def to_record(self):
        record = {}
        for name, value in self.cleaned_data.items():
            if isinstance(value, date):
                value = value.isoformat()
            elif value is None:
                value = ''
            record[name] = plain_number(value)
        return record

    @classmethod
    def initial_from(cls, record):
        return {name: record.get(name) for name in cls.base_fields if name in record}


class MoneyFieldsMixin(forms.Form):
    premium = forms.DecimalField(min_value=0, decimal_places=2, label='Premium (PKR)')
    sum_assured = forms.DecimalField(min_value=0, decimal_places=2, label='Sum Assured (PKR)')


class PolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    client_id = forms.ChoiceField(label='Client')
    policy_type = forms.ChoiceField(choices=choice_list(schemas.POLICY_TYPES, 'Select Type'))
    start_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    maturity_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.POLICY_STATUSES))

    field_order = ['policy_no', 'client_id', 'policy_type', 'sum_assured', 'premium',
                   'start_date', 'maturity_date', 'status']

    def __init__(self, *args, clients=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.clients = {client['id']: client for client in clients}
        self.fields['client_id'].choices = [('', 'Select Client')] + [
            (client['id'], client['name']) for client in clients
        ]

    def clean(self):
        cleaned_data = super().clean()
        start, maturity = cleaned_data.get('start_date'), cleaned_data.get('maturity_date')
        if start and maturity and maturity <= start:
            self.add_error('maturity_date', 'Maturity date must be after the start date.')
        return cleaned_data

    def to_record(self):
        record = super().to_record()
        # The client name is copied onto the policy when it is saved
        record['client_name'] = self.clients.get(record['client_id'], {}).get('name', '')
        return record


class CarPolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    client_name = forms.CharField(max_length=100)
    vehicle_make = forms.CharField(max_length=50)
    vehicle_model = forms.CharField(max_length=50)
    vehicle_year = forms.CharField(max_length=4, required=False)
    registration_no = forms.CharField(max_length=20, label='Registration Number')
    engine_capacity = forms.CharField(max_length=20, required=False)
    coverage_type = forms.ChoiceField(choices=choice_list(schemas.MOTOR_COVERAGE_TYPES))
    ncd_percentage = forms.DecimalField(min_value=0, max_value=100, required=False, label='No Claim Discount (%)')
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    expiry_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.MOTOR_STATUSES))


class BikePolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    client_name = forms.CharField(max_length=100)
    bike_make = forms.CharField(max_length=50)
    bike_model = forms.CharField(max_length=50)
    bike_year = forms.CharField(max_length=4, required=False)
    registration_no = forms.CharField(max_length=20, label='Registration Number')
    engine_capacity = forms.CharField(max_length=20, required=False)
    coverage_type = forms.ChoiceField(choices=choice_list(schemas.MOTOR_COVERAGE_TYPES))
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    expiry_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.MOTOR_STATUSES))


class LifePolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    client_name = forms.CharField(max_length=100)
    plan_type = forms.CharField(max_length=100, required=False, label='Plan')
    term = forms.CharField(max_length=20, required=False, help_text='e.g. 20 years')
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    maturity_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.LIFE_STATUSES))
    beneficiary_name = forms.CharField(max_length=100, required=False)
    beneficiary_relation = forms.CharField(max_length=50, required=False)


class TravelPolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    client_name = forms.CharField(max_length=100)
    destination = forms.CharField(max_length=100)
    trip_type = forms.ChoiceField(choices=choice_list(schemas.TRIP_TYPES))
    coverage = forms.CharField(max_length=100, required=False)
    departure_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    return_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.TRAVEL_STATUSES))

    def clean(self):
        cleaned_data = super().clean()
        departure, return_date = cleaned_data.get('departure_date'), cleaned_data.get('return_date')
        if departure and return_date and return_date < departure:
            self.add_error('return_date', 'Return date cannot be before the departure date.')
        return cleaned_data

    def to_record(self):
        record = super().to_record()
        record['travel_dates'] = {
            'departure': record.pop('departure_date'),
            'return': record.pop('return_date'),
        }
        return record

    @classmethod
    def initial_from(cls, record):
        initial = super().initial_from(record)
        travel_dates = record.get('travel_dates') or {}
        initial['departure_date'] = travel_dates.get('departure')
        initial['return_date'] = travel_dates.get('return')
        return initial


class EmployeeHealthPolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    company_name = forms.CharField(max_length=100)
    plan_type = forms.CharField(max_length=100, required=False, label='Plan')
    employees = forms.IntegerField(min_value=1, label='Number of Employees')
    coverage = forms.CharField(max_length=100, required=False)
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    expiry_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.EMPLOYEE_HEALTH_STATUSES))


class CorporatePolicyForm(MoneyFieldsMixin, RecordForm):
    policy_no = forms.CharField(max_length=50, label='Policy Number')
    company_name = forms.CharField(max_length=100)
    business_type = forms.CharField(max_length=100, required=False)
    coverage = forms.CharField(
        required=False,
        help_text='Comma separated, e.g. Fire, Burglary, Marine',
        widget=forms.TextInput(),
    )
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    expiry_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=choice_list(schemas.CORPORATE_STATUSES))

    def clean_coverage(self):
        text = self.cleaned_data.get('coverage', '')
        return [item.strip() for item in text.split(',') if item.strip()]

    @classmethod
    def initial_from(cls, record):
        initial = super().initial_from(record)
        coverage = record.get('coverage') or []
        initial['coverage'] = ', '.join(coverage) if isinstance(coverage, list) else coverage
        return initial
