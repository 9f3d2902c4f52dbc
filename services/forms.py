from django import forms

from policy.forms import StyledForm, plain_number
from .catalog import TRACKING_PLANS, LIFE_COVERAGE_PLANS, SERVICE_TYPES, plan_choices


class CarTrackerRequestForm(StyledForm):
    vehicle_make = forms.CharField(max_length=50)
    vehicle_model = forms.CharField(max_length=50)
    vehicle_year = forms.CharField(max_length=4)
    registration_no = forms.CharField(max_length=20, label='Registration Number')
    current_location = forms.CharField(max_length=100, label='Current Location (City)')
    tracking_plan = forms.ChoiceField(choices=plan_choices(TRACKING_PLANS), widget=forms.RadioSelect)
    contact_number = forms.CharField(max_length=20)
    special_requirements = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))


class EmployeeLifeRequestForm(StyledForm):
    company_name = forms.CharField(max_length=100)
    business_type = forms.CharField(max_length=100)
    number_of_employees = forms.IntegerField(min_value=1)
    contact_person = forms.CharField(max_length=100)
    designation = forms.CharField(max_length=100)
    contact_number = forms.CharField(max_length=20)
    email = forms.EmailField()
    coverage_plan = forms.ChoiceField(choices=plan_choices(LIFE_COVERAGE_PLANS), widget=forms.RadioSelect)
    current_provider = forms.CharField(max_length=100, required=False)
    special_requirements = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))


class ServiceProvisionForm(StyledForm):
    client_id = forms.ChoiceField(label='Client')
    service_type = forms.ChoiceField(choices=[('', 'Select service type')] + list(SERVICE_TYPES))
    service_name = forms.CharField(max_length=100)
    coverage = forms.CharField(max_length=100, required=False)
    premium = forms.DecimalField(min_value=0, decimal_places=2, required=False, label='Premium (PKR)')
    policy_no = forms.CharField(max_length=50, required=False, label='Policy Number',
                                help_text='Leave blank to generate one')
    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    expiry_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    details = forms.CharField(required=False, label='Additional Details',
                              widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, clients=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.clients = {client['id']: client for client in clients}
        self.fields['client_id'].choices = [('', 'Select Client')] + [
            (client['id'], f"{client['name']} ({client.get('email', '')})") for client in clients
        ]

    def clean(self):
        cleaned_data = super().clean()
        start, expiry = cleaned_data.get('start_date'), cleaned_data.get('expiry_date')
        if start and expiry and expiry < start:
            self.add_error('expiry_date', 'Expiry date cannot be before the start date.')
        return cleaned_data

    @property
    def premium_value(self):
        premium = self.cleaned_data.get('premium')
        return plain_number(premium) if premium is not None else 0
