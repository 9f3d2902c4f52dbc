from django import forms

from policy.forms import RecordForm

INSURANCE_TYPES = (
    ('car-insurance', 'Car Insurance'),
    ('bike-insurance', 'Bike Insurance'),
    ('life-insurance', 'Life Insurance'),
    ('travel-insurance', 'Travel Insurance'),
    ('corporate-insurance', 'Corporate Insurance'),
    ('employee-health', 'Employee Health'),
    ('employee-life', 'Employee Life'),
    ('general-insurance', 'General Insurance'),
)

INSURANCE_LABELS = dict(INSURANCE_TYPES, **{'car-tracker': 'Car Tracker Service'})


def get_insurance_label(insurance_type):
    return INSURANCE_LABELS.get(insurance_type, insurance_type)


class QuoteRequestForm(RecordForm):
    name = forms.CharField(max_length=100, label='Full Name')
    email = forms.EmailField()
    phone = forms.CharField(max_length=20, widget=forms.TextInput(attrs={'placeholder': '+92 300 1234567'}))
    insurance_type = forms.ChoiceField(choices=[('', 'Select insurance type')] + list(INSURANCE_TYPES))
    message = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={'rows': 3, 'placeholder': 'Tell us about your insurance needs...'}),
    )
