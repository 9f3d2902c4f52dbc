from django import forms

from policy.forms import RecordForm


class ClientForm(RecordForm):
    name = forms.CharField(max_length=100, label='Full Name')
    cnic = forms.RegexField(
        regex=r'^\d{5}-?\d{7}-?\d$',
        label='CNIC',
        error_messages={'invalid': 'Enter the CNIC as 12345-1234567-1.'},
        widget=forms.TextInput(attrs={'placeholder': '42101-1234567-8'}),
    )
    contact = forms.CharField(max_length=20, label='Contact Number')
    email = forms.EmailField()
    address = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
    agent_id = forms.CharField(max_length=20, required=False, label='Agent ID')
