import logging

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.shortcuts import render, redirect
from django.utils import timezone
from django.views import View
from django.views.generic import TemplateView

from leads.intake import record_quote_request
from store.exceptions import PersistenceError, ValidationFailed
from store.schemas import SERVICE_STATUSES
from store.services import StoreMixin
from users.roles import ServiceAccessMixin

from .catalog import (TRACKING_PLANS, LIFE_COVERAGE_PLANS, SERVICE_TYPES, price_label,
                      generate_policy_number)
from .forms import CarTrackerRequestForm, EmployeeLifeRequestForm, ServiceProvisionForm

logger = logging.getLogger(__name__)

ACCOUNT_EMAIL_DOMAIN = 'users.igilife.local'


def account_email(user):
    """Stand-in lead address for an account without an email; one per account"""
    return f"{user.username}@{ACCOUNT_EMAIL_DOMAIN}"


class ServiceRequestView(StoreMixin, ServiceAccessMixin, View):
    """
    Base for the add-on service request screens. A submitted request becomes a
    quote lead for the sales team and a 'requested' service for the user.
    """
    template_name = 'services/service_request.html'
    form_class = None
    title = ''
    plans = {}
    per_employee = False
    success_message = ''

    def get_context(self, form):
        plans = [
            dict(plan, key=key, price=price_label(plan, self.per_employee))
            for key, plan in self.plans.items()
        ]
        return {'form': form, 'title': self.title, 'plans': plans, 'page': self.service_id}

    def get(self, request):
        return render(request, self.template_name, self.get_context(self.form_class()))

    def post(self, request):
        form = self.form_class(request.POST)
        if not form.is_valid():
            return render(request, self.template_name, self.get_context(form))

        data = form.cleaned_data
        lead, service_name, details = self.build_request(data, self.plans[self.plan_of(data)])
        try:
            record, created = record_quote_request(
                self.store, request.user, lead,
                service_type=self.service_id,
                service_name=service_name,
                details=details,
            )
        except (ValidationFailed, PersistenceError) as e:
            messages.error(request, f"Your request could not be submitted: {e}")
            return render(request, self.template_name, self.get_context(form))

        if created:
            messages.success(request, self.success_message)
        else:
            messages.info(request, "We already have a request from you for this service.")
        return redirect('services:my_services')

    def plan_of(self, data):
        raise NotImplementedError

    def build_request(self, data, plan):
        """Return (lead fields, service name, service details)"""
        raise NotImplementedError


class CarTrackerRequestView(ServiceRequestView):
    service_id = 'car-tracker'
    form_class = CarTrackerRequestForm
    title = 'Car Tracker Service'
    plans = TRACKING_PLANS
    success_message = "Car Tracker Request Submitted! Our tracking specialists will contact you within 24 hours to schedule installation."

    def plan_of(self, data):
        return data['tracking_plan']

    def build_request(self, data, plan):
        user = self.request.user
        vehicle = f"{data['vehicle_make']} {data['vehicle_model']} ({data['vehicle_year']})"
        price = price_label(plan)
        message = (
            "Car Tracker Request:\n"
            f"Vehicle: {vehicle}\n"
            f"Registration: {data['registration_no']}\n"
            f"Location: {data['current_location']}\n"
            f"Plan: {plan['label']} - {price}\n"
            f"Contact: {data['contact_number']}\n"
            f"Special Requirements: {data['special_requirements'] or 'None'}"
        )
        lead = {
            'name': user.get_full_name() or 'Car Tracker Customer',
            'email': user.email or account_email(user),
            'phone': data['contact_number'],
            'insurance_type': 'car-tracker',
            'message': message,
        }
        details = {
            'vehicle': vehicle,
            'registration_no': data['registration_no'],
            'plan': plan['label'],
            'price': price,
            'location': data['current_location'],
            'contact_number': data['contact_number'],
        }
        return lead, f"Car Tracker - {plan['label']}", details


class EmployeeLifeRequestView(ServiceRequestView):
    service_id = 'employee-life'
    form_class = EmployeeLifeRequestForm
    title = 'Employee Life Insurance'
    plans = LIFE_COVERAGE_PLANS
    per_employee = True
    success_message = "Employee Life Insurance Request Submitted! Our corporate team will contact you within 24 hours."

    def plan_of(self, data):
        return data['coverage_plan']

    def build_request(self, data, plan):
        price = price_label(plan, per_employee=True)
        coverage = f"PKR {plan['coverage']:,}"
        message = (
            "Employee Life Insurance Request:\n"
            f"Company: {data['company_name']}\n"
            f"Business Type: {data['business_type']}\n"
            f"Number of Employees: {data['number_of_employees']}\n"
            f"Contact Person: {data['contact_person']} ({data['designation']})\n"
            f"Contact: {data['contact_number']}\n"
            f"Email: {data['email']}\n"
            f"Coverage Plan: {plan['label']} - {price}\n"
            f"Coverage Amount: {coverage}\n"
            f"Current Provider: {data['current_provider'] or 'None'}\n"
            f"Special Requirements: {data['special_requirements'] or 'None'}"
        )
        lead = {
            'name': data['contact_person'],
            'email': data['email'],
            'phone': data['contact_number'],
            'insurance_type': 'employee-life',
            'message': message,
        }
        details = {
            'company': data['company_name'],
            'business_type': data['business_type'],
            'employees': data['number_of_employees'],
            'contact_person': data['contact_person'],
            'plan': plan['label'],
            'price': price,
            'coverage': coverage,
            'email': data['email'],
        }
        return lead, f"Employee Life Insurance - {plan['label']}", details


def recipient_names(store):
    """user_id -> display name; services are held by store clients or by user accounts"""
    names = {user.service_owner_id: user.display_name for user in get_user_model().objects.all()}
    names.update({client['id']: client['name'] for client in store.clients.all()})
    return names


class ServiceProvisionView(StoreMixin, ServiceAccessMixin, TemplateView):
    """Agents provide a service to a client and follow up on requested services"""
    template_name = 'services/service_provision.html'
    service_id = 'service-provision'

    def get_form(self, data=None):
        return ServiceProvisionForm(data, clients=self.store.clients.all())

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        search_query = self.request.GET.get('search', '').strip()
        names = recipient_names(self.store)

        services = self.store.user_services.all()
        if search_query:
            needle = search_query.lower()
            services = [
                service for service in services
                if needle in service.get('service_name', '').lower()
                or needle in service.get('service_type', '').lower()
                or needle in service.get('policy_no', '').lower()
                or needle in names.get(service.get('user_id'), '').lower()
            ]
        services = sorted(services, key=lambda service: service.get('request_date', ''), reverse=True)

        context.update({
            'page': 'service-provision',
            'form': kwargs.get('form') or self.get_form(),
            'services': [(service, names.get(service.get('user_id'), 'Unknown')) for service in services],
            'statuses': SERVICE_STATUSES,
            'service_types': SERVICE_TYPES,
            'search_query': search_query,
        })
        return context

    def post(self, request, *args, **kwargs):
        # 1. HANDLE PROVIDE SERVICE
        if 'provide_service' in request.POST:
            form = self.get_form(request.POST)
            if not form.is_valid():
                messages.error(request, "Please select a client and fill in required service details.")
                return render(request, self.template_name, self.get_context_data(form=form))

            data = form.cleaned_data
            client = form.clients[data['client_id']]
            policy_no = data['policy_no'] or generate_policy_number(data['service_type'])
            details = {
                'policy_no': policy_no,
                'coverage': data['coverage'],
                'premium': form.premium_value,
                'start_date': data['start_date'].isoformat() if data['start_date'] else '',
                'expiry_date': data['expiry_date'].isoformat() if data['expiry_date'] else '',
                'provided_by': request.user.get_full_name() or request.user.username,
                'provided_by_id': str(request.user.pk),
                'additional_details': data['details'],
            }
            try:
                service, created = self.store.user_services.add({
                    'user_id': client['id'],
                    'service_type': data['service_type'],
                    'service_name': data['service_name'],
                    'status': 'active',
                    'activation_date': timezone.now(),
                    'policy_no': policy_no,
                    'details': details,
                })
            except (ValidationFailed, PersistenceError) as e:
                messages.error(request, f"Service could not be provided: {e}")
                return render(request, self.template_name, self.get_context_data(form=form))

            if created:
                logger.info("%s provided %s to client %s", request.user.username, service['service_name'], client['id'])
                messages.success(request, f"{service['service_name']} has been provided to {client['name']}. They can now see it in their portal.")
            else:
                messages.warning(request, f"{client['name']} already has {service['service_name']}.")
            return redirect('services:service_provision')

        # 2. HANDLE STATUS CHANGE
        elif 'update_status' in request.POST:
            service_id = request.POST.get('service_id', '')
            new_status = request.POST.get('status', '')
            changes = {'status': new_status}
            if new_status == 'active':
                changes['activation_date'] = timezone.now()
            try:
                updated = self.store.user_services.update(service_id, changes)
            except (ValidationFailed, PersistenceError) as e:
                messages.error(request, f"Service not updated: {e}")
                return redirect('services:service_provision')

            if updated is None:
                messages.error(request, "Service not found.")
            else:
                messages.success(request, f"Service status updated to {new_status.replace('_', ' ')}.")
            return redirect('services:service_provision')

        # Fallback for unexpected POST requests
        return redirect('services:service_provision')


def services_for_user(store, user):
    """Services the account requested plus those provided to a client record with its email"""
    services = store.get_user_services(user.service_owner_id)
    if user.email:
        for client in store.clients.all():
            if client.get('email', '').lower() == user.email.lower():
                services.extend(store.get_user_services(client['id']))
    return services


class MyServicesView(StoreMixin, ServiceAccessMixin, TemplateView):
    template_name = 'services/my_services.html'
    service_id = 'services'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        services = services_for_user(self.store, self.request.user)

        services.sort(key=lambda service: service.get('request_date', ''), reverse=True)
        context.update({
            'page': 'services',
            'services': services,
            'active_count': sum(1 for s in services if s.get('status') == 'active'),
            'requested_count': sum(1 for s in services if s.get('status') == 'requested'),
            'tracking_plans': TRACKING_PLANS,
            'life_plans': LIFE_COVERAGE_PLANS,
        })
        return context
