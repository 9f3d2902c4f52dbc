import logging

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied
from django.http import JsonResponse, Http404
from django.shortcuts import render, redirect
from django.views.generic import TemplateView

from store.exceptions import PersistenceError, ValidationFailed
from store.schemas import LEAD_STATUSES
from store.services import StoreMixin, get_store
from users.roles import ServiceAccessMixin, can_access_service

from .forms import QuoteRequestForm, get_insurance_label, INSURANCE_TYPES
from .intake import record_quote_request

logger = logging.getLogger(__name__)


def quote_request_view(request):
    """Public "get a quote" form; signed-in users also get a requested service"""
    initial = {'insurance_type': request.GET.get('type', '')}
    if request.user.is_authenticated:
        initial.update({'name': request.user.get_full_name(), 'email': request.user.email,
                        'phone': getattr(request.user, 'phone', '')})

    if request.method == 'POST':
        form = QuoteRequestForm(request.POST)
        if form.is_valid():
            lead = form.to_record()
            try:
                record, created = record_quote_request(
                    get_store(), request.user, lead,
                    service_type=lead['insurance_type'],
                    service_name=get_insurance_label(lead['insurance_type']),
                    details={
                        'name': lead['name'],
                        'email': lead['email'],
                        'phone': lead['phone'],
                        'message': lead['message'],
                        'quote_type': 'general',
                    },
                )
            except PersistenceError as e:
                messages.error(request, str(e))
            else:
                if created:
                    messages.success(request, "Quote Request Submitted! Our team will contact you within 24 hours with a personalized quote.")
                else:
                    messages.info(request, "We already have your request for this insurance type. Our team will be in touch.")
                return redirect('leads:quote_request')
    else:
        form = QuoteRequestForm(initial=initial)

    return render(request, 'leads/quote_request.html', {'form': form, 'page': 'quote'})


def conversion_rate(leads):
    if not leads:
        return 0
    converted = sum(1 for lead in leads if lead.get('status') == 'converted')
    return round(converted / len(leads) * 100)


class LeadsManagementView(StoreMixin, ServiceAccessMixin, TemplateView):
    template_name = 'leads/leads_management.html'
    service_id = 'leads-management'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        search_query = self.request.GET.get('search', '').strip()
        status_filter = self.request.GET.get('status', '').strip()

        all_leads = self.store.quote_leads.all()
        leads = all_leads

        if search_query:
            needle = search_query.lower()
            leads = [
                lead for lead in leads
                if needle in lead.get('name', '').lower()
                or needle in lead.get('email', '').lower()
                or needle in lead.get('phone', '')
                or needle in get_insurance_label(lead.get('insurance_type', '')).lower()
            ]

        if status_filter:
            leads = [lead for lead in leads if lead.get('status') == status_filter]

        # Newest first
        leads = sorted(leads, key=lambda lead: lead.get('created_at', ''), reverse=True)

        status_counts = {status: 0 for status in LEAD_STATUSES}
        for lead in all_leads:
            if lead.get('status') in status_counts:
                status_counts[lead['status']] += 1

        context.update({
            'page': 'leads-management',
            'leads': [(lead, get_insurance_label(lead.get('insurance_type', ''))) for lead in leads],
            'total_leads': len(all_leads),
            'status_counts': status_counts,
            'conversion_rate': conversion_rate(all_leads),
            'statuses': LEAD_STATUSES,
            'insurance_types': INSURANCE_TYPES,
            'agents': get_user_model().objects.filter(role='agent').order_by('username'),
            'search_query': search_query,
            'status_filter': status_filter,
        })
        return context

    def post(self, request, *args, **kwargs):
        leads = self.store.quote_leads
        try:
            # 1. HANDLE STATUS CHANGE
            if 'update_status' in request.POST:
                lead_id = request.POST.get('lead_id', '')
                new_status = request.POST.get('status', '')
                if leads.update(lead_id, {'status': new_status}) is None:
                    messages.error(request, "Lead not found.")
                else:
                    messages.success(request, f"Lead status has been updated to {new_status}.")

            # 2. HANDLE AGENT ASSIGNMENT
            elif 'assign_agent' in request.POST:
                lead_id = request.POST.get('lead_id', '')
                agent = request.POST.get('assigned_agent', '').strip()
                if leads.update(lead_id, {'assigned_agent': agent}) is None:
                    messages.error(request, "Lead not found.")
                elif agent:
                    messages.success(request, f"Lead assigned to {agent}.")
                else:
                    messages.success(request, "Lead unassigned.")

            # 3. HANDLE DELETE
            elif 'delete_lead' in request.POST:
                if leads.delete(request.POST.get('lead_id', '')):
                    messages.success(request, "Lead has been successfully deleted.")
                else:
                    messages.info(request, "That lead had already been removed.")

            # 4. HANDLE BULK DELETE
            elif 'bulk_delete' in request.POST:
                lead_ids = request.POST.getlist('lead_ids')
                deleted = sum(1 for lead_id in lead_ids if leads.delete(lead_id))
                logger.info("%s bulk-deleted %d leads", request.user.username, deleted)
                messages.success(request, f"{deleted} leads have been successfully deleted.")

        except ValidationFailed as e:
            messages.error(request, f"Lead not updated: {e.summary()}")
        except PersistenceError as e:
            messages.error(request, str(e))

        return redirect('leads:leads_management')


def lead_detail_json(request, lead_id):
    """Lead details for the view dialog on the leads screen"""
    if not request.user.is_authenticated:
        return JsonResponse({'error': 'Authentication required'}, status=401)
    if not can_access_service(request.user, 'leads-management'):
        raise PermissionDenied

    lead = get_store().quote_leads.get(lead_id)
    if lead is None:
        raise Http404(f"No lead {lead_id}")

    return JsonResponse(dict(lead, insurance_label=get_insurance_label(lead.get('insurance_type', ''))))
