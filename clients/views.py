import logging

from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.views import View
from django.views.generic import TemplateView

from policy.forms import apply_store_errors
from store.exceptions import PersistenceError, ValidationFailed
from store.services import StoreMixin
from users.roles import ServiceAccessMixin

from .forms import ClientForm

logger = logging.getLogger(__name__)


def count_policies(store, clients):
    """client id -> number of policies held, matched on client id or client name"""
    by_name = {client.get('name', '').strip().lower(): client['id'] for client in clients}
    counts = dict.fromkeys(by_name.values(), 0)

    for collection, record in store.policy_records():
        client_id = record.get('client_id')
        if client_id not in counts:
            client_id = by_name.get(str(record.get('client_name', '')).strip().lower())
        if client_id is not None:
            counts[client_id] += 1
    return counts


class ClientListView(StoreMixin, ServiceAccessMixin, TemplateView):
    template_name = 'clients/client_list.html'
    service_id = 'clients'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        search_query = self.request.GET.get('search', '').strip()

        clients = self.store.clients.all()
        policy_counts = count_policies(self.store, clients)

        if search_query:
            needle = search_query.lower()
            clients = [
                client for client in clients
                if needle in client.get('name', '').lower()
                or needle in client.get('email', '').lower()
                or needle in client.get('cnic', '')
                or needle in client.get('contact', '')
            ]

        context.update({
            'page': 'clients',
            'clients': [(client, policy_counts.get(client['id'], 0)) for client in clients],
            'search_query': search_query,
            'total_clients': self.store.clients.count(),
            'form': kwargs.get('form') or ClientForm(),
        })
        return context

    def post(self, request, *args, **kwargs):
        # 1. HANDLE ADD NEW CLIENT
        if 'add_client' in request.POST:
            form = ClientForm(request.POST)
            if not form.is_valid():
                messages.error(request, "Please correct the errors in the client form.")
                return render(request, self.template_name, self.get_context_data(form=form))

            try:
                client, created = self.store.clients.add(form.to_record())
            except ValidationFailed as e:
                apply_store_errors(form, e)
                return render(request, self.template_name, self.get_context_data(form=form))
            except PersistenceError as e:
                messages.error(request, str(e))
                return redirect('clients:client_list')

            if created:
                messages.success(request, f"Client '{client['name']}' added successfully!")
            else:
                messages.warning(request, f"A client with CNIC {client['cnic']} already exists ({client['name']}).")
            return redirect('clients:client_list')

        # 2. HANDLE DELETE
        elif 'delete_client' in request.POST:
            client_id = request.POST.get('client_id', '')
            try:
                deleted = self.store.clients.delete(client_id)
            except PersistenceError as e:
                messages.error(request, str(e))
                return redirect('clients:client_list')

            if deleted:
                logger.info("Client %s deleted by %s", client_id, request.user.username)
                messages.success(request, "Client has been successfully deleted.")
            else:
                messages.info(request, "That client had already been removed.")
            return redirect('clients:client_list')

        # Fallback for unexpected POST requests
        return redirect('clients:client_list')


class ClientUpdateView(StoreMixin, ServiceAccessMixin, View):
    """Edits the client record only; policies keep the client name they were issued with"""
    template_name = 'clients/client_form.html'
    service_id = 'clients'

    def get_client_or_404(self, client_id):
        client = self.store.clients.get(client_id)
        if client is None:
            raise Http404(f"No client {client_id}")
        return client

    def get(self, request, client_id):
        client = self.get_client_or_404(client_id)
        form = ClientForm(initial=ClientForm.initial_from(client))
        return render(request, self.template_name, {'form': form, 'client': client, 'page': 'clients'})

    def post(self, request, client_id):
        client = self.get_client_or_404(client_id)
        form = ClientForm(request.POST)
        if form.is_valid():
            try:
                updated = self.store.clients.update(client_id, form.to_record())
            except ValidationFailed as e:
                apply_store_errors(form, e)
            except PersistenceError as e:
                messages.error(request, str(e))
            else:
                if updated is None:
                    raise Http404(f"No client {client_id}")
                messages.success(request, f"Client '{updated['name']}' updated successfully!")
                return redirect('clients:client_list')

        return render(request, self.template_name, {'form': form, 'client': client, 'page': 'clients'})
