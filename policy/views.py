# policy/views.py
import logging

from django.contrib import messages
from django.http import Http404
from django.shortcuts import render, redirect
from django.views import View
from django.views.generic import TemplateView

from core.utils import expiry_state, get_days_until, is_expiring_soon, is_expired
from store.exceptions import ParseError, PersistenceError, ValidationFailed
from store.parsing import parse_number
from store.services import StoreMixin
from users.roles import ServiceAccessMixin, RolePermissionMixin, is_client

from .forms import apply_store_errors
from .lines import PRODUCT_LINES, NUMERIC_FIELDS, get_line, field_value

logger = logging.getLogger(__name__)


def number_or_zero(value):
    try:
        return parse_number(value)
    except ParseError:
        return 0


def safe_expiry_state(value):
    try:
        return expiry_state(value)
    except ValueError:
        return ''


def belongs_to(user, line, record):
    """Client-role users only see records carrying their own name"""
    full_name = user.get_full_name().strip().lower()
    return bool(full_name) and str(record.get(line.client_field, '')).strip().lower() == full_name


class ProductLineMixin(StoreMixin):
    """Resolves the product line from the URL before access checks run"""

    def dispatch(self, request, *args, **kwargs):
        self.line = get_line(kwargs['line'])
        return super().dispatch(request, *args, **kwargs)

    def get_service_id(self):
        return self.line.service_id

    @property
    def collection(self):
        return self.store.collection(self.line.collection)

    def get_records(self):
        records = self.collection.all()
        if is_client(self.request.user):
            records = [record for record in records if belongs_to(self.request.user, self.line, record)]
        return records

    def get_record_or_404(self, record_id):
        for record in self.get_records():
            if record.get('id') == record_id:
                return record
        raise Http404(f"No {self.line.label} record {record_id}")

    def get_form_kwargs(self):
        kwargs = {}
        if self.line.slug == 'policies':
            kwargs['clients'] = self.store.clients.all()
        return kwargs

    def base_context(self, **extra):
        context = {'line': self.line, 'page': self.line.slug, 'lines': PRODUCT_LINES.values()}
        context.update(extra)
        return context


class PolicyListView(ProductLineMixin, ServiceAccessMixin, TemplateView):
    template_name = 'policy/line_list.html'

    def filter_records(self, records):
        line = self.line
        search_query = self.request.GET.get('search', '').strip().lower()
        status_filter = self.request.GET.get('status', '').strip()
        type_filter = self.request.GET.get('filter', '').strip()

        if search_query:
            records = [
                record for record in records
                if any(search_query in str(field_value(record, name)).lower() for name in line.search_fields)
            ]

        if status_filter == 'expiring':
            records = [r for r in records if self._check_expiry(is_expiring_soon, r)]
        elif status_filter == 'expired':
            records = [r for r in records if self._check_expiry(is_expired, r)]
        elif status_filter:
            records = [r for r in records if r.get('status') == status_filter]

        if type_filter and line.filter_field:
            records = [r for r in records if str(r.get(line.filter_field, '')) == type_filter]

        return records

    def _check_expiry(self, check, record):
        value = field_value(record, self.line.expiry_field)
        if not value:
            return False
        try:
            return check(value)
        except ValueError:
            return False

    def sort_records(self, records):
        sort_by = self.request.GET.get('sort', '')
        descending = self.request.GET.get('order', 'asc') == 'desc'
        if sort_by not in self.line.sort_fields:
            return records

        if sort_by in NUMERIC_FIELDS:
            key = lambda record: number_or_zero(record.get(sort_by, 0))
        else:
            key = lambda record: str(record.get(sort_by, '')).lower()
        return sorted(records, key=key, reverse=descending)

    def get_stats(self, records):
        return {
            'total': len(records),
            'active': sum(1 for r in records if r.get('status') == 'Active'),
            'total_premium': sum(number_or_zero(r.get('premium', 0)) for r in records),
            'total_sum_assured': sum(number_or_zero(r.get('sum_assured', 0)) for r in records),
            'expiring_soon': sum(1 for r in records if self._check_expiry(is_expiring_soon, r)),
        }

    def build_rows(self, records):
        rows = []
        for record in records:
            rows.append({
                'record': record,
                'cells': [(field_value(record, name), kind) for name, label, kind in self.line.columns],
                'expiry_state': safe_expiry_state(field_value(record, self.line.expiry_field)),
            })
        return rows

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        all_records = self.get_records()
        records = self.sort_records(self.filter_records(all_records))

        filter_choices = []
        if self.line.filter_field:
            filter_choices = sorted({
                str(r.get(self.line.filter_field)) for r in all_records if r.get(self.line.filter_field)
            })

        context.update(self.base_context(
            rows=self.build_rows(records),
            stats=self.get_stats(all_records),
            statuses=sorted({r.get('status') for r in all_records if r.get('status')}),
            filter_choices=filter_choices,
            search_query=self.request.GET.get('search', ''),
            status_filter=self.request.GET.get('status', ''),
            type_filter=self.request.GET.get('filter', ''),
            sort_by=self.request.GET.get('sort', ''),
            order=self.request.GET.get('order', 'asc'),
        ))
        return context


class PolicyCreateView(ProductLineMixin, RolePermissionMixin, View):
    template_name = 'policy/record_form.html'
    permission_required = 'can_create_policies'

    def get(self, request, line):
        form = self.line.form_class(**self.get_form_kwargs())
        return render(request, self.template_name, self.base_context(form=form, is_edit=False))

    def post(self, request, line):
        form = self.line.form_class(request.POST, **self.get_form_kwargs())
        if form.is_valid():
            try:
                record, created = self.collection.add(form.to_record())
            except ValidationFailed as e:
                apply_store_errors(form, e)
            except PersistenceError as e:
                messages.error(request, str(e))
            else:
                if not created:
                    messages.warning(request, f"Policy {record.get('policy_no')} already exists; nothing was added.")
                else:
                    logger.info("%s added %s %s", request.user.username, self.line.label, record.get('policy_no'))
                    messages.success(request, f"Policy {record.get('policy_no')} added successfully!")
                return redirect('policy:line_list', line=self.line.slug)

        return render(request, self.template_name, self.base_context(form=form, is_edit=False))


class PolicyUpdateView(ProductLineMixin, RolePermissionMixin, View):
    template_name = 'policy/record_form.html'
    permission_required = 'can_edit_policies'

    def get(self, request, line, record_id):
        record = self.get_record_or_404(record_id)
        form = self.line.form_class(initial=self.line.form_class.initial_from(record), **self.get_form_kwargs())
        return render(request, self.template_name, self.base_context(form=form, record=record, is_edit=True))

    def post(self, request, line, record_id):
        record = self.get_record_or_404(record_id)
        form = self.line.form_class(request.POST, **self.get_form_kwargs())
        if form.is_valid():
            try:
                updated = self.collection.update(record_id, form.to_record())
            except ValidationFailed as e:
                apply_store_errors(form, e)
            except PersistenceError as e:
                messages.error(request, str(e))
            else:
                if updated is None:
                    raise Http404(f"No {self.line.label} record {record_id}")
                messages.success(request, f"Policy {updated.get('policy_no')} updated successfully!")
                return redirect('policy:line_detail', line=self.line.slug, record_id=record_id)

        return render(request, self.template_name, self.base_context(form=form, record=record, is_edit=True))


class PolicyDetailView(ProductLineMixin, ServiceAccessMixin, TemplateView):
    template_name = 'policy/record_detail.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        record = self.get_record_or_404(kwargs['record_id'])
        expiry = field_value(record, self.line.expiry_field)

        days_left = None
        if expiry:
            try:
                days_left = get_days_until(expiry)
            except ValueError:
                logger.warning("Record %s has an unreadable expiry date %r", record.get('id'), expiry)

        shown = {name for name, label, kind in self.line.columns}
        details = [
            (name.replace('_', ' ').title(), ', '.join(map(str, value)) if isinstance(value, list) else value)
            for name, value in record.items()
            if name not in shown and name != 'id' and not isinstance(value, dict)
        ]
        context.update(self.base_context(
            record=record,
            details=details,
            cells=[(label, field_value(record, name), kind) for name, label, kind in self.line.columns],
            expiry_date=expiry,
            days_left=days_left,
            expiry_state=safe_expiry_state(expiry),
        ))
        return context


class PolicyDeleteView(ProductLineMixin, RolePermissionMixin, View):
    template_name = 'policy/record_confirm_delete.html'
    permission_required = 'can_delete_policies'

    def get(self, request, line, record_id):
        record = self.get_record_or_404(record_id)
        return render(request, self.template_name, self.base_context(record=record))

    def post(self, request, line, record_id):
        record = self.get_record_or_404(record_id)
        try:
            deleted = self.collection.delete(record_id)
        except PersistenceError as e:
            messages.error(request, str(e))
            return redirect('policy:line_detail', line=self.line.slug, record_id=record_id)

        if deleted:
            logger.info("%s deleted %s %s", request.user.username, self.line.label, record.get('policy_no'))
            messages.success(request, f"Policy {record.get('policy_no')} deleted successfully!")
        else:
            messages.info(request, "That policy had already been removed.")
        return redirect('policy:line_list', line=self.line.slug)


class MyPoliciesView(StoreMixin, ServiceAccessMixin, TemplateView):
    """Every policy, across all product lines, held in the signed-in client's name"""
    template_name = 'policy/my_policies.html'
    service_id = 'my-policies'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user

        policies = []
        for line in PRODUCT_LINES.values():
            for record in self.store.collection(line.collection).all():
                if not belongs_to(user, line, record):
                    continue
                expiry = field_value(record, line.expiry_field)
                try:
                    days_left = get_days_until(expiry) if expiry else None
                except ValueError:
                    days_left = None
                policies.append({
                    'line': line,
                    'record': record,
                    'expiry_date': expiry,
                    'days_left': days_left,
                    'expiry_state': safe_expiry_state(expiry),
                })

        policies.sort(key=lambda item: (item['days_left'] is None, item['days_left'] or 0))
        context.update({
            'page': 'my-policies',
            'policies': policies,
            'active_count': sum(1 for p in policies if p['record'].get('status') == 'Active'),
            'expiring_count': sum(1 for p in policies if p['expiry_state'] == 'expiring'),
        })
        return context
