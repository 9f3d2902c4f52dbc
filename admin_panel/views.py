import csv
import logging
from datetime import datetime, timedelta
from io import BytesIO

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse, HttpResponse
from django.utils import timezone
from django.views.generic import TemplateView, View
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph

from core.utils import format_currency, format_date
from policy.views import belongs_to
from services.views import services_for_user
from store.services import StoreMixin
from users.roles import ServiceAccessMixin, RolePermissionMixin, is_client

from . import reports
from .notifications import build_notifications

logger = logging.getLogger(__name__)


def client_filter(user):
    """records_filter limiting the policy figures to the client's own policies"""
    if not is_client(user):
        return None
    return lambda line, record: belongs_to(user, line, record)


class DashboardView(StoreMixin, ServiceAccessMixin, TemplateView):
    service_id = 'dashboard'

    def get_template_names(self):
        if is_client(self.request.user):
            return ['admin_panel/client_dashboard.html']
        return ['admin_panel/dashboard.html']

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context.update({
            'page': 'dashboard',
            'current_date': timezone.localdate().strftime('%B %d, %Y'),
        })
        if is_client(self.request.user):
            context.update(self._client_stats())
        else:
            context.update(self._agency_stats())
        return context

    def _agency_stats(self):
        rows = reports.portfolio_summary(self.store)
        totals = reports.portfolio_totals(rows)
        pipeline = reports.leads_pipeline(self.store)

        return {
            'portfolio': rows,
            'total_policies': totals['policies'],
            'active_policies': totals['active'],
            'total_premium': totals['premium'],
            'total_sum_assured': totals['sum_assured'],
            'expiring_soon': totals['expiring'],
            'total_clients': self.store.clients.count(),
            'new_leads': pipeline['by_status'].get('new', 0),
            'total_leads': pipeline['total'],
            'conversion_rate': pipeline['conversion_rate'],
            'recent_leads': reports.recent_leads(self.store),
            'expiring_policies': reports.expiring_policies(self.store)[:5],
        }

    def _client_stats(self):
        user = self.request.user
        records_filter = client_filter(user)
        policies = list(reports.iter_policies(self.store, records_filter))
        services = services_for_user(self.store, user)

        return {
            'my_policies_count': len(policies),
            'active_policies': sum(1 for line, record in policies if record.get('status') == 'Active'),
            'active_services': sum(1 for s in services if s.get('status') == 'active'),
            'pending_requests': sum(1 for s in services if s.get('status') == 'requested'),
            'expiring_policies': reports.expiring_policies(self.store, records_filter=records_filter),
        }


class NotificationsView(LoginRequiredMixin, StoreMixin, View):
    """Expiry notifications as JSON; POST {"id": ...} dismisses one for this session"""

    def get(self, request, *args, **kwargs):
        dismissed = set(request.session.get('dismissed_notifications', []))
        notifications = [
            notification for notification in build_notifications(self.store, client_filter(request.user))
            if notification['id'] not in dismissed
        ]
        return JsonResponse({
            'notifications': notifications,
            'unread': len(notifications),
        })

    def post(self, request, *args, **kwargs):
        notification_id = request.POST.get('id', '').strip()
        if not notification_id:
            return JsonResponse({'status': 'error', 'message': 'Notification id is required.'}, status=400)

        dismissed = request.session.get('dismissed_notifications', [])
        if notification_id not in dismissed:
            dismissed.append(notification_id)
            request.session['dismissed_notifications'] = dismissed
        return JsonResponse({'status': 'success'})


class ReportDateRangeMixin:
    def get_date_range(self):
        """start/end from the query string, defaulting to the last 30 days"""
        start_date = self.request.GET.get('start_date')
        end_date = self.request.GET.get('end_date')

        try:
            start_date = datetime.strptime(start_date, '%Y-%m-%d').date() if start_date else None
            end_date = datetime.strptime(end_date, '%Y-%m-%d').date() if end_date else None
        except ValueError:
            logger.warning("Ignoring malformed report date range %r - %r", start_date, end_date)
            start_date = end_date = None

        if start_date is None:
            start_date = timezone.localdate() - timedelta(days=30)
        if end_date is None:
            end_date = timezone.localdate()
        return start_date, end_date


class ReportsDashboardView(StoreMixin, ReportDateRangeMixin, RolePermissionMixin, TemplateView):
    """Reports & Analytics Dashboard View"""
    template_name = 'admin_panel/reports_dashboard.html'
    service_id = 'reports'
    permission_required = 'can_view_reports'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        start_date, end_date = self.get_date_range()
        portfolio = reports.portfolio_summary(self.store)

        context.update({
            'page': 'reports',
            'page_title': 'Reports & Analytics',
            'start_date': start_date,
            'end_date': end_date,
            'portfolio': portfolio,
            'totals': reports.portfolio_totals(portfolio),
            'pipeline': reports.leads_pipeline(self.store, start_date, end_date),
            'expiring_policies': reports.expiring_policies(self.store),
        })
        return context


class BaseReportView(StoreMixin, ReportDateRangeMixin, RolePermissionMixin, View):
    """Base class for report downloads"""
    service_id = 'reports'
    permission_required = 'can_view_reports'
    report_type = None
    title = None

    def get(self, request, *args, **kwargs):
        headers, data_rows = self.get_rows()
        logger.info("%s downloaded the %s report", request.user.username, self.report_type)
        if request.GET.get('format', 'pdf') == 'csv':
            return self.generate_csv_report(self.report_type, headers, data_rows)
        return self.generate_pdf_report(self.title, headers, data_rows)

    def get_rows(self):
        raise NotImplementedError


class SimpleReportMixin:
    """PDF (reportlab) and CSV output for a header row plus data rows"""
    show_date_range = False

    def generate_pdf_report(self, title, headers, data_rows):
        buffer = BytesIO()
        pagesize = landscape(letter) if len(headers) > 5 else letter
        doc = SimpleDocTemplate(buffer, pagesize=pagesize)
        styles = getSampleStyleSheet()
        story = []

        title_style = styles['Heading1']
        title_style.alignment = 1
        story.append(Paragraph(title, title_style))
        story.append(Paragraph(f"IGI Life - generated on {timezone.localtime().strftime('%Y-%m-%d %H:%M')}", styles['Normal']))
        if self.show_date_range:
            start_date, end_date = self.get_date_range()
            story.append(Paragraph(f"Date Range: {format_date(start_date)} to {format_date(end_date)}", styles['Normal']))
        story.append(Paragraph("<br/><br/>", styles['Normal']))

        table_data = [headers]
        table_data.extend([[str(cell) for cell in row] for row in data_rows])

        if len(table_data) > 1:
            table = Table(table_data, repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1f3b73')),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
                ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, 0), 11),
                ('FONTSIZE', (0, 1), (-1, -1), 9),
                ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f2f5fa')]),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ]))
            story.append(table)
        else:
            story.append(Paragraph("No data available for the selected criteria.", styles['Normal']))

        doc.build(story)

        buffer.seek(0)
        response = HttpResponse(buffer, content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{title.lower().replace(" ", "_")}.pdf"'
        return response

    def generate_csv_report(self, report_type, headers, data_rows):
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{report_type}_report.csv"'

        writer = csv.writer(response)
        writer.writerow(headers)
        for row in data_rows:
            writer.writerow(row)

        return response


class PortfolioReportView(SimpleReportMixin, BaseReportView):
    """Policies, premium and cover per product line"""
    report_type = 'portfolio_summary'
    title = 'Portfolio Summary Report'

    def get_rows(self):
        headers = ['Product Line', 'Policies', 'Active', 'Total Premium', 'Total Sum Assured', 'Expiring Soon']
        portfolio = reports.portfolio_summary(self.store)
        data_rows = [
            [row['label'], row['count'], row['active'], format_currency(row['premium']),
             format_currency(row['sum_assured']), row['expiring']]
            for row in portfolio
        ]
        totals = reports.portfolio_totals(portfolio)
        data_rows.append(['Total', totals['policies'], totals['active'], format_currency(totals['premium']),
                          format_currency(totals['sum_assured']), totals['expiring']])
        return headers, data_rows


class LeadsPipelineReportView(SimpleReportMixin, BaseReportView):
    """Quote leads per status and per insurance type, within the date range"""
    report_type = 'leads_pipeline'
    title = 'Leads Pipeline Report'
    show_date_range = True

    def get_rows(self):
        start_date, end_date = self.get_date_range()
        pipeline = reports.leads_pipeline(self.store, start_date, end_date)
        headers = ['Breakdown', 'Value', 'Leads']
        data_rows = [['Status', status.title(), count] for status, count in pipeline['by_status'].items()]
        data_rows.extend(['Insurance Type', label, count] for label, count in pipeline['by_type'])
        data_rows.append(['Total', '', pipeline['total']])
        data_rows.append(['Conversion Rate', '', f"{pipeline['conversion_rate']}%"])
        return headers, data_rows


class ExpiringPoliciesReportView(SimpleReportMixin, BaseReportView):
    report_type = 'expiring_policies'
    title = 'Expiring Policies Report'

    def get_rows(self):
        headers = ['Product Line', 'Policy No', 'Policy Holder', 'Expiry Date', 'Days Left', 'Premium']
        data_rows = [
            [row['line'].label, row['policy_no'], row['holder'], format_date(row['expiry_date']),
             row['days_left'], format_currency(row['premium'])]
            for row in reports.expiring_policies(self.store)
        ]
        return headers, data_rows


class ChartDataView(StoreMixin, RolePermissionMixin, View):
    """API endpoint to get chart data"""
    service_id = 'reports'
    permission_required = 'can_view_reports'

    def get(self, request, *args, **kwargs):
        chart_type = request.GET.get('type', 'premium')

        if chart_type == 'premium':
            return JsonResponse(reports.premium_chart(self.store))
        if chart_type == 'leads':
            return JsonResponse(reports.leads_chart(self.store))
        return JsonResponse({'error': f"Unknown chart type '{chart_type}'"}, status=400)
