from django.urls import path
from . import views

app_name = 'admin_panel'  # Essential for namespacing

urlpatterns = [
    path('dashboard/', views.DashboardView.as_view(), name='dashboard'),
    path('notifications/', views.NotificationsView.as_view(), name='notifications'),

    # Reports & Analytics URLs
    path('reports/', views.ReportsDashboardView.as_view(), name='reports_dashboard'),
    path('reports/portfolio/', views.PortfolioReportView.as_view(), name='portfolio_report'),
    path('reports/leads-pipeline/', views.LeadsPipelineReportView.as_view(), name='leads_pipeline_report'),
    path('reports/expiring-policies/', views.ExpiringPoliciesReportView.as_view(), name='expiring_policies_report'),

    # API Endpoints
    path('reports/chart-data/', views.ChartDataView.as_view(), name='get_chart_data'),
]
