from django.urls import path
from . import views

app_name = 'leads'

urlpatterns = [
    path('quote/', views.quote_request_view, name='quote_request'),
    path('', views.LeadsManagementView.as_view(), name='leads_management'),
    path('<str:lead_id>/json/', views.lead_detail_json, name='lead_detail'),
]
