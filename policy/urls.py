# policy/urls.py

from django.urls import path
from . import views

app_name = 'policy'

urlpatterns = [
    path('my-policies/', views.MyPoliciesView.as_view(), name='my_policies'),
    path('<slug:line>/', views.PolicyListView.as_view(), name='line_list'),
    path('<slug:line>/add/', views.PolicyCreateView.as_view(), name='line_create'),
    path('<slug:line>/<str:record_id>/', views.PolicyDetailView.as_view(), name='line_detail'),
    path('<slug:line>/<str:record_id>/edit/', views.PolicyUpdateView.as_view(), name='line_update'),
    path('<slug:line>/<str:record_id>/delete/', views.PolicyDeleteView.as_view(), name='line_delete'),
]
