from django.urls import path
from . import views

app_name = 'clients'

urlpatterns = [
    path('', views.ClientListView.as_view(), name='client_list'),
    path('<str:client_id>/edit/', views.ClientUpdateView.as_view(), name='client_update'),
]
