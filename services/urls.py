from django.urls import path
from . import views

app_name = 'services'

urlpatterns = [
    path('', views.MyServicesView.as_view(), name='my_services'),
    path('car-tracker/', views.CarTrackerRequestView.as_view(), name='car_tracker'),
    path('employee-life/', views.EmployeeLifeRequestView.as_view(), name='employee_life'),
    path('provision/', views.ServiceProvisionView.as_view(), name='service_provision'),
]
