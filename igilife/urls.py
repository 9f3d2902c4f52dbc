"""
URL configuration for the igilife project.
"""
from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('users/', include('users.urls', namespace='users')),
    path('policy/', include('policy.urls')),
    path('clients/', include('clients.urls')),
    path('leads/', include('leads.urls')),
    path('services/', include('services.urls')),
    path('admin_panel/', include('admin_panel.urls')),
    path('', RedirectView.as_view(pattern_name='admin_panel:dashboard', permanent=False), name='home'),
]
