from django.urls import reverse

from .roles import get_role_config

# service id -> (label, url name, url kwargs, icon)
NAVIGATION = (
    ('dashboard', 'Dashboard', 'admin_panel:dashboard', {}, 'bi-speedometer2'),
    ('policies', 'Policies', 'policy:line_list', {'line': 'policies'}, 'bi-file-earmark-text'),
    ('my-policies', 'My Policies', 'policy:my_policies', {}, 'bi-file-earmark-text'),
    ('clients', 'Clients', 'clients:client_list', {}, 'bi-person-lines-fill'),
    ('car-insurance', 'Car Insurance', 'policy:line_list', {'line': 'car-insurance'}, 'bi-car-front'),
    ('bike-insurance', 'Bike Insurance', 'policy:line_list', {'line': 'bike-insurance'}, 'bi-bicycle'),
    ('life-insurance', 'Life Insurance', 'policy:line_list', {'line': 'life-insurance'}, 'bi-heart-pulse'),
    ('travel-insurance', 'Travel Insurance', 'policy:line_list', {'line': 'travel-insurance'}, 'bi-airplane'),
    ('employee-health', 'Employee Health', 'policy:line_list', {'line': 'employee-health'}, 'bi-people'),
    ('corporate-insurance', 'Corporate Insurance', 'policy:line_list', {'line': 'corporate-insurance'}, 'bi-building'),
    ('car-tracker', 'Car Tracker', 'services:car_tracker', {}, 'bi-geo-alt'),
    ('employee-life', 'Employee Life', 'services:employee_life', {}, 'bi-person-check'),
    ('leads-management', 'Leads', 'leads:leads_management', {}, 'bi-inbox'),
    ('service-provision', 'Service Provision', 'services:service_provision', {}, 'bi-box-seam'),
    ('services', 'My Services', 'services:my_services', {}, 'bi-grid'),
    ('reports', 'Reports', 'admin_panel:reports_dashboard', {}, 'bi-bar-chart'),
    ('user-management', 'User Management', 'users:user_management', {}, 'bi-people-fill'),
    ('profile', 'Profile', 'users:profile', {}, 'bi-person-circle'),
)


def role_navigation(request):
    """Sidebar entries for the services the signed-in user's role may open"""
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return {}

    config = get_role_config(user)
    allowed = set(config['allowed_services']) if config else set()
    nav_items = [
        {'id': service_id, 'label': label, 'url': reverse(url_name, kwargs=kwargs), 'icon': icon}
        for service_id, label, url_name, kwargs, icon in NAVIGATION
        if service_id in allowed
    ]
    return {'role_config': config, 'nav_items': nav_items}
