# users/roles.py
"""
What each role may do and which screens (service ids) it may open.
"""
from django.contrib.auth.mixins import LoginRequiredMixin, UserPassesTestMixin

ADMIN = 'admin'
AGENT = 'agent'
CLIENT = 'client'

PERMISSIONS = (
    'can_create_policies',
    'can_edit_policies',
    'can_delete_policies',
    'can_view_all_clients',
    'can_manage_users',
    'can_view_reports',
    'can_process_claims',
    'can_manage_settings',
)

DEFAULT_PERMISSIONS = {
    ADMIN: dict.fromkeys(PERMISSIONS, True),
    AGENT: {
        'can_create_policies': True,
        'can_edit_policies': True,
        'can_delete_policies': False,
        'can_view_all_clients': True,
        'can_manage_users': False,
        'can_view_reports': True,
        'can_process_claims': True,
        'can_manage_settings': False,
    },
    CLIENT: dict.fromkeys(PERMISSIONS, False),
}

ROLE_CONFIGS = {
    ADMIN: {
        'role': ADMIN,
        'title': 'Administrator',
        'description': 'Full system access with all management capabilities',
        'permissions': DEFAULT_PERMISSIONS[ADMIN],
        'allowed_services': [
            'dashboard',
            'policies',
            'clients',
            'car-insurance',
            'bike-insurance',
            'life-insurance',
            'corporate-insurance',
            'travel-insurance',
            'employee-health',
            'reports',
            'settings',
            'user-management',
            'leads-management',
            'service-provision',
            'profile',
        ],
    },
    AGENT: {
        'role': AGENT,
        'title': 'Insurance Agent',
        'description': 'Policy management and client service capabilities',
        'permissions': DEFAULT_PERMISSIONS[AGENT],
        'allowed_services': [
            'dashboard',
            'policies',
            'clients',
            'car-insurance',
            'bike-insurance',
            'life-insurance',
            'travel-insurance',
            'employee-health',
            'corporate-insurance',
            'car-tracker',
            'employee-life',
            'leads-management',
            'service-provision',
            'services',
            'reports',
            'profile',
        ],
    },
    CLIENT: {
        'role': CLIENT,
        'title': 'Client',
        'description': 'View personal policies and access services',
        'permissions': DEFAULT_PERMISSIONS[CLIENT],
        'allowed_services': [
            'dashboard',
            'my-policies',
            'claims',
            'profile',
            'services',
            'car-tracker',
            'employee-life',
            'car-insurance',
            'bike-insurance',
            'life-insurance',
            'travel-insurance',
            'employee-health',
            'corporate-insurance',
        ],
    },
}


def get_role(user):
    if not user.is_authenticated:
        return None
    return getattr(user, 'effective_role', None) or CLIENT


def get_role_config(user):
    return ROLE_CONFIGS.get(get_role(user))


def has_permission(user, permission):
    if permission not in PERMISSIONS:
        raise ValueError(f"Unknown permission: {permission}")
    config = get_role_config(user)
    return bool(config and config['permissions'][permission])


def can_access_service(user, service_id):
    config = get_role_config(user)
    return bool(config and service_id in config['allowed_services'])


def is_client(user):
    return get_role(user) == CLIENT


class ServiceAccessMixin(LoginRequiredMixin, UserPassesTestMixin):
    """Only users whose role lists `service_id` may open the view"""
    service_id = None

    def get_service_id(self):
        return self.service_id

    def test_func(self):
        return can_access_service(self.request.user, self.get_service_id())


class RolePermissionMixin(ServiceAccessMixin):
    """Service access plus one permission flag (e.g. 'can_delete_policies')"""
    permission_required = None

    def test_func(self):
        if not super().test_func():
            return False
        return self.permission_required is None or has_permission(self.request.user, self.permission_required)
