# services/catalog.py
"""
Plans offered by the add-on services and the service types agents can provide.
Prices are PKR per month (per employee for employee life cover).
"""
import time

TRACKING_PLANS = {
    'basic': {
        'label': 'Basic Tracking',
        'monthly_price': 2500,
        'features': ['Real-time location', 'Speed monitoring', 'Route history'],
    },
    'standard': {
        'label': 'Standard Tracking',
        'monthly_price': 4500,
        'features': ['All Basic features', 'Geofencing alerts', 'Driver behavior analysis', 'Mobile app access'],
    },
    'premium': {
        'label': 'Premium Tracking',
        'monthly_price': 7500,
        'features': ['All Standard features', 'Advanced analytics', 'Fleet management', '24/7 monitoring',
                     'Emergency response'],
    },
}

LIFE_COVERAGE_PLANS = {
    'basic': {
        'label': 'Basic Life Coverage',
        'monthly_price': 500,
        'coverage': 500000,
        'features': ['Life insurance coverage', 'Accidental death benefit', 'Basic claims processing',
                     'Online portal access'],
    },
    'standard': {
        'label': 'Standard Life Coverage',
        'monthly_price': 850,
        'coverage': 1000000,
        'features': ['All Basic features', 'Terminal illness benefit', 'Family support services', 'Wellness programs',
                     'Flexible beneficiary options'],
    },
    'premium': {
        'label': 'Premium Life Coverage',
        'monthly_price': 1200,
        'coverage': 2000000,
        'features': ['All Standard features', 'Critical illness coverage', 'Mental health support',
                     'Employee assistance program', 'Annual health checkups', 'Retirement planning'],
    },
}

SERVICE_TYPES = (
    ('car-insurance', 'Car Insurance'),
    ('bike-insurance', 'Bike Insurance'),
    ('life-insurance', 'Life Insurance'),
    ('travel-insurance', 'Travel Insurance'),
    ('corporate-insurance', 'Corporate Insurance'),
    ('employee-health', 'Employee Health'),
    ('employee-life', 'Employee Life'),
    ('car-tracker', 'Car Tracker Service'),
)


def plan_choices(plans):
    return [(key, plan['label']) for key, plan in plans.items()]


def price_label(plan, per_employee=False):
    unit = '/employee/month' if per_employee else '/month'
    return f"PKR {plan['monthly_price']:,}{unit}"


def generate_policy_number(service_type, timestamp=None):
    """IGI-<SERVICE TYPE>-<epoch millis>, used when the agent leaves it blank"""
    if timestamp is None:
        timestamp = time.time()
    return f"IGI-{service_type.upper()}-{int(timestamp * 1000)}"
