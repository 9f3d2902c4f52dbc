"""
Test utilities and factories for creating test data
"""
import random
import string

from django.contrib.auth import get_user_model

from store.services import get_store

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, role='client', first_name='Test', last_name='User',
                    password='testpass123', is_superuser=False, **extra):
        """Create a test user with the given role"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        return User.objects.create_user(
            username=username,
            email=extra.pop('email', f'{username}@test.com'),
            password=password,
            role=role,
            first_name=first_name,
            last_name=last_name,
            is_superuser=is_superuser,
            **extra
        )

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_agent(**kwargs):
        return TestDataFactory.create_user(role='agent', **kwargs)

    @staticmethod
    def add_record(collection, **fields):
        """Add a record to a store collection and return it"""
        record, created = get_store().collection(collection).add(fields)
        return record

    @staticmethod
    def create_client(name=None, cnic=None, **fields):
        """Create a test client"""
        if not name:
            name = f'Client {TestDataFactory.random_string(5)}'
        if not cnic:
            cnic = f'42101-{random.randint(1000000, 9999999)}-{random.randint(1, 9)}'
        fields.setdefault('contact', '+92 300 1234567')
        fields.setdefault('email', f'{TestDataFactory.random_string(6).lower()}@test.com')
        return TestDataFactory.add_record('clients', name=name, cnic=cnic, **fields)

    @staticmethod
    def create_car_policy(client_name='Test User', expiry_date='2030-01-01', **fields):
        """Create a test car insurance policy"""
        fields.setdefault('policy_no', f'CAR-{TestDataFactory.random_string(8).upper()}')
        fields.setdefault('registration_no', f'LEA-{random.randint(1000, 9999)}')
        fields.setdefault('vehicle_make', 'Toyota')
        fields.setdefault('vehicle_model', 'Corolla')
        fields.setdefault('premium', 45000)
        fields.setdefault('sum_assured', 2500000)
        return TestDataFactory.add_record(
            'car_policies', client_name=client_name, expiry_date=expiry_date, **fields
        )

    @staticmethod
    def create_policy(client_id='1', client_name='Test User', maturity_date='2035-01-01', **fields):
        """Create a test general policy"""
        fields.setdefault('policy_no', f'IGI-{TestDataFactory.random_string(8).upper()}')
        fields.setdefault('policy_type', 'Life')
        fields.setdefault('premium', 50000)
        fields.setdefault('sum_assured', 1000000)
        fields.setdefault('start_date', '2024-01-01')
        return TestDataFactory.add_record(
            'policies', client_id=client_id, client_name=client_name,
            maturity_date=maturity_date, **fields
        )

    @staticmethod
    def create_lead(email=None, insurance_type='car-insurance', **fields):
        """Create a test quote lead"""
        if not email:
            email = f'{TestDataFactory.random_string(6).lower()}@test.com'
        fields.setdefault('name', 'Lead Person')
        fields.setdefault('phone', '+92 300 7654321')
        return TestDataFactory.add_record('quote_leads', email=email, insurance_type=insurance_type, **fields)
