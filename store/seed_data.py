# store/seed_data.py (demo records served when a collection has never been written)

SAMPLE_CLIENTS = [
    {
        'id': '1',
        'name': 'Ahmed Khan',
        'cnic': '42101-1234567-8',
        'contact': '+92-300-1234567',
        'email': 'ahmed.khan@example.com',
        'address': 'House 123, Street 45, F-8, Islamabad',
        'agent_id': 'AGT001',
        'created_at': '2024-01-15',
    },
    {
        'id': '2',
        'name': 'Fatima Ali',
        'cnic': '42201-2345678-9',
        'contact': '+92-321-2345678',
        'email': 'fatima.ali@example.com',
        'address': 'Apartment 56, Block B, DHA, Karachi',
        'agent_id': 'AGT002',
        'created_at': '2024-01-20',
    },
    {
        'id': '3',
        'name': 'Muhammad Hassan',
        'cnic': '42301-3456789-0',
        'contact': '+92-333-3456789',
        'email': 'hassan@example.com',
        'address': 'House 789, Model Town, Lahore',
        'agent_id': 'AGT001',
        'created_at': '2024-02-01',
    },
    {
        'id': '4',
        'name': 'Ayesha Malik',
        'cnic': '42401-4567890-1',
        'contact': '+92-345-4567890',
        'email': 'ayesha.malik@example.com',
        'address': 'Villa 321, Gulshan-e-Iqbal, Karachi',
        'agent_id': 'AGT003',
        'created_at': '2024-02-10',
    },
    {
        'id': '5',
        'name': 'Omar Sheikh',
        'cnic': '42501-5678901-2',
        'contact': '+92-302-5678901',
        'email': 'omar.sheikh@example.com',
        'address': 'House 654, Blue Area, Islamabad',
        'agent_id': 'AGT002',
        'created_at': '2024-02-15',
    },
]

SAMPLE_POLICIES = [
    {
        'id': '1',
        'policy_no': 'IGI-LIFE-001',
        'client_id': '1',
        'client_name': 'Ahmed Khan',
        'policy_type': 'Life',
        'sum_assured': 5000000,
        'premium': 50000,
        'start_date': '2024-01-15',
        'maturity_date': '2044-01-15',
        'status': 'Active',
        'created_at': '2024-01-15',
    },
    {
        'id': '2',
        'policy_no': 'IGI-HEALTH-002',
        'client_id': '2',
        'client_name': 'Fatima Ali',
        'policy_type': 'Health',
        'sum_assured': 2000000,
        'premium': 25000,
        'start_date': '2024-01-20',
        'maturity_date': '2025-01-20',
        'status': 'Active',
        'created_at': '2024-01-20',
    },
    {
        'id': '3',
        'policy_no': 'IGI-SAVE-003',
        'client_id': '3',
        'client_name': 'Muhammad Hassan',
        'policy_type': 'Savings',
        'sum_assured': 3000000,
        'premium': 35000,
        'start_date': '2024-02-01',
        'maturity_date': '2034-02-01',
        'status': 'Active',
        'created_at': '2024-02-01',
    },
    {
        'id': '4',
        'policy_no': 'IGI-LIFE-004',
        'client_id': '4',
        'client_name': 'Ayesha Malik',
        'policy_type': 'Life',
        'sum_assured': 4000000,
        'premium': 40000,
        'start_date': '2024-02-10',
        'maturity_date': '2044-02-10',
        'status': 'Active',
        'created_at': '2024-02-10',
    },
    {
        'id': '5',
        'policy_no': 'IGI-HEALTH-005',
        'client_id': '5',
        'client_name': 'Omar Sheikh',
        'policy_type': 'Health',
        'sum_assured': 1500000,
        'premium': 20000,
        'start_date': '2023-12-15',
        'maturity_date': '2024-12-15',
        'status': 'Expired',
        'created_at': '2023-12-15',
    },
    {
        'id': '6',
        'policy_no': 'IGI-SAVE-006',
        'client_id': '1',
        'client_name': 'Ahmed Khan',
        'policy_type': 'Savings',
        'sum_assured': 2500000,
        'premium': 30000,
        'start_date': '2024-03-01',
        'maturity_date': '2029-03-01',
        'status': 'Active',
        'created_at': '2024-03-01',
    },
]

SEED_DATA = {
    'clients': SAMPLE_CLIENTS,
    'policies': SAMPLE_POLICIES,
}
