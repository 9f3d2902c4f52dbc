from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model

User = get_user_model()

DEMO_PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Create the demo accounts: admin@igilife.com, agent@igilife.com and client@igilife.com'

    def add_arguments(self, parser):
        parser.add_argument('--password', default=DEMO_PASSWORD, help='Password for all three accounts')
        parser.add_argument('--reset-password', action='store_true',
                            help='Also reset the password of accounts that already exist')

    def handle(self, *args, **options):
        demo_users = [
            {
                'username': 'admin',
                'email': 'admin@igilife.com',
                'first_name': 'Admin',
                'last_name': 'User',
                'role': User.ROLE_ADMIN,
                'department': 'Administration',
                'is_staff': True,
            },
            {
                'username': 'agent',
                'email': 'agent@igilife.com',
                'first_name': 'Agent',
                'last_name': 'Smith',
                'role': User.ROLE_AGENT,
                'department': 'Sales',
                'agent_code': 'AG001',
            },
            {
                'username': 'client',
                'email': 'client@igilife.com',
                'first_name': 'John',
                'last_name': 'Client',
                'role': User.ROLE_CLIENT,
            },
        ]

        created_count = 0
        for fields in demo_users:
            username = fields.pop('username')
            user, created = User.objects.get_or_create(username=username, defaults=fields)

            if created or options['reset_password']:
                user.set_password(options['password'])
                user.save()

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'✓ Created {user.role} account: {user.email}'))
            else:
                self.stdout.write(f'  Account already exists: {user.email}')

        self.stdout.write(self.style.SUCCESS(f'\nDone. {created_count} account(s) created.'))
