from django.db import models
from django.contrib.auth.models import AbstractUser


class CustomUser(AbstractUser):
    ROLE_ADMIN = 'admin'
    ROLE_AGENT = 'agent'
    ROLE_CLIENT = 'client'

    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_AGENT, 'Insurance Agent'),
        (ROLE_CLIENT, 'Client'),
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CLIENT)
    phone = models.CharField(max_length=20, blank=True)
    department = models.CharField(max_length=100, blank=True)
    agent_code = models.CharField(max_length=20, blank=True, verbose_name="Agent ID")

    @property
    def effective_role(self):
        """Superusers always act as administrators"""
        return self.ROLE_ADMIN if self.is_superuser else self.role

    @property
    def service_owner_id(self):
        """user_id used on the services this account requests (clients use their record id)"""
        return f"user-{self.pk}"

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def __str__(self):
        return f"{self.username} ({self.role})"
