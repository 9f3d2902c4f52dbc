"""
WSGI config for the igilife project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'igilife.settings')

application = get_wsgi_application()
