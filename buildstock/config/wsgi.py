"""
WSGI config for the buildstock project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'buildstock.config.settings')

application = get_wsgi_application()
