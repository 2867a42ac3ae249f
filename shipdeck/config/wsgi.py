"""
WSGI config for the shipdeck project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shipdeck.config.settings')

application = get_wsgi_application()
