"""
ASGI config for the shipdeck project.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shipdeck.config.settings')

application = get_asgi_application()
