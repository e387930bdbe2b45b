"""ASGI config for the tracker service."""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tracker_service.settings")

application = get_asgi_application()
