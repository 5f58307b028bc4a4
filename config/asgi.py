"""ASGI config for the bookings project.

Exposes the ASGI application for ASGI servers. Nothing here is
async-specific; the same URL configuration is served as under WSGI.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Use the development settings by default. Production servers should set
# DJANGO_SETTINGS_MODULE accordingly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
