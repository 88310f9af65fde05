"""ASGI entry point; settings are selected the same way as for WSGI."""
from django.core.asgi import get_asgi_application

from config.django import select_settings_module

select_settings_module()

application = get_asgi_application()
