"""
WSGI entry point served by gunicorn (`gunicorn config.wsgi`).

DJANGO_ENV=production|test selects the settings module; anything else runs
with config.django.base.
"""
from django.core.wsgi import get_wsgi_application

from config.django import select_settings_module

select_settings_module()

application = get_wsgi_application()
