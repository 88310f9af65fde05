import os

SETTINGS_BY_ENV = {
    "production": "config.django.production",
    "test": "config.django.test",
}
DEFAULT_SETTINGS = "config.django.base"


def select_settings_module() -> str:
    """Pick the settings module from DJANGO_ENV unless DJANGO_SETTINGS_MODULE is already set."""
    module = SETTINGS_BY_ENV.get(os.environ.get("DJANGO_ENV", "development"), DEFAULT_SETTINGS)
    return os.environ.setdefault("DJANGO_SETTINGS_MODULE", module)
