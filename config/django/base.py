import structlog

from config.env import BASE_DIR, APPS_DIR, env, env_get  # noqa: F401

DEBUG = env.bool("DEBUG", default=True)

SECRET_KEY = env_get("DJANGO_SECRET_KEY", default="django-insecure-local-attestation-key")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "corsheaders",
    "django_structlog",
    "ninja_extra",
    "src.attestations",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django_structlog.middlewares.RequestMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# The service keeps no state of its own; the database only backs contenttypes/auth.
DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR('db.sqlite3')}"),
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

NINJA_EXTRA = {
    "THROTTLE_RATES": {
        "burst": env.str("THROTTLE_BURST", default="30/min"),
        "sustained": env.str("THROTTLE_SUSTAINED", default="1000/day"),
    },
}

from config.settings.cors import *  # noqa
from config.settings.attestation import *  # noqa

# Logging: stdlib loggers rendered as logfmt through structlog's ProcessorFormatter
LOG_LEVEL = env.str("LOG_LEVEL", default="INFO")

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "logfmt_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": [
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.stdlib.ExtraAdder(),
            ],
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "logfmt_formatter",
        },
    },
    "root": {"level": LOG_LEVEL, "handlers": ["console"]},
    "loggers": {
        "django_structlog": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
        "src": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
        # web3 logs every request body at DEBUG
        "web3": {"level": "WARNING", "handlers": ["console"], "propagate": False},
    },
}

DJANGO_STRUCTLOG_CELERY_ENABLED = False
