import logging.config
import multiprocessing
import os
import re

import structlog


bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")

# Each request may block on RPC reads and a receipt wait per schema
cpu_count = multiprocessing.cpu_count()
max_workers = 8
workers = int(os.environ.get("GUNICORN_WORKERS", min(cpu_count * 2 + 1, max_workers)))
worker_class = "sync"

# Must exceed ATTESTATION_RECEIPT_TIMEOUT plus the verification round-trips
timeout = int(os.environ.get("GUNICORN_TIMEOUT", 180))
graceful_timeout = 30
keepalive = 5

max_requests = 1000
max_requests_jitter = 50
preload_app = True

loglevel = "info"
errorlog = "-"
accesslog = "-"

# 192.168.1.1 - - [27/Dec/2025:17:30:00 +0000] "POST /api/verify-and-attest HTTP/1.1" 200 123 "-" "curl/8.0" host="api.example.com" rt=0.412
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" host="%({Host}i)s" rt=%(L)s'

_ACCESS_RE = re.compile(
    r"\s+".join(
        [
            r"(?P<remote>\S+)",
            r"\S+",
            r"(?P<user>\S+)",
            r"\[(?P<time>.+)\]",
            r'"(?P<request>.+)"',
            r"(?P<status>[0-9]+)",
            r"(?P<size>\S+)",
            r'"(?P<referer>.*)"',
            r'"(?P<agent>.*)"',
            r'host="(?P<host_header>.*)"',
            r"rt=(?P<duration_s>[0-9.]+)",
        ]
    )
    + r"\s*\Z"
)


def access_log_fields(logger, name, event_dict):
    """Split gunicorn access lines into structured fields; unknown formats pass through."""
    if event_dict.get("logger") != "gunicorn.access":
        return event_dict

    m = _ACCESS_RE.match(event_dict.get("event", ""))
    if not m:
        return event_dict

    res = m.groupdict()
    res["user"] = None if res["user"] == "-" else res["user"]
    res["referer"] = None if res["referer"] == "-" else res["referer"]
    res["status"] = int(res["status"])
    res["size"] = int(res["size"]) if res["size"].isdigit() else 0
    res["duration_s"] = float(res["duration_s"])
    event_dict.update(res)

    parts = res["request"].split(" ")
    if len(parts) == 3:
        event_dict["method"], event_dict["path"], event_dict["version"] = parts
    else:
        event_dict["request_raw"] = res["request"]
    event_dict["event"] = "gunicorn.request_handling"
    return event_dict


def gunicorn_event_name_mapper(logger, name, event_dict):
    if event_dict.get("logger") != "gunicorn.error":
        return event_dict

    raw_event = event_dict.get("event")
    if not isinstance(raw_event, str):
        return event_dict

    event = raw_event.lower()
    event_dict["message"] = event
    if event.startswith(("starting", "listening", "using", "booting")):
        event_dict["event"] = "gunicorn.booting"
    elif event.startswith("handling signal"):
        event_dict["event"] = "gunicorn.signal_handling"
    return event_dict


pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    access_log_fields,
    gunicorn_event_name_mapper,
]

logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {"level": "INFO", "handlers": ["default"]},
    "loggers": {
        "gunicorn.error": {"level": "INFO", "handlers": ["default"], "propagate": False, "qualname": "gunicorn.error"},
        "gunicorn.access": {"level": "INFO", "handlers": ["default"], "propagate": False, "qualname": "gunicorn.access"},
        "django_structlog": {"level": "INFO", "handlers": ["default"], "propagate": False},
    },
    "handlers": {
        "default": {"class": "logging.StreamHandler", "formatter": "logfmt_formatter"},
    },
    "formatters": {
        "logfmt_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": pre_chain,
        }
    },
}

logging.config.dictConfig(logconfig_dict)
