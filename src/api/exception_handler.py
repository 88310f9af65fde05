import logging
import traceback

from django.conf import settings
from ninja_extra import NinjaExtraAPI
from ninja.errors import ValidationError as NinjaValidationError
from ninja.errors import HttpError

from src.core.exceptions import APIError

logger = logging.getLogger(__name__)


def _debug_enabled() -> bool:
    return bool(settings.DEBUG or getattr(settings, "ATTESTATION_DEBUG", False))


def attach_exception_handlers(api: NinjaExtraAPI) -> None:
    def _envelope(request, *, error: str, status: int, code: str, details=None, extra=None):
        body = {
            "ok": False,
            "status": "failed",
            "error": error,
            "code": code,
        }
        if details is not None:
            body["details"] = details
        body.update(extra or {})
        request_id = request.headers.get("X-Request-Id", "") or request.META.get("HTTP_X_REQUEST_ID", "") or ""
        if request_id:
            body["request_id"] = request_id
        return api.create_response(request, body, status=status)

    @api.exception_handler(APIError)
    def on_api_error(request, exc: APIError):
        return _envelope(
            request,
            error=exc.message,
            status=exc.status,
            code=exc.code,
            details=exc.errors,
            extra=exc.extra,
        )

    @api.exception_handler(NinjaValidationError)
    def on_ninja_validation_error(request, exc: NinjaValidationError):
        return _envelope(
            request,
            error="Invalid request body",
            status=400,
            code="INVALID_REQUEST",
            details=exc.errors,
        )

    @api.exception_handler(HttpError)
    def on_http_error(request, exc: HttpError):
        return _envelope(
            request,
            error=str(exc),
            status=exc.status_code,
            code="HTTP_ERROR",
        )

    @api.exception_handler(Exception)
    def on_unexpected_error(request, exc: Exception):
        logger.exception("Unhandled error while serving %s", request.path)
        details = None
        extra = {}
        if _debug_enabled():
            details = str(exc)
            extra["stack"] = traceback.format_exc(limit=10)
        return _envelope(
            request,
            error="Internal server error",
            status=500,
            code="INTERNAL_ERROR",
            details=details,
            extra=extra,
        )
