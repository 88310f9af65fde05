from __future__ import annotations
from typing import Any


class APIError(Exception):
    def __init__(self, *, message: str, code: str, status: int, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.errors = errors
        self.extra = extra or {}


class InvalidRequestError(APIError):
    """Malformed DID, address or transaction hash. Never retried."""

    def __init__(self, *, message: str, code: str = "INVALID_REQUEST", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=400, errors=errors, extra=extra)


class VerificationFailedError(APIError):
    """No proof of control was found for the DID."""

    def __init__(self, *, message: str, code: str = "VERIFICATION_FAILED", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=403, errors=errors, extra=extra)


class ConfigurationError(APIError):
    """Operator-fixable: unknown chain preset, missing resolver, unusable signer."""

    def __init__(self, *, message: str, code: str = "CONFIGURATION_ERROR", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=500, errors=errors, extra=extra)


class AttestationWriteError(APIError):
    def __init__(self, *, message: str, code: str = "ATTESTATION_WRITE_FAILED", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=500, errors=errors, extra=extra)


class NotFoundError(APIError):
    def __init__(self, *, message: str, code: str = "NOT_FOUND", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=404, errors=errors, extra=extra)
