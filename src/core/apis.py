from __future__ import annotations
from typing import Any

from ninja_extra.controllers import ControllerBase


class BaseAPIController(ControllerBase):
    def create_response(self, *, ok: bool, status: str, body: dict[str, Any] | None = None, status_code: int = 200):
        payload = {"ok": ok, "status": status}
        payload.update(body or {})

        request = getattr(self, "context", None) and getattr(self.context, "request", None)
        if request:
            request_id = request.headers.get("X-Request-Id", "") or request.META.get("HTTP_X_REQUEST_ID", "") or ""
            if request_id:
                payload["request_id"] = request_id

        return super().create_response(payload, status_code=status_code)
