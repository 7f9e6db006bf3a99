"""
Request/response logging middleware for PingWatch.

Every request gets an ``X-Request-ID`` and a pair of log lines on ``api.requests``
with timing and caller context. Values pass through ``sanitize_log_value`` so
bearer secrets sent to the cron endpoints never reach disk.
"""

import logging
import time
import uuid

from api.logging_utils import sanitize_log_value
from django.utils.deprecation import MiddlewareMixin

request_logger = logging.getLogger("api.requests")


class RequestLoggingMiddleware(MiddlewareMixin):
    """Log incoming requests and their responses with duration in milliseconds."""

    def process_request(self, request):
        request._start_time = time.monotonic()

        request_logger.info(
            "Incoming request",
            extra={
                "request_id": getattr(request, "id", None),
                "method": request.method,
                "path": sanitize_log_value(request.path),
                "query_params": sanitize_log_value(dict(request.GET)),
                "ip_address": self._get_client_ip(request),
                "user_agent": request.META.get("HTTP_USER_AGENT", ""),
            },
        )

    def process_response(self, request, response):
        started = getattr(request, "_start_time", None)
        duration_ms = (time.monotonic() - started) * 1000 if started is not None else 0

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            log_level,
            "Request completed",
            extra={
                "request_id": getattr(request, "id", None),
                "method": request.method,
                "path": sanitize_log_value(request.path),
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "response_size_bytes": len(response.content) if hasattr(response, "content") else 0,
            },
        )

        return response

    @staticmethod
    def _get_client_ip(request):
        x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forwarded_for:
            return x_forwarded_for.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR", "unknown")


class RequestIDMiddleware(MiddlewareMixin):
    """Attach a unique ``request.id`` and echo it back as ``X-Request-ID``."""

    def process_request(self, request):
        request.id = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())

    def process_response(self, request, response):
        if hasattr(request, "id"):
            response["X-Request-ID"] = request.id
        return response
