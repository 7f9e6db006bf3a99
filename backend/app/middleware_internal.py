"""
Middleware that lets load-balancer probes reach health endpoints over plain HTTP.

HTTPS enforcement stays on for every other route, including the cron triggers,
which carry a bearer secret.
"""

import logging

logger = logging.getLogger(__name__)


class InternalEndpointMiddleware:
    """
    Mark health-probe requests so the security middleware skips the HTTPS redirect.

    Must be placed before ``CustomSecurityMiddleware`` in ``MIDDLEWARE``.
    """

    HTTP_ALLOWED_PATHS = (
        "/health/",
        "/healthz",
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._is_internal_endpoint(request.path):
            request._skip_secure_redirect = True
            logger.debug(
                "Internal endpoint accessed via HTTP",
                extra={
                    "path": request.path,
                    "method": request.method,
                    "remote_addr": request.META.get("REMOTE_ADDR"),
                },
            )

        return self.get_response(request)

    def _is_internal_endpoint(self, path: str) -> bool:
        return path.startswith(self.HTTP_ALLOWED_PATHS)
