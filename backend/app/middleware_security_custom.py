"""SecurityMiddleware variant honouring the internal-endpoint redirect exemption."""

from django.middleware.security import SecurityMiddleware as DjangoSecurityMiddleware


class CustomSecurityMiddleware(DjangoSecurityMiddleware):
    """Skip ``SECURE_SSL_REDIRECT`` for requests flagged by ``InternalEndpointMiddleware``."""

    def process_request(self, request):
        if not getattr(request, "_skip_secure_redirect", False):
            return super().process_request(request)

        original_redirect = self.redirect
        self.redirect = False
        try:
            return super().process_request(request)
        finally:
            self.redirect = original_redirect
