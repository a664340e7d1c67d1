"""
Request middleware for the Jingally backend.

Adds security headers to every response and writes an access log line
for privileged or state-changing API paths.
"""

import logging
from apps.utils.security import add_security_headers, IPValidator

logger = logging.getLogger('security')


class SecurityHeadersMiddleware:
    """
    Middleware to add security headers to all responses.

    Headers added:
    - X-Frame-Options: DENY
    - X-Content-Type-Options: nosniff
    - Referrer-Policy: strict-origin-when-cross-origin
    - Permissions-Policy
    - Strict-Transport-Security (production only)
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        add_security_headers(response)
        return response


class RequestLoggingMiddleware:
    """
    Middleware to log API requests on sensitive paths.
    Logs: IP, path, method, user, response status.
    """

    SENSITIVE_PATHS = [
        '/api/auth/login/',
        '/api/auth/register/',
        '/api/auth/admin/',
        '/api/shipments/admin/',
        '/api/shipments/bookings/',
        '/api/shipments/assign-driver/',
        '/api/shipments/assign-container/',
        '/api/fleet/',
    ]

    # Payment and customer updates live under per-shipment paths
    SENSITIVE_SUFFIXES = [
        '/payment-status/',
        '/customer-info/',
    ]

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        ip = IPValidator.get_client_ip(request)
        response = self.get_response(request)

        # Authentication happens inside DRF views, so read the user afterwards
        user = getattr(request, 'user', None)
        user_id = getattr(user, 'id', None) if user is not None and user.is_authenticated else None

        if self._is_sensitive(request.path):
            logger.info(
                f"API_ACCESS: path={request.path}, method={request.method}, "
                f"ip={ip}, user={user_id}, status={response.status_code}"
            )

        return response

    def _is_sensitive(self, path: str) -> bool:
        if any(path.startswith(p) for p in self.SENSITIVE_PATHS):
            return True
        return any(path.endswith(s) for s in self.SENSITIVE_SUFFIXES)
