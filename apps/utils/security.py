"""
Security utilities for the Jingally backend.

This module provides:
- Sensitive data filtering for logs
- Security audit logging
- Client IP resolution
- Security headers management
- One-time code generation
"""

import ipaddress
import logging
import re
import secrets
import string
from typing import Any, Dict

from django.conf import settings
from django.http import HttpRequest


# ==================== LOGGING SECURITY ====================

class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log messages.
    Prevents accidental exposure of credentials, tokens and contact details in logs.
    """

    PATTERNS = [
        # Credentials
        (r'password["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'password=***MASKED***'),
        (r'token["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'token=***MASKED***'),
        (r'secret["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'secret=***MASKED***'),
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', 'api_key=***MASKED***'),
        (r'bearer\s+[a-zA-Z0-9._-]+', 'Bearer ***MASKED***'),

        # Card numbers
        (r'\b(?:\d{4}[- ]?){3}\d{4}\b', '****-****-****-****'),

        # Email masking (partial)
        (r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})', r'\1[...]@\2'),

        # Phone numbers in international format
        (r'\+\d{10,14}\b', '***PHONE***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Apply all masking patterns to log message."""
        if record.msg:
            msg = str(record.msg)
            for pattern, replacement in self.PATTERNS:
                msg = re.sub(pattern, replacement, msg, flags=re.IGNORECASE)
            record.msg = msg
        return True


class SecurityAuditLogger:
    """
    Centralized security audit logging for tracking security-related events.
    """

    def __init__(self, logger_name: str = 'security.audit'):
        self.logger = logging.getLogger(logger_name)

    def log_login_attempt(self, email: str, success: bool, ip: str):
        status = 'SUCCESS' if success else 'FAILED'
        self.logger.info(f"LOGIN_{status}: email={email[:3]}***, ip={ip}")

    def log_admin_action(self, action: str, user_id: str, details: Dict[str, Any]):
        """Log privileged operations (assignments, bookings, verifications)."""
        self.logger.info(f"ADMIN_ACTION: {action}, user={user_id}, details={details}")


# ==================== IP VALIDATION ====================

class IPValidator:
    """Client IP helpers."""

    @staticmethod
    def get_client_ip(request: HttpRequest) -> str:
        """Get client IP, honouring the first X-Forwarded-For hop when it is a valid address."""
        forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
        if forwarded:
            candidate = forwarded.split(',')[0].strip()
            try:
                ipaddress.ip_address(candidate)
                return candidate
            except ValueError:
                pass
        return request.META.get('REMOTE_ADDR', '0.0.0.0')


# ==================== SECURITY HEADERS ====================

def add_security_headers(response):
    """Add security headers to a response."""
    response['X-Content-Type-Options'] = 'nosniff'
    response['X-Frame-Options'] = 'DENY'
    response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

    if not settings.DEBUG:
        response['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

    return response


# ==================== TOKENS ====================

class TokenManager:
    """Secure token generation utilities."""

    @staticmethod
    def generate_otp(length: int = 6) -> str:
        """Generate numeric OTP code."""
        return ''.join(secrets.choice(string.digits) for _ in range(length))
