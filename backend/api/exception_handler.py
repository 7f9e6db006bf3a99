"""
Custom exception handler for Django REST Framework.

Sanitizes error responses to prevent information leakage while keeping useful
debugging information in logs.
"""

import logging
import re

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import BasePingWatchException
from .logging_utils import sanitize_log_value

logger = logging.getLogger(__name__)

_DATABASE_HINT = re.compile(r"\b(?:sql|database|relation|table)\b", re.IGNORECASE)

_GENERIC_ERROR = {
    "error": {
        "code": "internal_server_error",
        "message": "An unexpected error occurred. Please try again later.",
    }
}


def custom_exception_handler(exc, context):
    """
    Turn exceptions into sanitized JSON responses.

    PingWatch exceptions render as ``{"error": "<detail>"}``; anything DRF does
    not know about becomes a generic 500 outside DEBUG.
    """
    response = drf_exception_handler(exc, context)

    if response is None:
        response = handle_generic_exception(exc, context)
    elif isinstance(exc, BasePingWatchException):
        response.data = {"error": str(exc.detail)}

    log_exception(exc, context, response)

    if not settings.DEBUG and response is not None:
        response = sanitize_error_response(response, exc)

    return response


def handle_generic_exception(exc, context):
    """Handle exceptions DRF leaves alone (database errors, plain Python errors)."""
    request = context.get("request")
    view = context.get("view")

    message = sanitize_log_value(
        f"Unhandled exception in {view.__class__.__name__ if view else 'unknown'}: {exc}"
    )
    logger.error(
        message,
        exc_info=settings.DEBUG,
        extra={
            "request_path": sanitize_log_value(request.path if request else None),
            "request_method": request.method if request else None,
            "exception_type": type(exc).__name__,
        },
    )

    return Response(dict(_GENERIC_ERROR), status=500)


def sanitize_error_response(response, exc):
    """Strip internal details (SQL, paths, secrets) from error bodies."""
    if not response.data:
        return response

    if isinstance(exc, BasePingWatchException):
        return response

    if isinstance(exc, DatabaseError) or _DATABASE_HINT.search(str(exc)):
        response.data = {
            "error": {
                "code": "database_error",
                "message": "A database error occurred. Please try again later.",
            }
        }
        return response

    safe_types = (
        exceptions.ValidationError,
        exceptions.Throttled,
        exceptions.AuthenticationFailed,
        exceptions.NotAuthenticated,
        exceptions.PermissionDenied,
        PermissionDenied,
        exceptions.NotFound,
        Http404,
    )
    if isinstance(exc, safe_types):
        return response

    if response.status_code >= 500:
        response.data = dict(_GENERIC_ERROR)

    return response


def log_exception(exc, context, response):
    """Log 5xx at ERROR, throttling at INFO and everything else at WARNING."""
    request = context.get("request")
    view = context.get("view")

    if response is not None and response.status_code >= 500:
        log_level = logging.ERROR
    elif isinstance(exc, exceptions.Throttled):
        log_level = logging.INFO
    else:
        log_level = logging.WARNING

    view_name = view.__class__.__name__ if view else "Unknown"
    message = sanitize_log_value(f"{type(exc).__name__} in {view_name}: {exc}")

    logger.log(
        log_level,
        message,
        exc_info=settings.DEBUG and log_level == logging.ERROR,
        extra={
            "exception_type": type(exc).__name__,
            "request_path": sanitize_log_value(request.path if request else "Unknown"),
            "request_method": request.method if request else "Unknown",
            "status_code": response.status_code if response is not None else None,
        },
    )
