"""Consistent JSON response envelopes for FastAPI services."""

from .api import EnvelopeRoute, ResponseKitMiddleware, get_response_kit, install_response_kit
from .classifier import ResponseClassifier
from .config import Settings, get_settings, load_settings
from .envelope import EnvelopeBuilder
from .errors import ErrorDescriptor, ErrorTag, describe_exception
from .exceptions import ConfigurationError, ResponseKitError, ValidationFailed
from .formatters import (
    ErrorFormatter,
    ExceptionFormatter,
    FormatterRegistry,
    ResponseFormatter,
    SuccessFormatter,
    ValidationFormatter,
)
from .kit import ResponseKit
from .models import OutgoingResponse, ResponseKind
from .pagination import CursorPage, CursorPagination, OffsetPagination, Page
from .request_id import RequestIdGenerator

__version__ = "1.0.0"


__all__ = [
    "install_response_kit",
    "get_response_kit",
    "ResponseKitMiddleware",
    "EnvelopeRoute",
    "ResponseKit",
    "ResponseClassifier",
    "Settings",
    "get_settings",
    "load_settings",
    "EnvelopeBuilder",
    "RequestIdGenerator",
    "ResponseFormatter",
    "SuccessFormatter",
    "ErrorFormatter",
    "ValidationFormatter",
    "ExceptionFormatter",
    "FormatterRegistry",
    "ResponseKind",
    "OutgoingResponse",
    "ErrorDescriptor",
    "ErrorTag",
    "describe_exception",
    "Page",
    "CursorPage",
    "OffsetPagination",
    "CursorPagination",
    "ResponseKitError",
    "ConfigurationError",
    "ValidationFailed",
]
