"""Request-scoped entry point for building standardized API responses."""

from typing import Any, Mapping

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from .config import Settings, get_settings
from .envelope import EnvelopeBuilder
from .errors import ErrorDescriptor
from .formatters import (
    ErrorFormatter,
    ExceptionFormatter,
    FormatterRegistry,
    SuccessFormatter,
    ValidationFormatter,
)
from .models import ResponseKind
from .pagination import CursorPage, Page
from .request_id import RequestIdGenerator

Meta = Mapping[str, Any] | None


class ResponseKit:
    """
    Named constructors for success, error and paginated responses.

    Create one instance per request (``get_response_kit`` does this inside
    FastAPI) so every response of that request carries the same request ID.

    Args:
        settings: Configuration snapshot (defaults to the environment snapshot)
        formatters: Formatter registry built at startup (defaults to one built
            from ``settings.formatters``)
        request_ids: Request ID state for this request
    """

    def __init__(
        self,
        settings: Settings | None = None,
        formatters: FormatterRegistry | None = None,
        request_ids: RequestIdGenerator | None = None,
    ):
        self.settings = settings or get_settings()
        self.request_ids = request_ids or RequestIdGenerator(self.settings.request_id_prefix)
        self.builder = EnvelopeBuilder(self.settings, self.request_ids)

        registry = formatters or FormatterRegistry(self.settings.formatters)
        self.success_formatter: SuccessFormatter = registry.resolve(ResponseKind.SUCCESS)(self.builder)
        self.error_formatter: ErrorFormatter = registry.resolve(ResponseKind.ERROR)(self.builder)
        self.validation_formatter: ValidationFormatter = registry.resolve(ResponseKind.VALIDATION)(self.builder)
        self.exception_formatter: ExceptionFormatter = registry.resolve(ResponseKind.EXCEPTION)(
            self.builder, self.validation_formatter
        )

    def success(
        self, data: Any = None, message: str | None = None, status_code: int = 200, meta: Meta = None
    ) -> JSONResponse:
        message = message if message is not None else self.settings.default_message
        return self.success_formatter.format(jsonable_encoder(data), message, status_code, meta)

    def created(self, data: Any = None, message: str = "Resource created successfully", meta: Meta = None):
        return self.success(data, message, 201, meta)

    def accepted(self, data: Any = None, message: str = "Request accepted", meta: Meta = None):
        return self.success(data, message, 202, meta)

    def no_content(self) -> Response:
        """Empty 204 response; the request ID still travels in the response header."""
        return Response(status_code=204)

    def paginated(self, page: Page | CursorPage, message: str | None = None, meta: Meta = None) -> JSONResponse:
        """Success response for one page; pagination details go to ``meta.pagination``."""
        return self.success_formatter.format_paginated(
            jsonable_encoder(page.items),
            page.pagination(self.per_page()),
            message,
            200,
            meta,
        )

    def error(self, message: str, errors: Any = None, status_code: int = 500, meta: Meta = None) -> JSONResponse:
        return self.error_formatter.format_with_errors(message, jsonable_encoder(errors), status_code, meta)

    def validation_error(
        self, errors: Mapping[str, Any], message: str = "Validation failed", meta: Meta = None
    ) -> JSONResponse:
        return self.validation_formatter.format_errors(errors, message, meta)

    def exception(self, exc: BaseException | ErrorDescriptor, meta: Meta = None) -> JSONResponse:
        return self.exception_formatter.format_exception(exc, meta)

    def bad_request(self, message: str = "Bad request", errors: Any = None, meta: Meta = None):
        return self.error(message, errors, 400, meta)

    def unauthorized(self, message: str = "Unauthorized", meta: Meta = None):
        return self.error(message, None, 401, meta)

    def forbidden(self, message: str = "Forbidden", meta: Meta = None):
        return self.error(message, None, 403, meta)

    def not_found(self, message: str = "Resource not found", meta: Meta = None):
        return self.error(message, None, 404, meta)

    def method_not_allowed(self, message: str = "Method not allowed", meta: Meta = None):
        return self.error(message, None, 405, meta)

    def conflict(self, message: str = "Conflict", errors: Any = None, meta: Meta = None):
        return self.error(message, errors, 409, meta)

    def unprocessable_entity(self, message: str = "Unprocessable entity", errors: Any = None, meta: Meta = None):
        return self.error(message, errors, 422, meta)

    def too_many_requests(self, message: str = "Too many requests", meta: Meta = None):
        return self.error(message, None, 429, meta)

    def server_error(self, message: str = "Internal server error", errors: Any = None, meta: Meta = None):
        return self.error(message, errors, 500, meta)

    def service_unavailable(self, message: str = "Service unavailable", meta: Meta = None):
        return self.error(message, None, 503, meta)

    def per_page(self) -> int:
        return self.settings.per_page

    def get_request_id(self) -> str:
        return self.request_ids.get()

    def set_request_id(self, request_id: str) -> None:
        self.request_ids.set_request_id(request_id)

    def reset_request_id(self) -> None:
        self.request_ids.reset()
