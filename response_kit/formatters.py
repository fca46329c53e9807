"""Formatters that render envelopes into JSON responses."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .envelope import EnvelopeBuilder
from .errors import ErrorDescriptor, ErrorTag, describe_exception
from .models import ResponseKind

logger = logging.getLogger(__name__)


class ResponseFormatter(ABC):
    """Capability shared by every formatter."""

    def __init__(self, builder: EnvelopeBuilder):
        self.builder = builder

    @property
    def settings(self):
        return self.builder.settings

    @abstractmethod
    def format(
        self, data: Any, message: str, status_code: int, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        """Render ``data`` as an envelope with the given status code."""

    @property
    @abstractmethod
    def response_type(self) -> ResponseKind:
        """Kind of envelope this formatter produces."""


class SuccessFormatter(ResponseFormatter):
    def format(
        self, data: Any, message: str | None = None, status_code: int = 200, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        return JSONResponse(self.builder.build_success(data, message, meta), status_code=status_code)

    def format_paginated(
        self,
        items: list[Any],
        pagination: Any,
        message: str | None = None,
        status_code: int = 200,
        meta: Mapping[str, Any] | None = None,
    ) -> JSONResponse:
        return JSONResponse(
            self.builder.build_paginated(items, pagination, message, meta), status_code=status_code
        )

    @property
    def response_type(self) -> ResponseKind:
        return ResponseKind.SUCCESS


class ErrorFormatter(ResponseFormatter):
    def format(
        self, data: Any, message: str, status_code: int = 500, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        return JSONResponse(self.builder.build_error(message, data, meta), status_code=status_code)

    def format_with_errors(
        self, message: str, errors: Any, status_code: int = 500, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        return self.format(errors, message, status_code, meta)

    @property
    def response_type(self) -> ResponseKind:
        return ResponseKind.ERROR


class ValidationFormatter(ResponseFormatter):
    """Renders field-level validation failures; always 422."""

    default_message = "Validation failed"

    def format(
        self, data: Any, message: str, status_code: int = 422, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        errors = data if isinstance(data, Mapping) else {}
        return JSONResponse(
            self.builder.build_validation_error(errors, message, meta), status_code=status_code
        )

    def format_errors(
        self, errors: Mapping[str, Any], message: str | None = None, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        return self.format(errors, message or self.default_message, 422, meta)

    def format_exception(
        self, error: BaseException | ErrorDescriptor, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        """Render a validation failure raised by the framework or application code."""
        if not isinstance(error, ErrorDescriptor):
            error = describe_exception(error, self.settings.data_store_errors)
        return self.format(error.field_errors or {}, error.message or self.default_message, 422, meta)

    def set_default_message(self, message: str) -> None:
        self.default_message = message

    @property
    def response_type(self) -> ResponseKind:
        return ResponseKind.VALIDATION


class ExceptionFormatter(ResponseFormatter):
    """
    Converts raised errors into error envelopes.

    Sensitive detail (exception class, location and stack trace) is only
    included when ``debug.show_trace`` is enabled.
    """

    def __init__(self, builder: EnvelopeBuilder, validation_formatter: ValidationFormatter):
        super().__init__(builder)
        self.validation_formatter = validation_formatter

    def format(
        self, data: Any, message: str, status_code: int = 500, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        if isinstance(data, (BaseException, ErrorDescriptor)):
            return self.format_exception(data, meta)
        return JSONResponse(self.builder.build_error(message, None, meta), status_code=status_code)

    def format_exception(
        self, exc: BaseException | ErrorDescriptor, meta: Mapping[str, Any] | None = None
    ) -> JSONResponse:
        error = exc if isinstance(exc, ErrorDescriptor) else describe_exception(exc, self.settings.data_store_errors)

        if error.tag is ErrorTag.VALIDATION:
            return self.validation_formatter.format_exception(error, meta)

        status_code = self.get_status_code(error)
        return JSONResponse(
            self.builder.build_error(self.get_message(error), self.get_error_details(error), meta),
            status_code=status_code,
            headers=error.headers,
        )

    def get_status_code(self, error: ErrorDescriptor) -> int:
        if error.tag is ErrorTag.HTTP and error.status_code:
            return error.status_code
        return 500

    def get_message(self, error: ErrorDescriptor) -> str:
        override = self.settings.exception_messages.get(error.kind)
        if override:
            return override

        if error.tag is ErrorTag.DATA_STORE and self.settings.debug.hide_sql_errors:
            return "A database error occurred"

        if error.tag is ErrorTag.HTTP:
            return error.message or self.settings.status_message(self.get_status_code(error))

        if not self.settings.debug.show_trace:
            return "An unexpected error occurred"

        return error.message or "An error occurred"

    def get_error_details(self, error: ErrorDescriptor) -> dict[str, Any] | None:
        if not self.settings.debug.show_trace:
            return None

        trace = list(error.trace)
        # A cap of zero means no cap
        if self.settings.max_trace_frames > 0:
            trace = trace[: self.settings.max_trace_frames]

        details = {
            "exception": error.kind,
            "message": error.message,
            "file": error.file,
            "line": error.line,
            "trace": trace,
        }
        if error.detail is not None:
            details["detail"] = jsonable_encoder(error.detail)
        return details

    @property
    def response_type(self) -> ResponseKind:
        return ResponseKind.EXCEPTION


BUILTIN_FORMATTERS: dict[ResponseKind, type[ResponseFormatter]] = {
    ResponseKind.SUCCESS: SuccessFormatter,
    ResponseKind.ERROR: ErrorFormatter,
    ResponseKind.VALIDATION: ValidationFormatter,
    ResponseKind.EXCEPTION: ExceptionFormatter,
}


class FormatterRegistry:
    """
    Maps each response kind to the formatter class used to render it.

    Overrides are checked once, when the registry is built at startup. An
    override must subclass the built-in formatter for its kind; anything
    else is reported and the built-in is kept.
    """

    def __init__(self, overrides: Mapping[ResponseKind | str, type | None] | None = None):
        self._classes: dict[ResponseKind, type[ResponseFormatter]] = dict(BUILTIN_FORMATTERS)

        for key, formatter_class in (overrides or {}).items():
            try:
                kind = ResponseKind(key)
            except ValueError:
                logger.warning("Ignoring formatter override for unknown response kind %r", key)
                continue

            if formatter_class is None:
                continue

            base = BUILTIN_FORMATTERS[kind]
            if not (isinstance(formatter_class, type) and issubclass(formatter_class, base)):
                logger.warning(
                    "Ignoring formatter override %r for '%s': it must subclass %s",
                    formatter_class,
                    kind.value,
                    base.__name__,
                )
                continue

            logger.info("Using %s for '%s' responses", formatter_class.__name__, kind.value)
            self._classes[kind] = formatter_class

    def resolve(self, kind: ResponseKind | str) -> type[ResponseFormatter]:
        return self._classes[ResponseKind(kind)]
