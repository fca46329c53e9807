"""
Adapter turning raised exceptions into a closed set of error variants.

The exception formatter only ever looks at ``ErrorDescriptor.tag``; all
knowledge of framework exception types lives in ``describe_exception``.
"""

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from .exceptions import ValidationFailed

# Leading ``loc`` segments that name the request part rather than a field
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


class ErrorTag(str, Enum):
    GENERIC = "generic"
    HTTP = "http"
    DATA_STORE = "data_store"
    VALIDATION = "validation"


@dataclass(frozen=True)
class ErrorDescriptor:
    """Everything the formatters need to know about a raised error."""

    tag: ErrorTag
    kind: str
    message: str
    status_code: int | None = None
    field_errors: dict[str, list[str]] | None = None
    file: str = "unknown"
    line: int = 0
    trace: tuple[dict[str, Any], ...] = ()
    headers: dict[str, str] | None = field(default=None, compare=False)
    # Structured HTTP error detail (dict or list) that has no message form
    detail: Any = field(default=None, compare=False)


def kind_identifier(exc: BaseException) -> str:
    """Qualified class name of an exception; builtins are shown bare."""
    return _qualified_name(type(exc))


def describe_exception(exc: BaseException, data_store_errors: Iterable[str] = ()) -> ErrorDescriptor:
    """
    Classify an exception into an ``ErrorDescriptor``.

    Args:
        exc: The raised exception
        data_store_errors: Qualified class names identifying data-store errors
    """
    frames = _stack_frames(exc)
    origin = frames[0] if frames else {"file": "unknown", "line": 0}
    common = {
        "kind": kind_identifier(exc),
        "file": origin["file"],
        "line": origin["line"],
        "trace": frames,
    }

    field_errors = _validation_errors(exc)
    if field_errors is not None:
        message = exc.message if isinstance(exc, ValidationFailed) else ""
        return ErrorDescriptor(
            tag=ErrorTag.VALIDATION, message=message, status_code=422, field_errors=field_errors, **common
        )

    if isinstance(exc, HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else ""
        return ErrorDescriptor(
            tag=ErrorTag.HTTP,
            message=message,
            status_code=exc.status_code,
            headers=dict(exc.headers) if exc.headers else None,
            detail=None if isinstance(exc.detail, str) else exc.detail,
            **common,
        )

    data_store_names = set(data_store_errors)
    if any(_qualified_name(cls) in data_store_names for cls in type(exc).__mro__):
        return ErrorDescriptor(tag=ErrorTag.DATA_STORE, message=str(exc), **common)

    return ErrorDescriptor(tag=ErrorTag.GENERIC, message=str(exc), **common)


def _qualified_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _stack_frames(exc: BaseException) -> tuple[dict[str, Any], ...]:
    # Innermost frame (the raise site) first
    summary = traceback.extract_tb(exc.__traceback__)
    return tuple(
        {
            "file": frame.filename,
            "line": frame.lineno or 0,
            "function": frame.name,
            "code": frame.line or None,
        }
        for frame in reversed(summary)
    )


def _validation_errors(exc: BaseException) -> dict[str, list[str]] | None:
    if isinstance(exc, ValidationFailed):
        return exc.errors
    if isinstance(exc, (RequestValidationError, ValidationError)):
        grouped: dict[str, list[str]] = {}
        for error in exc.errors():
            grouped.setdefault(_field_name(error.get("loc", ())), []).append(
                error.get("msg", "Invalid value")
            )
        return grouped
    return None


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in _REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(parts) or "body"
