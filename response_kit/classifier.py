"""Decides how an outgoing response or raised error should be enveloped."""

import json
import logging
from typing import Any, Callable, Mapping

from fastapi.responses import JSONResponse

from .errors import ErrorTag, describe_exception
from .kit import ResponseKit
from .models import OutgoingResponse
from .pagination import detect_pagination

logger = logging.getLogger(__name__)


class ResponseClassifier:
    """
    Inspects one outgoing response per call and picks the formatter for it.

    Holds no state beyond the request's ``ResponseKit``.
    """

    def __init__(self, kit: ResponseKit):
        self.kit = kit
        self.settings = kit.settings

    def should_bypass(self, path: str) -> bool:
        """True when formatting is disabled or the path is excluded."""
        if not self.settings.middleware.enabled:
            return True
        if self.settings.is_route_excluded(path):
            logger.debug("Skipping response formatting for excluded route %s", path)
            return True
        return False

    def handle(self, path: str, handler: Callable[[], OutgoingResponse]) -> OutgoingResponse | JSONResponse:
        """
        Run ``handler`` and return either its response unchanged or a formatted envelope.

        Errors raised by ``handler`` on included routes always become error envelopes.
        """
        if self.should_bypass(path):
            return handler()

        try:
            response = handler()
        except Exception as exc:
            return self.format_exception(exc)

        formatted = self.classify(response)
        return response if formatted is None else formatted

    def format_exception(self, exc: Exception) -> JSONResponse:
        error = describe_exception(exc, self.settings.data_store_errors)
        if error.tag in (ErrorTag.GENERIC, ErrorTag.DATA_STORE):
            logger.error("Unhandled %s while processing request: %s", error.kind, exc, exc_info=exc)
        return self.kit.exception(error)

    def classify(self, response: OutgoingResponse) -> JSONResponse | None:
        """
        Format an outgoing response, or return ``None`` to pass it through unchanged.
        """
        try:
            is_json, data = self.decode(response)
        except ValueError:
            logger.warning(
                "Response with content type %r has an unparsable JSON body; passing it through",
                response.content_type,
            )
            return None

        if not is_json or self.is_envelope(data):
            return None

        try:
            return self.format_data(response.status_code, data)
        except Exception as exc:
            logger.error("Failed to format response body: %s", exc, exc_info=exc)
            return self.kit.exception(exc)

    def decode(self, response: OutgoingResponse) -> tuple[bool, Any]:
        """
        Return ``(is_json, data)`` for a response.

        Raises:
            ValueError: if the body claims to be JSON but cannot be parsed
        """
        if not response.is_raw:
            return True, response.body
        if not response.is_json_content:
            return False, None
        body = response.body
        if isinstance(body, memoryview):
            body = body.tobytes()
        # Bodiless responses such as 204 keep their JSON content type
        if not body.strip():
            return False, None
        return True, json.loads(body)

    def is_envelope(self, data: Any) -> bool:
        keys = self.settings.keys
        return isinstance(data, Mapping) and keys.success in data and keys.meta in data

    def format_data(self, status_code: int, data: Any) -> JSONResponse:
        if status_code == 422 and isinstance(data, Mapping) and isinstance(data.get("errors"), Mapping):
            return self.kit.validation_error(data["errors"], self._message(data) or "Validation failed")

        if 200 <= status_code < 300:
            page = detect_pagination(data)
            if page is not None:
                items, pagination = page
                return self.kit.success_formatter.format_paginated(items, pagination, status_code=status_code)
            return self.kit.success(data, None, status_code)

        message = self._message(data) or self.settings.status_message(status_code)
        return self.kit.error(message, data, status_code)

    @staticmethod
    def _message(data: Any) -> str | None:
        if isinstance(data, Mapping) and isinstance(data.get("message"), str):
            return data["message"]
        return None
