"""Builds envelope dictionaries using the configured key names."""

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel

from .config import Settings
from .request_id import RequestIdGenerator


class EnvelopeBuilder:
    """
    Pure construction of success, error, validation and paginated envelopes.

    Every envelope of one request shares the request ID held by ``request_ids``.
    """

    def __init__(self, settings: Settings, request_ids: RequestIdGenerator):
        self.settings = settings
        self.request_ids = request_ids

    @property
    def keys(self):
        return self.settings.keys

    def build_success(
        self, data: Any, message: str | None = None, extra_meta: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        return {
            self.keys.success: True,
            self.keys.message: message if message is not None else self.settings.default_message,
            self.keys.data: data,
            self.keys.meta: self.build_meta(extra_meta),
        }

    def build_error(
        self, message: str, errors: Any = None, extra_meta: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        return {
            self.keys.success: False,
            self.keys.message: message,
            self.keys.errors: errors,
            self.keys.meta: self.build_meta(extra_meta),
        }

    def build_validation_error(
        self,
        field_errors: Mapping[str, Any],
        message: str = "Validation failed",
        extra_meta: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        return self.build_error(message, flatten_field_errors(field_errors), extra_meta)

    def build_paginated(
        self,
        items: list[Any],
        pagination: BaseModel | Mapping[str, Any],
        message: str | None = None,
        extra_meta: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Build a success envelope for one page of items.

        The pagination block goes to ``meta.pagination``; ``data`` only holds the items.
        """
        if isinstance(pagination, BaseModel):
            pagination = pagination.model_dump(by_alias=True)
        meta = {"pagination": dict(pagination), **(extra_meta or {})}
        return self.build_success(list(items), message, meta)

    def build_meta(self, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        Build the meta block.

        Caller-supplied keys are merged last and replace ``request_id``,
        ``timestamp`` or ``pagination`` when they reuse those names.
        """
        meta = {
            "request_id": self.request_ids.get(),
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        meta.update(extra or {})
        return meta


def flatten_field_errors(field_errors: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the first message per field; an empty list becomes ""."""
    flattened = {}
    for field, messages in field_errors.items():
        if isinstance(messages, (list, tuple)):
            flattened[field] = messages[0] if messages else ""
        else:
            flattened[field] = messages
    return flattened
