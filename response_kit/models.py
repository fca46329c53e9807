"""Lightweight types shared by formatters and the response classifier."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResponseKind(str, Enum):
    """Kinds of envelope a formatter can produce."""

    SUCCESS = "success"
    ERROR = "error"
    VALIDATION = "validation"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class OutgoingResponse:
    """
    Host-independent view of a response produced by a downstream handler.

    Attributes:
        status_code: HTTP status code.
        body: Raw body bytes/text, or an already-decoded JSON value.
        content_type: Value of the Content-Type header ("" when absent).
    """

    status_code: int
    body: Any
    content_type: str = ""

    @property
    def is_raw(self) -> bool:
        return isinstance(self.body, (bytes, bytearray, memoryview, str))

    @property
    def is_json_content(self) -> bool:
        return "application/json" in self.content_type.lower()
