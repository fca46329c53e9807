"""Pagination blocks and page helpers for paginated envelopes."""

import math
from typing import Any, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field

OFFSET_FIELDS = ("current_page", "last_page", "per_page", "total", "from", "to", "next_page_url", "prev_page_url")
CURSOR_FIELDS = ("per_page", "next_cursor", "prev_cursor", "next_page_url", "prev_page_url")


class OffsetPagination(BaseModel):
    """Page-number pagination metadata."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None
    next_page_url: str | None = None
    prev_page_url: str | None = None


class CursorPagination(BaseModel):
    """Cursor pagination metadata."""

    per_page: int
    next_cursor: str | None = None
    prev_cursor: str | None = None
    next_page_url: str | None = None
    prev_page_url: str | None = None


class Page(BaseModel):
    """
    One page of an offset-paginated result.

    Attributes:
        items: Items on this page.
        total: Total number of items across all pages.
        current_page: 1-based page number.
        per_page: Page size (defaults to the configured ``per_page``).
        path: Base URL used to build next/previous page links.
    """

    items: list[Any]
    total: int = Field(ge=0)
    current_page: int = Field(default=1, ge=1)
    per_page: int | None = Field(default=None, gt=0)
    path: str | None = None

    def pagination(self, default_per_page: int = 10) -> OffsetPagination:
        per_page = self.per_page or default_per_page
        last_page = max(math.ceil(self.total / per_page), 1)
        first_item = (self.current_page - 1) * per_page + 1 if self.items else None
        last_item = first_item + len(self.items) - 1 if first_item is not None else None
        return OffsetPagination(
            current_page=self.current_page,
            last_page=last_page,
            per_page=per_page,
            total=self.total,
            from_=first_item,
            to=last_item,
            next_page_url=self._page_url(self.current_page + 1) if self.current_page < last_page else None,
            prev_page_url=self._page_url(self.current_page - 1) if self.current_page > 1 else None,
        )

    def _page_url(self, page: int) -> str | None:
        return _with_param(self.path, "page", page)


class CursorPage(BaseModel):
    """One page of a cursor-paginated result."""

    items: list[Any]
    per_page: int | None = Field(default=None, gt=0)
    next_cursor: str | None = None
    prev_cursor: str | None = None
    path: str | None = None

    def pagination(self, default_per_page: int = 10) -> CursorPagination:
        return CursorPagination(
            per_page=self.per_page or default_per_page,
            next_cursor=self.next_cursor,
            prev_cursor=self.prev_cursor,
            next_page_url=_with_param(self.path, "cursor", self.next_cursor),
            prev_page_url=_with_param(self.path, "cursor", self.prev_cursor),
        )


def detect_pagination(body: Any) -> tuple[list[Any], dict[str, Any]] | None:
    """
    Recognise a serialized paginator and split it into items and pagination block.

    Offset paginators carry ``data``, ``current_page`` and ``total``; cursor
    paginators carry ``data`` and a ``next_cursor`` key (which may be null).
    Returns ``None`` when the body is not a paginator.
    """
    if not isinstance(body, Mapping) or "data" not in body:
        return None

    if "current_page" in body and "total" in body:
        fields = OFFSET_FIELDS
    elif "next_cursor" in body:
        fields = CURSOR_FIELDS
    else:
        return None

    items = body["data"]
    if items is None:
        items = []
    elif isinstance(items, (list, tuple)):
        items = list(items)
    else:
        items = [items]

    return items, {name: body.get(name) for name in fields}


def _with_param(path: str | None, name: str, value: Any) -> str | None:
    if not path or value is None:
        return None
    return str(httpx.URL(path).copy_merge_params({name: value}))
