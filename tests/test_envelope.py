"""Tests for envelope construction and request IDs."""

import re

from response_kit import EnvelopeBuilder, OffsetPagination, RequestIdGenerator, load_settings

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")
REQUEST_ID = re.compile(r"^LH-\d{14}-[0-9A-F]{8}$")


def make_builder(**overrides) -> EnvelopeBuilder:
    settings = load_settings(**overrides)
    return EnvelopeBuilder(settings, RequestIdGenerator(settings.request_id_prefix))


def test_request_id_format():
    """Test that generated IDs are prefix + timestamp + 8 uppercase hex characters."""
    assert REQUEST_ID.match(RequestIdGenerator().get())


def test_request_id_custom_prefix():
    """Test that the prefix is configurable."""
    assert RequestIdGenerator("REQ-").get().startswith("REQ-")


def test_request_id_is_memoized():
    """Test that repeated reads in one request return the same ID."""
    ids = RequestIdGenerator()
    assert ids.get() == ids.get() == ids.generate()


def test_request_id_reset_generates_new_id():
    """Test that reset() makes the next read produce a different ID."""
    ids = RequestIdGenerator()
    first = ids.get()
    ids.reset()
    assert ids.get() != first


def test_request_id_can_be_set():
    """Test that a caller-supplied ID replaces the current one, before or after generation."""
    ids = RequestIdGenerator()
    ids.set_request_id("CUSTOM-1")
    assert ids.get() == "CUSTOM-1"
    ids.set_request_id("CUSTOM-2")
    assert ids.get() == "CUSTOM-2"


def test_separate_generators_do_not_share_state():
    """Test that each request owns its own ID."""
    first, second = RequestIdGenerator(), RequestIdGenerator()
    first.set_request_id("A")
    assert second.get() != "A"


def test_build_success_shape():
    """Test the success envelope keys, order and defaults."""
    envelope = make_builder().build_success({"id": 1})

    assert list(envelope) == ["success", "message", "data", "meta"]
    assert envelope["success"] is True
    assert envelope["message"] == "Success"
    assert envelope["data"] == {"id": 1}
    assert REQUEST_ID.match(envelope["meta"]["request_id"])
    assert TIMESTAMP.match(envelope["meta"]["timestamp"])


def test_build_success_uses_configured_default_message():
    """Test that default_message is used when no message is given."""
    envelope = make_builder(default_message="OK").build_success(None)
    assert envelope["message"] == "OK"
    assert envelope["data"] is None


def test_build_error_shape():
    """Test the error envelope keys and values."""
    envelope = make_builder().build_error("Nope", {"reason": "x"})

    assert list(envelope) == ["success", "message", "errors", "meta"]
    assert envelope["success"] is False
    assert envelope["errors"] == {"reason": "x"}


def test_build_error_without_errors_is_null():
    """Test that errors default to None."""
    assert make_builder().build_error("Nope")["errors"] is None


def test_custom_keys_are_used():
    """Test that configured key names replace the defaults."""
    builder = make_builder(
        keys={"success": "ok", "message": "msg", "data": "payload", "errors": "problems", "meta": "info"}
    )

    assert list(builder.build_success([1])) == ["ok", "msg", "payload", "info"]
    assert list(builder.build_error("x")) == ["ok", "msg", "problems", "info"]


def test_validation_errors_keep_first_message():
    """Test that each field maps to its first message and empty lists map to ""."""
    envelope = make_builder().build_validation_error(
        {"email": ["Taken", "Too long"], "name": ["Required"], "age": []}
    )

    assert envelope["message"] == "Validation failed"
    assert envelope["errors"] == {"email": "Taken", "name": "Required", "age": ""}


def test_validation_errors_keep_plain_strings():
    """Test that a field already given as a string is kept as-is."""
    envelope = make_builder().build_validation_error({"email": "Taken"}, "Invalid input")
    assert envelope["errors"] == {"email": "Taken"}
    assert envelope["message"] == "Invalid input"


def test_meta_shares_request_id_across_envelopes():
    """Test that all envelopes built for one request carry the same request ID."""
    builder = make_builder()
    assert builder.build_success(1)["meta"]["request_id"] == builder.build_error("x")["meta"]["request_id"]


def test_meta_extra_keys_are_merged_last():
    """Test that caller meta is added and may replace the generated keys."""
    meta = make_builder().build_meta({"version": "v2", "request_id": "mine"})

    assert meta["version"] == "v2"
    assert meta["request_id"] == "mine"
    assert "timestamp" in meta


def test_build_paginated_puts_pagination_in_meta():
    """Test that pagination goes to meta and data holds only the items."""
    pagination = OffsetPagination(current_page=1, last_page=1, per_page=10, total=2, from_=1, to=2)
    envelope = make_builder().build_paginated([{"id": 1}, {"id": 2}], pagination, "Items")

    assert envelope["data"] == [{"id": 1}, {"id": 2}]
    assert envelope["message"] == "Items"
    assert envelope["meta"]["pagination"]["total"] == 2
    assert envelope["meta"]["pagination"]["from"] == 1
    assert "pagination" not in envelope["data"]


def test_build_paginated_extra_meta_wins_over_pagination():
    """Test the merge order: base meta, then pagination, then caller meta."""
    envelope = make_builder().build_paginated([], {"per_page": 5}, extra_meta={"pagination": "custom"})
    assert envelope["meta"]["pagination"] == "custom"
