"""Tests for the session record model."""

from datetime import datetime, timedelta, timezone

import pytest

from sqlitestore.models import SessionRecord, from_timestamp, to_timestamp


NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_timestamp_conversion_is_utc():
    ts = to_timestamp(NOW)
    back = from_timestamp(ts)
    assert back == NOW
    assert back.tzinfo is timezone.utc


def test_bytearray_payload_normalised_to_bytes():
    record = SessionRecord("tok", bytearray(b"abc"), NOW)
    assert record.data == b"abc"
    assert isinstance(record.data, bytes)


def test_memoryview_payload_normalised_to_bytes():
    record = SessionRecord("tok", memoryview(b"xyz"), NOW)
    assert record.data == b"xyz"


def test_empty_payload_allowed():
    assert SessionRecord("tok", b"", NOW).data == b""


@pytest.mark.parametrize("data,expiry", [(None, NOW), (b"x", None)])
def test_null_fields_rejected(data, expiry):
    with pytest.raises(ValueError):
        SessionRecord("tok", data, expiry)


class TestIsValid:
    def test_future_expiry_is_valid(self):
        record = SessionRecord("tok", b"x", NOW + timedelta(microseconds=1))
        assert record.is_valid(NOW)

    def test_expiry_equal_to_now_is_not_valid(self):
        assert not SessionRecord("tok", b"x", NOW).is_valid(NOW)

    def test_past_expiry_is_not_valid(self):
        assert not SessionRecord("tok", b"x", NOW - timedelta(hours=1)).is_valid(NOW)


@pytest.mark.parametrize("token", [None, 5, b"tok"])
def test_non_str_token_rejected(token):
    with pytest.raises(TypeError):
        SessionRecord(token, b"x", NOW)


@pytest.mark.parametrize("data", [5, "text", [1, 2]])
def test_non_bytes_payload_rejected(data):
    with pytest.raises(TypeError):
        SessionRecord("tok", data, NOW)
