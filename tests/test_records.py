"""Tests for record decoding and canonical serialization."""

import io
import json

import pytest

from embedvault.errors import MalformedInputError
from embedvault.records import extract_text, read_records, serialize_record, with_text


class TestReadRecords:
    """Tests for read_records function."""

    def test_reads_one_object_per_line(self):
        """Test newline-delimited objects are yielded in order."""
        stream = io.StringIO('{"search": "a"}\n{"search": "b"}\n')

        records = list(read_records(stream))

        assert records == [{"search": "a"}, {"search": "b"}]

    def test_reads_objects_spanning_lines_and_sharing_lines(self):
        """Test objects may span several lines or sit side by side."""
        stream = io.StringIO('{"search":\n  "a",\n "n": 1} {"search": "b"}')

        records = list(read_records(stream))

        assert records == [{"search": "a", "n": 1}, {"search": "b"}]

    def test_empty_stream_yields_nothing(self):
        """Test whitespace-only input yields no records."""
        assert list(read_records(io.StringIO("  \n\t "))) == []

    def test_object_larger_than_read_block(self):
        """Test an object split across read blocks is reassembled."""
        text = "x" * (200 * 1024)
        stream = io.StringIO(json.dumps({"search": text}))

        records = list(read_records(stream))

        assert records == [{"search": text}]

    def test_invalid_json_raises(self):
        """Test truncated JSON is reported as malformed input."""
        stream = io.StringIO('{"search": "a"}\n{"search": ')

        records = read_records(stream)
        assert next(records) == {"search": "a"}
        with pytest.raises(MalformedInputError, match="error decoding JSON"):
            next(records)

    def test_non_object_value_raises(self):
        """Test top-level values other than objects are rejected."""
        with pytest.raises(MalformedInputError, match="got list"):
            list(read_records(io.StringIO('["search"]')))


class TestExtractText:
    """Tests for extract_text function."""

    def test_returns_field(self):
        """Test the designated field is returned."""
        assert extract_text({"search": "hello", "id": 1}, "search") == "hello"

    def test_missing_field_raises(self):
        """Test a record without the field is malformed."""
        with pytest.raises(MalformedInputError, match="didn't contain the embedding parameter body"):
            extract_text({"search": "hello"}, "body")

    def test_non_string_field_raises(self):
        """Test a non-string field is malformed."""
        with pytest.raises(MalformedInputError, match="is not a string"):
            extract_text({"search": 42}, "search")

    def test_malformed_input_is_value_error(self):
        """Test MalformedInputError can be caught as ValueError."""
        with pytest.raises(ValueError):
            extract_text({}, "search")


class TestSerializeRecord:
    """Tests for with_text and serialize_record."""

    def test_key_order_does_not_change_bytes(self):
        """Test equal records serialize to identical bytes."""
        first = serialize_record({"b": 2, "a": 1, "search": "x"})
        second = serialize_record({"search": "x", "a": 1, "b": 2})

        assert first == second
        assert first == b'{"a":1,"b":2,"search":"x"}'

    def test_non_ascii_is_utf8(self):
        """Test non-ASCII text is stored as UTF-8, not escaped."""
        assert serialize_record({"search": "café"}) == '{"search":"café"}'.encode("utf-8")

    def test_with_text_copies_record(self):
        """Test with_text replaces the field without mutating the input."""
        record = {"search": "whole", "id": 7}

        chunk = with_text(record, "search", "part")

        assert chunk == {"search": "part", "id": 7}
        assert record == {"search": "whole", "id": 7}
