"""Record decoding, field access and canonical serialization."""

import json
from collections.abc import Iterator
from typing import Any, TextIO

from embedvault.errors import MalformedInputError

Record = dict[str, Any]

_decoder = json.JSONDecoder()
_READ_SIZE = 64 * 1024


def read_records(stream: TextIO) -> Iterator[Record]:
    """Yield JSON objects from a whitespace-delimited stream.

    Objects may span several lines or share one line. The stream is read in
    blocks, so the full input is never buffered.

    Args:
        stream: Text stream such as stdin

    Yields:
        Record: One decoded JSON object per input value

    Raises:
        MalformedInputError: If the input is not valid JSON or a value is not an object
    """
    buffer = ""
    eof = False
    while True:
        buffer = buffer.lstrip()
        if buffer:
            try:
                value, end = _decoder.raw_decode(buffer)
            except json.JSONDecodeError as e:
                if eof:
                    raise MalformedInputError(f"error decoding JSON: {e}") from e
                value, end = None, 0
            if end:
                if not isinstance(value, dict):
                    raise MalformedInputError(
                        f"Expected a JSON object per record, got {type(value).__name__}"
                    )
                buffer = buffer[end:]
                yield value
                continue
        elif eof:
            return

        block = stream.read(_READ_SIZE)
        if not block:
            eof = True
        buffer += block


def extract_text(record: Record, field: str) -> str:
    """Return the designated text field of a record.

    Raises:
        MalformedInputError: If the field is missing or is not a string
    """
    if field not in record:
        raise MalformedInputError(f"Input didn't contain the embedding parameter {field}.")
    value = record[field]
    if not isinstance(value, str):
        raise MalformedInputError(f"Parameter {field} is not a string.")
    return value


def with_text(record: Record, field: str, text: str) -> Record:
    """Return a shallow copy of record with the text field replaced."""
    chunk_record = dict(record)
    chunk_record[field] = text
    return chunk_record


def serialize_record(record: Record) -> bytes:
    """Serialize a record to canonical JSON bytes.

    Keys are sorted and separators are compact, so equal records always
    produce identical bytes and therefore the same content hash.
    """
    return json.dumps(
        record, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")
