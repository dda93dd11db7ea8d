"""Recursive Length Prefix (RLP) encoding and decoding.

Items are byte strings, non-negative integers, or lists of items.
Decoding yields ``bytes`` for strings and ``list`` for lists; integers
come back as their minimal big-endian byte string.
"""

from __future__ import annotations

from typing import Union

Item = Union[bytes, int, list, tuple]

_SHORT_LIMIT = 56
_STRING_OFFSET = 0x80
_LONG_STRING_OFFSET = 0xB7
_LIST_OFFSET = 0xC0
_LONG_LIST_OFFSET = 0xF7


class RLPDecodeError(ValueError):
    """Raised when input is not a valid, canonical RLP encoding."""


def encode(item: Item) -> bytes:
    """Return the RLP encoding of ``item``."""
    if isinstance(item, bool):
        raise TypeError("booleans cannot be RLP-encoded")
    if isinstance(item, int):
        if item < 0:
            raise ValueError("negative integers cannot be RLP-encoded")
        return _encode_string(item.to_bytes((item.bit_length() + 7) // 8, "big"))
    if isinstance(item, (bytes, bytearray, memoryview)):
        return _encode_string(bytes(item))
    if isinstance(item, (list, tuple)):
        payload = b"".join(encode(element) for element in item)
        return _length_prefix(len(payload), _LIST_OFFSET) + payload
    raise TypeError(f"cannot RLP-encode value of type {type(item).__name__}")


def decode(data: bytes) -> bytes | list:
    """Decode a single RLP item that spans all of ``data``."""
    data = bytes(data)
    item, end = _decode_at(data, 0, len(data))
    if end != len(data):
        raise RLPDecodeError("trailing data after RLP item")
    return item


def _encode_string(data: bytes) -> bytes:
    if len(data) == 1 and data[0] < _STRING_OFFSET:
        return data
    return _length_prefix(len(data), _STRING_OFFSET) + data


def _length_prefix(length: int, offset: int) -> bytes:
    if length < _SHORT_LIMIT:
        return bytes([offset + length])
    length_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + _SHORT_LIMIT - 1 + len(length_bytes)]) + length_bytes


def _read_long_length(data: bytes, pos: int, size: int, limit: int) -> tuple[int, int]:
    start = pos + 1
    if start + size > limit:
        raise RLPDecodeError("unexpected end of input in length prefix")
    length_bytes = data[start:start + size]
    if length_bytes[0] == 0:
        raise RLPDecodeError("non-canonical length: leading zero bytes")
    length = int.from_bytes(length_bytes, "big")
    if length < _SHORT_LIMIT:
        raise RLPDecodeError("non-canonical length: long form for short payload")
    return start + size, length


def _payload_end(start: int, length: int, limit: int) -> int:
    end = start + length
    if end > limit:
        raise RLPDecodeError("unexpected end of input in payload")
    return end


def _decode_at(data: bytes, pos: int, limit: int) -> tuple[bytes | list, int]:
    if pos >= limit:
        raise RLPDecodeError("unexpected end of input")
    first = data[pos]

    if first < _STRING_OFFSET:
        return data[pos:pos + 1], pos + 1

    if first < _LIST_OFFSET:
        if first <= _LONG_STRING_OFFSET:
            start, length = pos + 1, first - _STRING_OFFSET
        else:
            start, length = _read_long_length(
                data, pos, first - _LONG_STRING_OFFSET, limit
            )
        end = _payload_end(start, length, limit)
        if length == 1 and data[start] < _STRING_OFFSET:
            raise RLPDecodeError("non-canonical encoding of single byte")
        return data[start:end], end

    if first <= _LONG_LIST_OFFSET:
        start, length = pos + 1, first - _LIST_OFFSET
    else:
        start, length = _read_long_length(data, pos, first - _LONG_LIST_OFFSET, limit)
    end = _payload_end(start, length, limit)

    items: list = []
    cursor = start
    while cursor < end:
        element, cursor = _decode_at(data, cursor, end)
        items.append(element)
    return items, end