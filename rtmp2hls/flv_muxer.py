"""Serialisation of single FLV tags to a binary stream."""

from __future__ import annotations

import io
from typing import BinaryIO

_HEADER_SIZE = 11


def _tag_header(tag_type: int, data_size: int, timestamp: int) -> bytes:
    timestamp &= 0xFFFFFFFF
    return bytes(
        (
            tag_type & 0xFF,
            (data_size >> 16) & 0xFF,
            (data_size >> 8) & 0xFF,
            data_size & 0xFF,
            (timestamp >> 16) & 0xFF,
            (timestamp >> 8) & 0xFF,
            timestamp & 0xFF,
            (timestamp >> 24) & 0xFF,
            0,
            0,
            0,
        )
    )


def write_tag(tag_type: int, timestamp: int, reader: BinaryIO, writer: BinaryIO) -> None:
    """Read the whole payload from ``reader`` and write one FLV tag to ``writer``.

    The tag is the 11-byte header, the payload and the 4-byte PreviousTagSize.
    """
    payload = reader.read()
    data_size = len(payload)
    writer.write(_tag_header(tag_type, data_size, timestamp))
    writer.write(payload)
    writer.write(((_HEADER_SIZE + data_size) & 0xFFFFFFFF).to_bytes(4, "big"))


class BufferWriter:
    """Tag writer that reuses one payload buffer across calls."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._buf = bytearray()

    def write(self, tag_type: int, timestamp: int, reader: BinaryIO, writer: BinaryIO) -> None:
        """Buffer the payload from ``reader`` and write it as one tag."""
        self._buf.clear()
        self._buf.extend(reader.read())
        write_tag(tag_type, timestamp, io.BytesIO(self._buf), writer)