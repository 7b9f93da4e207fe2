"""Thread-safe FLV stream writer."""

from __future__ import annotations

import contextlib
import threading
from typing import BinaryIO

AUDIO_TAG = 8
VIDEO_TAG = 9
SCRIPT_TAG = 18

FLV_HEADER = b"FLV\x01\x05\x00\x00\x00\x09\x00\x00\x00\x00"


def make_tag_header(tag_type: int, data_size: int, timestamp: int) -> bytes:
    """Build the 11-byte FLV tag header."""
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


class FlvWriter:
    """Write an FLV header once, then whole tags, serialised across threads."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._write_lock = threading.Lock()
        self._header_lock = threading.Lock()
        self._header_written = False

    def write_header(self) -> None:
        """Write the FLV file header on the first call only; errors are ignored."""
        with self._header_lock:
            if self._header_written:
                return
            self._header_written = True
            with contextlib.suppress(OSError, ValueError):
                self._stream.write(FLV_HEADER)

    def write_tag(self, tag_type: int, timestamp: int, data: bytes) -> None:
        """Write one tag: header, data and PreviousTagSize."""
        data_size = len(data)
        with self._write_lock:
            self._stream.write(make_tag_header(tag_type, data_size, timestamp))
            self._stream.write(data)
            self._stream.write(((data_size + 11) & 0xFFFFFFFF).to_bytes(4, "big"))

    def write_audio(self, timestamp: int, data: bytes) -> None:
        self.write_header()
        self.write_tag(AUDIO_TAG, timestamp, data)

    def write_video(self, timestamp: int, data: bytes) -> None:
        self.write_header()
        self.write_tag(VIDEO_TAG, timestamp, data)

    def write_script(self, timestamp: int, data: bytes) -> None:
        self.write_header()
        self.write_tag(SCRIPT_TAG, timestamp, data)