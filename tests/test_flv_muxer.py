import io

import pytest

from rtmp2hls.flv_muxer import BufferWriter, write_tag


def _decode(raw):
    header, rest = raw[:11], raw[11:]
    size = int.from_bytes(header[1:4], "big")
    timestamp = int.from_bytes(header[4:7], "big") | (header[7] << 24)
    payload, trailer = rest[:size], rest[size:]
    return {
        "type": header[0],
        "size": size,
        "timestamp": timestamp,
        "stream_id": header[8:11],
        "payload": payload,
        "prev": int.from_bytes(trailer, "big"),
        "trailer_len": len(trailer),
    }


def test_write_tag_round_trip():
    out = io.BytesIO()
    payload = b"\xaf\x01audio-frame"
    write_tag(8, 1234, io.BytesIO(payload), out)
    tag = _decode(out.getvalue())
    assert tag["type"] == 8
    assert tag["size"] == len(payload)
    assert tag["timestamp"] == 1234
    assert tag["payload"] == payload
    assert tag["stream_id"] == b"\x00\x00\x00"
    assert tag["trailer_len"] == 4
    assert tag["prev"] == 11 + len(payload)


def test_extended_timestamp_round_trip():
    out = io.BytesIO()
    write_tag(9, 0x12345678, io.BytesIO(b"v"), out)
    tag = _decode(out.getvalue())
    assert tag["timestamp"] == 0x12345678
    assert out.getvalue()[7] == 0x12


def test_empty_payload():
    out = io.BytesIO()
    write_tag(18, 0, io.BytesIO(b""), out)
    raw = out.getvalue()
    assert len(raw) == 15
    assert _decode(raw)["prev"] == 11


def test_total_length_is_header_payload_trailer():
    out = io.BytesIO()
    payload = bytes(range(256)) * 300
    write_tag(9, 40, io.BytesIO(payload), out)
    assert len(out.getvalue()) == 11 + len(payload) + 4
    assert _decode(out.getvalue())["payload"] == payload


def test_buffer_writer_matches_write_tag():
    payload = b"\x17\x01video-nal"
    expected = io.BytesIO()
    write_tag(9, 77, io.BytesIO(payload), expected)
    out = io.BytesIO()
    BufferWriter(16).write(9, 77, io.BytesIO(payload), out)
    assert out.getvalue() == expected.getvalue()


def test_buffer_writer_reuse_does_not_leak_previous_payload():
    bw = BufferWriter(4)
    first, second = io.BytesIO(), io.BytesIO()
    bw.write(8, 1, io.BytesIO(b"a much longer payload"), first)
    bw.write(8, 2, io.BytesIO(b"xy"), second)
    assert _decode(second.getvalue())["payload"] == b"xy"


class _FailingWriter:
    def write(self, data):
        raise OSError("broken pipe")


class _FailingReader:
    def read(self, *args):
        raise OSError("read failed")


def test_writer_error_propagates():
    with pytest.raises(OSError, match="broken pipe"):
        write_tag(8, 0, io.BytesIO(b"x"), _FailingWriter())


def test_reader_error_propagates():
    with pytest.raises(OSError, match="read failed"):
        BufferWriter(8).write(8, 0, _FailingReader(), io.BytesIO())