# tests/test_header.py
"""
Tests for the array header encoder and decoder.
"""
import io
import struct

import pytest
import numpy as np

from npz_arrays import encode_header, decode_header, DTypeKind
from npz_arrays.exceptions import NpzFormatError, NpzIOError


def _make_header(text: str, magic: bytes = b"\x93NUMPY", major: int = 1) -> bytes:
    """Hand-builds a header around an arbitrary dictionary string."""
    return magic + struct.pack("<BBH", major, 0, len(text)) + text.encode("ascii")


def test_encode_header_layout():
    """Checks every field of a 2x3 float64 header byte by byte."""
    header = encode_header((2, 3), 8, 'f')

    assert header[:6] == b"\x93NUMPY"
    assert header[6:8] == b"\x01\x00"
    dict_len = int.from_bytes(header[8:10], "little")
    assert len(header) == 10 + dict_len == 80

    text = header[10:].decode("ascii")
    assert text.startswith("{'descr': '<f8', 'fortran_order': False, 'shape': (2, 3), }")
    assert text.endswith(" \n")
    assert text.strip() == "{'descr': '<f8', 'fortran_order': False, 'shape': (2, 3), }"


def test_encode_header_single_dimension_has_trailing_comma():
    text = encode_header((5,), 4, DTypeKind.SIGNED_INT)[10:].decode("ascii")
    assert "'descr': '<i4'" in text
    assert "'shape': (5,)" in text


def test_encode_header_empty_shape():
    text = encode_header((), 8, 'f')[10:].decode("ascii")
    assert "'shape': ()" in text


@pytest.mark.parametrize("shape", [
    (),
    (0,),
    (7,),
    (2, 3),
    (10**12, 1, 2),
    tuple(range(1, 20)),
])
def test_encode_header_alignment(shape):
    """The preamble plus dictionary is always a multiple of 16 ending in a newline."""
    header = encode_header(shape, 8, 'f')
    assert len(header) % 16 == 0
    assert header.endswith(b"\n")
    assert int.from_bytes(header[8:10], "little") == len(header) - 10


def test_decode_roundtrip_from_bytes():
    header = encode_header((4, 0, 2), 2, 'u')
    decoded = decode_header(header + b"\x00" * 4)

    assert decoded.shape == (4, 0, 2)
    assert decoded.word_size == 2
    assert decoded.descr == "<u2"
    assert decoded.fortran_order is False
    assert decoded.header_size == len(header)
    assert decoded.payload_size == 0


def test_decode_from_stream_stops_at_payload():
    """Decoding from a file object leaves it positioned on the first payload byte."""
    stream = io.BytesIO(encode_header((3,), 1, 'b', '|') + b"\x01\x00\x01")

    decoded = decode_header(stream)

    assert decoded.shape == (3,)
    assert decoded.descr == "|b1"
    assert stream.read() == b"\x01\x00\x01"


def test_decode_header_written_by_numpy():
    buf = io.BytesIO()
    np.save(buf, np.arange(6, dtype="<i4").reshape(2, 3))
    buf.seek(0)

    decoded = decode_header(buf)

    assert decoded.shape == (2, 3)
    assert decoded.word_size == 4
    assert decoded.descr == "<i4"
    assert decoded.fortran_order is False


def test_decode_fortran_order_written_by_numpy():
    buf = io.BytesIO()
    np.save(buf, np.asfortranarray(np.zeros((2, 3), dtype="<f4")))

    decoded = decode_header(buf.getvalue())

    assert decoded.fortran_order is True
    assert decoded.shape == (2, 3)


def test_decode_missing_shape_key():
    header = _make_header("{'descr': '<f8', 'fortran_order': False, }       \n")
    with pytest.raises(NpzFormatError, match="shape"):
        decode_header(header)


@pytest.mark.parametrize("text, keyword", [
    ("{'fortran_order': False, 'shape': (3,), }\n", "descr"),
    ("{'descr': '<f8', 'shape': (3,), }\n", "fortran_order"),
])
def test_decode_missing_other_keys(text, keyword):
    with pytest.raises(NpzFormatError, match=keyword):
        decode_header(_make_header(text))


def test_decode_rejects_big_endian():
    header = _make_header("{'descr': '>f8', 'fortran_order': False, 'shape': (3,), }\n")
    with pytest.raises(NpzFormatError, match="byte order"):
        decode_header(header)


def test_decode_rejects_bad_magic():
    header = _make_header("{'descr': '<f8', 'fortran_order': False, 'shape': (3,), }\n",
                          magic=b"\x93NUMPZ")
    with pytest.raises(NpzFormatError, match="magic"):
        decode_header(header)


def test_decode_rejects_unknown_major_version():
    header = _make_header("{'descr': '<f8', 'fortran_order': False, 'shape': (3,), }\n",
                          major=3)
    with pytest.raises(NpzFormatError, match="version"):
        decode_header(header)


def test_decode_rejects_non_numeric_word_size():
    header = _make_header("{'descr': '<M8[ns]', 'fortran_order': False, 'shape': (3,), }\n")
    with pytest.raises(NpzFormatError, match="word size"):
        decode_header(header)


def test_decode_truncated_stream_is_io_error():
    header = encode_header((2, 3), 8, 'f')
    with pytest.raises(NpzIOError):
        decode_header(io.BytesIO(header[:40]))


def test_decode_truncated_buffer_is_format_error():
    header = encode_header((2, 3), 8, 'f')
    with pytest.raises(NpzFormatError):
        decode_header(header[:40])
