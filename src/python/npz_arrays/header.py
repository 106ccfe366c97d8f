# npz_arrays/header.py
"""
Encoder and decoder for the textual array file header.

Layout (format version 1.0):

    \\x93NUMPY | major | minor | u16 dict_len | dict text, space padded, '\\n'

The dictionary is the Python literal
`{'descr': '<f8', 'fortran_order': False, 'shape': (2, 3), }`, padded so that
the whole header is a multiple of 16 bytes long.
"""

import re
from typing import BinaryIO, Sequence, Union

from .constants import (
    NPY_HEADER_ALIGNMENT,
    NPY_MAGIC,
    NPY_MAX_DICT_LENGTH,
    NPY_PREAMBLE_SIZE,
    NPY_PREAMBLE_STRUCT,
    NPY_VERSION,
)
from .dataclasses import DTypeDescriptor, NpyHeader
from .exceptions import NpzFormatError
from .lowlevel import read_exact
from .types import DTypeKind
from ._internal.byteio import ByteReader, ByteWriter

_DIGITS = re.compile(r"[0-9]+")

# "fortran_order': " precedes the flag value
_FORTRAN_VALUE_OFFSET = len("fortran_order': ")
# "descr': '" precedes the byte order character
_DESCR_VALUE_OFFSET = len("descr': '")


def _format_shape(shape: Sequence[int]) -> str:
    dims = ", ".join(str(int(d)) for d in shape)
    if len(shape) == 1:
        dims += ","
    return f"({dims})"


def encode_header(
    shape: Sequence[int],
    word_size: int,
    kind: Union[DTypeKind, str],
    byteorder: str = '<',
) -> bytes:
    """
    Builds the header for an array of `shape` with C memory order.

    Args:
        shape: The array dimensions, outermost first.
        word_size: Bytes per element.
        kind: The dtype kind character (or DTypeKind).
        byteorder: '<' (little-endian) or '|' (not applicable).

    Returns:
        The preamble followed by the padded dictionary.
    """
    kind_char = kind.value if isinstance(kind, DTypeKind) else str(kind)
    text = (
        f"{{'descr': '{byteorder}{kind_char}{word_size}', "
        f"'fortran_order': False, "
        f"'shape': {_format_shape(shape)}, }}"
    )
    # Always at least one byte of padding, which becomes the newline.
    padding = NPY_HEADER_ALIGNMENT - (NPY_PREAMBLE_SIZE + len(text)) % NPY_HEADER_ALIGNMENT
    text = text + " " * (padding - 1) + "\n"

    if len(text) > NPY_MAX_DICT_LENGTH:
        raise NpzFormatError(
            f"Header dictionary is {len(text)} bytes, the format allows at most "
            f"{NPY_MAX_DICT_LENGTH}."
        )

    writer = ByteWriter()
    writer.write_bytes(NPY_MAGIC)
    writer.write_u8(NPY_VERSION[0]).write_u8(NPY_VERSION[1])
    writer.write_u16(len(text))
    writer.write_ascii(text)
    return writer.getvalue()


def encode_array_header(descriptor: DTypeDescriptor, shape: Sequence[int]) -> bytes:
    """Same as `encode_header`, driven by a registry descriptor."""
    return encode_header(shape, descriptor.width, descriptor.kind, descriptor.byteorder)


def _check_preamble(preamble: bytes) -> int:
    magic, major, minor, dict_len = NPY_PREAMBLE_STRUCT.unpack(preamble)
    if magic != NPY_MAGIC:
        raise NpzFormatError(f"Invalid array file magic: {magic!r} (expected {NPY_MAGIC!r})")
    if major != NPY_VERSION[0]:
        raise NpzFormatError(
            f"Unsupported array file version {major}.{minor} "
            f"(only {NPY_VERSION[0]}.x is supported)"
        )
    return dict_len


def _parse_dict(text: str, header_size: int) -> NpyHeader:
    for key in ("descr", "fortran_order", "shape"):
        if key not in text:
            raise NpzFormatError(f"Failed to find header keyword: '{key}'")

    loc = text.find("fortran_order") + _FORTRAN_VALUE_OFFSET
    fortran_order = text[loc:loc + 4] == "True"

    start = text.find("(")
    end = text.find(")", start + 1)
    if start < 0 or end < 0:
        raise NpzFormatError("Failed to find header keyword: '(' or ')'")
    shape = tuple(int(d) for d in _DIGITS.findall(text[start + 1:end]))

    loc = text.find("descr") + _DESCR_VALUE_OFFSET
    byteorder = text[loc:loc + 1]
    if byteorder not in ("<", "|"):
        raise NpzFormatError(
            f"Unsupported byte order {byteorder!r} in descr; only little-endian "
            "('<') or not-applicable ('|') data can be read."
        )
    kind = text[loc + 1:loc + 2]
    size_end = text.find("'", loc + 2)
    size_str = text[loc + 2:size_end] if size_end >= 0 else ""
    if not size_str.isdigit():
        raise NpzFormatError(f"Cannot parse word size from descr '{text[loc:size_end]}'")

    return NpyHeader(
        descr=f"{byteorder}{kind}{size_str}",
        word_size=int(size_str),
        shape=shape,
        fortran_order=fortran_order,
        header_size=header_size,
    )


def decode_header(source: Union[bytes, bytearray, memoryview, BinaryIO]) -> NpyHeader:
    """
    Decodes an array header from a buffer or a binary stream.

    A stream is left positioned at the first payload byte. A buffer may
    contain trailing payload bytes; they are ignored.

    Raises:
        NpzFormatError: Bad magic, unsupported version, a missing key or a
                        big-endian descr.
        NpzIOError: The stream ended inside the header.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        reader = ByteReader(source)
        dict_len = _check_preamble(reader.read_bytes(NPY_PREAMBLE_SIZE))
        raw = reader.read_bytes(dict_len)
    else:
        dict_len = _check_preamble(read_exact(source, NPY_PREAMBLE_SIZE, "array header"))
        raw = read_exact(source, dict_len, "array header")

    return _parse_dict(raw.decode('latin-1'), NPY_PREAMBLE_SIZE + dict_len)
