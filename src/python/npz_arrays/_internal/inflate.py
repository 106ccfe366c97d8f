# npz_arrays/_internal/inflate.py

"""
Raw-deflate decompression for compressed archive members (read path only).
"""

import zlib

from ..constants import DEFLATE_WBITS
from ..exceptions import NpzFormatError


def inflate_raw(data: bytes, expected_size: int) -> bytes:
    """
    Inflates a raw deflate stream (no zlib header or trailer).

    Args:
        data: The compressed member bytes.
        expected_size: The uncompressed size recorded in the zip header.

    Returns:
        Exactly `expected_size` bytes.

    Raises:
        NpzFormatError: If the stream is corrupt or inflates to a different size.
    """
    decompressor = zlib.decompressobj(DEFLATE_WBITS)
    try:
        out = decompressor.decompress(data) + decompressor.flush()
    except zlib.error as e:
        raise NpzFormatError(f"Corrupt deflate stream: {e}") from e

    if len(out) != expected_size:
        raise NpzFormatError(
            f"Deflate stream inflated to {len(out)} bytes, expected {expected_size}."
        )
    return out
