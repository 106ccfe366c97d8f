# npz_arrays/npy.py
"""
Reading and writing single-array files, including append-growth.
"""

import logging
import os
from typing import Any, BinaryIO, Optional, Sequence, Tuple

import numpy as np

from .dataclasses import DTypeDescriptor, NpyArray, NpyHeader
from .exceptions import NpzIOError, NpzSizeMismatchError, NpzUnsupportedError
from .header import decode_header, encode_array_header
from .lowlevel import PathLike, file_length, open_file, read_exact
from .types import Mode
from ._internal import numpy_utils

logger = logging.getLogger(__name__)


def read_array(fp: BinaryIO) -> NpyArray:
    """
    Reads one array (header + payload) from the current position of `fp`.

    Raises:
        NpzFormatError: If the header is malformed.
        NpzIOError: If the payload is shorter than the header declares.
    """
    header = decode_header(fp)
    data = read_exact(fp, header.payload_size, "array payload")
    return NpyArray.from_header(header, data)


def write_array(fp: BinaryIO, header: bytes, arr: np.ndarray) -> int:
    """
    Writes an encoded header followed by the raw bytes of `arr`.

    Returns:
        The number of bytes written.
    """
    fp.write(header)
    fp.write(numpy_utils.payload_bytes(arr))
    return len(header) + arr.nbytes


def _validate_append(
    path: PathLike,
    existing: NpyHeader,
    shape: Tuple[int, ...],
    descriptor: DTypeDescriptor,
) -> None:
    name = os.fspath(path)
    if existing.fortran_order:
        raise NpzUnsupportedError(f"{name} is Fortran-ordered; appending rows is not supported.")
    if existing.word_size != descriptor.width:
        raise NpzSizeMismatchError(
            f"{name} has word size {existing.word_size} but the appended data "
            f"has word size {descriptor.width}."
        )
    if not numpy_utils.same_element_type(existing.descr, descriptor.descr):
        raise NpzSizeMismatchError(
            f"{name} holds '{existing.descr}' elements but the appended data is "
            f"'{descriptor.descr}'."
        )
    if len(existing.shape) != len(shape):
        raise NpzSizeMismatchError(
            f"Attempting to append {len(shape)}-dimensional data to {name}, "
            f"which is {len(existing.shape)}-dimensional."
        )
    if not shape:
        raise NpzSizeMismatchError(f"{name} holds a 0-d array; it has no leading dimension to grow.")
    if existing.shape[1:] != shape[1:]:
        raise NpzSizeMismatchError(
            f"Attempting to append misshaped data to {name}: trailing dimensions "
            f"{shape[1:]} do not match {existing.shape[1:]}."
        )


def _append_array(
    path: PathLike,
    arr: np.ndarray,
    shape: Tuple[int, ...],
    descriptor: DTypeDescriptor,
) -> None:
    with open_file(path, "r+b") as fp:
        existing = decode_header(fp)
        _validate_append(path, existing, shape, descriptor)

        combined = (existing.shape[0] + shape[0],) + existing.shape[1:]
        new_header = encode_array_header(descriptor, combined)
        payload_end = existing.header_size + existing.payload_size

        if file_length(fp) < payload_end:
            raise NpzIOError(
                f"{os.fspath(path)} is truncated: header declares {existing.payload_size} "
                "payload bytes but the file is shorter."
            )

        if len(new_header) == existing.header_size:
            fp.seek(0)
            fp.write(new_header)
            fp.seek(payload_end)
        else:
            # The header no longer fits its old slot; shift the payload.
            logger.debug(
                "Header of %s changes from %d to %d bytes; rewriting the file.",
                path, existing.header_size, len(new_header),
            )
            fp.seek(existing.header_size)
            old_payload = read_exact(fp, existing.payload_size, "existing payload")
            fp.seek(0)
            fp.write(new_header)
            fp.write(old_payload)

        fp.write(numpy_utils.payload_bytes(arr))
        fp.truncate()

    logger.debug("Appended %s to %s; shape is now %s.", shape, path, combined)


def save_array(
    path: PathLike,
    elements: Any,
    shape: Optional[Sequence[int]] = None,
    mode: Mode | str = Mode.CREATE,
) -> None:
    """
    Saves elements as a single-array file.

    Args:
        path: Destination file.
        elements: An ndarray (must be C-contiguous) or anything `np.asarray`
                  accepts.
        shape: (Optional) Shape to record. Defaults to `elements.shape`.
        mode: 'w' creates or truncates the file. 'a' appends rows along the
              leading dimension when the file exists and creates it otherwise.

    Raises:
        NpzSizeMismatchError: If appended data is incompatible with the file.
        NpzUnsupportedError: If the existing file is Fortran-ordered.
        TypeError: If the dtype is not supported.
        ValueError: If the mode is invalid or the array is not C-contiguous.
    """
    mode = Mode.parse(mode)
    arr, final_shape, descriptor = numpy_utils.prepare_elements(elements, shape)

    if mode is Mode.APPEND and os.path.exists(path):
        _append_array(path, arr, final_shape, descriptor)
        return

    # Encode first so an oversized header fails before the file is truncated.
    header = encode_array_header(descriptor, final_shape)
    with open_file(path, "wb") as fp:
        write_array(fp, header, arr)
    logger.debug("Wrote %s array of shape %s to %s.", descriptor.descr, final_shape, path)


def load_array(path: PathLike) -> NpyArray:
    """
    Loads a single-array file.

    Raises:
        NpzIOError: If the file cannot be opened or is truncated.
        NpzFormatError: If the header is malformed or big-endian.
    """
    with open_file(path, "rb") as fp:
        return read_array(fp)
