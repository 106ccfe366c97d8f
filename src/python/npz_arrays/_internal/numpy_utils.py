# npz_arrays/_internal/numpy_utils.py

"""
Internal utilities for interacting with NumPy arrays.

This module handles validation, and conversion between NumPy's data types and
the `descr` triples written into array headers.
"""

import math
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..dataclasses import DTypeDescriptor
from ..exceptions import NpzSizeMismatchError
from ..types import DTypeKind

# --- Mappings ---

# Maps NumPy dtype objects to the header descriptor written for them.
# Single-byte types carry '|' (byte order not applicable), as NumPy does.
_NP_DTYPE_TO_DESCRIPTOR: dict[np.dtype, DTypeDescriptor] = {
    np.dtype('bool'): DTypeDescriptor(DTypeKind.BOOL, 1, '|'),
    np.dtype('int8'): DTypeDescriptor(DTypeKind.SIGNED_INT, 1, '|'),
    np.dtype('uint8'): DTypeDescriptor(DTypeKind.UNSIGNED_INT, 1, '|'),
    np.dtype('<i2'): DTypeDescriptor(DTypeKind.SIGNED_INT, 2),
    np.dtype('<u2'): DTypeDescriptor(DTypeKind.UNSIGNED_INT, 2),
    np.dtype('<i4'): DTypeDescriptor(DTypeKind.SIGNED_INT, 4),
    np.dtype('<u4'): DTypeDescriptor(DTypeKind.UNSIGNED_INT, 4),
    np.dtype('<i8'): DTypeDescriptor(DTypeKind.SIGNED_INT, 8),
    np.dtype('<u8'): DTypeDescriptor(DTypeKind.UNSIGNED_INT, 8),
    np.dtype('<f2'): DTypeDescriptor(DTypeKind.FLOAT, 2),
    np.dtype('<f4'): DTypeDescriptor(DTypeKind.FLOAT, 4),
    np.dtype('<f8'): DTypeDescriptor(DTypeKind.FLOAT, 8),
    np.dtype('<c8'): DTypeDescriptor(DTypeKind.COMPLEX, 8),
    np.dtype('<c16'): DTypeDescriptor(DTypeKind.COMPLEX, 16),
}

# --- Functions ---

def _unsupported(dtype: np.dtype) -> TypeError:
    supported_types = ", ".join(dt.name for dt in _NP_DTYPE_TO_DESCRIPTOR)
    return TypeError(
        f"Unsupported NumPy dtype: '{dtype.str}'. "
        f"Supported types are (little-endian): {supported_types}"
    )


def get_descriptor(dtype: np.dtype) -> DTypeDescriptor:
    """
    Looks up the header descriptor for a NumPy dtype.

    Raises:
        TypeError: If the dtype is not in the registry (this includes
                   big-endian variants of supported types).
    """
    try:
        return _NP_DTYPE_TO_DESCRIPTOR[np.dtype(dtype)]
    except KeyError:
        raise _unsupported(np.dtype(dtype)) from None


def validate_array_for_writing(arr: np.ndarray) -> None:
    """
    Ensures a NumPy array can be written as a raw row-major payload.

    Headers are always written with `fortran_order: False`, so the memory
    must already be in C order.

    Raises:
        TypeError: If the array's dtype is not supported.
        ValueError: If the array is not C-contiguous.
    """
    if arr.dtype not in _NP_DTYPE_TO_DESCRIPTOR:
        raise _unsupported(arr.dtype)

    if not arr.flags['C_CONTIGUOUS']:
        raise ValueError(
            "Array must be C-contiguous. Please call `np.ascontiguousarray(arr)` "
            "on your array before writing."
        )


def prepare_elements(
    elements: Any,
    shape: Optional[Sequence[int]] = None,
) -> Tuple[np.ndarray, Tuple[int, ...], DTypeDescriptor]:
    """
    Normalizes caller-provided elements for writing.

    Args:
        elements: An ndarray, or anything `np.asarray` accepts.
        shape: (Optional) The shape to record in the header. Defaults to the
               array's own shape. Its product must equal the element count.

    Returns:
        The validated array, the shape to record, and its descriptor.
    """
    arr = elements if isinstance(elements, np.ndarray) else np.asarray(elements)
    validate_array_for_writing(arr)

    if shape is None:
        final_shape = tuple(int(d) for d in arr.shape)
    else:
        final_shape = tuple(int(d) for d in shape)
        if any(d < 0 for d in final_shape):
            raise ValueError(f"Shape dimensions must be non-negative, got {final_shape}")
        if math.prod(final_shape) != arr.size:
            raise NpzSizeMismatchError(
                f"Shape {final_shape} describes {math.prod(final_shape)} elements, "
                f"but {arr.size} were provided."
            )

    return arr, final_shape, get_descriptor(arr.dtype)


def same_element_type(descr_a: str, descr_b: str) -> bool:
    """
    Compares two `descr` strings by kind and width.

    '<' and '|' both mean little-endian-compatible here, so '<u1' and '|u1'
    compare equal.
    """
    return descr_a[1:] == descr_b[1:]


def payload_bytes(arr: np.ndarray) -> np.ndarray:
    """A flat uint8 view over a C-contiguous array, without copying."""
    return arr.reshape(-1).view(np.uint8)
