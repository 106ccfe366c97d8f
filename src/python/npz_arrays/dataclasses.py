# npz_arrays/dataclasses.py
"""
Dataclasses for structured data within the npz_arrays library.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import DTypeLike

from .constants import FLAG_DATA_DESCRIPTOR
from .types import CompressionMethod, DTypeKind


@dataclass(frozen=True, slots=True)
class DTypeDescriptor:
    """The `descr` triple written into an array header."""
    kind: DTypeKind
    width: int
    byteorder: str = '<'

    @property
    def descr(self) -> str:
        return f"{self.byteorder}{self.kind.value}{self.width}"


@dataclass(frozen=True, slots=True)
class NpyHeader:
    """Information decoded from an array file header."""
    descr: str
    word_size: int
    shape: Tuple[int, ...]
    fortran_order: bool
    header_size: int  # preamble + dictionary, i.e. offset of the payload

    @property
    def num_vals(self) -> int:
        return math.prod(self.shape)

    @property
    def payload_size(self) -> int:
        return self.word_size * self.num_vals


@dataclass(frozen=True, slots=True)
class NpyArray:
    """
    A shaped, typed block of raw element bytes.

    This is what every load operation returns. `data` is immutable, so copies
    of an NpyArray share the same underlying bytes. Two arrays compare equal
    only if shape, word size, order, descr and every payload byte match.
    """
    shape: Tuple[int, ...]
    word_size: int
    fortran_order: bool
    data: bytes
    descr: str = ''

    def __post_init__(self) -> None:
        expected = self.word_size * math.prod(self.shape)
        if len(self.data) != expected:
            raise ValueError(
                f"Buffer holds {len(self.data)} bytes but shape {self.shape} "
                f"with word size {self.word_size} requires {expected}."
            )

    @classmethod
    def from_header(cls, header: NpyHeader, data: bytes) -> "NpyArray":
        return cls(
            shape=header.shape,
            word_size=header.word_size,
            fortran_order=header.fortran_order,
            data=data,
            descr=header.descr,
        )

    @property
    def num_vals(self) -> int:
        """The number of elements, `prod(shape)`."""
        return math.prod(self.shape)

    @property
    def num_bytes(self) -> int:
        return len(self.data)

    def as_array(self, dtype: Optional[DTypeLike] = None) -> np.ndarray:
        """
        Returns a read-only NumPy view over the buffer.

        Args:
            dtype: (Optional) Element type to interpret the bytes as. Defaults
                   to the `descr` recorded in the file header. Its item size
                   must equal `word_size`.

        Returns:
            An ndarray of `shape`, laid out in Fortran order when the header
            declared it.
        """
        if dtype is None:
            if not self.descr:
                raise ValueError("No dtype recorded for this buffer; pass `dtype` explicitly.")
            dtype = self.descr
        np_dtype = np.dtype(dtype)
        if np_dtype.itemsize != self.word_size:
            raise ValueError(
                f"dtype '{np_dtype.str}' has item size {np_dtype.itemsize}, "
                f"but the buffer's word size is {self.word_size}."
            )
        flat = np.frombuffer(self.data, dtype=np_dtype)
        return flat.reshape(self.shape, order='F' if self.fortran_order else 'C')


@dataclass(frozen=True, slots=True)
class MemberInfo:
    """A summary of a single member within a zip archive."""
    name: str
    filename: str
    compression_method: int
    compressed_size: int
    uncompressed_size: int
    crc32: int
    local_header_offset: int
    data_offset: int
    flags: int = 0  # general purpose bit flags from the local header

    @property
    def is_compressed(self) -> bool:
        return self.compression_method != CompressionMethod.STORED

    @property
    def has_data_descriptor(self) -> bool:
        return bool(self.flags & FLAG_DATA_DESCRIPTOR)


@dataclass(frozen=True, slots=True)
class ZipFooter:
    """The end-of-central-directory record at the tail of an archive."""
    disk_number: int
    disk_start: int
    entries_on_disk: int
    total_entries: int
    directory_size: int
    directory_offset: int
    comment_length: int
