# npz_arrays/lowlevel.py
"""
Low-level file access shared by the array and archive code.

This module isolates the operating-system boundary from the rest of the
library: handles are always acquired through `open_file`, which closes them on
every exit path, and OS failures are translated into NpzIOError.
"""

import builtins
import os
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Union

from .exceptions import NpzIOError

PathLike = Union[str, "os.PathLike[str]"]


@contextmanager
def open_file(path: PathLike, mode: str) -> Iterator[BinaryIO]:
    """
    Opens `path` in binary `mode` for the duration of a `with` block.

    Raises:
        NpzIOError: If the file cannot be opened.
    """
    try:
        fp = builtins.open(path, mode)
    except OSError as e:
        raise NpzIOError(f"Unable to open file {os.fspath(path)}: {e.strerror or e}") from e
    with fp:
        yield fp


def read_exact(fp: BinaryIO, size: int, what: str = "data") -> bytes:
    """
    Reads exactly `size` bytes from `fp`.

    Raises:
        NpzIOError: If the file ends first.
    """
    data = fp.read(size)
    if len(data) != size:
        raise NpzIOError(
            f"Short read while reading {what}: expected {size} bytes, got {len(data)}."
        )
    return data


def file_length(fp: BinaryIO) -> int:
    """Returns the size of an open file, leaving the position at the end."""
    return fp.seek(0, os.SEEK_END)
