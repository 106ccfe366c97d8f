# npz_arrays/file.py
"""High-level archive Reader, Writer, and the `open` factory function."""

from contextlib import ExitStack
from functools import cached_property
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from .abc import NpzFileBase
from .dataclasses import MemberInfo, NpyArray
from .exceptions import NpzNotFoundError
from .lowlevel import PathLike, open_file
from .types import Mode
from . import npz


def open(
    path: PathLike,
    mode: str = 'r',
    *,
    check_crc: Optional[bool] = None,
) -> Union["NpzReader", "NpzWriter"]:
    """
    Opens a zip archive of arrays for reading, writing, or appending.

    Args:
        path: Path to the .npz file.
        mode: 'r' (read-only), 'w' (write, truncates if exists),
              'a' (append to existing or create new).
        check_crc: For 'r' mode only. If True (default), verifies each
                   member's CRC32 on read.

    Returns:
        An NpzReader or NpzWriter object, typically used within a `with`
        statement.

    Raises:
        NpzIOError: If the file cannot be opened for reading.
        ValueError: If mode or arguments are invalid.
    """
    if mode == 'r':
        return NpzReader(path, check_crc=True if check_crc is None else check_crc)

    if check_crc is not None:
        raise ValueError("check_crc can only be provided in 'r' mode.")
    if mode not in ('w', 'a'):
        raise ValueError(f"Unsupported mode: '{mode}'. Must be 'r', 'w', or 'a'.")
    return NpzWriter(path, Mode(mode))


class NpzWriter(NpzFileBase):
    """
    A handle for adding members to an archive.
    Created via `npz_arrays.open(..., mode='w'|'a')`.

    Each `add` opens, updates and closes the file, so the archive on disk is
    complete after every call.
    """
    def __init__(self, path: PathLike, mode: Mode):
        super().__init__(path)
        self._mode = mode
        self._count = 0
        self._closed = False

    def add(self, name: str, elements: Any, shape: Optional[Sequence[int]] = None) -> None:
        """
        Adds one array as a stored member.

        Args:
            name: Member name (ASCII). Duplicates are written as-is.
            elements: The data to write. An ndarray must be C-contiguous.
            shape: (Optional) Shape to record; defaults to the array's shape.
        """
        self._check_open()
        # Only the very first member of a 'w' handle truncates the file.
        first_write_truncates = self._mode is Mode.CREATE and self._count == 0
        npz.save_archive_member(
            self._path, name, elements, shape,
            mode=Mode.CREATE if first_write_truncates else Mode.APPEND,
        )
        self._count += 1

    @property
    def count(self) -> int:
        """Members added through this handle."""
        return self._count

    def close(self) -> None:
        if self._closed:
            return
        if self._mode is Mode.CREATE and self._count == 0:
            npz.create_archive(self._path)
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class NpzReader(NpzFileBase):
    """
    A handle for reading an archive.
    Created via `npz_arrays.open(..., mode='r')`.

    `reader[name]` returns the first member with that name, like
    `load_archive_member`; `load_all()` keeps the last, like `load_archive`.
    """
    def __init__(self, path: PathLike, check_crc: bool = True):
        super().__init__(path)
        self._check_crc = check_crc
        with ExitStack() as stack:
            self._fp = stack.enter_context(open_file(path, "rb"))
            self._stack = stack.pop_all()

    @cached_property
    def members(self) -> List[MemberInfo]:
        """A list of `MemberInfo` objects describing each member in file order."""
        self._check_open()
        return list(npz.iter_members(self._fp))

    @property
    def names(self) -> List[str]:
        return [m.name for m in self.members]

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, name: object) -> bool:
        return any(m.name == name for m in self.members)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __getitem__(self, name: str) -> NpyArray:
        self._check_open()
        for info in self.members:
            if info.name == name:
                return npz.read_member(self._fp, info, check_crc=self._check_crc)
        raise NpzNotFoundError(name, self.path)

    def load_all(self) -> Dict[str, NpyArray]:
        """Reads every member; later duplicates overwrite earlier ones."""
        self._check_open()
        return {
            info.name: npz.read_member(self._fp, info, check_crc=self._check_crc)
            for info in self.members
        }

    def close(self) -> None:
        self._stack.close()

    @property
    def closed(self) -> bool:
        return self._fp.closed
