# npz_arrays/abc.py
"""Abstract Base Classes for the npz_arrays library."""

import abc
import os

from .lowlevel import PathLike


class NpzFileBase(abc.ABC):
    """Shared behaviour of archive handles bound to one path on disk."""

    def __init__(self, path: PathLike) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return os.fspath(self._path)

    @abc.abstractmethod
    def close(self) -> None:
        """Releases the handle. Writers finalize the archive here."""
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        raise NotImplementedError

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("Operation attempted on a closed file.")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<{type(self).__name__} {self.path!r} ({state})>"

    def __enter__(self) -> "NpzFileBase":
        if self.closed:
            raise ValueError(f"Cannot enter a context on closed {self!r}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
