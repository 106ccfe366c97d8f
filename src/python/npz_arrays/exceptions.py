# npz_arrays/exceptions.py
"""Custom exception types for the npz_arrays library."""


class NpzError(Exception):
    """Base exception for all errors raised by this library."""
    pass


class NpzIOError(NpzError, OSError):
    """A file could not be opened, or a read came back shorter than required."""
    pass


class NpzFormatError(NpzError, ValueError):
    """
    The bytes on disk do not follow the array or archive format.

    Raised for a bad magic string, a header dictionary missing one of its
    keys, a big-endian `descr`, a CRC mismatch or a corrupt deflate stream.
    """
    pass


class NpzSizeMismatchError(NpzError, ValueError):
    """
    Data being appended is incompatible with the array already on disk.

    Raised when the word size, dtype, dimensionality or any non-leading
    dimension differs.
    """
    pass


class NpzNotFoundError(NpzError, KeyError):
    """
    A requested archive member is absent.

    Attributes:
        name (str): The logical member name that was looked up.
        path (str): The archive that was scanned.
    """
    def __init__(self, name: str, path: str):
        self.message = f"Member '{name}' not found in {path}"
        super().__init__(self.message)
        self.name = name
        self.path = path

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class NpzUnsupportedError(NpzError):
    """
    The file uses a feature outside the supported dialect.

    Examples are multi-disk archives, archive comments, ZIP64 trailers,
    encrypted members and Fortran-ordered append targets.
    """
    pass
