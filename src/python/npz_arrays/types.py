# npz_arrays/types.py

"""
Core type-safe enumerations for the npz_arrays library.
"""
from enum import Enum, IntEnum


class Mode(str, Enum):
    """Write modes accepted by every save operation."""
    CREATE = 'w'
    APPEND = 'a'

    @classmethod
    def parse(cls, value: "Mode | str") -> "Mode":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported mode: '{value}'. Must be 'w' or 'a'.") from None


class CompressionMethod(IntEnum):
    """
    Zip compression methods understood by the archive reader.

    The writer only ever produces STORED members; DEFLATED is read-only
    support for archives created by other tools (e.g. `numpy.savez_compressed`).
    """
    STORED = 0
    DEFLATED = 8


class DTypeKind(str, Enum):
    """Single-character kind codes used in the `descr` header field."""
    FLOAT = 'f'
    SIGNED_INT = 'i'
    UNSIGNED_INT = 'u'
    BOOL = 'b'
    COMPLEX = 'c'
    UNKNOWN = '?'
