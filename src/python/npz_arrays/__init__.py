# npz_arrays/__init__.py
"""
Reading and writing NumPy .npy array files and minimal .npz zip archives.
"""
from .file import open, NpzReader, NpzWriter
from .types import Mode, CompressionMethod, DTypeKind
from .dataclasses import NpyArray, NpyHeader, MemberInfo, DTypeDescriptor
from .exceptions import (
    NpzError,
    NpzIOError,
    NpzFormatError,
    NpzSizeMismatchError,
    NpzNotFoundError,
    NpzUnsupportedError,
)
from .header import encode_header, decode_header
from .npy import save_array, load_array
from .npz import (
    save_archive_member,
    load_archive,
    load_archive_member,
    list_members,
    create_archive,
)
from .convenience import save, savez, load

__version__ = "0.1.0"

# Define what gets imported with 'from npz_arrays import *'
__all__ = [
    'open',
    'NpzReader',
    'NpzWriter',
    'Mode',
    'CompressionMethod',
    'DTypeKind',
    'NpyArray',
    'NpyHeader',
    'MemberInfo',
    'DTypeDescriptor',
    'NpzError',
    'NpzIOError',
    'NpzFormatError',
    'NpzSizeMismatchError',
    'NpzNotFoundError',
    'NpzUnsupportedError',
    'encode_header',
    'decode_header',
    'save_array',
    'load_array',
    'save_archive_member',
    'load_archive',
    'load_archive_member',
    'list_members',
    'create_archive',
    'save',
    'savez',
    'load',
    '__version__',
]
