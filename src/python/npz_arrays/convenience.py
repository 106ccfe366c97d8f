# npz_arrays/convenience.py
"""
High-level convenience functions that work directly with NumPy arrays.
"""
from typing import Dict, Union

import numpy as np

from .constants import LOCAL_HEADER_SIGNATURE, FOOTER_SIGNATURE, NPY_MAGIC
from .exceptions import NpzFormatError
from .lowlevel import PathLike, open_file
from .npy import load_array, save_array
from .npz import load_archive, save_archive_member
from .types import Mode


def save(filepath: PathLike, data: np.ndarray, *, mode: Mode | str = Mode.CREATE) -> None:
    """
    Saves a NumPy array to an array file.

    Args:
        filepath: The path to the file to be created or grown.
        data: The NumPy array to save. Must be C-contiguous.
        mode: 'w' to overwrite, 'a' to append rows along the leading axis.
    """
    save_array(filepath, data, mode=mode)


def savez(filepath: PathLike, *, mode: Mode | str = Mode.CREATE, **arrays: np.ndarray) -> None:
    """
    Saves several NumPy arrays as members of one zip archive.

    Args:
        filepath: The archive path.
        mode: 'w' starts a fresh archive, 'a' adds to an existing one.
        **arrays: Member name to array.
    """
    mode = Mode.parse(mode)
    for name, array in arrays.items():
        save_archive_member(filepath, name, array, mode=mode)
        mode = Mode.APPEND


def load(filepath: PathLike) -> Union[np.ndarray, Dict[str, np.ndarray]]:
    """
    Loads an array file or a zip archive of arrays, detected by content.

    Returns:
        An ndarray for an array file, or a dict of member name to ndarray for
        an archive.

    Raises:
        NpzFormatError: If the file is neither.
    """
    with open_file(filepath, "rb") as fp:
        magic = fp.read(len(NPY_MAGIC))

    if magic == NPY_MAGIC:
        return load_array(filepath).as_array()
    if magic[:4] in (LOCAL_HEADER_SIGNATURE, FOOTER_SIGNATURE):
        return {name: arr.as_array() for name, arr in load_archive(filepath).items()}
    raise NpzFormatError(f"{filepath} is neither an array file nor a zip archive (magic {magic!r}).")
