# tests/conftest.py
"""
Pytest configuration and shared fixtures for the test suite.
"""
import pytest
from pathlib import Path
import numpy as np

from npz_arrays import open as npz_open


@pytest.fixture(scope="session")
def archive_arrays() -> dict[str, np.ndarray]:
    """The arrays stored in `three_member_archive`, keyed by member name."""
    return {
        "weights": np.linspace(0, 1, 12, dtype=np.float64).reshape(3, 4),
        "labels": np.arange(10, dtype=np.int32),
        "mask": np.array([True, False, True], dtype=np.bool_),
    }


@pytest.fixture(scope="session")
def three_member_archive(tmp_path_factory, archive_arrays) -> Path:
    """
    A pytest fixture that creates a standard three-member archive.
    This runs only once per test session and provides the file path to tests.
    """
    filepath = tmp_path_factory.getbasetemp() / "three_members.npz"

    with npz_open(filepath, 'w') as f:
        for name, array in archive_arrays.items():
            f.add(name, array)

    return filepath


@pytest.fixture(scope="session")
def numpy_archives(tmp_path_factory, archive_arrays) -> dict[str, Path]:
    """
    Archives written by NumPy itself: one stored, one deflate-compressed.
    NumPy forces ZIP64 size fields in every local header.
    """
    base = tmp_path_factory.getbasetemp()
    stored = base / "numpy_stored.npz"
    compressed = base / "numpy_compressed.npz"
    np.savez(stored, **archive_arrays)
    np.savez_compressed(compressed, **archive_arrays)
    return {"stored": stored, "compressed": compressed}
