# tests/test_npy.py
"""
Tests for saving, loading and appending single-array files.
"""
import pytest
import numpy as np
from pathlib import Path

from npz_arrays import save_array, load_array, encode_header, NpyArray
from npz_arrays.exceptions import (
    NpzFormatError,
    NpzIOError,
    NpzSizeMismatchError,
    NpzUnsupportedError,
)

SUPPORTED_DTYPES = [
    np.bool_, np.int8, np.uint8, np.int16, np.uint16, np.int32, np.uint32,
    np.int64, np.uint64, np.float16, np.float32, np.float64,
    np.complex64, np.complex128,
]


@pytest.mark.parametrize("dtype", SUPPORTED_DTYPES)
def test_roundtrip_all_dtypes(tmp_path: Path, dtype):
    """Every registered dtype survives a save/load cycle bit-for-bit."""
    filepath = tmp_path / "roundtrip.npy"
    original = (np.arange(12) % 7).reshape(3, 4).astype(dtype)

    save_array(filepath, original)
    loaded = load_array(filepath)

    assert loaded.shape == (3, 4)
    assert loaded.word_size == original.dtype.itemsize
    assert loaded.fortran_order is False
    assert loaded.data == original.tobytes()
    np.testing.assert_array_equal(loaded.as_array(), original)
    assert loaded.as_array().dtype == original.dtype


@pytest.mark.parametrize("shape", [(), (0,), (5,), (0, 3), (2, 3, 4)])
def test_roundtrip_shapes(tmp_path: Path, shape):
    filepath = tmp_path / "shapes.npy"
    original = np.arange(int(np.prod(shape)), dtype=np.float64).reshape(shape)

    save_array(filepath, original)
    loaded = load_array(filepath)

    assert loaded.shape == shape
    assert loaded.num_vals == original.size
    assert loaded.num_bytes == original.nbytes
    np.testing.assert_array_equal(loaded.as_array(), original)


def test_save_then_append_2x3(tmp_path: Path):
    """Creates a 2x3 float64 file, appends another 2x3 block, reloads both times."""
    filepath = tmp_path / "grow.npy"
    first = np.arange(6, dtype=np.float64).reshape(2, 3)
    second = np.arange(6, 12, dtype=np.float64).reshape(2, 3)

    save_array(filepath, first, mode='w')
    loaded = load_array(filepath)
    assert loaded.shape == (2, 3)
    assert loaded.word_size == 8

    save_array(filepath, second, mode='a')
    loaded = load_array(filepath)
    assert loaded.shape == (4, 3)
    flat = loaded.as_array().ravel()
    np.testing.assert_array_equal(flat[:6], first.ravel())
    np.testing.assert_array_equal(flat[6:], second.ravel())


def test_append_to_missing_file_creates_it(tmp_path: Path):
    filepath = tmp_path / "fresh.npy"
    data = np.arange(4, dtype=np.int16)

    save_array(filepath, data, mode='a')

    np.testing.assert_array_equal(load_array(filepath).as_array(), data)


def test_repeated_appends_preserve_order(tmp_path: Path):
    filepath = tmp_path / "many.npy"
    pieces = [np.full((i + 1, 2), i, dtype=np.int64) for i in range(5)]

    for piece in pieces:
        save_array(filepath, piece, mode='a')

    np.testing.assert_array_equal(load_array(filepath).as_array(), np.concatenate(pieces))


def test_append_grows_header_when_padding_overflows(tmp_path: Path):
    """
    Going from 99 to 100 rows with four trailing dimensions pushes the
    dictionary past its 16-byte padding, so the whole file is rewritten.
    """
    filepath = tmp_path / "header_growth.npy"
    assert len(encode_header((99, 1, 1, 1, 1), 8, 'f')) < len(encode_header((100, 1, 1, 1, 1), 8, 'f'))

    first = np.arange(99, dtype=np.float64).reshape(99, 1, 1, 1, 1)
    extra = np.array([1234.5]).reshape(1, 1, 1, 1, 1)

    save_array(filepath, first)
    save_array(filepath, extra, mode='a')

    loaded = load_array(filepath)
    assert loaded.shape == (100, 1, 1, 1, 1)
    np.testing.assert_array_equal(loaded.as_array().ravel(), np.append(first.ravel(), 1234.5))
    assert filepath.stat().st_size == len(encode_header((100, 1, 1, 1, 1), 8, 'f')) + 100 * 8


def test_append_to_numpy_written_file(tmp_path: Path):
    """NumPy pads headers to 64 bytes; appending re-encodes and stays readable by NumPy."""
    filepath = tmp_path / "from_numpy.npy"
    first = np.arange(6, dtype=np.float64).reshape(2, 3)
    second = np.ones((1, 3), dtype=np.float64)
    np.save(filepath, first)

    save_array(filepath, second, mode='a')

    np.testing.assert_array_equal(np.load(filepath), np.concatenate([first, second]))


def test_numpy_reads_our_files(tmp_path: Path):
    filepath = tmp_path / "for_numpy.npy"
    original = np.arange(24, dtype=np.uint16).reshape(2, 3, 4)

    save_array(filepath, original)

    np.testing.assert_array_equal(np.load(filepath), original)


def test_load_fortran_ordered_numpy_file(tmp_path: Path):
    filepath = tmp_path / "fortran.npy"
    original = np.asfortranarray(np.arange(6, dtype=np.int32).reshape(2, 3))
    np.save(filepath, original)

    loaded = load_array(filepath)

    assert loaded.fortran_order is True
    np.testing.assert_array_equal(loaded.as_array(), original)

    with pytest.raises(NpzUnsupportedError, match="Fortran"):
        save_array(filepath, np.zeros((1, 3), dtype=np.int32), mode='a')


def test_load_big_endian_file_fails(tmp_path: Path):
    filepath = tmp_path / "big.npy"
    np.save(filepath, np.arange(3, dtype=">f8"))

    with pytest.raises(NpzFormatError, match="byte order"):
        load_array(filepath)


@pytest.mark.parametrize("existing, appended, match", [
    (np.zeros((2, 3), np.float64), np.zeros((2, 3), np.float32), "word size"),
    (np.zeros((2, 3), np.float64), np.zeros((2, 3), np.int64), "'<f8'"),
    (np.zeros((2, 3), np.float64), np.zeros((2, 3, 1), np.float64), "dimensional"),
    (np.zeros((2, 3), np.float64), np.zeros((2, 4), np.float64), "misshaped"),
    (np.array(1.0), np.array(2.0), "0-d"),
])
def test_append_mismatch_is_fatal(tmp_path: Path, existing, appended, match):
    filepath = tmp_path / "mismatch.npy"
    save_array(filepath, existing)
    before = filepath.read_bytes()

    with pytest.raises(NpzSizeMismatchError, match=match):
        save_array(filepath, appended, mode='a')

    assert filepath.read_bytes() == before


def test_append_to_truncated_file(tmp_path: Path):
    filepath = tmp_path / "truncated.npy"
    save_array(filepath, np.arange(10, dtype=np.int64))
    filepath.write_bytes(filepath.read_bytes()[:-8])

    with pytest.raises(NpzIOError, match="truncated"):
        save_array(filepath, np.arange(2, dtype=np.int64), mode='a')


def test_load_short_payload_is_io_error(tmp_path: Path):
    filepath = tmp_path / "short.npy"
    save_array(filepath, np.arange(10, dtype=np.int64))
    filepath.write_bytes(filepath.read_bytes()[:-1])

    with pytest.raises(NpzIOError, match="Short read"):
        load_array(filepath)


def test_load_missing_file(tmp_path: Path):
    with pytest.raises(NpzIOError) as excinfo:
        load_array(tmp_path / "does_not_exist.npy")
    assert isinstance(excinfo.value, OSError)


def test_explicit_shape_over_flat_elements(tmp_path: Path):
    """Elements may be any sequence; the shape argument describes them."""
    filepath = tmp_path / "flat.npy"

    save_array(filepath, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0], shape=(2, 3))

    loaded = load_array(filepath)
    assert loaded.shape == (2, 3)
    np.testing.assert_array_equal(loaded.as_array(), [[1, 2, 3], [4, 5, 6]])


def test_shape_element_count_mismatch(tmp_path: Path):
    with pytest.raises(NpzSizeMismatchError):
        save_array(tmp_path / "bad.npy", np.arange(5, dtype=np.float64), shape=(2, 3))


def test_writer_fails_on_non_contiguous_array(tmp_path: Path):
    """Ensures the C-contiguity check runs before anything is written."""
    filepath = tmp_path / "contig_test.npy"
    non_contiguous_arr = np.zeros((5, 5), dtype=np.float32).T

    with pytest.raises(ValueError, match="Array must be C-contiguous"):
        save_array(filepath, non_contiguous_arr)
    assert not filepath.exists()


def test_writer_fails_on_unsupported_dtype(tmp_path: Path):
    with pytest.raises(TypeError, match="Unsupported NumPy dtype"):
        save_array(tmp_path / "strings.npy", np.array(["a", "b"]))
    with pytest.raises(TypeError, match="Unsupported NumPy dtype"):
        save_array(tmp_path / "big.npy", np.arange(3, dtype=">i4"))


def test_invalid_mode(tmp_path: Path):
    with pytest.raises(ValueError, match="Unsupported mode"):
        save_array(tmp_path / "x.npy", np.arange(3), mode='x')


def test_npy_array_invariant_and_dtype_override():
    with pytest.raises(ValueError, match="requires 48"):
        NpyArray(shape=(2, 3), word_size=8, fortran_order=False, data=b"\x00" * 40)

    buf = NpyArray(shape=(2,), word_size=4, fortran_order=False, data=b"\x01\x00\x00\x00" * 2)
    np.testing.assert_array_equal(buf.as_array(np.uint32), [1, 1])
    with pytest.raises(ValueError, match="No dtype recorded"):
        buf.as_array()
    with pytest.raises(ValueError, match="item size"):
        buf.as_array(np.float64)


def test_oversized_header_leaves_existing_file_intact(tmp_path: Path):
    """A header dictionary over 65535 bytes is rejected before the file is opened."""
    filepath = tmp_path / "keep.npy"
    save_array(filepath, np.arange(3, dtype=np.int64))
    before = filepath.read_bytes()

    with pytest.raises(NpzFormatError, match="at most 65535"):
        save_array(filepath, np.zeros(1), shape=(1,) * 22000, mode='w')

    assert filepath.read_bytes() == before
