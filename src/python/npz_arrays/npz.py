# npz_arrays/npz.py
"""
A minimal zip container holding one array file per member.

Writing never compresses. Members are appended in place: the new local
header and array overwrite the old central directory, which is then written
back after it together with a record for the new member and a fresh trailer.

Reading scans local headers from the start of the file and stops at the first
block that is not a local header (the central directory). Stored and
deflate-compressed members are both understood, and a data descriptor after a
member's data is skipped.
"""

import logging
import os
import zlib
from dataclasses import replace
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Sequence, Tuple

from .constants import (
    CENTRAL_HEADER_SIGNATURE,
    DATA_DESCRIPTOR_SIGNATURE,
    FLAG_DATA_DESCRIPTOR,
    FLAG_ENCRYPTED,
    FLAG_UTF8_NAME,
    FOOTER_SIGNATURE,
    FOOTER_SIZE,
    LOCAL_HEADER_SIGNATURE,
    LOCAL_HEADER_SIZE,
    NPY_SUFFIX,
    ZIP64_EXTRA_ID,
    ZIP64_SENTINEL_U32,
    ZIP_MAX_ENTRIES,
    ZIP_MAX_SIZE,
    ZIP_VERSION,
)
from .dataclasses import MemberInfo, NpyArray, ZipFooter
from .exceptions import (
    NpzFormatError,
    NpzIOError,
    NpzNotFoundError,
    NpzUnsupportedError,
)
from .header import decode_header, encode_array_header
from .lowlevel import PathLike, file_length, open_file, read_exact
from .types import CompressionMethod, Mode
from ._internal import numpy_utils
from ._internal.byteio import ByteReader, ByteWriter
from ._internal.inflate import inflate_raw

logger = logging.getLogger(__name__)

# --- Entry writer ---

def _build_local_header(filename: str, crc: int, nbytes: int) -> bytes:
    name_bytes = filename.encode('ascii')
    if len(name_bytes) > 0xFFFF:
        raise ValueError(f"Member name is too long ({len(name_bytes)} bytes).")

    writer = ByteWriter()
    writer.write_bytes(LOCAL_HEADER_SIGNATURE)
    writer.write_u16(ZIP_VERSION)                  # version needed to extract
    writer.write_u16(0)                            # general purpose flags
    writer.write_u16(CompressionMethod.STORED)
    writer.write_u16(0)                            # last mod time
    writer.write_u16(0)                            # last mod date
    writer.write_u32(crc)
    writer.write_u32(nbytes)                       # compressed size
    writer.write_u32(nbytes)                       # uncompressed size
    writer.write_u16(len(name_bytes))
    writer.write_u16(0)                            # extra field length
    writer.write_bytes(name_bytes)
    return writer.getvalue()


def _build_central_record(local_header: bytes, filename: str, local_header_offset: int) -> bytes:
    writer = ByteWriter()
    writer.write_bytes(CENTRAL_HEADER_SIGNATURE)
    writer.write_u16(ZIP_VERSION)                  # version made by
    writer.write_bytes(local_header[4:LOCAL_HEADER_SIZE])
    writer.write_u16(0)                            # file comment length
    writer.write_u16(0)                            # disk number start
    writer.write_u16(0)                            # internal attributes
    writer.write_u32(0)                            # external attributes
    writer.write_u32(local_header_offset)
    writer.write_ascii(filename)
    return writer.getvalue()


def _build_footer(entries: int, directory_size: int, directory_offset: int) -> bytes:
    writer = ByteWriter()
    writer.write_bytes(FOOTER_SIGNATURE)
    writer.write_u16(0)                            # number of this disk
    writer.write_u16(0)                            # disk where directory starts
    writer.write_u16(entries)                      # entries on this disk
    writer.write_u16(entries)                      # total entries
    writer.write_u32(directory_size)
    writer.write_u32(directory_offset)
    writer.write_u16(0)                            # comment length
    return writer.getvalue()

# --- Directory manager ---

def read_footer(fp: BinaryIO, path: PathLike) -> ZipFooter:
    """
    Reads and validates the trailer at the end of an archive.

    Raises:
        NpzFormatError: If the file is too small or the trailer signature is
                        missing.
        NpzUnsupportedError: For multi-disk archives, archive comments, or
                             anything stored between directory and trailer.
    """
    name = os.fspath(path)
    length = file_length(fp)
    if length < FOOTER_SIZE:
        raise NpzFormatError(f"{name} is too small ({length} bytes) to be a zip archive.")

    fp.seek(length - FOOTER_SIZE)
    reader = ByteReader(read_exact(fp, FOOTER_SIZE, "archive trailer"))
    signature = reader.read_bytes(4)
    if signature != FOOTER_SIGNATURE:
        raise NpzFormatError(
            f"No end-of-central-directory record at the end of {name} "
            f"(found {signature!r})."
        )

    footer = ZipFooter(
        disk_number=reader.read_u16(),
        disk_start=reader.read_u16(),
        entries_on_disk=reader.read_u16(),
        total_entries=reader.read_u16(),
        directory_size=reader.read_u32(),
        directory_offset=reader.read_u32(),
        comment_length=reader.read_u16(),
    )

    if footer.disk_number != 0 or footer.disk_start != 0:
        raise NpzUnsupportedError(f"{name} spans multiple disks.")
    if footer.entries_on_disk != footer.total_entries:
        raise NpzUnsupportedError(
            f"{name} has {footer.entries_on_disk} entries on this disk but "
            f"{footer.total_entries} in total; spanned archives are not supported."
        )
    if footer.comment_length != 0:
        raise NpzUnsupportedError(f"{name} carries an archive comment.")
    if footer.directory_offset + footer.directory_size != length - FOOTER_SIZE:
        raise NpzUnsupportedError(
            f"The central directory of {name} does not end at its trailer "
            "(ZIP64 or trailing data)."
        )
    return footer


class _CentralDirectory:
    """
    Running directory state for one write.

    `offset` is where the directory starts on disk, which is also where the
    next member's local header goes.
    """

    def __init__(self, blob: bytes = b"", entries: int = 0, offset: int = 0) -> None:
        self.blob = blob
        self.entries = entries
        self.offset = offset

    @classmethod
    def load(cls, fp: BinaryIO, path: PathLike) -> "_CentralDirectory":
        """Reads the existing directory and leaves `fp` at its start."""
        footer = read_footer(fp, path)
        fp.seek(footer.directory_offset)
        blob = read_exact(fp, footer.directory_size, "central directory")
        fp.seek(footer.directory_offset)
        return cls(blob, footer.total_entries, footer.directory_offset)

    def add(self, local_header: bytes, filename: str, member_size: int) -> None:
        if self.entries >= ZIP_MAX_ENTRIES:
            raise NpzUnsupportedError(f"Archives are limited to {ZIP_MAX_ENTRIES} members.")
        if self.offset + member_size > ZIP_MAX_SIZE:
            raise NpzUnsupportedError("Archive would exceed 4 GiB, which requires ZIP64.")
        self.blob += _build_central_record(local_header, filename, self.offset)
        self.entries += 1
        self.offset += member_size

    def serialize(self) -> bytes:
        """The directory records followed by the trailer."""
        return self.blob + _build_footer(self.entries, len(self.blob), self.offset)


def create_archive(path: PathLike) -> None:
    """Writes an archive with no members, truncating any existing file."""
    with open_file(path, "wb") as fp:
        fp.write(_CentralDirectory().serialize())


def save_archive_member(
    path: PathLike,
    name: str,
    elements: Any,
    shape: Optional[Sequence[int]] = None,
    mode: Mode | str = Mode.CREATE,
) -> None:
    """
    Adds one named array to a zip archive.

    Args:
        path: The archive file.
        name: Member name; '.npy' is appended on disk. Must be ASCII.
              Uniqueness is not enforced.
        elements: An ndarray (must be C-contiguous) or anything `np.asarray`
                  accepts.
        shape: (Optional) Shape to record. Defaults to `elements.shape`.
        mode: 'w' starts a new archive. 'a' adds to an existing one and
              creates it if missing.

    Raises:
        NpzFormatError: If the existing file has no valid trailer.
        NpzUnsupportedError: For spanned archives, comments, or sizes that
                             would need ZIP64.
    """
    mode = Mode.parse(mode)
    arr, final_shape, descriptor = numpy_utils.prepare_elements(elements, shape)

    filename = name + NPY_SUFFIX
    npy_header = encode_array_header(descriptor, final_shape)
    payload = numpy_utils.payload_bytes(arr)
    nbytes = len(npy_header) + arr.nbytes
    if nbytes > ZIP_MAX_SIZE:
        raise NpzUnsupportedError(f"Member '{name}' is {nbytes} bytes; ZIP64 is not supported.")

    crc = zlib.crc32(payload, zlib.crc32(npy_header))
    local_header = _build_local_header(filename, crc, nbytes)

    appending = mode is Mode.APPEND and os.path.exists(path)
    with open_file(path, "r+b" if appending else "wb") as fp:
        directory = _CentralDirectory.load(fp, path) if appending else _CentralDirectory()
        member_offset = directory.offset
        directory.add(local_header, filename, len(local_header) + nbytes)

        fp.write(local_header)
        fp.write(npy_header)
        fp.write(payload)
        fp.write(directory.serialize())

    logger.debug(
        "Added member '%s' (%s, shape %s) to %s at offset %d; %d entries.",
        name, descriptor.descr, final_shape, path, member_offset, directory.entries,
    )

# --- Reader ---

def _zip64_sizes(extra: bytes) -> Tuple[int, int]:
    """
    Returns (uncompressed, compressed) from a local header's ZIP64 extra field.

    In a local header the ZIP64 record always carries both sizes, in that
    order, whichever of the 32-bit fields were saturated.
    """
    reader = ByteReader(extra)
    while reader.remaining >= 4:
        header_id = reader.read_u16()
        body = ByteReader(reader.read_bytes(reader.read_u16()))
        if header_id == ZIP64_EXTRA_ID:
            return body.read_u64(), body.read_u64()
    raise NpzFormatError("Local header sizes are ZIP64 markers but no ZIP64 extra field is present.")


def _parse_local_header(fp: BinaryIO, block: bytes, offset: int) -> Tuple[MemberInfo, bool]:
    """Returns the member info and whether its sizes came from a ZIP64 extra."""
    reader = ByteReader(block)
    reader.skip(4)                                 # signature
    reader.skip(2)                                 # version needed
    flags = reader.read_u16()
    method = reader.read_u16()
    reader.skip(4)                                 # time, date
    crc = reader.read_u32()
    compressed_size = reader.read_u32()
    uncompressed_size = reader.read_u32()
    name_len = reader.read_u16()
    extra_len = reader.read_u16()

    raw_name = read_exact(fp, name_len, "member name")
    filename = raw_name.decode('utf-8' if flags & FLAG_UTF8_NAME else 'cp437')
    extra = read_exact(fp, extra_len, "extra field")

    zip64 = ZIP64_SENTINEL_U32 in (compressed_size, uncompressed_size)
    if zip64:
        uncompressed_size, compressed_size = _zip64_sizes(extra)

    if flags & FLAG_ENCRYPTED:
        raise NpzUnsupportedError(f"Member '{filename}' is encrypted.")
    if flags & FLAG_DATA_DESCRIPTOR and uncompressed_size == 0:
        raise NpzUnsupportedError(
            f"Member '{filename}' stores its sizes in a trailing data descriptor."
        )
    if method not in (CompressionMethod.STORED, CompressionMethod.DEFLATED):
        raise NpzUnsupportedError(f"Member '{filename}' uses compression method {method}.")

    name = filename[:-len(NPY_SUFFIX)] if filename.endswith(NPY_SUFFIX) else filename
    info = MemberInfo(
        name=name,
        filename=filename,
        compression_method=method,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        crc32=crc,
        local_header_offset=offset,
        data_offset=offset + LOCAL_HEADER_SIZE + name_len + extra_len,
        flags=flags,
    )
    return info, zip64


def _read_data_descriptor(fp: BinaryIO, info: MemberInfo, zip64: bool) -> Tuple[MemberInfo, int]:
    """
    Reads the descriptor that follows a member's data.

    The signature is optional; sizes are 8 bytes wide when the local header
    used ZIP64. Returns the member with the descriptor's CRC and the offset
    just past the descriptor.
    """
    offset = info.data_offset + info.compressed_size
    fp.seek(offset)
    if fp.read(len(DATA_DESCRIPTOR_SIGNATURE)) == DATA_DESCRIPTOR_SIGNATURE:
        offset += len(DATA_DESCRIPTOR_SIGNATURE)
    else:
        fp.seek(offset)

    size = 4 + (16 if zip64 else 8)
    reader = ByteReader(read_exact(fp, size, f"data descriptor of '{info.filename}'"))
    crc = reader.read_u32()
    if zip64:
        compressed_size, uncompressed_size = reader.read_u64(), reader.read_u64()
    else:
        compressed_size, uncompressed_size = reader.read_u32(), reader.read_u32()

    if (compressed_size, uncompressed_size) != (info.compressed_size, info.uncompressed_size):
        raise NpzFormatError(
            f"Data descriptor of '{info.filename}' records sizes "
            f"{compressed_size}/{uncompressed_size}, its local header "
            f"{info.compressed_size}/{info.uncompressed_size}."
        )
    return replace(info, crc32=crc), offset + size


def iter_members(fp: BinaryIO) -> Iterator[MemberInfo]:
    """
    Yields each member's header in file order.

    The caller may read from `fp` between items; the generator repositions
    the file itself before parsing the next local header.
    """
    offset = 0
    while True:
        fp.seek(offset)
        block = fp.read(LOCAL_HEADER_SIZE)
        # Anything but a local header marks the start of the central directory.
        if len(block) >= 4 and block[2:4] != LOCAL_HEADER_SIGNATURE[2:4]:
            return
        if len(block) != LOCAL_HEADER_SIZE:
            raise NpzIOError(
                f"Short read while reading local header at offset {offset}: "
                f"expected {LOCAL_HEADER_SIZE} bytes, got {len(block)}."
            )
        info, zip64 = _parse_local_header(fp, block, offset)
        if info.has_data_descriptor:
            info, offset = _read_data_descriptor(fp, info, zip64)
        else:
            offset = info.data_offset + info.compressed_size
        yield info


def _verify_crc(raw: bytes, info: MemberInfo) -> None:
    actual = zlib.crc32(raw)
    if actual != info.crc32:
        raise NpzFormatError(
            f"CRC mismatch for member '{info.name}': header says "
            f"{info.crc32:#010x}, data hashes to {actual:#010x}."
        )


def read_member(fp: BinaryIO, info: MemberInfo, *, check_crc: bool = True) -> NpyArray:
    """
    Reads and decodes the array stored in one member.

    Raises:
        NpzFormatError: On a malformed array header, a CRC mismatch, or a
                        corrupt deflate stream.
        NpzIOError: If the member data is truncated.
    """
    fp.seek(info.data_offset)
    what = f"member '{info.name}'"

    if info.compression_method == CompressionMethod.STORED:
        raw = read_exact(fp, info.uncompressed_size, what)
        if check_crc:
            _verify_crc(raw, info)
        header = decode_header(raw)
        payload = raw[header.header_size:]
        if len(payload) != header.payload_size:
            raise NpzFormatError(
                f"Member '{info.name}' holds {len(payload)} payload bytes, its "
                f"array header declares {header.payload_size}."
            )
        return NpyArray.from_header(header, payload)

    raw = inflate_raw(read_exact(fp, info.compressed_size, what), info.uncompressed_size)
    if check_crc:
        _verify_crc(raw, info)
    header = decode_header(raw)
    # The payload is the tail of the inflated member.
    payload_offset = info.uncompressed_size - header.payload_size
    if payload_offset < header.header_size:
        raise NpzFormatError(
            f"Member '{info.name}' inflates to {info.uncompressed_size} bytes, too "
            f"few for its declared payload of {header.payload_size}."
        )
    return NpyArray.from_header(header, raw[payload_offset:])


def list_members(path: PathLike) -> List[MemberInfo]:
    """Returns the header of every member without reading any payload."""
    with open_file(path, "rb") as fp:
        return list(iter_members(fp))


def load_archive(path: PathLike, *, check_crc: bool = True) -> Dict[str, NpyArray]:
    """
    Loads every member of an archive.

    If the archive physically contains the same name twice, the last
    occurrence wins.
    """
    arrays: Dict[str, NpyArray] = {}
    with open_file(path, "rb") as fp:
        for info in iter_members(fp):
            if info.name in arrays:
                logger.warning(
                    "Duplicate member '%s' in %s; keeping the later occurrence.",
                    info.name, path,
                )
            arrays[info.name] = read_member(fp, info, check_crc=check_crc)
    return arrays


def load_archive_member(path: PathLike, name: str, *, check_crc: bool = True) -> NpyArray:
    """
    Loads the first member called `name`.

    Scanning stops at the first match, so a later member sharing the name is
    never returned here even though `load_archive` would return it.

    Raises:
        NpzNotFoundError: If no member has that name.
    """
    with open_file(path, "rb") as fp:
        for info in iter_members(fp):
            if info.name == name:
                return read_member(fp, info, check_crc=check_crc)
    raise NpzNotFoundError(name, os.fspath(path))
