# npz_arrays/constants.py
"""
Array file and zip container constants, magic numbers, and struct layouts.
"""
import struct

# --- Array file (.npy) ---

NPY_MAGIC = b"\x93NUMPY"
NPY_VERSION = (1, 0)
NPY_SUFFIX = ".npy"

# Preamble: magic(6) + major(1) + minor(1) + dict_len(2) = 10 bytes
NPY_PREAMBLE_STRUCT = struct.Struct("<6sBBH")
NPY_PREAMBLE_SIZE = NPY_PREAMBLE_STRUCT.size

# Preamble + dictionary must be a multiple of this
NPY_HEADER_ALIGNMENT = 16
NPY_MAX_DICT_LENGTH = 0xFFFF

# --- Zip container (.npz) ---

LOCAL_HEADER_SIGNATURE = b"PK\x03\x04"
CENTRAL_HEADER_SIGNATURE = b"PK\x01\x02"
FOOTER_SIGNATURE = b"PK\x05\x06"
# Optional signature in front of a data descriptor
DATA_DESCRIPTOR_SIGNATURE = b"PK\x07\x08"

ZIP_VERSION = 20

# Local header: sig(4) + version(2) + flags(2) + method(2) + time(2) + date(2)
#   + crc(4) + compressed(4) + uncompressed(4) + name_len(2) + extra_len(2)
LOCAL_HEADER_SIZE = 30

# Central record fixed part: sig(4) + version_made_by(2) + local header bytes
#   4..30 (26) + comment_len(2) + disk_start(2) + internal(2) + external(4)
#   + local_header_offset(4)
CENTRAL_HEADER_SIZE = 46

# Trailer: sig(4) + disk(2) + disk_start(2) + entries_on_disk(2)
#   + total_entries(2) + directory_size(4) + directory_offset(4) + comment_len(2)
FOOTER_SIZE = 22

# General purpose flag bits
FLAG_ENCRYPTED = 1 << 0
FLAG_DATA_DESCRIPTOR = 1 << 3
FLAG_UTF8_NAME = 1 << 11

ZIP64_EXTRA_ID = 0x0001
ZIP64_SENTINEL_U32 = 0xFFFFFFFF
ZIP_MAX_ENTRIES = 0xFFFF
ZIP_MAX_SIZE = 0xFFFFFFFF

# raw deflate stream, no zlib header
DEFLATE_WBITS = -15
