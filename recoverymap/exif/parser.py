"""In-place view over an EXIF APP1 payload: header, IFD entries, tag values.

The payload is the "Exif\\0\\0" identifier followed by a classic TIFF
header (II or MM byte order) and IFD0.  Offsets stored in entries are
relative to the TIFF header, i.e. to byte 6 of the payload.
"""

import logging
from typing import Dict, List, Optional

from recoverymap.cursor import read_value
from recoverymap.errors import MetadataError

logger = logging.getLogger(__name__)

EXIF_IDENTIFIER = b'Exif\x00\x00'
EXIF_IDENTIFIER_LENGTH = len(EXIF_IDENTIFIER)

# Byte-order marker sits right after the identifier; the IFD0 entry count
# sits right after the 8-byte TIFF header.
BYTE_ORDER_POSITION = EXIF_IDENTIFIER_LENGTH
ENTRY_COUNT_POSITION = EXIF_IDENTIFIER_LENGTH + 8
FIRST_ENTRY_POSITION = ENTRY_COUNT_POSITION + 2

ENTRY_LENGTH = 12
INLINE_THRESHOLD = 4

# Real IFDs have a few hundred tags at most; more means we are reading
# garbage.
MAX_IFD_ENTRIES = 1000

# EXIF field format codes: {format: element_size_bytes}
FORMAT_SIZES: Dict[int, int] = {
    1: 1,   # BYTE
    2: 1,   # ASCII
    3: 2,   # SHORT
    4: 4,   # LONG
    5: 8,   # RATIONAL (num/denom)
    6: 1,   # SBYTE
    7: 1,   # UNDEFINED
    8: 2,   # SSHORT
    9: 4,   # SLONG
    10: 8,  # SRATIONAL
    11: 4,  # FLOAT
    12: 8,  # DOUBLE
}

FORMAT_NAMES: Dict[int, str] = {
    1: 'BYTE', 2: 'ASCII', 3: 'SHORT', 4: 'LONG', 5: 'RATIONAL',
    6: 'SBYTE', 7: 'UNDEFINED', 8: 'SSHORT', 9: 'SLONG',
    10: 'SRATIONAL', 11: 'FLOAT', 12: 'DOUBLE',
}

EXIF_IFD_POINTER_TAG = 0x8769

# Well-known EXIF tag names
TAG_NAMES: Dict[int, str] = {
    256: 'ImageWidth', 257: 'ImageLength', 258: 'BitsPerSample',
    259: 'Compression', 262: 'PhotometricInterpretation',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    274: 'Orientation', 282: 'XResolution', 283: 'YResolution',
    296: 'ResolutionUnit', 305: 'Software', 306: 'DateTime',
    315: 'Artist', 531: 'YCbCrPositioning', 33432: 'Copyright',
    34665: 'ExifIFDPointer', 34853: 'GPSInfoIFDPointer',
    33434: 'ExposureTime', 33437: 'FNumber', 34855: 'ISOSpeedRatings',
    36864: 'ExifVersion', 36867: 'DateTimeOriginal',
    36868: 'DateTimeDigitized', 37121: 'ComponentsConfiguration',
    37377: 'ShutterSpeedValue', 37378: 'ApertureValue',
    37386: 'FocalLength', 37500: 'MakerNote', 37510: 'UserComment',
    40960: 'FlashpixVersion', 40961: 'ColorSpace',
    40962: 'PixelXDimension', 40963: 'PixelYDimension',
    42016: 'ImageUniqueID',
    0x524A: 'RecoveryMapMarker',  # "JR" read little-endian
    0x4A52: 'RecoveryMapMarker',  # "JR" read big-endian
}


def format_size(data_format: int) -> int:
    """Return the element size in bytes for an EXIF format code."""
    size = FORMAT_SIZES.get(data_format)
    if size is None:
        logger.error('unknown EXIF data format: %d', data_format)
        raise MetadataError(f'unknown EXIF data format: {data_format}')
    return size


class ExifEntry:
    """A single 12-byte IFD entry, located by its position in the payload."""
    __slots__ = ('tag_id', 'data_format', 'count', 'value_offset',
                 'entry_position')

    def __init__(self, tag_id: int, data_format: int, count: int,
                 value_offset: int, entry_position: int):
        self.tag_id = tag_id
        self.data_format = data_format
        self.count = count
        self.value_offset = value_offset
        self.entry_position = entry_position

    @property
    def tag_name(self) -> str:
        return TAG_NAMES.get(self.tag_id, f'Tag_{self.tag_id}')

    @property
    def format_name(self) -> str:
        return FORMAT_NAMES.get(self.data_format, f'Format_{self.data_format}')

    @property
    def data_length(self) -> int:
        return format_size(self.data_format) * self.count

    @property
    def is_inline(self) -> bool:
        return self.data_length <= INLINE_THRESHOLD

    def __repr__(self):
        return (f'ExifEntry({self.tag_name}, format={self.data_format}, '
                f'count={self.count}, value=0x{self.value_offset:08x})')


class ExifHeader:
    """Byte order of an EXIF payload and the location of IFD0."""
    __slots__ = ('big_endian', 'first_ifd_offset')

    def __init__(self, big_endian: bool, first_ifd_offset: int):
        self.big_endian = big_endian
        self.first_ifd_offset = first_ifd_offset

    @property
    def endian(self) -> str:
        return '>' if self.big_endian else '<'


def detect_byte_order(data) -> bool:
    """Return True for big-endian (MM), False for little-endian (II)."""
    if len(data) < FIRST_ENTRY_POSITION:
        raise MetadataError(
            f'EXIF payload truncated: {len(data)} bytes, '
            f'need at least {FIRST_ENTRY_POSITION}')
    marker = bytes(data[BYTE_ORDER_POSITION:BYTE_ORDER_POSITION + 2])
    if marker == b'II':
        return False
    if marker == b'MM':
        return True
    logger.error('unsupported EXIF byte-order marker: %r', marker)
    raise MetadataError(f'unsupported EXIF byte-order marker: {marker!r}')


def read_exif_header(data) -> Optional[ExifHeader]:
    """Parse the identifier and TIFF header. Returns None if not EXIF."""
    if bytes(data[:EXIF_IDENTIFIER_LENGTH]) != EXIF_IDENTIFIER:
        return None
    try:
        big_endian = detect_byte_order(data)
    except MetadataError:
        return None
    if read_value(data, BYTE_ORDER_POSITION + 2, 2, big_endian) != 42:
        return None
    first_ifd = read_value(data, BYTE_ORDER_POSITION + 4, 4, big_endian)
    return ExifHeader(big_endian, first_ifd)


def read_directory(data, pos: int, big_endian: bool) -> List[ExifEntry]:
    """Read the IFD whose uint16 entry count sits at absolute position pos."""
    num_entries = read_value(data, pos, 2, big_endian)
    if num_entries > MAX_IFD_ENTRIES:
        raise MetadataError(f'implausible IFD entry count {num_entries} at {pos}')
    entries = []
    entry_pos = pos + 2
    for _ in range(num_entries):
        tag_id = read_value(data, entry_pos, 2, big_endian)
        data_format = read_value(data, entry_pos + 2, 2, big_endian)
        count = read_value(data, entry_pos + 4, 4, big_endian)
        value = read_value(data, entry_pos + 8, 4, big_endian)
        entries.append(ExifEntry(tag_id, data_format, count, value, entry_pos))
        entry_pos += ENTRY_LENGTH
    return entries


def tiff_to_absolute(offset: int) -> int:
    """Convert a TIFF-relative offset to a position in the payload."""
    return offset + EXIF_IDENTIFIER_LENGTH


def read_exif_sub_ifd(data, big_endian: bool,
                      entries: List[ExifEntry]) -> Optional[List[ExifEntry]]:
    """Find the ExifIFDPointer entry and read the sub-IFD it points to."""
    for entry in entries:
        if entry.tag_id == EXIF_IFD_POINTER_TAG:
            if entry.value_offset == 0:
                return None
            return read_directory(data, tiff_to_absolute(entry.value_offset),
                                  big_endian)
    return None


def read_tag_value_bytes(data, entry: ExifEntry) -> bytes:
    """Return the raw bytes of a tag value, inline or out-of-line."""
    length = entry.data_length
    if entry.is_inline:
        start = entry.entry_position + 8
    else:
        start = tiff_to_absolute(entry.value_offset)
    if start + length > len(data):
        raise MetadataError(
            f'{entry.tag_name} value at {start} runs past end of payload')
    return bytes(data[start:start + length])
