"""Insert the JPEG/R "JR" marker entry into an EXIF payload.

The marker is prepended to IFD0.  Everything after the IFD0 entry count
moves MARKER_ENTRY_LENGTH bytes further into the payload, so every
out-of-line value offset (and the EXIF sub-IFD pointer) is shifted by the
same amount.
"""

import logging
from typing import Optional, Set

from recoverymap.cursor import ByteCursor, read_value, write_value
from recoverymap.errors import MetadataError
from recoverymap.exif.parser import (
    ENTRY_COUNT_POSITION,
    ENTRY_LENGTH,
    EXIF_IDENTIFIER_LENGTH,
    EXIF_IFD_POINTER_TAG,
    FIRST_ENTRY_POSITION,
    INLINE_THRESHOLD,
    MAX_IFD_ENTRIES,
    detect_byte_order,
    format_size,
)

logger = logging.getLogger(__name__)

MARKER_TAG = b'JR'
MARKER_FORMAT = 7  # UNDEFINED
MARKER_COUNT = 1
MARKER_ENTRY_LENGTH = ENTRY_LENGTH

_MARKER_ENTRY_LE = MARKER_TAG + b'\x07\x00' + b'\x01\x00\x00\x00' + b'\x00\x00\x00\x00'
_MARKER_ENTRY_BE = MARKER_TAG + b'\x00\x07' + b'\x00\x00\x00\x01' + b'\x00\x00\x00\x00'

# Minimal EXIF payload used when the image has none: little-endian TIFF
# header, IFD0 at offset 8 holding the marker entry only.
PSEUDO_EXIF_PACKAGE = (
    b'Exif\x00\x00'
    b'II\x2a\x00'
    b'\x08\x00\x00\x00'
    b'\x01\x00'
    + _MARKER_ENTRY_LE
)
PSEUDO_EXIF_PACKAGE_LENGTH = len(PSEUDO_EXIF_PACKAGE)

# Deepest chain of nested EXIF sub-IFDs we follow.
_MAX_DEPTH = 8


def marker_entry(big_endian: bool) -> bytes:
    """The 12-byte marker entry in the given byte order."""
    return _MARKER_ENTRY_BE if big_endian else _MARKER_ENTRY_LE


def patched_length(exif: Optional[bytes]) -> int:
    """Number of bytes update_exif() writes for this source payload."""
    if not exif:
        return PSEUDO_EXIF_PACKAGE_LENGTH
    return len(exif) + MARKER_ENTRY_LENGTH


def update_exif(exif: Optional[bytes], dest: ByteCursor):
    """Write exif with the marker entry added to IFD0 into dest.

    With no source payload the fixed pseudo EXIF package is written
    instead.  Raises BufferTooSmallError when dest cannot hold the
    result and MetadataError when the source cannot be patched.  dest is
    left partially written on failure.
    """
    if not exif:
        dest.write(PSEUDO_EXIF_PACKAGE)
        return

    big_endian = detect_byte_order(exif)
    num_entries = read_value(exif, ENTRY_COUNT_POSITION, 2, big_endian)
    if num_entries >= 0xFFFF:
        raise MetadataError('IFD0 already holds the maximum number of entries')

    start = dest.position
    dest.write(exif, ENTRY_COUNT_POSITION)
    dest.write((num_entries + 1).to_bytes(2, 'big' if big_endian else 'little'))
    dest.write(marker_entry(big_endian))
    dest.write(exif[FIRST_ENTRY_POSITION:])

    patched = memoryview(dest.data)[start:dest.position]
    try:
        update_exif_offsets(patched,
                            FIRST_ENTRY_POSITION + MARKER_ENTRY_LENGTH,
                            num_entries,
                            big_endian)
    finally:
        patched.release()
    logger.debug('inserted recovery map marker; IFD0 now has %d entries',
                 num_entries + 1)


def insert_marker(exif: Optional[bytes], max_length: Optional[int] = None) -> bytes:
    """Return exif with the marker inserted, or the pseudo package.

    max_length defaults to exactly the space the result needs.
    """
    if max_length is None:
        max_length = patched_length(exif)
    dest = ByteCursor(max_length)
    update_exif(exif, dest)
    return dest.getvalue()


def update_sub_directory_offsets(data, pos: int, big_endian: bool,
                                 _visited: Optional[Set[int]] = None,
                                 _depth: int = 0):
    """Shift offsets of the IFD whose entry count sits at position pos."""
    num_entries = read_value(data, pos, 2, big_endian)
    update_exif_offsets(data, pos + 2, num_entries, big_endian,
                        _visited=_visited, _depth=_depth)


def update_exif_offsets(data, pos: int, num_entries: int, big_endian: bool,
                        _visited: Optional[Set[int]] = None,
                        _depth: int = 0):
    """Shift every offset-valued field of num_entries entries from pos.

    Works in place on an already patched payload.  Inline values are
    left alone; out-of-line offsets gain MARKER_ENTRY_LENGTH.  An
    ExifIFDPointer entry is followed into its sub-IFD first and then
    shifted itself.
    """
    if num_entries > MAX_IFD_ENTRIES:
        raise MetadataError(f'implausible IFD entry count {num_entries} at {pos}')
    if _visited is None:
        _visited = set()
    if pos in _visited:
        logger.error('cyclic EXIF sub-IFD pointer to position %d', pos)
        raise MetadataError(f'cyclic EXIF sub-IFD pointer to position {pos}')
    if _depth > _MAX_DEPTH:
        raise MetadataError('EXIF sub-IFDs nested too deeply')
    _visited.add(pos)

    for _ in range(num_entries):
        tag = read_value(data, pos, 2, big_endian)
        if tag == EXIF_IFD_POINTER_TAG:
            sub_ifd_position = (read_value(data, pos + 8, 4, big_endian)
                                + EXIF_IDENTIFIER_LENGTH
                                + MARKER_ENTRY_LENGTH)
            update_sub_directory_offsets(data, sub_ifd_position, big_endian,
                                         _visited=_visited, _depth=_depth + 1)
            needs_update = True
        else:
            data_format = read_value(data, pos + 2, 2, big_endian)
            count = read_value(data, pos + 4, 4, big_endian)
            needs_update = format_size(data_format) * count > INLINE_THRESHOLD

        if needs_update:
            offset = read_value(data, pos + 8, 4, big_endian)
            write_value(data, pos + 8, offset + MARKER_ENTRY_LENGTH, 4, big_endian)

        pos += ENTRY_LENGTH
