"""Bounds-checked byte cursor and explicit-endianness integer access.

All multi-byte reads and writes go through read_value()/write_value() so
that host byte order never leaks into the EXIF surgery.
"""

import logging
import struct
from typing import Dict, Optional

from recoverymap.errors import BufferTooSmallError, MetadataError, UnsupportedWidthError

logger = logging.getLogger(__name__)

# Supported integer widths: {byte_width: struct_format_char}
_WIDTH_FORMATS: Dict[int, str] = {
    2: 'H',
    4: 'I',
}


class ByteCursor:
    """Append-only writer over an owned buffer with a fixed capacity.

    The buffer grows as bytes are written but never past max_length.
    """
    __slots__ = ('data', 'max_length', 'position')

    def __init__(self, max_length: int):
        if max_length < 0:
            raise ValueError(f'max_length must be >= 0, got {max_length}')
        self.data = bytearray()
        self.max_length = max_length
        self.position = 0

    def write(self, source, length: Optional[int] = None) -> int:
        """Copy length bytes of source at the current position.

        Returns the new position. Raises BufferTooSmallError if the write
        would run past max_length; nothing is written in that case.
        """
        if length is None:
            length = len(source)
        if self.position + length > self.max_length:
            raise BufferTooSmallError(self.position + length, self.max_length)
        if length > len(source):
            raise MetadataError(
                f'source holds {len(source)} bytes, {length} requested')
        self.data[self.position:self.position + length] = source[:length]
        self.position += length
        return self.position

    def getvalue(self) -> bytes:
        return bytes(self.data[:self.position])

    def __len__(self):
        return self.position


def _format(length: int, big_endian: bool) -> str:
    fmt_char = _WIDTH_FORMATS.get(length)
    if fmt_char is None:
        logger.error('unsupported integer width: %d', length)
        raise UnsupportedWidthError(f'unsupported integer width: {length}')
    return ('>' if big_endian else '<') + fmt_char


def read_value(data, pos: int, length: int, big_endian: bool) -> int:
    """Read an unsigned 2- or 4-byte integer at pos."""
    fmt = _format(length, big_endian)
    if pos < 0 or pos + length > len(data):
        raise MetadataError(
            f'read of {length} bytes at {pos} outside buffer of {len(data)}')
    return struct.unpack_from(fmt, data, pos)[0]


def write_value(data: bytearray, pos: int, value: int, length: int,
                big_endian: bool):
    """Overwrite an unsigned 2- or 4-byte integer at pos in place."""
    fmt = _format(length, big_endian)
    if pos < 0 or pos + length > len(data):
        raise MetadataError(
            f'write of {length} bytes at {pos} outside buffer of {len(data)}')
    try:
        struct.pack_into(fmt, data, pos, value)
    except struct.error as e:
        raise MetadataError(f'value {value} does not fit in {length} bytes') from e
