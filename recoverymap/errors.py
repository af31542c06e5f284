"""Error taxonomy for the recovery map metadata codec.

Every failure the codec can report is a subclass of RecoveryMapError and
carries the numeric status the JPEG/R encoder uses for it.
"""

from enum import IntEnum


class Status(IntEnum):
    """JPEG/R status codes."""
    NO_ERROR = 0
    ERROR_JPEGR_INVALID_INPUT_TYPE = -1
    ERROR_JPEGR_BUFFER_TOO_SMALL = -2
    ERROR_JPEGR_METADATA_ERROR = -3


class RecoveryMapError(Exception):
    """Base class for all codec errors."""
    status = Status.ERROR_JPEGR_INVALID_INPUT_TYPE


class BufferTooSmallError(RecoveryMapError):
    """Destination capacity exceeded. Retry with a larger buffer."""
    status = Status.ERROR_JPEGR_BUFFER_TOO_SMALL

    def __init__(self, required: int, max_length: int):
        super().__init__(
            f'destination too small: need {required} bytes, '
            f'capacity is {max_length}')
        self.required = required
        self.max_length = max_length


class MetadataError(RecoveryMapError):
    """Malformed or unsupported EXIF structure."""
    status = Status.ERROR_JPEGR_METADATA_ERROR


class UnsupportedWidthError(MetadataError):
    """Integer width other than 2 or 4 bytes requested."""


class ParseRejectedError(RecoveryMapError):
    """XMP is ill-formed or lacks the recovery map fields."""
    status = Status.ERROR_JPEGR_METADATA_ERROR
