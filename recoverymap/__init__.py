"""recoverymap -- XMP and EXIF metadata codec for JPEG/R gain-map images."""

__version__ = "1.0.0"

from recoverymap.cursor import ByteCursor, read_value, write_value
from recoverymap.errors import (
    BufferTooSmallError,
    MetadataError,
    ParseRejectedError,
    RecoveryMapError,
    Status,
    UnsupportedWidthError,
)
from recoverymap.models import (
    Chromaticity,
    ContainerDirectory,
    ContainerItem,
    GainMapMetadata,
    Hdr10Metadata,
    St2086Metadata,
    TransferFunction,
    XmpGainMapFields,
)
from recoverymap.exif import insert_marker, update_exif, update_exif_offsets
from recoverymap.xmp import (
    generate_xmp,
    generate_xmp_payload,
    get_metadata_from_xmp,
    parse_xmp,
)

__all__ = [
    "__version__",
    "ByteCursor",
    "read_value",
    "write_value",
    "RecoveryMapError",
    "BufferTooSmallError",
    "MetadataError",
    "UnsupportedWidthError",
    "ParseRejectedError",
    "Status",
    "TransferFunction",
    "Chromaticity",
    "St2086Metadata",
    "Hdr10Metadata",
    "GainMapMetadata",
    "XmpGainMapFields",
    "ContainerItem",
    "ContainerDirectory",
    "update_exif",
    "update_exif_offsets",
    "insert_marker",
    "generate_xmp",
    "generate_xmp_payload",
    "get_metadata_from_xmp",
    "parse_xmp",
]
