"""EXIF tag-directory access and recovery map marker insertion.

Re-exports the public names of parser.py and patcher.py.
"""

# --- parser.py: payload layout, format sizes, IFD reading ---
from recoverymap.exif.parser import (  # noqa: F401
    EXIF_IDENTIFIER,
    EXIF_IDENTIFIER_LENGTH,
    EXIF_IFD_POINTER_TAG,
    ENTRY_COUNT_POSITION,
    ENTRY_LENGTH,
    FIRST_ENTRY_POSITION,
    FORMAT_SIZES,
    TAG_NAMES,
    ExifEntry,
    ExifHeader,
    detect_byte_order,
    format_size,
    read_directory,
    read_exif_header,
    read_exif_sub_ifd,
    read_tag_value_bytes,
)

# --- patcher.py: marker insertion and offset fix-up ---
from recoverymap.exif.patcher import (  # noqa: F401
    MARKER_ENTRY_LENGTH,
    MARKER_TAG,
    PSEUDO_EXIF_PACKAGE,
    PSEUDO_EXIF_PACKAGE_LENGTH,
    insert_marker,
    marker_entry,
    patched_length,
    update_exif,
    update_exif_offsets,
    update_sub_directory_offsets,
)
