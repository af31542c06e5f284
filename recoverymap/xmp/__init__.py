"""XMP serialization and parsing of recovery map metadata."""

from recoverymap.xmp.names import XMP_NAMESPACE, XMP_SIGNATURE  # noqa: F401
from recoverymap.xmp.reader import (  # noqa: F401
    ContainerItemMachine,
    get_metadata_from_xmp,
    iter_tokens,
    parse_xmp,
)
from recoverymap.xmp.writer import generate_xmp, generate_xmp_payload  # noqa: F401
