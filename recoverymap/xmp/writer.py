"""Serialize GainMapMetadata into the GContainer + RecoveryMap XMP block."""

import io
from typing import Dict, List, Optional
from xml.sax.saxutils import XMLGenerator
from xml.sax.xmlreader import AttributesImpl

from recoverymap.models import (
    Chromaticity,
    ContainerDirectory,
    ContainerItem,
    GainMapMetadata,
    TransferFunction,
)
from recoverymap.xmp.names import (
    CON_DIRECTORY,
    CON_ITEM,
    CON_ITEM_LENGTH,
    CON_ITEM_MIME,
    CON_ITEM_SEMANTIC,
    CON_VERSION,
    CONTAINER_PREFIX,
    CONTAINER_URI,
    CONTAINER_VERSION,
    MAP_HDR10_MAX_CLL,
    MAP_HDR10_MAX_FALL,
    MAP_HDR10_METADATA,
    MAP_RANGE_SCALING_FACTOR,
    MAP_ST2086_COORDINATE,
    MAP_ST2086_COORDINATE_X,
    MAP_ST2086_COORDINATE_Y,
    MAP_ST2086_MAX_LUM,
    MAP_ST2086_METADATA,
    MAP_ST2086_MIN_LUM,
    MAP_ST2086_PRIMARY,
    MAP_TRANSFER_FUNCTION,
    MAP_VERSION,
    RDF_URI,
    RECOVERY_MAP_PREFIX,
    RECOVERY_MAP_URI,
    SEMANTIC_PRIMARY,
    ST2086_PRIMARY_BLUE,
    ST2086_PRIMARY_GREEN,
    ST2086_PRIMARY_RED,
    ST2086_PRIMARY_WHITE,
    XMP_META_URI,
    XMP_SIGNATURE,
    XMP_TOOLKIT,
)

_INDENT = '  '


def _format_value(value) -> str:
    """Attribute text for a number; floats keep full repr precision."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


class _ElementWriter:
    """Indenting wrapper over XMLGenerator tracking open elements."""

    def __init__(self, out):
        self._gen = XMLGenerator(out, encoding='utf-8', short_empty_elements=True)
        # [element name, has child elements]
        self._open: List[list] = []

    @property
    def depth(self) -> int:
        return len(self._open)

    def start(self, element: str, attributes: Optional[Dict[str, object]] = None) -> int:
        """Open element; returns the depth before opening it."""
        depth = self.depth
        if self._open:
            self._open[-1][1] = True
            self._gen.ignorableWhitespace('\n' + _INDENT * depth)
        attrs = {k: _format_value(v) for k, v in (attributes or {}).items()}
        self._gen.startElement(element, AttributesImpl(attrs))
        self._open.append([element, False])
        return depth

    def start_all(self, elements: List[str]) -> int:
        depth = self.depth
        for element in elements:
            self.start(element)
        return depth

    def leaf(self, element: str, attributes: Dict[str, object]):
        """Write an element with attributes and no children."""
        self.start(element, attributes)
        self.finish()

    def finish(self):
        element, has_children = self._open.pop()
        if has_children:
            self._gen.ignorableWhitespace('\n' + _INDENT * self.depth)
        self._gen.endElement(element)

    def finish_to_depth(self, depth: int):
        while self.depth > depth:
            self.finish()

    def close(self):
        self.finish_to_depth(0)


def _coordinate(writer: _ElementWriter, primary: int, point: Chromaticity):
    writer.leaf(MAP_ST2086_COORDINATE, {
        MAP_ST2086_PRIMARY: primary,
        MAP_ST2086_COORDINATE_X: float(point.x),
        MAP_ST2086_COORDINATE_Y: float(point.y),
    })


def _item_attributes(item: ContainerItem) -> Dict[str, object]:
    attributes: Dict[str, object] = {
        CON_ITEM_SEMANTIC: item.semantic,
        CON_ITEM_MIME: item.mime,
    }
    if item.length is not None:
        attributes[CON_ITEM_LENGTH] = item.length
    return attributes


def generate_xmp(secondary_image_length: int, metadata: GainMapMetadata) -> str:
    """Build the XMP XML describing a primary image and its recovery map.

    The Primary item carries the gain-map attributes (and, for PQ, the
    HDR10 block); the RecoveryMap item carries the byte length of the
    secondary image.  Output is deterministic for equal inputs.
    """
    directory = ContainerDirectory.for_recovery_map(secondary_image_length)
    out = io.StringIO()
    writer = _ElementWriter(out)

    writer.start('x:xmpmeta', {
        'xmlns:x': XMP_META_URI,
        'x:xmptk': XMP_TOOLKIT,
    })
    writer.start('rdf:RDF', {'xmlns:rdf': RDF_URI})
    writer.start('rdf:Description', {
        f'xmlns:{CONTAINER_PREFIX}': CONTAINER_URI,
        f'xmlns:{RECOVERY_MAP_PREFIX}': RECOVERY_MAP_URI,
        CON_VERSION: CONTAINER_VERSION,
    })
    writer.start_all([CON_DIRECTORY, 'rdf:Seq'])

    for item in directory.items:
        item_depth = writer.start('rdf:li')
        attributes = _item_attributes(item)
        if item.semantic == SEMANTIC_PRIMARY:
            attributes[MAP_VERSION] = int(metadata.version)
            attributes[MAP_RANGE_SCALING_FACTOR] = float(metadata.range_scaling_factor)
            attributes[MAP_TRANSFER_FUNCTION] = int(metadata.transfer_function)
        writer.start(CON_ITEM, attributes)

        if (item.semantic == SEMANTIC_PRIMARY
                and metadata.transfer_function == TransferFunction.PQ):
            hdr10 = metadata.hdr10_metadata
            st2086 = hdr10.st2086
            writer.start(MAP_HDR10_METADATA, {
                MAP_HDR10_MAX_FALL: int(hdr10.max_fall),
                MAP_HDR10_MAX_CLL: int(hdr10.max_cll),
            })
            writer.start(MAP_ST2086_METADATA, {
                MAP_ST2086_MAX_LUM: float(st2086.max_luminance),
                MAP_ST2086_MIN_LUM: float(st2086.min_luminance),
            })
            _coordinate(writer, ST2086_PRIMARY_RED, st2086.red_primary)
            _coordinate(writer, ST2086_PRIMARY_GREEN, st2086.green_primary)
            _coordinate(writer, ST2086_PRIMARY_BLUE, st2086.blue_primary)
            _coordinate(writer, ST2086_PRIMARY_WHITE, st2086.white_point)

        writer.finish_to_depth(item_depth)

    writer.close()
    return out.getvalue()


def generate_xmp_payload(secondary_image_length: int,
                         metadata: GainMapMetadata) -> bytes:
    """XMP APP1 payload: namespace signature followed by UTF-8 XML."""
    return XMP_SIGNATURE + generate_xmp(secondary_image_length, metadata).encode('utf-8')
