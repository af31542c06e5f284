"""Extract recovery map parameters from an XMP APP1 payload.

The XML is tokenized lazily with ElementTree's pull parser and fed to a
small state machine that watches the first GContainer:Item element.
Only RangeScalingFactor and TransferFunction are recovered; the HDR10
block, if any, is not read back.
"""

import logging
import math
import re
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Dict, Iterator, NamedTuple, Optional

from recoverymap.errors import ParseRejectedError
from recoverymap.models import TransferFunction, XmpGainMapFields
from recoverymap.xmp.names import (
    CON_ITEM_CLARK,
    MAP_RANGE_SCALING_FACTOR_CLARK,
    MAP_TRANSFER_FUNCTION_CLARK,
    XMP_NAMESPACE,
)

logger = logging.getLogger(__name__)

# Plain decimal and integer literals, as XMP writers emit them.
_DECIMAL = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?', re.ASCII)
_INTEGER = re.compile(r'[+-]?\d+', re.ASCII)


class TokenKind(Enum):
    START_ELEMENT = 'start'
    ATTRIBUTE_NAME = 'attribute-name'
    ATTRIBUTE_VALUE = 'attribute-value'
    FINISH_ELEMENT = 'end'


class Token(NamedTuple):
    kind: TokenKind
    value: str


def _drain(parser: ET.XMLPullParser) -> Iterator[Token]:
    for event, elem in parser.read_events():
        if event == 'start':
            yield Token(TokenKind.START_ELEMENT, elem.tag)
            for attr_name, attr_value in elem.attrib.items():
                yield Token(TokenKind.ATTRIBUTE_NAME, attr_name)
                yield Token(TokenKind.ATTRIBUTE_VALUE, attr_value)
        else:
            yield Token(TokenKind.FINISH_ELEMENT, elem.tag)


def iter_tokens(xml_data) -> Iterator[Token]:
    """Lazily tokenize an XML document.

    Raises xml.etree.ElementTree.ParseError when the document is
    ill-formed, possibly after some tokens have been produced.
    """
    parser = ET.XMLPullParser(events=('start', 'end'))
    parser.feed(xml_data)
    yield from _drain(parser)
    parser.close()
    yield from _drain(parser)


class ParseState(Enum):
    NOT_STARTED = 0
    STARTED = 1
    DONE = 2


class ContainerItemMachine:
    """Captures recovery map attributes of the first GContainer:Item.

    NOT_STARTED -> STARTED when the item element opens, STARTED -> DONE
    when that same element closes.  DONE is final, so later items are
    ignored.  One instance per parse.
    """

    CAPTURED_ATTRIBUTES = (
        MAP_RANGE_SCALING_FACTOR_CLARK,
        MAP_TRANSFER_FUNCTION_CLARK,
    )

    def __init__(self, item_name: str = CON_ITEM_CLARK):
        self.item_name = item_name
        self.state = ParseState.NOT_STARTED
        self.last_attribute_name = ''
        self.captured: Dict[str, str] = {}
        self._depth = 0
        self._item_depth = -1

    def feed(self, token: Token):
        if token.kind is TokenKind.START_ELEMENT:
            self.start_element(token.value)
        elif token.kind is TokenKind.FINISH_ELEMENT:
            self.finish_element(token.value)
        elif token.kind is TokenKind.ATTRIBUTE_NAME:
            self.attribute_name(token.value)
        elif token.kind is TokenKind.ATTRIBUTE_VALUE:
            self.attribute_value(token.value)

    def start_element(self, tag: str):
        self._depth += 1
        if self.state is ParseState.NOT_STARTED and tag == self.item_name:
            self.state = ParseState.STARTED
            self._item_depth = self._depth
        # Attributes of nested elements never belong to the item.
        self.last_attribute_name = ''

    def finish_element(self, tag: str):
        if self.state is ParseState.STARTED and self._depth == self._item_depth:
            self.state = ParseState.DONE
            self.last_attribute_name = ''
        self._depth -= 1

    def attribute_name(self, attr_name: str):
        if self.state is not ParseState.STARTED or self._depth != self._item_depth:
            return
        if attr_name in self.CAPTURED_ATTRIBUTES:
            self.last_attribute_name = attr_name
        else:
            self.last_attribute_name = ''

    def attribute_value(self, value: str):
        if self.state is not ParseState.STARTED or not self.last_attribute_name:
            return
        self.captured[self.last_attribute_name] = value
        self.last_attribute_name = ''

    def range_scaling_factor(self) -> float:
        raw = self._captured_value(MAP_RANGE_SCALING_FACTOR_CLARK)
        text = raw.strip()
        if not _DECIMAL.fullmatch(text):
            raise ParseRejectedError(f'RangeScalingFactor is not a number: {raw!r}')
        value = float(text)
        if not math.isfinite(value):
            raise ParseRejectedError(f'RangeScalingFactor is not finite: {raw!r}')
        return value

    def transfer_function(self) -> TransferFunction:
        raw = self._captured_value(MAP_TRANSFER_FUNCTION_CLARK)
        text = raw.strip()
        if _INTEGER.fullmatch(text):
            try:
                return TransferFunction.from_code(int(text))
            except ValueError:
                pass
        raise ParseRejectedError(f'TransferFunction is not a known code: {raw!r}')

    def _captured_value(self, attr_name: str) -> str:
        if self.state is not ParseState.DONE:
            raise ParseRejectedError('GContainer:Item element not found or not closed')
        raw = self.captured.get(attr_name)
        if raw is None:
            local = attr_name.rsplit('}', 1)[-1]
            raise ParseRejectedError(f'{local} attribute missing')
        return raw


def _xml_portion(xmp_data) -> bytes:
    data = bytes(xmp_data)
    if len(data) < len(XMP_NAMESPACE) + 2:
        raise ParseRejectedError(f'XMP payload too short ({len(data)} bytes)')
    if not data.startswith(XMP_NAMESPACE):
        raise ParseRejectedError('missing XMP namespace signature')
    # Skip the signature and its NUL terminator.
    data = data[len(XMP_NAMESPACE) + 1:]
    # Drop padding after the closing tag; the parser rejects it otherwise.
    end = data.rfind(b'>')
    if end < 0:
        raise ParseRejectedError('no XML markup after XMP signature')
    return data[:end + 1]


def parse_xmp(xmp_data) -> XmpGainMapFields:
    """Parse an XMP APP1 payload. Raises ParseRejectedError on failure."""
    xml_data = _xml_portion(xmp_data)
    machine = ContainerItemMachine()
    try:
        for token in iter_tokens(xml_data):
            machine.feed(token)
    except (ET.ParseError, LookupError) as e:
        # LookupError: the XML declaration names an unknown encoding.
        raise ParseRejectedError(f'ill-formed XMP: {e}') from e
    return XmpGainMapFields(
        range_scaling_factor=machine.range_scaling_factor(),
        transfer_function=machine.transfer_function(),
    )


def get_metadata_from_xmp(xmp_data) -> Optional[XmpGainMapFields]:
    """Parse an XMP APP1 payload. Returns None if it is rejected."""
    try:
        return parse_xmp(xmp_data)
    except ParseRejectedError as e:
        logger.debug('XMP rejected: %s', e)
        return None
