"""XMP namespaces, element and attribute names for JPEG/R metadata.

These literal strings are a wire contract: any reader of recovery map
JPEGs looks them up by exactly these names.
"""

# APP1 segments carrying XMP start with this signature, NUL terminated.
XMP_NAMESPACE = b'http://ns.adobe.com/xap/1.0/'
XMP_SIGNATURE = XMP_NAMESPACE + b'\x00'

XMP_META_URI = 'adobe:ns:meta/'
XMP_TOOLKIT = 'Adobe XMP Core 5.1.2'
RDF_URI = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'


def name(prefix: str, suffix: str) -> str:
    """Qualified name of the form "prefix:suffix"."""
    return f'{prefix}:{suffix}'


# GContainer namespace
CONTAINER_URI = 'http://ns.google.com/photos/1.0/container/'
CONTAINER_PREFIX = 'GContainer'

CON_DIRECTORY = name(CONTAINER_PREFIX, 'Directory')
CON_ITEM = name(CONTAINER_PREFIX, 'Item')
CON_ITEM_LENGTH = name(CONTAINER_PREFIX, 'ItemLength')
CON_ITEM_MIME = name(CONTAINER_PREFIX, 'ItemMime')
CON_ITEM_SEMANTIC = name(CONTAINER_PREFIX, 'ItemSemantic')
CON_VERSION = name(CONTAINER_PREFIX, 'Version')

SEMANTIC_PRIMARY = 'Primary'
SEMANTIC_RECOVERY_MAP = 'RecoveryMap'
MIME_IMAGE_JPEG = 'image/jpeg'

CONTAINER_VERSION = 1

# RecoveryMap namespace
RECOVERY_MAP_URI = 'http://ns.google.com/photos/1.0/recoverymap/'
RECOVERY_MAP_PREFIX = 'RecoveryMap'

MAP_RANGE_SCALING_FACTOR = name(RECOVERY_MAP_PREFIX, 'RangeScalingFactor')
MAP_TRANSFER_FUNCTION = name(RECOVERY_MAP_PREFIX, 'TransferFunction')
MAP_VERSION = name(RECOVERY_MAP_PREFIX, 'Version')

MAP_HDR10_METADATA = name(RECOVERY_MAP_PREFIX, 'HDR10Metadata')
MAP_HDR10_MAX_FALL = name(RECOVERY_MAP_PREFIX, 'HDR10MaxFALL')
MAP_HDR10_MAX_CLL = name(RECOVERY_MAP_PREFIX, 'HDR10MaxCLL')

MAP_ST2086_METADATA = name(RECOVERY_MAP_PREFIX, 'ST2086Metadata')
MAP_ST2086_MAX_LUM = name(RECOVERY_MAP_PREFIX, 'ST2086MaxLuminance')
MAP_ST2086_MIN_LUM = name(RECOVERY_MAP_PREFIX, 'ST2086MinLuminance')
MAP_ST2086_PRIMARY = name(RECOVERY_MAP_PREFIX, 'ST2086Primary')
MAP_ST2086_COORDINATE = name(RECOVERY_MAP_PREFIX, 'ST2086Coordinate')
MAP_ST2086_COORDINATE_X = name(RECOVERY_MAP_PREFIX, 'ST2086CoordinateX')
MAP_ST2086_COORDINATE_Y = name(RECOVERY_MAP_PREFIX, 'ST2086CoordinateY')

ST2086_PRIMARY_RED = 0
ST2086_PRIMARY_GREEN = 1
ST2086_PRIMARY_BLUE = 2
ST2086_PRIMARY_WHITE = 3

# ElementTree reports namespaced names as "{uri}local".
CON_ITEM_CLARK = '{%s}Item' % CONTAINER_URI
MAP_RANGE_SCALING_FACTOR_CLARK = '{%s}RangeScalingFactor' % RECOVERY_MAP_URI
MAP_TRANSFER_FUNCTION_CLARK = '{%s}TransferFunction' % RECOVERY_MAP_URI
